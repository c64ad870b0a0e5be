"""
Server discovery and sub-test orchestration.
"""
