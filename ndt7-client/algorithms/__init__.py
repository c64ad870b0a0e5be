"""
Measurement test state machines.
"""
