"""
Message stream implementations.
"""
