"""
Rendering of captured record streams.
"""
