"""
Report emission and metrics export.
"""
