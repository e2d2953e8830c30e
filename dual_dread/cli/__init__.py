"""
Command-line interface for Dual Dread.
"""
