"""
Dual Dread: a cooperative horror text adventure narrated by an LLM.
"""

__version__ = "0.1.0"
