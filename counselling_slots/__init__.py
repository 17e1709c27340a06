"""
Session availability and booking engine for a counselling practice.
"""

__version__ = "1.0.0"
