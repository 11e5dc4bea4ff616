"""
AI Cost Compare.

Token pricing estimates for a single model or a head-to-head comparison.
"""

__version__ = "0.1.0"
