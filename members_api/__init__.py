"""
Members API - guild roster backend.
"""

__version__ = "0.3.0"
