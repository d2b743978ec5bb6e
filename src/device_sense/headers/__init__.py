"""
Request header handling.

This module normalizes incoming header names and resolves the User-Agent
used for detection.
"""

__all__ = ["store"]
