"""
Command line interface.
"""

__all__ = ["devicectl"]
