"""
Rule matching engine.

This module compiles match templates, dispatches a rule to its match
strategy and walks ordered rule tables to find the first matching entry.
"""

__all__ = ["models", "patterns", "dispatcher", "cascade"]
