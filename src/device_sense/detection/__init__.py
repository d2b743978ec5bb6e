"""
Device detection.

This module runs the phone, tablet, operating system and browser cascades
over a request's User-Agent and assembles the resulting device profile.
"""

__all__ = ["models", "pipeline", "cache", "service"]
