"""
Signature tables.

This module loads the phone, tablet, operating system and browser tables
from YAML and freezes them so they can be shared between requests.
"""

__all__ = ["loader"]
