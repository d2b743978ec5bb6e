"""
Data models for rule matching.
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class MatchType(str, Enum):
    """Strategies a rule can use to test the User-Agent."""

    REGEX = "regex"  # template compiled by PatternCompiler
    STRPOS = "strpos"  # case-sensitive substring
    STRIPOS = "stripos"  # case-insensitive substring


class MatchResult(BaseModel):
    """
    The entry a cascade settled on, plus anything secondary extraction captured.

    For device tables extra_fields holds "vendor"; for family tables it holds
    "family" and "is_mobile".
    """

    key: str
    extra_fields: Dict[str, Any] = Field(default_factory=dict)
    captured_version: Optional[str] = None
    captured_model: Optional[str] = None

    @property
    def vendor(self) -> Optional[str]:
        return self.extra_fields.get("vendor")

    @property
    def family(self) -> Optional[str]:
        return self.extra_fields.get("family")

    @property
    def is_mobile(self) -> bool:
        return bool(self.extra_fields.get("is_mobile", False))

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "key": "GalaxyTab",
                "extra_fields": {"vendor": "Samsung"},
                "captured_version": None,
                "captured_model": "T870",
            }
        }
