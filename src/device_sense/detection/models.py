"""
Device profile models.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class DeviceType(str, Enum):
    """Form factor of the requesting device."""

    MOBILE = "mobile"
    TABLET = "tablet"
    DESKTOP = "desktop"


class DeviceProfile(BaseModel):
    """
    Everything detection learned about the requesting device.

    Profiles are immutable; the pipeline builds one per detection and hands
    it (and its cached copies) to callers as-is.
    """

    type: DeviceType = Field(..., description="Mobile, tablet or desktop")

    os: Optional[str] = Field(None, description="Operating system name (iOS, Android, ...)")
    os_version: Optional[str] = Field(None, description="Dotted OS version if captured")
    os_family: Optional[str] = Field(None, description="OS family key from the rule table")

    browser: Optional[str] = Field(None, description="Browser name")
    browser_version: Optional[str] = Field(None, description="Dotted browser version if captured")
    browser_family: Optional[str] = Field(None, description="Browser family key from the rule table")

    model: Optional[str] = Field(None, description="Device model, when a phone or tablet rule matched")
    model_version: Optional[str] = Field(None, description="Model version if captured")
    vendor: Optional[str] = Field(None, description="Device vendor, when a phone or tablet rule matched")

    user_agent: str = Field("", description="The User-Agent the profile was detected from")

    # Diagnostics: the type had to be inferred from the OS / browser tables
    os_fallback_used: bool = False
    browser_fallback_used: bool = False

    def is_mobile(self) -> bool:
        return self.type == DeviceType.MOBILE

    def is_tablet(self) -> bool:
        return self.type == DeviceType.TABLET

    def is_desktop(self) -> bool:
        return self.type == DeviceType.DESKTOP

    @property
    def display_name(self) -> str:
        """Human-readable summary, e.g. "Chrome on Android (Samsung G991B)"."""
        name = f"{self.browser or 'Unknown browser'} on {self.os or 'unknown OS'}"
        device = " ".join(part for part in (self.vendor, self.model) if part)
        return f"{name} ({device})" if device else name

    class Config:
        frozen = True
        # model and model_version are device fields
        protected_namespaces = ()
        json_schema_extra = {
            "example": {
                "type": "mobile",
                "os": "Android",
                "os_version": "13",
                "os_family": "android",
                "browser": "Chrome",
                "browser_version": "112.0.0.0",
                "browser_family": "chrome",
                "model": "G991B",
                "model_version": None,
                "vendor": "Samsung",
                "user_agent": "Mozilla/5.0 (Linux; Android 13; SM-G991B) ...",
                "os_fallback_used": False,
                "browser_fallback_used": False,
            }
        }
