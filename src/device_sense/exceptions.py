"""
Exception hierarchy for device detection.
"""

from typing import Optional


class DeviceSenseError(Exception):
    """Base class for all device-sense errors."""
    pass


class InvalidHeaderName(DeviceSenseError, ValueError):
    """Raised when a header name is neither a known request header nor an X- extension."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"The request header {name!r} isn't a recognized HTTP header name")


class UnknownMatchType(DeviceSenseError, ValueError):
    """Raised when a rule asks for a match strategy the dispatcher doesn't know."""

    def __init__(self, match_type: object):
        self.match_type = match_type
        super().__init__(f"Unknown match type: {match_type}")


class InvalidSubjectType(DeviceSenseError, TypeError):
    """Raised when the string being matched against isn't a string."""

    def __init__(self, subject: object):
        self.subject_type = type(subject).__name__
        super().__init__(f"Invalid type passed: {self.subject_type}")


class InvalidRuleSpec(DeviceSenseError):
    """Raised when a rule table entry is missing a required field."""

    def __init__(self, name: str, field: str, reason: str = "Missing"):
        self.rule_name = name
        self.field = field
        super().__init__(f"Invalid spec for {name}. {reason} {field} key.")


class PatternCompileError(DeviceSenseError):
    """Raised when a match template doesn't compile to a valid regular expression."""

    def __init__(self, template: str, message: str, position: Optional[int] = None):
        self.template = template
        self.message = message
        self.position = position
        where = f" at position {position}" if position is not None else ""
        super().__init__(f"Cannot compile pattern {template!r}: {message}{where}")


class DetectionFailure(DeviceSenseError):
    """Raised when a family table has no entry matching the User-Agent."""
    pass


class RuleTableError(DeviceSenseError):
    """Raised when a rule table file can't be read or has the wrong shape."""
    pass


class InvalidProfileClass(DeviceSenseError, TypeError):
    """Raised when detect() is asked to build something that isn't a DeviceProfile."""
    pass


class MatchTimeout(DeviceSenseError):
    """Raised when a pattern search runs past its time limit."""

    def __init__(self, template: str, timeout: Optional[float]):
        self.template = template
        self.timeout = timeout
        super().__init__(f"Pattern {template!r} timed out after {timeout}s")
