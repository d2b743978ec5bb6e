"""
Dispatches a single rule to its match strategy.
"""

import logging
from typing import Optional, Union

from ..exceptions import InvalidSubjectType, UnknownMatchType
from .models import MatchType
from .patterns import PatternCompiler

logger = logging.getLogger(__name__)


class MatchDispatcher:
    """
    Tests one pattern against one subject using regex, strpos or stripos.
    """

    def __init__(self, compiler: Optional[PatternCompiler] = None):
        self.compiler = compiler or PatternCompiler()

    @staticmethod
    def resolve_type(match_type: Union[MatchType, str]) -> MatchType:
        """
        Resolve a rule's type field.

        Raises:
            UnknownMatchType: If it isn't regex, strpos or stripos
        """
        try:
            return MatchType(match_type)
        except (ValueError, TypeError):
            raise UnknownMatchType(match_type) from None

    def evaluate(self, match_type: Union[MatchType, str], pattern: str, subject: str) -> bool:
        """
        Check whether pattern matches subject.

        Args:
            match_type: regex, strpos or stripos
            pattern: Template (regex) or substring (strpos/stripos)
            subject: The string being classified, usually the User-Agent

        Returns:
            True if matched

        Raises:
            UnknownMatchType: For an unrecognized match type
            InvalidSubjectType: If subject isn't a string
            PatternCompileError: If a regex template doesn't compile
            MatchTimeout: If a regex search ran past the time limit
        """
        strategy = self.resolve_type(match_type)

        if not isinstance(subject, str):
            raise InvalidSubjectType(subject)

        if strategy is MatchType.REGEX:
            return self.compiler.search(pattern, subject) is not None
        elif strategy is MatchType.STRPOS:
            return pattern in subject
        else:
            return pattern.casefold() in subject.casefold()
