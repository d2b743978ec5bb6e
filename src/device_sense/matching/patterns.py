"""
Match template compilation.

Templates are regular expressions with two placeholders:

    [VER]    a version number, captured as "version" (e.g. 12.3.4 or 12_3_4)
    [MODEL]  an alphanumeric model code, captured as "model"

Every template matches case-insensitively. Searches run under a time
limit, so a badly written template can't stall detection on a hostile
User-Agent.
"""

import logging
from contextlib import contextmanager
from functools import lru_cache
from typing import Any, Iterator, Optional

import regex

from ..exceptions import MatchTimeout, PatternCompileError

logger = logging.getLogger(__name__)

VERSION_PLACEHOLDER = "[VER]"
MODEL_PLACEHOLDER = "[MODEL]"

VERSION_GROUP = r"(?P<version>[0-9._-]+)"
MODEL_GROUP = r"(?P<model>[a-zA-Z0-9]+)"

PATTERN_CACHE_SIZE = 2048

# Seconds a single search may run
DEFAULT_MATCH_TIMEOUT = 0.1


@contextmanager
def pattern_diagnostics(template: str) -> Iterator[None]:
    """Turn regex engine errors raised inside the block into PatternCompileError."""
    try:
        yield
    except regex.error as e:
        raise PatternCompileError(template, e.msg, e.pos) from e


def normalize_version(version: str) -> str:
    """Versions use dots: 12_3_4 becomes 12.3.4."""
    return version.replace("_", ".")


@lru_cache(maxsize=PATTERN_CACHE_SIZE)
def _compile(template: str) -> Any:
    with pattern_diagnostics(template):
        return regex.compile(PatternCompiler.prepare(template), regex.IGNORECASE)


class PatternCompiler:
    """
    Turns match templates into compiled, case-insensitive patterns.

    Compiled patterns are memoized process-wide; they are immutable, so
    concurrent detections can share them.
    """

    def __init__(self, timeout: Optional[float] = DEFAULT_MATCH_TIMEOUT):
        """
        Args:
            timeout: Seconds one search may take, None for no limit
        """
        if timeout is not None and timeout <= 0:
            raise ValueError("timeout must be positive")
        self.timeout = timeout

    @staticmethod
    def prepare(template: str) -> str:
        """Substitute the placeholders, leaving the rest of the template as written."""
        return (
            template
            .replace(VERSION_PLACEHOLDER, VERSION_GROUP)
            .replace(MODEL_PLACEHOLDER, MODEL_GROUP)
        )

    def compile(self, template: str) -> Any:
        """
        Compile a template.

        Args:
            template: Match template, optionally containing [VER] / [MODEL]

        Returns:
            Compiled pattern

        Raises:
            PatternCompileError: If the template isn't a valid regular expression
        """
        return _compile(template)

    def search(self, template: str, subject: str) -> Optional[Any]:
        """
        Search subject for template within the time limit.

        Returns:
            The match object, or None

        Raises:
            PatternCompileError: If the template isn't a valid regular expression
            MatchTimeout: If the search ran past the time limit
        """
        pattern = self.compile(template)
        try:
            return pattern.search(subject, timeout=self.timeout)
        except TimeoutError as e:
            logger.warning(f"Pattern {template!r} timed out on a {len(subject)} character subject")
            raise MatchTimeout(template, self.timeout) from e

    @staticmethod
    def cache_info():
        return _compile.cache_info()

    @staticmethod
    def clear_cache() -> None:
        _compile.cache_clear()
