"""
Ordered lookups over rule tables.

Device tables are flat: an ordered mapping of model key to rule. Family
tables (operating systems, browsers) are grouped: family name, then item
name, then rule. In both cases the first rule that matches wins; the
table's order is the precedence.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any, Dict, Iterable, Iterator, Optional, Tuple

from ..exceptions import InvalidRuleSpec, MatchTimeout, PatternCompileError
from .dispatcher import MatchDispatcher
from .models import MatchResult, MatchType
from .patterns import normalize_version

logger = logging.getLogger(__name__)

RuleTable = Any  # Mapping[str, Mapping] or Iterable[Tuple[str, Mapping]]


def iter_entries(table: RuleTable) -> Iterator[Tuple[str, Any]]:
    """Iterate (name, entry) pairs of a table in its defined order."""
    if table is None:
        return iter(())
    if isinstance(table, Mapping):
        return iter(table.items())
    return iter(table)


def _as_patterns(value: Any) -> Optional[Tuple[str, ...]]:
    """A template or a sequence of templates as a tuple, None if neither."""
    if isinstance(value, str):
        return (value,)
    if isinstance(value, Sequence) and value and all(isinstance(v, str) for v in value):
        return tuple(value)
    return None


class RuleCascade:
    """
    Walks rule tables and returns the first matching entry.

    Usage:
        cascade = RuleCascade()
        result = cascade.match_flat(rules.phones, user_agent)
        if result:
            print(result.key, result.vendor, result.captured_model)
    """

    def __init__(self, dispatcher: Optional[MatchDispatcher] = None):
        self.dispatcher = dispatcher or MatchDispatcher()
        self.compiler = self.dispatcher.compiler

    def match_flat(self, rules: RuleTable, subject: str) -> Optional[MatchResult]:
        """
        Find the first device rule matching subject.

        Args:
            rules: Ordered device table (model key -> rule)
            subject: User-Agent

        Returns:
            MatchResult with vendor and any modelMatch captures, or None

        Raises:
            InvalidRuleSpec: If a rule visited before the match lacks match or vendor
            PatternCompileError: If a primary match template is malformed
            MatchTimeout: If a primary regex search ran past the time limit
        """
        for name, rule in iter_entries(rules):
            match_type, patterns = self._check_rule(name, rule)
            self._check_vendor(name, rule)

            if not self._matches(match_type, patterns, subject):
                continue

            captures = self.extract(self._secondary(name, rule, "modelMatch"), subject)
            logger.debug(f"Device rule {name!r} matched (captures: {captures})")

            return MatchResult(
                key=name,
                extra_fields={"vendor": rule["vendor"]},
                captured_version=captures.get("version"),
                captured_model=captures.get("model"),
            )

        return None

    def match_grouped(self, groups: RuleTable, subject: str) -> Optional[MatchResult]:
        """
        Find the first family item matching subject.

        Args:
            groups: Ordered family table (family -> item name -> rule)
            subject: User-Agent

        Returns:
            MatchResult with family, is_mobile and any versionMatch capture, or None

        Raises:
            InvalidRuleSpec: If an item visited before the match lacks match or isMobile
            PatternCompileError: If a primary match template is malformed
            MatchTimeout: If a primary regex search ran past the time limit
        """
        for family, group in iter_entries(groups):
            self._check_family(family)
            for name, item in iter_entries(group):
                match_type, patterns = self._check_rule(name, item)
                is_mobile = item.get("isMobile")
                if is_mobile is None:
                    raise InvalidRuleSpec(name, "isMobile")
                if not isinstance(is_mobile, bool):
                    raise InvalidRuleSpec(name, "isMobile", "Non-boolean")

                if not self._matches(match_type, patterns, subject):
                    continue

                captures = self.extract(self._secondary(name, item, "versionMatch"), subject)
                logger.debug(f"Family rule {family}/{name} matched (captures: {captures})")

                return MatchResult(
                    key=name,
                    extra_fields={"family": family, "is_mobile": is_mobile},
                    captured_version=captures.get("version"),
                    captured_model=captures.get("model"),
                )

        return None

    def extract(self, patterns: Optional[Iterable[str]], subject: str) -> Dict[str, str]:
        """
        Secondary extraction of version and model from an already matched subject.

        Every pattern is tried, in order. Each one that matches overwrites the
        fields it captured, so later patterns refine earlier ones. A pattern
        that fails to compile or times out is skipped.

        Args:
            patterns: Templates using [VER] and/or [MODEL]
            subject: User-Agent

        Returns:
            Dict with "version" and/or "model" when captured
        """
        captures: Dict[str, str] = {}
        if not patterns:
            return captures
        if isinstance(patterns, str):
            patterns = (patterns,)

        for template in patterns:
            try:
                found = self.compiler.search(template, subject)
            except (PatternCompileError, MatchTimeout) as e:
                logger.warning(f"Skipping secondary pattern: {e}")
                continue

            if found is None:
                continue

            groups = found.groupdict()
            if groups.get("version") is not None:
                captures["version"] = normalize_version(groups["version"])
            if groups.get("model") is not None:
                captures["model"] = groups["model"]

        return captures

    def validate_flat(self, rules: RuleTable) -> int:
        """
        Check every device rule and compile every template in the table.

        Returns:
            Number of rules checked

        Raises:
            InvalidRuleSpec, UnknownMatchType, PatternCompileError
        """
        count = 0
        for name, rule in iter_entries(rules):
            self._validate_rule(name, rule, "modelMatch")
            self._check_vendor(name, rule)
            count += 1
        return count

    def validate_grouped(self, groups: RuleTable) -> int:
        """
        Check every family item and compile every template in the table.

        Returns:
            Number of items checked
        """
        count = 0
        for family, group in iter_entries(groups):
            self._check_family(family)
            for name, item in iter_entries(group):
                self._validate_rule(name, item, "versionMatch")
                if not isinstance(item.get("isMobile"), bool):
                    raise InvalidRuleSpec(name, "isMobile")
                count += 1
        return count

    def _check_rule(self, name: str, rule: Any) -> Tuple[str, Tuple[str, ...]]:
        """Validate the fields every rule needs; returns (type, match templates)."""
        # unquoted YAML keys such as 3310 load as numbers
        if not isinstance(name, str):
            raise InvalidRuleSpec(str(name), "name", "Non-string")
        if not isinstance(rule, Mapping):
            raise InvalidRuleSpec(name, "match", "Malformed rule, no")

        # regex unless stated otherwise
        match_type = rule.get("type") or MatchType.REGEX.value

        if rule.get("match") is None:
            raise InvalidRuleSpec(name, "match")

        patterns = _as_patterns(rule["match"])
        if patterns is None:
            raise InvalidRuleSpec(name, "match", "Invalid")

        return match_type, patterns

    @staticmethod
    def _check_vendor(name: str, rule: Mapping) -> None:
        vendor = rule.get("vendor")
        if vendor is None:
            raise InvalidRuleSpec(name, "vendor")
        if not isinstance(vendor, str):
            raise InvalidRuleSpec(name, "vendor", "Non-string")

    @staticmethod
    def _check_family(family: Any) -> None:
        if not isinstance(family, str):
            raise InvalidRuleSpec(str(family), "family", "Non-string")

    def _matches(self, match_type: str, patterns: Tuple[str, ...], subject: str) -> bool:
        return any(self.dispatcher.evaluate(match_type, p, subject) for p in patterns)

    def _secondary(self, name: str, rule: Mapping, field: str) -> Tuple[str, ...]:
        value = rule.get(field)
        if value is None:
            return ()
        patterns = _as_patterns(value)
        if patterns is None:
            raise InvalidRuleSpec(name, field, "Invalid")
        return patterns

    def _validate_rule(self, name: str, rule: Any, secondary_field: str) -> None:
        match_type, patterns = self._check_rule(name, rule)
        strategy = self.dispatcher.resolve_type(match_type)
        templates = list(self._secondary(name, rule, secondary_field))
        if strategy is MatchType.REGEX:
            templates = list(patterns) + templates
        for template in templates:
            self.compiler.compile(template)
