"""
Rule table loading.

Tables come from YAML (a bundled sample dataset, or a file the caller
maintains). Once loaded they are deep-frozen: mappings become read-only
proxies and lists become tuples, so one RuleSet can serve any number of
concurrent detections.
"""

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from importlib import resources
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple, Union

import yaml

from ..exceptions import RuleTableError
from ..headers.store import UA_HTTP_HEADERS
from ..matching.cascade import RuleCascade

logger = logging.getLogger(__name__)

DEVICE_TABLES = ("phones", "tablets")
FAMILY_TABLES = ("operating_systems", "browsers")
KNOWN_KEYS = frozenset(DEVICE_TABLES + FAMILY_TABLES + ("ua_headers",))

DEFAULT_RULES_RESOURCE = "data/default_rules.yaml"

_EMPTY: Mapping[str, Any] = MappingProxyType({})


def freeze(value: Any) -> Any:
    """Recursively turn dicts into read-only mappings and lists into tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({k: freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(v) for v in value)
    return value


@dataclass(frozen=True)
class RuleSet:
    """
    The four ordered tables the detection pipeline reads.

    phones/tablets map a model key to a device rule. operating_systems and
    browsers map a family name to item names to family rules.
    """

    phones: Mapping[str, Any] = field(default_factory=lambda: _EMPTY)
    tablets: Mapping[str, Any] = field(default_factory=lambda: _EMPTY)
    operating_systems: Mapping[str, Any] = field(default_factory=lambda: _EMPTY)
    browsers: Mapping[str, Any] = field(default_factory=lambda: _EMPTY)
    ua_headers: Tuple[str, ...] = UA_HTTP_HEADERS
    source: Optional[str] = field(default=None, compare=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], source: Optional[str] = None) -> "RuleSet":
        """
        Build a frozen RuleSet from plain data.

        Args:
            data: Mapping with any of phones, tablets, operating_systems,
                browsers and ua_headers
            source: Where the data came from, for log and error messages

        Raises:
            RuleTableError: If the data or one of its tables isn't a mapping
        """
        origin = source or "<dict>"
        if not isinstance(data, Mapping):
            raise RuleTableError(f"Rule data from {origin} must be a mapping, got {type(data).__name__}")

        unknown = set(data) - KNOWN_KEYS
        if unknown:
            logger.warning(f"Ignoring unknown rule tables in {origin}: {sorted(unknown)}")

        tables: Dict[str, Any] = {}
        for name in DEVICE_TABLES + FAMILY_TABLES:
            table = data.get(name)
            if table is None:
                tables[name] = _EMPTY
                continue
            if not isinstance(table, Mapping):
                raise RuleTableError(f"Table {name!r} in {origin} must be a mapping")
            if name in FAMILY_TABLES:
                for family, group in table.items():
                    if not isinstance(group, Mapping):
                        raise RuleTableError(f"Family {family!r} of {name!r} in {origin} must be a mapping")
            tables[name] = freeze(table)

        ua_headers = data.get("ua_headers")
        if ua_headers is None:
            ua_headers = UA_HTTP_HEADERS
        elif not isinstance(ua_headers, (list, tuple)) or not all(isinstance(h, str) for h in ua_headers):
            raise RuleTableError(f"ua_headers in {origin} must be a list of header names")

        return cls(ua_headers=tuple(ua_headers), source=source, **tables)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "RuleSet":
        """
        Load tables from a YAML file.

        Args:
            path: Path to the YAML file

        Raises:
            RuleTableError: If the file can't be read or parsed
        """
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load rule tables from {path}: {e}")
            raise RuleTableError(f"Cannot load rule tables from {path}: {e}") from e

        rules = cls.from_dict(data or {}, source=str(path))
        logger.info(f"Loaded rule tables from {path}: {rules.summary()}")
        return rules

    @classmethod
    def default(cls) -> "RuleSet":
        """The bundled sample tables, loaded once per process."""
        return load_default_rules()

    def summary(self) -> Dict[str, int]:
        """Entry counts per table."""
        return {
            "phones": len(self.phones),
            "tablets": len(self.tablets),
            "operating_systems": sum(len(g) for g in self.operating_systems.values()),
            "browsers": sum(len(g) for g in self.browsers.values()),
        }

    def validate(self, cascade: Optional[RuleCascade] = None) -> Dict[str, int]:
        """
        Check every rule and compile every template up front.

        Detection validates lazily, only the rules it visits; this walks all
        of them so dataset mistakes surface at load time.

        Returns:
            Entry counts per table

        Raises:
            InvalidRuleSpec, UnknownMatchType, PatternCompileError
        """
        cascade = cascade or RuleCascade()
        return {
            "phones": cascade.validate_flat(self.phones),
            "tablets": cascade.validate_flat(self.tablets),
            "operating_systems": cascade.validate_grouped(self.operating_systems),
            "browsers": cascade.validate_grouped(self.browsers),
        }


@lru_cache(maxsize=1)
def load_default_rules() -> RuleSet:
    resource = resources.files("device_sense.rules").joinpath(DEFAULT_RULES_RESOURCE)
    try:
        data = yaml.safe_load(resource.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Failed to load bundled rule tables: {e}")
        raise RuleTableError(f"Cannot load bundled rule tables: {e}") from e

    rules = RuleSet.from_dict(data, source="<bundled>")
    logger.info(f"Loaded bundled rule tables: {rules.summary()}")
    return rules
