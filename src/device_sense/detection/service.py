"""
Builds detection pipelines from configuration.
"""

import logging
from typing import Optional

from ..config import AppConfig, CacheSettings, DetectionSettings, get_config
from ..matching.cascade import RuleCascade
from ..matching.dispatcher import MatchDispatcher
from ..matching.patterns import PatternCompiler
from ..rules.loader import RuleSet
from .cache import CacheAdapter, InMemoryCache, SQLiteProfileCache
from .pipeline import DetectionPipeline

logger = logging.getLogger(__name__)


def build_cache(settings: CacheSettings) -> Optional[CacheAdapter]:
    """
    Create the configured profile cache.

    Returns:
        CacheAdapter, or None for the "none" backend
    """
    if settings.backend == "memory":
        return InMemoryCache(max_entries=settings.max_entries)
    if settings.backend == "sqlite":
        return SQLiteProfileCache(db_path=settings.db_path)
    return None


def build_cascade(settings: DetectionSettings) -> RuleCascade:
    """Create a rule cascade whose pattern searches honor the configured time limit."""
    return RuleCascade(MatchDispatcher(PatternCompiler(timeout=settings.match_timeout)))


def load_rules(rules_path: Optional[str] = None, validate: bool = True) -> RuleSet:
    """Load rule tables from rules_path, or the bundled ones, optionally validating them."""
    rules = RuleSet.load(rules_path) if rules_path else RuleSet.default()
    if validate:
        counts = rules.validate()
        logger.debug(f"Validated rule tables: {counts}")
    return rules


def build_pipeline(
    config: Optional[AppConfig] = None,
    cache: Optional[CacheAdapter] = None,
) -> DetectionPipeline:
    """
    Create a pipeline from configuration.

    The caller owns the result; keep one per process (or per worker) and
    reuse it across requests.

    Args:
        config: Configuration; the global one if None
        cache: Cache to use instead of the configured backend

    Returns:
        Ready-to-use DetectionPipeline
    """
    config = config or get_config()
    rules = load_rules(config.detection.rules_path, config.detection.validate_rules)

    if cache is None:
        cache = build_cache(config.cache)

    logger.info(
        f"Detection pipeline ready (rules: {rules.source}, cache: {config.cache.backend})"
    )
    return DetectionPipeline(
        rules,
        cache=cache,
        cascade=build_cascade(config.detection),
        max_subject_length=config.detection.max_subject_length,
    )
