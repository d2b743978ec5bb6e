"""
The detection pipeline.

One pass per request, no retries:

1. resolve the User-Agent and consult the cache
2. phone table, then tablet table (a tablet match wins)
3. operating system families, falling back to the OS mobile flag for the type
4. browser families, falling back to the browser mobile flag for the type
5. desktop if nothing decided the type
6. build the profile and offer it to the cache
"""

import logging
from typing import Any, Dict, Optional, Type

from ..exceptions import DetectionFailure, InvalidProfileClass
from ..headers.store import HeaderSource, HeaderStore
from ..matching.cascade import RuleCascade
from ..matching.models import MatchResult
from ..rules.loader import RuleSet
from .cache import CacheAdapter
from .models import DeviceProfile, DeviceType

logger = logging.getLogger(__name__)

DEFAULT_MAX_SUBJECT_LENGTH = 2048


class DetectionPipeline:
    """
    Classifies requests into device profiles.

    The pipeline holds no per-request state: one instance, with its frozen
    rule tables, can serve concurrent requests.

    Usage:
        pipeline = DetectionPipeline(RuleSet.default(), cache=InMemoryCache())
        profile = pipeline.detect({"User-Agent": "Mozilla/5.0 (iPad; ...)"})
        if profile.is_tablet():
            ...
    """

    def __init__(
        self,
        rules: RuleSet,
        cache: Optional[CacheAdapter] = None,
        cascade: Optional[RuleCascade] = None,
        max_subject_length: Optional[int] = DEFAULT_MAX_SUBJECT_LENGTH,
    ):
        """
        Initialize the pipeline.

        Args:
            rules: Signature tables
            cache: Optional profile cache, keyed by User-Agent
            cascade: Rule cascade to use; a default one if None
            max_subject_length: Only this many leading characters of the
                User-Agent are matched against the rules; None for all of them
        """
        if max_subject_length is not None and max_subject_length < 1:
            raise ValueError("max_subject_length must be at least 1")

        self.rules = rules
        self.cache = cache
        self.cascade = cascade or RuleCascade()
        self.max_subject_length = max_subject_length

    def detect(
        self,
        headers: HeaderSource = None,
        profile_cls: Type[DeviceProfile] = DeviceProfile,
    ) -> DeviceProfile:
        """
        Detect the device behind a request.

        Args:
            headers: A HeaderStore, a header mapping, a User-Agent string or None
            profile_cls: DeviceProfile subclass to build

        Returns:
            The device profile (possibly from cache)

        Raises:
            DetectionFailure: If no OS or browser family matched
            InvalidRuleSpec: If a visited rule is malformed
            PatternCompileError: If a primary match template is malformed
            MatchTimeout: If a primary regex search ran past the time limit
            InvalidProfileClass: If profile_cls isn't a DeviceProfile subclass
        """
        if not (isinstance(profile_cls, type) and issubclass(profile_cls, DeviceProfile)):
            raise InvalidProfileClass(f"Invalid profile class: {profile_cls!r}. Must derive from DeviceProfile")

        store = HeaderStore.from_source(headers, self.rules.ua_headers)
        user_agent = store.user_agent or ""

        cached = self._get_cached(user_agent)
        if cached is not None:
            if isinstance(cached, profile_cls):
                logger.debug(f"Profile cache hit for {user_agent!r}")
                return cached
            logger.debug(f"Ignoring cached {type(cached).__name__}, {profile_cls.__name__} requested")

        subject = user_agent
        if self.max_subject_length is not None:
            subject = subject[:self.max_subject_length]

        profile = profile_cls(**self.classify(subject, user_agent))

        self._set_cached(user_agent, profile)
        return profile

    def detect_user_agent(self, user_agent: str) -> DeviceProfile:
        """Detect from a bare User-Agent string."""
        return self.detect(user_agent)

    def classify(self, subject: str, user_agent: Optional[str] = None) -> Dict[str, Any]:
        """
        Run the cascades over subject and compose the profile attributes.

        Args:
            subject: String the rules are matched against
            user_agent: Full User-Agent to record; subject if None

        Returns:
            Keyword arguments for a DeviceProfile
        """
        props: Dict[str, Any] = {}
        device_type: Optional[DeviceType] = None

        phone = self.cascade.match_flat(self.rules.phones, subject)
        if phone is not None:
            device_type = DeviceType.MOBILE

        tablet = self.cascade.match_flat(self.rules.tablets, subject)
        if tablet is not None:
            device_type = DeviceType.TABLET

        os_match = self.cascade.match_grouped(self.rules.operating_systems, subject)
        if os_match is None:
            raise DetectionFailure("No operating system rule matched; the table needs a catch-all entry")

        props["os"] = os_match.key
        props["os_version"] = os_match.captured_version
        props["os_family"] = os_match.family

        # only the OS may tell us this device is mobile
        if device_type is None:
            if os_match.is_mobile:
                device_type = DeviceType.MOBILE
            props["os_fallback_used"] = True

        browser = self.cascade.match_grouped(self.rules.browsers, subject)
        if browser is None:
            raise DetectionFailure("No browser rule matched; the table needs a catch-all entry")

        props["browser"] = browser.key
        props["browser_version"] = browser.captured_version
        props["browser_family"] = browser.family

        if device_type is None:
            if browser.is_mobile:
                device_type = DeviceType.MOBILE
            props["browser_fallback_used"] = True

        props["type"] = device_type or DeviceType.DESKTOP
        props.update(self._device_props(tablet if tablet is not None else phone))
        props["user_agent"] = subject if user_agent is None else user_agent

        logger.debug(
            f"Detected {props['type'].value}: os={props['os']} browser={props['browser']} "
            f"model={props['model']}"
        )
        return props

    @staticmethod
    def _device_props(match: Optional[MatchResult]) -> Dict[str, Optional[str]]:
        if match is None:
            return {"model": None, "model_version": None, "vendor": None}
        return {
            "model": match.captured_model or match.key,
            "model_version": match.captured_version,
            "vendor": match.vendor,
        }

    def _get_cached(self, key: str) -> Optional[DeviceProfile]:
        if self.cache is None or not key:
            return None
        try:
            return self.cache.get(key)
        except Exception as e:
            logger.warning(f"Profile cache lookup failed, detecting instead: {e}")
            return None

    def _set_cached(self, key: str, profile: DeviceProfile) -> None:
        if self.cache is None or not key:
            return
        try:
            if not self.cache.set(key, profile):
                logger.debug(f"Profile cache declined {key!r}")
        except Exception as e:
            logger.warning(f"Failed to cache profile: {e}")
