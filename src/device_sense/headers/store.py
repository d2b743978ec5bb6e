"""
Case-insensitive request header store.
"""

import logging
from typing import Dict, Iterable, Iterator, Mapping, Optional, Tuple, Union

from ..exceptions import InvalidHeaderName

logger = logging.getLogger(__name__)

# Request headers accepted without an "x" prefix
REQUEST_HEADERS = frozenset([
    "accept",
    "accept-charset",
    "accept-encoding",
    "accept-language",
    "accept-datetime",
    "authorization",
    "cache-control",
    "connection",
    "cookie",
    "content-length",
    "content-md5",
    "content-type",
    "date",
    "expect",
    "from",
    "host",
    "permanent",
    "if-match",
    "if-modified-since",
    "if-none-match",
    "if-range",
    "if-unmodified-since",
    "max-forwards",
    "origin",
    "pragma",
    "proxy-authorization",
    "range",
    "referer",
    "te",
    "upgrade",
    "user-agent",
    "via",
    "warning",
    # non-standard, listed because they don't start with "x"
    "device-stock-ua",
    "wap-connection",
    "profile",
    "ua-os",
    "ua-cpu",
])

# Headers that carry (part of) a User-Agent, in the order they are joined
UA_HTTP_HEADERS: Tuple[str, ...] = (
    "x-operamini-phone-ua",
    "x-device-user-agent",
    "x-original-user-agent",
    "x-skyfire-phone",
    "x-bolt-phone-ua",
    "device-stock-ua",
    "x-ucbrowser-device-ua",
    "ua-os",
    "profile",
)

USER_AGENT = "user-agent"

HeaderSource = Union["HeaderStore", Mapping[str, str], Iterable[Tuple[str, str]], str, None]


def normalize_header_name(name: str) -> str:
    """
    Normalize a header name to its lowercase, hyphenated form.

    HTTP_USER_AGENT, User_Agent and User-Agent all become user-agent.
    """
    if name[:5].upper() == "HTTP_":
        name = name[5:]
    return name.replace("_", "-").lower()


class HeaderStore:
    """
    Holds the headers of a single request, keyed by lowercase name.

    Usage:
        store = HeaderStore.from_source({"HTTP_USER_AGENT": "Mozilla/5.0 ..."})
        store.get_header("User-Agent")
    """

    def __init__(self) -> None:
        self._headers: Dict[str, str] = {}

    @classmethod
    def from_source(
        cls, source: HeaderSource = None, alternates: Iterable[str] = UA_HTTP_HEADERS
    ) -> "HeaderStore":
        """
        Build a store from whatever the caller has at hand.

        Args:
            source: An existing store, a mapping or iterable of (name, value)
                pairs, a bare User-Agent string, or None for an empty store.

        Returns:
            HeaderStore with the User-Agent resolved
        """
        if isinstance(source, HeaderStore):
            return source.synthesize_user_agent(alternates)

        store = cls()
        if isinstance(source, str):
            store.set_user_agent(source)
        elif source is not None:
            store.ingest_bulk(source)

        return store.synthesize_user_agent(alternates)

    def set_header(self, name: str, value: str) -> "HeaderStore":
        """
        Set a single header.

        Raises:
            InvalidHeaderName: If the name isn't a known request header and
                doesn't start with "x".
        """
        key = normalize_header_name(name)
        if not key or (key[0] != "x" and key not in REQUEST_HEADERS):
            raise InvalidHeaderName(name)

        self._headers[key] = value.strip()
        return self

    def ingest_bulk(
        self, headers: Union[Mapping[str, str], Iterable[Tuple[str, str]]]
    ) -> "HeaderStore":
        """
        Load many headers at once, skipping anything that isn't a usable header.

        Environment-style sources (CGI/WSGI) mix headers with unrelated keys,
        so unknown names, non-string values and malformed pairs are dropped
        quietly.
        """
        items = headers.items() if isinstance(headers, Mapping) else headers
        skipped = 0

        for entry in items:
            if not isinstance(entry, (tuple, list)) or len(entry) != 2:
                skipped += 1
                continue
            name, value = entry
            if not isinstance(name, str) or not isinstance(value, str):
                skipped += 1
                continue
            try:
                self.set_header(name, value)
            except InvalidHeaderName:
                skipped += 1

        if skipped:
            logger.debug(f"Skipped {skipped} unrecognized header entries")
        return self

    def get_header(self, name: str) -> Optional[str]:
        """Get a header by name, in any case or form. None if not set."""
        return self._headers.get(normalize_header_name(name))

    def set_user_agent(self, value: str) -> "HeaderStore":
        """Set the User-Agent explicitly."""
        self._headers[USER_AGENT] = value.strip()
        return self

    @property
    def user_agent(self) -> Optional[str]:
        return self._headers.get(USER_AGENT)

    def synthesize_user_agent(self, alternates: Iterable[str] = UA_HTTP_HEADERS) -> "HeaderStore":
        """
        Build a User-Agent from alternate headers when none was sent.

        Proxies and transcoders (Opera Mini, UC Browser, some carriers) move the
        device's own User-Agent to other headers. Every present alternate is
        joined with a space, in priority order.
        """
        if self.user_agent is not None:
            return self

        parts = [
            self._headers[name]
            for name in (normalize_header_name(alt) for alt in alternates)
            if self._headers.get(name)
        ]

        if parts:
            self._headers[USER_AGENT] = " ".join(parts)
            logger.debug(f"Synthesized User-Agent from {len(parts)} alternate headers")

        return self

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and normalize_header_name(name) in self._headers

    def __len__(self) -> int:
        return len(self._headers)

    def __iter__(self) -> Iterator[Tuple[str, str]]:
        return iter(list(self._headers.items()))

    def __repr__(self) -> str:
        return f"HeaderStore({self._headers!r})"
