"""
Address classifier for Browser Shell.

Decides what the user meant when they typed into the address bar: a
local or private address, a URL with a scheme, a bare domain, or a
web search. This classifies intent, not validity; it never raises.
"""

import ipaddress
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union
from urllib.parse import quote, urlsplit

from .config import DEFAULT_SEARCH_ENGINE, get_search_template

logger = logging.getLogger(__name__)


class ClassificationKind(str, Enum):
    """Kind of address bar input."""
    EMPTY = "empty"
    LOCAL_OR_PRIVATE = "local_or_private"
    DIRECT_URL = "direct_url"
    LIKELY_DOMAIN = "likely_domain"
    SEARCH_QUERY = "search_query"


@dataclass(frozen=True)
class ClassificationResult:
    """Result of classifying address bar input.

    For navigable kinds ``url`` is the address to load. For
    SEARCH_QUERY ``term`` holds the trimmed input and ``url`` the
    suggested search URL.
    """

    kind: ClassificationKind
    url: str = ""
    term: str = ""

    @property
    def is_navigable(self) -> bool:
        """Whether the caller should navigate at all."""
        return self.kind != ClassificationKind.EMPTY

    @property
    def is_search(self) -> bool:
        return self.kind == ClassificationKind.SEARCH_QUERY

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for debug logging."""
        return {
            "kind": self.kind.value,
            "url": self.url,
            "term": self.term,
        }


IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

# Prefixes that are navigated as-is by ensure_url_with_protocol
KNOWN_PREFIXES = ("http://", "https://", "file://", "about:")

LOOPBACK_LITERALS = {"127.0.0.1", "::1", "[::1]"}

# RFC1918 plus IPv4 link-local, as (network, mask)
PRIVATE_IPV4_RANGES = [
    (0x0A000000, 0xFF000000),  # 10.0.0.0/8
    (0xAC100000, 0xFFF00000),  # 172.16.0.0/12
    (0xC0A80000, 0xFFFF0000),  # 192.168.0.0/16
    (0xA9FE0000, 0xFFFF0000),  # 169.254.0.0/16
]

_SCHEME_PATTERN = re.compile(r"^[a-z][a-z0-9+\-]*$", re.IGNORECASE)
_WHITESPACE_PATTERN = re.compile(r"\s")


def _parse_ip(host: str) -> Optional[IPAddress]:
    """Parse an IP literal, returning None when host is not one."""
    try:
        return ipaddress.ip_address(host.strip("[]"))
    except ValueError:
        return None


def extract_host(text: str) -> str:
    """Derive a bare, lower-cased host token from address bar input.

    Takes the part before the first ``/``, then before the first ``?``,
    then before the first ``:``. Bracketed literals (``[::1]:8080``) and
    bare IPv6 literals keep their colons.

    Args:
        text: Address bar input

    Returns:
        Host token, or the whole lower-cased input if extraction fails
    """
    try:
        authority = text.split("/")[0].split("?")[0]
        if authority.startswith("[") and "]" in authority:
            return authority[1:authority.index("]")].lower()
        if authority.count(":") > 1 and _parse_ip(authority) is not None:
            return authority.lower()
        return authority.split(":")[0].lower()
    except (AttributeError, IndexError):
        return text.lower()


def is_private_ip_address(host: str) -> bool:
    """Check whether an IP literal falls in a private or link-local range.

    IPv4: 10/8, 172.16/12, 192.168/16, 169.254/16.
    IPv6: link-local, loopback and unique-local (fc00::/7).
    Anything that is not an IP literal is not private.
    """
    address = _parse_ip(host)
    if address is None:
        return False

    if address.version == 4:
        value = int(address)
        return any((value & mask) == network for network, mask in PRIVATE_IPV4_RANGES)

    if address.is_link_local or address.is_loopback:
        return True
    return (address.packed[0] & 0xFE) == 0xFC


def is_local_or_private_host(host: str) -> bool:
    """Check whether an extracted host is localhost, loopback or private."""
    if not host:
        return False

    if host == "localhost" or host.startswith("localhost."):
        return True

    if host in LOOPBACK_LITERALS:
        return True

    address = _parse_ip(host)
    if address is None:
        return False
    return is_private_ip_address(host) or address.is_loopback


def is_local_or_private_address(text: str) -> bool:
    """Check whether address bar input targets a local or private host."""
    text = text.strip()
    if not text:
        return False
    return is_local_or_private_host(extract_host(text))


def is_valid_url(text: str) -> bool:
    """Check whether input carries an explicit URL scheme.

    ``example.com:8080`` would parse with scheme ``example.com``; dotted
    schemes and whitespace are rejected so such input reaches the
    domain heuristic instead.
    """
    if not text or _WHITESPACE_PATTERN.search(text):
        return False
    try:
        scheme = urlsplit(text).scheme
    except ValueError:
        return False
    return bool(scheme) and bool(_SCHEME_PATTERN.match(scheme))


def is_likely_domain(text: str) -> bool:
    """Simple domain check: contains a dot and no whitespace."""
    return "." in text and not _WHITESPACE_PATTERN.search(text)


def build_search_url(term: str, engine: str = DEFAULT_SEARCH_ENGINE) -> str:
    """Percent-encode a search term into an engine's query template."""
    return get_search_template(engine).format(quote(term, safe=""))


def ensure_url_with_protocol(url: str) -> str:
    """Add a scheme to bare input.

    Local and private hosts get ``http://`` since intranet and dev
    servers often lack TLS; everything else gets ``https://``.
    """
    url = url.strip()
    if not url:
        return "about:blank"
    if url.startswith(KNOWN_PREFIXES):
        return url
    if is_local_or_private_address(url):
        return "http://" + url
    return "https://" + url


class AddressClassifier:
    """Classifies address bar input into a navigation or search intent.

    Checks run in a fixed order and the first match wins:
    1. local/private host
    2. explicit URL scheme
    3. bare domain heuristic
    4. web search
    """

    def __init__(self, search_engine: str = DEFAULT_SEARCH_ENGINE):
        """Initialize the classifier.

        Args:
            search_engine: Engine name used for search URLs
        """
        self.search_engine = search_engine

    def search_url(self, term: str) -> str:
        """Build the search URL for a term with this classifier's engine."""
        return build_search_url(term, self.search_engine)

    def classify(self, raw_input: Optional[str]) -> ClassificationResult:
        """Classify raw address bar input.

        Args:
            raw_input: Text as typed; may be empty or None

        Returns:
            ClassificationResult; EMPTY for blank input
        """
        text = (raw_input or "").strip()
        result = self._classify(text)
        logger.debug(f"Classified {text!r}: {result.to_dict()}")
        return result

    def _classify(self, text: str) -> ClassificationResult:
        if not text:
            return ClassificationResult(kind=ClassificationKind.EMPTY)

        if is_local_or_private_address(text):
            return ClassificationResult(
                kind=ClassificationKind.LOCAL_OR_PRIVATE,
                url=ensure_url_with_protocol(text),
            )

        if is_valid_url(text):
            return ClassificationResult(kind=ClassificationKind.DIRECT_URL, url=text)

        if is_likely_domain(text):
            url = text if text.startswith("http") else "https://" + text
            return ClassificationResult(kind=ClassificationKind.LIKELY_DOMAIN, url=url)

        return ClassificationResult(
            kind=ClassificationKind.SEARCH_QUERY,
            url=self.search_url(text),
            term=text,
        )
