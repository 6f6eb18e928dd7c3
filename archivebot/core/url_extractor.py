from __future__ import annotations

import logging
import re
from typing import List
from urllib.parse import urlparse

from archivebot.core.errors import LookupFailed, NoUrlsFound

logger = logging.getLogger(__name__)

ARCHIVE_DOMAIN = "web.archive.org"

_SCHEME = r"[a-zA-Z][a-zA-Z0-9+.\-]*://"
_USERINFO = r"(?:[^\s/@:]+(?::[^\s/@]*)?@)?"
_HOST = (
    r"(?:"
    r"\[[0-9a-fA-F:.]+\]"  # IPv6 literal
    r"|\d{1,3}(?:\.\d{1,3}){3}"  # IPv4
    r"|(?:[^\W_](?:[\w\-]*[^\W_])?\.)+[^\W\d_]{2,}"  # domain with alphabetic TLD
    r"|localhost"
    r")"
)
_PORT = r"(?::\d{1,5})?"
_PATH = r"(?:[/?#][^\s<>\"'`]*)?"

URL_PATTERN = re.compile(_SCHEME + _USERINFO + _HOST + _PORT + _PATH)

_TRAILING_PUNCTUATION = ".,;:!?'\""
_CLOSERS = {")": "(", "]": "[", "}": "{"}

_ARCHIVE_LINK = re.compile(r"https?://web\.archive\.org")

# Everything from the first embedded http(s) onwards is the original URL
_ORIGINAL_URL_SEARCH = re.compile(r".*?/web/[^/]*/(https?://.*)")


def _trim(candidate: str) -> str:
    """Drop sentence punctuation and unbalanced closing brackets."""
    while candidate:
        last = candidate[-1]
        if last in _TRAILING_PUNCTUATION:
            candidate = candidate[:-1]
        elif last in _CLOSERS and candidate.count(last) > candidate.count(_CLOSERS[last]):
            candidate = candidate[:-1]
        else:
            break
    return candidate


def extract_urls(text: str) -> List[str]:
    """Return every well-formed absolute URL in *text*, in order, duplicates kept."""
    if not text:
        return []
    urls: List[str] = []
    for match in URL_PATTERN.finditer(text):
        url = _trim(match.group(0))
        if urlparse(url).netloc:
            urls.append(url)
    logger.debug(f"URLs parsed from message: {', '.join(urls)}")
    return urls


def require_urls(text: str) -> List[str]:
    urls = extract_urls(text)
    if not urls:
        raise NoUrlsFound(text)
    return urls


def get_domain_name(url: str) -> str:
    """Hostname of *url* without a leading ``www.``."""
    try:
        hostname = urlparse(url).hostname
    except ValueError as exc:
        raise LookupFailed(url) from exc
    if not hostname:
        raise LookupFailed(url)
    return hostname.removeprefix("www.")


def is_archive_link(text: str) -> bool:
    return _ARCHIVE_LINK.search(text or "") is not None


def original_url_from_archive_link(text: str) -> str | None:  # noqa: D401
    """Recover the original URL from a previously sent archive link.

    Returns ``None`` when nothing usable is found, including when the
    recovered URL still points at the archive itself.
    """
    match = _ORIGINAL_URL_SEARCH.search(text.strip())
    if match is None:
        return None
    original = _trim(match.group(1).split()[0])
    if ARCHIVE_DOMAIN in original:
        logger.error("failed to get original URL from previous archive.org link")
        return None
    return original


def with_trailing_slash(url: str) -> str:
    # archive.org keeps the slash on URLs it hands back
    return url if url.endswith("/") else url + "/"
