"""
URL and domain utility functions for tracker observations.
"""

from __future__ import annotations

import re
from urllib import parse

_TWO_PART_TLDS = frozenset([
    "co.uk", "com.au", "co.nz", "co.jp", "com.br",
    "co.in", "org.uk", "net.uk", "gov.uk",
])


def extract_domain(url: str) -> str:
    """Extract the hostname from a URL string."""
    try:
        parsed = parse.urlparse(url)
        return parsed.hostname or "unknown"
    except ValueError:
        return "unknown"


def normalize_host(value: str) -> str:
    """Lower-case a hostname, accepting a full URL as well.

    ``"https://WWW.Example.com/x"`` and ``"www.example.com."``
    both become ``"www.example.com"``.
    """
    value = value.strip()
    if "://" in value:
        value = extract_domain(value)
    return value.lower().rstrip(".")


def get_base_domain(domain: str) -> str:
    """Extract the registrable base domain from a full hostname.

    Handles common multi-part TLDs (e.g. ``co.uk``,
    ``com.au``) and strips a leading ``www.`` prefix.

    Args:
        domain: A hostname like ``"www.example.co.uk"``.

    Returns:
        The base domain, e.g. ``"example.co.uk"``.
    """
    clean = re.sub(r"^www\.", "", domain).lower()
    parts = clean.split(".")
    if len(parts) >= 2:
        last_two = ".".join(parts[-2:])
        if last_two in _TWO_PART_TLDS and len(parts) >= 3:
            return ".".join(parts[-3:])
        return last_two
    return clean


def is_third_party(tracker_domain: str, first_party_domain: str) -> bool:
    """Determine whether a tracker host belongs to a different registrable domain."""
    tracker_base = get_base_domain(normalize_host(tracker_domain))
    site_base = get_base_domain(normalize_host(first_party_domain))
    return tracker_base != site_base


def strip_query(url: str) -> str:
    """Drop the query string and fragment from a URL.

    Query parameters routinely carry identifiers, so only the
    scheme, host and path of a source URL are ever stored.
    """
    try:
        parsed = parse.urlsplit(url)
    except ValueError:
        return ""
    return parse.urlunsplit((parsed.scheme, parsed.netloc, parsed.path, "", ""))


def request_path(url: str) -> str:
    """Return the path component of a URL, or ``""`` when unparseable."""
    try:
        return parse.urlsplit(url).path or ""
    except ValueError:
        return ""
