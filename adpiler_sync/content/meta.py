"""
Card description → AdMeta.

Cards carry their copy as ``Label: value`` lines, e.g.::

    Primary Text: Spring savings are here
    Headline: 20% off everything
    CTA: Shop Now
    Click Through URL: https://acme.example/spring
"""

from __future__ import annotations

import re
from typing import Optional
from urllib.parse import urlparse

from adpiler_sync.content.models import AdMeta

# field → accepted labels, most specific first
_LABELS: dict[str, tuple[str, ...]] = {
    "primary": ("Primary Text", "Caption"),
    "headline": ("Headline",),
    "description": ("Description",),
    "cta": ("CTA", "Call To Action"),
    "url": ("Click Through URL", "Landing Page", "URL"),
    "display_link": ("Display Link", "Display URL"),
}


def _grab(desc: str, label: str) -> Optional[str]:
    pattern = re.compile(rf"^[ \t*_-]*{re.escape(label)}[ \t*_]*:[ \t]*(.+)$", re.I | re.M)
    m = pattern.search(desc)
    if not m:
        return None
    value = m.group(1).strip().strip("*_").strip()
    return value or None


def extract_ad_meta(description: Optional[str]) -> AdMeta:
    """Parse the copy fields out of a card description."""
    desc = description or ""
    values: dict[str, Optional[str]] = {}
    for field_name, labels in _LABELS.items():
        for label in labels:
            value = _grab(desc, label)
            if value:
                values[field_name] = value
                break
    return AdMeta(**values)


def is_http_url(value: Optional[str]) -> bool:
    """True for an absolute http(s) URL with a host."""
    if not value:
        return False
    parsed = urlparse(value.strip())
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)
