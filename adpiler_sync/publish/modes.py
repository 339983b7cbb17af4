"""Publish-mode selection and the paid flag."""

from __future__ import annotations

import re
from typing import Optional

from adpiler_sync.publish.models import Mode

_DISPLAY_HINT_RE = re.compile(r"display", re.I)
_ORGANIC_RE = re.compile(r"organic", re.I)


def select_mode(
    title: str,
    display_asset: Optional[object],
    square_count: int,
    non_display_image_count: int,
    forced_mode: Optional[Mode] = None,
) -> Mode:
    """
    Pick the publish mode. First match wins:

      1. forced mode from configuration
      2. two or more squares          → carousel
      3. two or more non-display imgs → carousel
      4. exactly one square           → post
      5. "display" in title, or a display asset exists → display
      6. otherwise                    → post
    """
    if forced_mode is not None:
        return forced_mode
    if square_count >= 2:
        return Mode.POST_CAROUSEL
    if non_display_image_count >= 2:
        return Mode.POST_CAROUSEL
    if square_count == 1:
        return Mode.POST
    if _DISPLAY_HINT_RE.search(title or "") or display_asset is not None:
        return Mode.DISPLAY
    return Mode.POST


def resolve_paid(title: str, paid_default: bool = True) -> bool:
    """Social ads are paid unless configured otherwise or the title says "organic"."""
    if _ORGANIC_RE.search(title or ""):
        return False
    return paid_default
