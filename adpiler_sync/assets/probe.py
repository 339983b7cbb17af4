"""
Image dimension probing.

The classifier takes a ``DimensionProbe`` — any callable mapping raw bytes
to ``(width, height)`` or ``None``. ``None`` means "could not decode";
passing no probe at all means "decoder unavailable". Both cases route the
asset through the unknown-dimensions rule of the classifier.
"""

from __future__ import annotations

import io
import logging
from typing import Callable, Optional

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

DimensionProbe = Callable[[bytes], Optional[tuple[int, int]]]


def pillow_probe(data: bytes) -> Optional[tuple[int, int]]:
    """Read ``(width, height)`` from the image header with Pillow."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            width, height = img.size
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        logger.debug("Pillow could not decode image: %s", exc)
        return None
    return int(width), int(height)
