"""Ad copy package — AdMeta model and description parsing."""

from adpiler_sync.content.meta import extract_ad_meta, is_http_url
from adpiler_sync.content.models import AdMeta

__all__ = ["AdMeta", "extract_ad_meta", "is_http_url"]
