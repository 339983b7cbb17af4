"""
Publishing package — AdPiler client, mode selection, publish protocols, previews.
"""

from adpiler_sync.publish.client import AdPilerClient, AdPilerError
from adpiler_sync.publish.models import CreativeRecord, Mode, RetryPolicy
from adpiler_sync.publish.modes import resolve_paid, select_mode
from adpiler_sync.publish.preview import PreviewResolver
from adpiler_sync.publish.publisher import CreativePublisher, PublishError, PublishRequest

__all__ = [
    "AdPilerClient",
    "AdPilerError",
    "CreativePublisher",
    "CreativeRecord",
    "Mode",
    "PreviewResolver",
    "PublishError",
    "PublishRequest",
    "RetryPolicy",
    "resolve_paid",
    "select_mode",
]
