"""
Source package — Trello card client and the client mapping sheet.
"""

from adpiler_sync.sources.mapping import ClientMappingSheet, MappingNotFoundError
from adpiler_sync.sources.models import Card, ClientMapping, Label
from adpiler_sync.sources.trello import TrelloClient, TrelloError

__all__ = [
    "Card",
    "ClientMapping",
    "ClientMappingSheet",
    "Label",
    "MappingNotFoundError",
    "TrelloClient",
    "TrelloError",
]
