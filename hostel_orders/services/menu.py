"""
Menu Catalog

Read-only view over the ``menu`` collection of the document store.
"""

import logging

from hostel_orders.database import DocumentStore, get_document_store
from hostel_orders.models import MenuItem, StoreDocument

logger = logging.getLogger(__name__)


class MenuCatalog:
    """Lists menu items and indexes them for order validation."""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def list_items(self) -> list[MenuItem]:
        document = await self.store.load()
        return document.menu

    @staticmethod
    def index(document: StoreDocument) -> dict[str, MenuItem]:
        """Map item id to item for the given snapshot."""
        return {item.id: item for item in document.menu}


def get_menu_catalog() -> MenuCatalog:
    return MenuCatalog(get_document_store())
