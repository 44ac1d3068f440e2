"""
                        Services Module

Business logic on top of the document store.

Services:
    - menu: read-only menu catalog
    - identity: student/admin login, session rotation, logout
    - auth_gateway: bearer-token guard used as a FastAPI dependency
    - orders: the order ledger (placement, listing, status, clearing)
    - excel_manager: file-locked spreadsheet export of placed orders
"""

from hostel_orders.services.auth_gateway import (
    AuthContext,
    require_admin,
    require_student,
)
from hostel_orders.services.identity import IdentityService, get_identity_service
from hostel_orders.services.menu import MenuCatalog, get_menu_catalog
from hostel_orders.services.orders import OrderLedger, get_order_ledger

__all__ = [
    "AuthContext",
    "require_admin",
    "require_student",
    "IdentityService",
    "get_identity_service",
    "MenuCatalog",
    "get_menu_catalog",
    "OrderLedger",
    "get_order_ledger",
]
