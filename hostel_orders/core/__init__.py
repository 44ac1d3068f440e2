"""
Core module initialization.
Exports configuration, logging utilities and the domain exceptions.
"""

from hostel_orders.core.config import (
    EnvironmentMode,
    Settings,
    get_settings,
    setup_logging,
)
from hostel_orders.core.exceptions import (
    AuthError,
    HostelOrderError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)

__all__ = [
    "get_settings",
    "setup_logging",
    "Settings",
    "EnvironmentMode",
    "HostelOrderError",
    "ValidationError",
    "AuthError",
    "NotFoundError",
    "PersistenceError",
]
