"""
Order Ledger

Validates, places, lists, updates and clears orders, and owns the
``meta.nextOrderId`` counter.

Guarantees:
    - Order ids come only from ``meta.nextOrderId``, which is bumped by
      exactly one in the same write that stores the order. Ids are
      never reused, even after an order is cleared.
    - Line name and price are copied from the menu at placement time;
      ``total`` is the sum of line totals and is never recomputed.
    - A rejected request writes nothing: the transaction is abandoned
      before the counter or the order list is touched on disk.

Status changes are unrestricted: any allowed status may follow any
other. Clearing an order does not require a terminal status.

Version: 1.0.0
"""

import logging
import re
from datetime import datetime, timezone
from typing import Any, Optional

from hostel_orders.core.config import Settings, get_settings
from hostel_orders.core.exceptions import AuthError, NotFoundError, ValidationError
from hostel_orders.database import DocumentStore, get_document_store
from hostel_orders.models import (
    Order,
    OrderLine,
    OrderStatus,
    PaymentMethod,
    Role,
    Session,
    StoreDocument,
    Student,
)
from hostel_orders.schemas import OrderCreate
from hostel_orders.services.auth_gateway import AuthContext
from hostel_orders.services.identity import clean_text
from hostel_orders.services.menu import MenuCatalog

logger = logging.getLogger(__name__)

ALLOWED_STATUSES = [s.value for s in OrderStatus]

ORDER_ID_PATTERN = re.compile(r"[+-]?[0-9]+")


# =============================================================================
# INPUT PARSING
# =============================================================================

def parse_quantity(value: Any) -> Optional[int]:
    """Return ``value`` as an int if it is integral, else None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def parse_order_id(value: Any) -> int:
    text = str(value).strip()
    if not ORDER_ID_PATTERN.fullmatch(text):
        raise ValidationError("invalid order id")
    return int(text)


def parse_status(value: Any) -> OrderStatus:
    try:
        return OrderStatus(clean_text(value).lower())
    except ValueError:
        raise ValidationError(f"status must be one of: {', '.join(ALLOWED_STATUSES)}")


def clamp_limit(value: Any, default: int, maximum: int) -> int:
    """
    Clamp a requested listing size into [1, maximum].

    Absent, non-numeric (including NaN) and zero values fall back to
    ``default``. Fractions are truncated after clamping.
    """
    try:
        limit = float(value)
    except (TypeError, ValueError):
        return default
    if limit != limit or limit == 0:
        return default
    return int(max(1, min(maximum, limit)))


def newest_first(orders: list[Order]) -> list[Order]:
    return sorted(orders, key=lambda order: order.sort_key, reverse=True)


# =============================================================================
# LEDGER
# =============================================================================

class OrderLedger:
    """
    The authoritative list of placed orders.

    Attributes:
        store: Document store every operation reads and writes
        settings: Numbering prefix, quantity bound and listing limits
    """

    def __init__(self, store: DocumentStore, settings: Optional[Settings] = None):
        self.store = store
        self.settings = settings or get_settings()

    # =========================================================================
    # PLACING ORDERS
    # =========================================================================

    async def place_order(self, session: Session, payload: OrderCreate) -> Order:
        """
        Validate ``payload`` against the current menu and store a new order.

        Args:
            session: Session of the ordering student
            payload: Requested order

        Returns:
            Order: The stored order, status ``pending``

        Raises:
            AuthError: if the session's student no longer exists
            ValidationError: for missing fields, an unknown payment method,
                an empty cart, an unknown item, a bad quantity, or an
                out-of-stock item
        """
        async with self.store.transaction() as document:
            order = self.build_order(document, session, payload)
            document.orders.append(order)

        logger.info(
            f"Order {order.order_number} placed by {order.student_email} "
            f"({len(order.items)} lines, total {order.total})"
        )
        return order

    def build_order(
        self,
        document: StoreDocument,
        session: Session,
        payload: OrderCreate,
    ) -> Order:
        """Validate and price an order, allocating its id from ``document``."""
        student = self._acting_student(document, session)
        if document.find_session(session.token, Role.STUDENT) is None:
            raise AuthError("invalid or expired token")

        customer_name = clean_text(payload.customer_name)
        room_number = clean_text(payload.room_number)
        phone = clean_text(payload.phone)
        notes = clean_text(payload.notes)

        if not customer_name or not room_number or not phone:
            raise ValidationError("name, room number, and phone are required")

        try:
            payment_method = PaymentMethod(clean_text(payload.payment_method or "cash").lower())
        except ValueError:
            raise ValidationError("payment method must be cash or upi")

        if not payload.items:
            raise ValidationError("at least one item is required")

        lines = self._price_lines(document, payload)

        order_id = document.meta.next_order_id
        document.meta.next_order_id += 1

        return Order(
            id=order_id,
            order_number=f"{self.settings.order_number_prefix}{order_id}",
            customer_name=customer_name,
            room_number=room_number,
            phone=phone,
            student_email=student.email,
            payment_method=payment_method,
            notes=notes,
            status=OrderStatus.PENDING,
            created_at=datetime.now(timezone.utc),
            items=lines,
            total=sum(line.line_total for line in lines),
        )

    def _price_lines(self, document: StoreDocument, payload: OrderCreate) -> list[OrderLine]:
        menu = MenuCatalog.index(document)
        max_quantity = self.settings.max_item_quantity
        lines = []

        for requested in payload.items:
            item = menu.get(requested.item_id) if requested.item_id else None
            quantity = parse_quantity(requested.quantity)
            if item is None or quantity is None or not 1 <= quantity <= max_quantity:
                raise ValidationError("one or more items are invalid")
            if not item.in_stock:
                raise ValidationError(f"{item.name} is currently out of stock")

            lines.append(OrderLine(
                item_id=item.id,
                name=item.name,
                price=item.price,
                quantity=quantity,
                line_total=item.price * quantity,
            ))

        return lines

    # =========================================================================
    # LISTING
    # =========================================================================

    def list_my_orders(self, auth: AuthContext) -> list[Order]:
        """The acting student's most recent orders, newest first."""
        student = self._acting_student(auth.document, auth.session)
        mine = [o for o in auth.document.orders if o.student_email == student.email]
        return newest_first(mine)[:self.settings.my_orders_limit]

    def list_all_orders(self, auth: AuthContext, limit: Any = None) -> list[Order]:
        """Every order, newest first, truncated to the clamped ``limit``."""
        self._require_admin(auth.session)
        limit = clamp_limit(
            limit,
            default=self.settings.admin_orders_default_limit,
            maximum=self.settings.admin_orders_max_limit,
        )
        return newest_first(auth.document.orders)[:limit]

    # =========================================================================
    # ADMIN MUTATIONS
    # =========================================================================

    async def update_status(self, session: Session, order_id: Any, new_status: Any) -> Order:
        """
        Overwrite the status of an order.

        Raises:
            ValidationError: for a malformed id or an unknown status
            NotFoundError: if no order has that id
        """
        self._require_admin(session)
        order_id = parse_order_id(order_id)
        status = parse_status(new_status)

        async with self.store.transaction() as document:
            order = self._find(document, order_id)
            previous = order.status
            order.status = status

        logger.info(f"Order {order.order_number}: {previous.value} -> {status.value}")
        return order

    async def delete_order(self, session: Session, order_id: Any) -> Order:
        """Remove an order from the ledger and return it."""
        self._require_admin(session)
        order_id = parse_order_id(order_id)

        async with self.store.transaction() as document:
            order = self._find(document, order_id)
            document.orders = [o for o in document.orders if o.id != order_id]

        logger.info(f"Order {order.order_number} cleared (status {order.status.value})")
        return order

    # =========================================================================
    # HELPERS
    # =========================================================================

    @staticmethod
    def _acting_student(document: StoreDocument, session: Session) -> Student:
        if session.role != Role.STUDENT:
            raise AuthError("student session required")
        student = document.find_student(session.user_id)
        if student is None:
            raise AuthError("invalid student session")
        return student

    @staticmethod
    def _require_admin(session: Session) -> None:
        if session.role != Role.ADMIN:
            raise AuthError("admin session required")

    @staticmethod
    def _find(document: StoreDocument, order_id: int) -> Order:
        order = document.find_order(order_id)
        if order is None:
            raise NotFoundError("order not found")
        return order


def get_order_ledger() -> OrderLedger:
    return OrderLedger(get_document_store(), get_settings())
