"""
Persisted Document Models

Everything the system stores lives in one JSON document:

    {
        "menu":     [MenuItem, ...],
        "orders":   [Order, ...],
        "sessions": [Session, ...],
        "students": [Student, ...],
        "admins":   [AdminAccount],
        "meta":     {"nextOrderId": 1001}
    }

Keys are camelCase on disk and on the wire; attributes are snake_case
in Python. Models are plain mutable pydantic models so services can
mutate a loaded document in place before it is written back.

Version: 1.0.0
"""

import enum
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class OrderStatus(str, enum.Enum):
    """Order status values. Any status may follow any other."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    PREPARING = "preparing"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentMethod(str, enum.Enum):
    """Payment is settled offline; this only records the method."""
    CASH = "cash"
    UPI = "upi"


class Role(str, enum.Enum):
    STUDENT = "student"
    ADMIN = "admin"


class AuthProvider(str, enum.Enum):
    """How a student last signed in."""
    EMAIL = "email"
    GOOGLE = "google"


class DocumentModel(BaseModel):
    """Base for every stored record: camelCase aliases, populate by either name."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_json_dict(self) -> dict:
        """Serialize with on-disk key names and JSON-safe values."""
        return self.model_dump(by_alias=True, mode="json")


# =============================================================================
# MENU
# =============================================================================

class MenuItem(DocumentModel):
    id: str
    name: str
    category: str
    price: int
    in_stock: bool = True


# =============================================================================
# IDENTITIES & SESSIONS
# =============================================================================

class Student(DocumentModel):
    """
    A hostel resident.

    ``email`` (trimmed, lower-cased) is the durable identity key; ``name``
    and ``provider`` are overwritten on every login.
    """
    id: str
    name: str
    email: str
    provider: AuthProvider = AuthProvider.EMAIL


class AdminAccount(DocumentModel):
    id: str
    pin_hash: str


class Session(DocumentModel):
    """Bearer token bound to one role and one identity. Never expires."""
    token: str
    role: Role
    user_id: str
    created_at: datetime


# =============================================================================
# ORDERS
# =============================================================================

class OrderLine(DocumentModel):
    """Name and price are copied from the menu when the order is placed."""
    item_id: str
    name: str
    price: int
    quantity: int
    line_total: int


class Order(DocumentModel):
    id: int
    order_number: str
    customer_name: str
    room_number: str
    phone: str
    student_email: str
    payment_method: PaymentMethod
    notes: str = ""
    status: OrderStatus = OrderStatus.PENDING
    created_at: datetime
    items: list[OrderLine]
    total: int

    @property
    def sort_key(self) -> tuple[datetime, int]:
        """Newest-first ordering key (ties broken by id)."""
        return (self.created_at, self.id)


class Meta(DocumentModel):
    next_order_id: int


# =============================================================================
# ROOT DOCUMENT
# =============================================================================

class StoreDocument(DocumentModel):
    """The whole persisted state, read and replaced as one unit."""

    menu: list[MenuItem] = Field(default_factory=list)
    orders: list[Order] = Field(default_factory=list)
    sessions: list[Session] = Field(default_factory=list)
    students: list[Student] = Field(default_factory=list)
    admins: list[AdminAccount] = Field(default_factory=list)
    meta: Meta

    @property
    def admin(self) -> Optional[AdminAccount]:
        """The singleton admin account, if one has been bootstrapped."""
        return self.admins[0] if self.admins else None

    def students_by_email(self) -> dict[str, Student]:
        """Index of students keyed by normalized email, rebuilt per call."""
        return {student.email: student for student in self.students}

    def find_student(self, student_id: str) -> Optional[Student]:
        return next((s for s in self.students if s.id == student_id), None)

    def find_order(self, order_id: int) -> Optional[Order]:
        return next((o for o in self.orders if o.id == order_id), None)

    def find_session(self, token: str, role: Role) -> Optional[Session]:
        return next(
            (s for s in self.sessions if s.token == token and s.role == role),
            None,
        )
