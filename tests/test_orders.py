import asyncio

import pytest

from hostel_orders.core.exceptions import AuthError, NotFoundError, ValidationError
from hostel_orders.models import OrderStatus, PaymentMethod, Role
from hostel_orders.schemas import OrderCreate
from hostel_orders.services.auth_gateway import resolve_session
from hostel_orders.services.identity import IdentityService
from hostel_orders.services.orders import OrderLedger, clamp_limit, parse_order_id, parse_quantity
from conftest import ADMIN_PIN


def make_payload(items=None, **overrides) -> OrderCreate:
    data = {
        "customerName": "Amit",
        "roomNumber": "B-204",
        "phone": "9876543210",
        "paymentMethod": "cash",
        "items": items if items is not None else [
            {"itemId": "m1", "quantity": 2},
            {"itemId": "d1", "quantity": 1},
        ],
    }
    data.update(overrides)
    return OrderCreate.model_validate(data)


@pytest.fixture
def ledger(store) -> OrderLedger:
    return OrderLedger(store)


@pytest.fixture
async def student(store):
    login = await IdentityService(store).login_student_by_email("Amit", "a@x.com")
    return resolve_session(await store.load(), login.token, Role.STUDENT)


@pytest.fixture
async def admin(store):
    login = await IdentityService(store).login_admin(ADMIN_PIN)
    return resolve_session(await store.load(), login.token, Role.ADMIN)


async def next_order_id(store) -> int:
    return (await store.load()).meta.next_order_id


# =============================================================================
# PLACING
# =============================================================================

async def test_place_order_prices_from_menu(ledger, student, store):
    order = await ledger.place_order(student.session, make_payload())

    assert order.id == 1001
    assert order.order_number == "HG-1001"
    assert order.total == 130
    assert order.status == OrderStatus.PENDING
    assert order.student_email == "a@x.com"
    assert order.payment_method == PaymentMethod.CASH
    assert [(l.item_id, l.name, l.price, l.quantity, l.line_total) for l in order.items] == [
        ("m1", "Classic Masala Maggi", 45, 2, 90),
        ("d1", "Coca-Cola (500ml)", 40, 1, 40),
    ]

    document = await store.load()
    assert document.meta.next_order_id == 1002
    assert document.find_order(1001).to_json_dict() == order.to_json_dict()


async def test_counter_advances_by_one_per_order(ledger, student, store):
    for expected in (1001, 1002, 1003):
        before = await next_order_id(store)
        order = await ledger.place_order(student.session, make_payload())
        assert order.id == before == expected
        assert await next_order_id(store) == before + 1


async def test_out_of_stock_item_is_rejected_by_name(ledger, student, store):
    async with store.transaction() as document:
        document.menu[3].in_stock = False  # d1

    with pytest.raises(ValidationError, match=r"Coca-Cola \(500ml\) is currently out of stock"):
        await ledger.place_order(student.session, make_payload())

    document = await store.load()
    assert document.orders == []
    assert document.meta.next_order_id == 1001


@pytest.mark.parametrize("items", [
    [{"itemId": "zz9", "quantity": 1}],
    [{"itemId": "m1", "quantity": 0}],
    [{"itemId": "m1", "quantity": 21}],
    [{"itemId": "m1", "quantity": "abc"}],
    [{"itemId": "m1", "quantity": 2.5}],
    [{"itemId": "m1"}],
    [{"quantity": 1}],
    [{"itemId": "m1", "quantity": 1}, {"itemId": "m2", "quantity": -1}],
])
async def test_invalid_lines_are_rejected(ledger, student, store, items):
    with pytest.raises(ValidationError, match="one or more items are invalid"):
        await ledger.place_order(student.session, make_payload(items=items))
    assert await next_order_id(store) == 1001


async def test_empty_cart_is_rejected(ledger, student):
    with pytest.raises(ValidationError, match="at least one item"):
        await ledger.place_order(student.session, make_payload(items=[]))


@pytest.mark.parametrize("field", ["customerName", "roomNumber", "phone"])
async def test_required_fields(ledger, student, field):
    with pytest.raises(ValidationError, match="name, room number, and phone are required"):
        await ledger.place_order(student.session, make_payload(**{field: "   "}))


async def test_payment_method(ledger, student):
    with pytest.raises(ValidationError, match="cash or upi"):
        await ledger.place_order(student.session, make_payload(paymentMethod="card"))

    upi = await ledger.place_order(student.session, make_payload(paymentMethod=" UPI "))
    assert upi.payment_method == PaymentMethod.UPI

    default = await ledger.place_order(student.session, make_payload(paymentMethod=None))
    assert default.payment_method == PaymentMethod.CASH


async def test_text_fields_are_trimmed(ledger, student):
    order = await ledger.place_order(
        student.session,
        make_payload(customerName="  Amit ", roomNumber=204, notes="  less spicy "),
    )
    assert order.customer_name == "Amit"
    assert order.room_number == "204"
    assert order.notes == "less spicy"


async def test_lines_are_snapshots(ledger, student, store):
    order = await ledger.place_order(student.session, make_payload())

    async with store.transaction() as document:
        document.menu[0].price = 99
        document.menu[0].name = "Renamed Maggi"

    stored = (await store.load()).find_order(order.id)
    assert stored.items[0].price == 45
    assert stored.items[0].name == "Classic Masala Maggi"
    assert stored.total == 130


async def test_deleted_student_cannot_order(ledger, student, store):
    async with store.transaction() as document:
        document.students = []

    with pytest.raises(AuthError, match="invalid student session"):
        await ledger.place_order(student.session, make_payload())


async def test_logged_out_session_cannot_order(ledger, student, store):
    await IdentityService(store).logout(student.session.token)

    with pytest.raises(AuthError, match="invalid or expired token"):
        await ledger.place_order(student.session, make_payload())
    assert await next_order_id(store) == 1001
    assert (await store.load()).orders == []


async def test_admin_session_cannot_order(ledger, admin):
    with pytest.raises(AuthError):
        await ledger.place_order(admin.session, make_payload())


async def test_concurrent_orders_get_unique_ids(ledger, student, store):
    orders = await asyncio.gather(
        *(ledger.place_order(student.session, make_payload()) for _ in range(25))
    )

    assert sorted(o.id for o in orders) == list(range(1001, 1026))
    document = await store.load()
    assert len(document.orders) == 25
    assert document.meta.next_order_id == 1026


def test_parse_quantity():
    assert parse_quantity(3) == 3
    assert parse_quantity("4") == 4
    assert parse_quantity(5.0) == 5
    assert parse_quantity(True) is None
    assert parse_quantity(None) is None
    assert parse_quantity([1]) is None


def test_parse_order_id():
    assert parse_order_id("1001") == 1001
    assert parse_order_id(" 1001 ") == 1001
    assert parse_order_id("+7") == 7
    assert parse_order_id(1002) == 1002
    for raw in ["1_001", "abc", "", "1.5", "0x10", "١٢"]:
        with pytest.raises(ValidationError, match="invalid order id"):
            parse_order_id(raw)


# =============================================================================
# LISTING
# =============================================================================

async def test_list_my_orders_only_own_newest_first(ledger, student, store):
    first = await ledger.place_order(student.session, make_payload())
    second = await ledger.place_order(student.session, make_payload())

    riya_login = await IdentityService(store).login_student_by_email("Riya", "r@x.com")
    riya = resolve_session(await store.load(), riya_login.token, Role.STUDENT)
    await ledger.place_order(riya.session, make_payload())

    auth = resolve_session(await store.load(), student.session.token, Role.STUDENT)
    assert [o.id for o in ledger.list_my_orders(auth)] == [second.id, first.id]


async def test_list_my_orders_is_capped(ledger, student, store):
    for _ in range(22):
        await ledger.place_order(student.session, make_payload())

    auth = resolve_session(await store.load(), student.session.token, Role.STUDENT)
    mine = ledger.list_my_orders(auth)
    assert len(mine) == 20
    assert mine[0].id == 1022


async def test_list_all_orders_requires_admin(ledger, student):
    with pytest.raises(AuthError):
        ledger.list_all_orders(student)


async def test_list_all_orders_respects_limit(ledger, student, admin, store):
    for _ in range(3):
        await ledger.place_order(student.session, make_payload())

    auth = resolve_session(await store.load(), admin.session.token, Role.ADMIN)
    assert [o.id for o in ledger.list_all_orders(auth, "2")] == [1003, 1002]
    assert len(ledger.list_all_orders(auth)) == 3


@pytest.mark.parametrize("raw,expected", [
    (None, 100),
    ("", 100),
    ("abc", 100),
    ("0", 100),
    (0, 100),
    ("1000", 300),
    ("300", 300),
    ("-5", 1),
    ("7", 7),
    ("2.9", 2),
    ("0.5", 1),
    ("-0.5", 1),
    ("1e400", 300),
    ("nan", 100),
])
def test_clamp_limit(raw, expected):
    assert clamp_limit(raw, default=100, maximum=300) == expected


# =============================================================================
# STATUS & CLEARING
# =============================================================================

async def test_any_status_may_follow_any_other(ledger, student, admin, store):
    order = await ledger.place_order(student.session, make_payload())

    for status in ("delivered", "pending", "cancelled", "accepted", "preparing"):
        updated = await ledger.update_status(admin.session, order.id, status)
        assert updated.status.value == status

    assert (await store.load()).find_order(order.id).status == OrderStatus.PREPARING


async def test_status_is_normalized(ledger, student, admin):
    order = await ledger.place_order(student.session, make_payload())
    updated = await ledger.update_status(admin.session, str(order.id), "  Delivered ")
    assert updated.status == OrderStatus.DELIVERED


async def test_update_status_errors(ledger, student, admin):
    order = await ledger.place_order(student.session, make_payload())

    with pytest.raises(ValidationError, match="invalid order id"):
        await ledger.update_status(admin.session, "abc", "accepted")
    with pytest.raises(ValidationError, match="status must be one of"):
        await ledger.update_status(admin.session, order.id, "shipped")
    with pytest.raises(NotFoundError):
        await ledger.update_status(admin.session, 999999, "accepted")
    with pytest.raises(AuthError):
        await ledger.update_status(student.session, order.id, "accepted")


async def test_delete_order(ledger, student, admin, store):
    order = await ledger.place_order(student.session, make_payload())

    removed = await ledger.delete_order(admin.session, order.id)

    assert removed.id == order.id
    assert (await store.load()).orders == []
    with pytest.raises(NotFoundError):
        await ledger.delete_order(admin.session, order.id)


async def test_ids_are_not_reused_after_delete(ledger, student, admin):
    first = await ledger.place_order(student.session, make_payload())
    await ledger.delete_order(admin.session, first.id)

    second = await ledger.place_order(student.session, make_payload())
    assert second.id == first.id + 1


async def test_student_cannot_delete(ledger, student, store):
    order = await ledger.place_order(student.session, make_payload())

    with pytest.raises(AuthError):
        await ledger.delete_order(student.session, order.id)
    assert (await store.load()).find_order(order.id) is not None
