import pytest

from hostel_orders.core.exceptions import AuthError, ValidationError
from hostel_orders.models import AuthProvider, Role
from hostel_orders.services.identity import IdentityService, normalize_email
from conftest import ADMIN_PIN


@pytest.fixture
def identity(store) -> IdentityService:
    return IdentityService(store)


def test_normalize_email():
    assert normalize_email("  Amit@X.COM ") == "amit@x.com"
    assert normalize_email(None) == ""


async def test_repeated_email_logins_keep_student_id(identity, store):
    first = await identity.login_student_by_email("Amit", "a@x.com")
    second = await identity.login_student_by_email("Amit Kumar", "  A@X.com ")

    assert first.student.id == second.student.id
    assert second.student.email == "a@x.com"

    document = await store.load()
    assert len(document.students) == 1
    assert document.students[0].name == "Amit Kumar"


async def test_google_login_overwrites_provider(identity, store):
    first = await identity.login_student_by_email("Amit", "a@x.com")
    second = await identity.login_student_by_google("Amit G", "a@x.com", "g-123")

    assert second.student.id == first.student.id
    assert second.student.provider == AuthProvider.GOOGLE
    assert (await store.load()).students[0].provider == AuthProvider.GOOGLE


async def test_second_login_invalidates_first_session(identity, store):
    first = await identity.login_student_by_email("Amit", "a@x.com")
    second = await identity.login_student_by_email("Amit", "a@x.com")

    document = await store.load()
    student_sessions = [
        s for s in document.sessions
        if s.role == Role.STUDENT and s.user_id == second.student.id
    ]
    assert [s.token for s in student_sessions] == [second.token]
    assert document.find_session(first.token, Role.STUDENT) is None


async def test_sessions_of_other_students_survive(identity, store):
    amit = await identity.login_student_by_email("Amit", "a@x.com")
    await identity.login_student_by_email("Riya", "r@x.com")
    await identity.login_student_by_email("Riya", "r@x.com")

    document = await store.load()
    assert document.find_session(amit.token, Role.STUDENT) is not None
    assert len(document.sessions) == 2


async def test_tokens_are_long_random_hex(identity):
    tokens = {(await identity.login_student_by_email("A", f"a{i}@x.com")).token for i in range(5)}
    assert len(tokens) == 5
    for token in tokens:
        assert len(token) == 48
        int(token, 16)


@pytest.mark.parametrize("name,email", [
    ("", "a@x.com"),
    ("   ", "a@x.com"),
    ("Amit", ""),
    ("Amit", "not-an-email"),
    (None, None),
])
async def test_email_login_rejects_bad_input(identity, store, name, email):
    with pytest.raises(ValidationError):
        await identity.login_student_by_email(name, email)
    assert (await store.load()).students == []


async def test_google_login_requires_external_id(identity):
    with pytest.raises(ValidationError, match="googleId"):
        await identity.login_student_by_google("Amit", "a@x.com", "  ")


async def test_admin_login(identity, store):
    result = await identity.login_admin(ADMIN_PIN)

    assert result.admin_id == "admin-1"
    document = await store.load()
    assert document.find_session(result.token, Role.ADMIN).user_id == "admin-1"
    # A student-role lookup must not match an admin token.
    assert document.find_session(result.token, Role.STUDENT) is None


async def test_admin_relogin_rotates_session(identity, store):
    first = await identity.login_admin(ADMIN_PIN)
    second = await identity.login_admin(f" {ADMIN_PIN} ")

    document = await store.load()
    assert document.find_session(first.token, Role.ADMIN) is None
    assert document.find_session(second.token, Role.ADMIN) is not None


async def test_admin_login_wrong_pin(identity, store):
    with pytest.raises(AuthError, match="invalid admin pin"):
        await identity.login_admin("0000")
    assert (await store.load()).sessions == []


async def test_admin_login_requires_pin(identity):
    with pytest.raises(ValidationError, match="pin is required"):
        await identity.login_admin("")


async def test_admin_login_without_admin_record(identity, store):
    async with store.transaction() as document:
        document.admins = []

    with pytest.raises(AuthError):
        await identity.login_admin(ADMIN_PIN)


async def test_logout_removes_session(identity, store):
    login = await identity.login_student_by_email("Amit", "a@x.com")

    assert await identity.logout(login.token) is True
    assert (await store.load()).sessions == []
    assert await identity.logout(login.token) is False


async def test_logout_without_token_is_a_no_op(identity):
    assert await identity.logout("") is False
    assert await identity.logout(None) is False
