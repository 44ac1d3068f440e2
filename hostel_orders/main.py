"""
FastAPI Application Entry Point

Hostel Grub Ordering API - students order from the hostel canteen menu,
staff manage the order queue behind a PIN-protected admin session.

Endpoints (mounted under API_PREFIX, default /api):
    - GET    /health: System health check
    - POST   /auth/student/email-login: Student login by email
    - POST   /auth/student/google-login: Student login via Google identity
    - POST   /auth/admin/login: Admin login by shared PIN
    - POST   /auth/logout: Drop the presented session
    - GET    /menu: Menu catalog
    - GET    /orders/my: Student's recent orders
    - GET    /orders/admin: All orders (admin)
    - POST   /orders: Place an order (student)
    - PATCH  /orders/{order_id}/status: Change order status (admin)
    - DELETE /orders/{order_id}: Clear an order (admin)

Version: 1.0.0
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import redis
import uvicorn
from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from hostel_orders.core.config import get_settings, setup_logging
from hostel_orders.core.exceptions import HostelOrderError, PersistenceError
from hostel_orders.database import get_document_store
from hostel_orders.models import Order
from hostel_orders.schemas import (
    AdminInfo,
    AdminLoginRequest,
    AdminLoginResponse,
    ErrorResponse,
    HealthResponse,
    MenuResponse,
    MessageResponse,
    OrderCreate,
    OrderListResponse,
    OrderMessageResponse,
    StatusUpdateRequest,
    StudentEmailLoginRequest,
    StudentGoogleLoginRequest,
    StudentLoginResponse,
)
from hostel_orders.services.auth_gateway import (
    AuthContext,
    optional_token,
    require_admin,
    require_student,
)
from hostel_orders.services.identity import IdentityService, get_identity_service
from hostel_orders.services.menu import MenuCatalog, get_menu_catalog
from hostel_orders.services.orders import OrderLedger, get_order_ledger
from hostel_orders.tasks import export_order_to_excel

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
}


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.

    A storage failure while bootstrapping aborts startup.
    """
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    store = get_document_store()
    try:
        created = await store.initialize()
    except PersistenceError as e:
        logger.critical(f"❌ Failed to initialize document store: {e.message}")
        raise
    logger.info(f"✅ Document store ready at {store.path} ({'new' if created else 'existing'})")

    logger.info(f"✅ Excel export: {'enabled' if settings.excel_export_enabled else 'disabled'}")

    problems = settings.validate_production_config()
    if problems:
        logger.warning(f"⚠️ Configuration problems: {problems}")

    logger.info("=" * 60)
    logger.info("✅ Application ready!")
    logger.info("=" * 60)

    yield

    logger.info("Shutting down...")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description=(
        "Hostel food ordering: student and admin token sessions, "
        "server-side priced orders and an order status queue."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

router = APIRouter()


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def _ping_redis() -> None:
    client = redis.Redis.from_url(settings.redis_url, socket_timeout=2)
    try:
        client.ping()
    finally:
        client.close()


async def queue_order_export(order: Order) -> None:
    """Hand a placed order to the Celery export worker if export is enabled."""
    if not settings.excel_export_enabled:
        return
    try:
        await asyncio.to_thread(export_order_to_excel.delay, order.to_json_dict())
    except Exception as e:
        # The order is already stored; only the spreadsheet copy is lost.
        logger.error(f"Could not queue export for {order.order_number}: {e}")


# =============================================================================
# HEALTH & MENU
# =============================================================================

@router.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check() -> HealthResponse:
    """Report storage (and export broker) reachability."""
    storage_ok = await get_document_store().health_check()
    storage_status = "healthy" if storage_ok else "unhealthy"

    broker_status = None
    if settings.excel_export_enabled:
        broker_status = "healthy"
        try:
            await asyncio.to_thread(_ping_redis)
        except redis.RedisError as e:
            broker_status = f"unhealthy: {str(e)}"
            logger.error(f"Redis health check failed: {e}")

    overall = "ok" if all(
        s in (None, "healthy") for s in [storage_status, broker_status]
    ) else "degraded"

    return HealthResponse(
        status=overall,
        timestamp=datetime.now(timezone.utc),
        storage=storage_status,
        export_broker=broker_status,
    )


@router.get("/menu", response_model=MenuResponse, tags=["Menu"])
async def list_menu(catalog: MenuCatalog = Depends(get_menu_catalog)) -> MenuResponse:
    return MenuResponse(items=await catalog.list_items())


# =============================================================================
# AUTH ENDPOINTS
# =============================================================================

@router.post(
    "/auth/student/email-login",
    response_model=StudentLoginResponse,
    responses=ERROR_RESPONSES,
    tags=["Auth"],
)
async def student_email_login(
    body: StudentEmailLoginRequest,
    identity: IdentityService = Depends(get_identity_service),
) -> StudentLoginResponse:
    result = await identity.login_student_by_email(body.name, body.email)
    return StudentLoginResponse(token=result.token, student=result.student)


@router.post(
    "/auth/student/google-login",
    response_model=StudentLoginResponse,
    responses=ERROR_RESPONSES,
    tags=["Auth"],
)
async def student_google_login(
    body: StudentGoogleLoginRequest,
    identity: IdentityService = Depends(get_identity_service),
) -> StudentLoginResponse:
    result = await identity.login_student_by_google(body.name, body.email, body.google_id)
    return StudentLoginResponse(token=result.token, student=result.student)


@router.post(
    "/auth/admin/login",
    response_model=AdminLoginResponse,
    responses=ERROR_RESPONSES,
    tags=["Auth"],
)
async def admin_login(
    body: AdminLoginRequest,
    identity: IdentityService = Depends(get_identity_service),
) -> AdminLoginResponse:
    result = await identity.login_admin(body.pin)
    return AdminLoginResponse(token=result.token, admin=AdminInfo(id=result.admin_id))


@router.post("/auth/logout", response_model=MessageResponse, tags=["Auth"])
async def logout(
    token: str = Depends(optional_token),
    identity: IdentityService = Depends(get_identity_service),
) -> MessageResponse:
    """Always succeeds, with or without a token."""
    await identity.logout(token)
    return MessageResponse(message="logged out")


# =============================================================================
# ORDER ENDPOINTS
# =============================================================================

@router.get(
    "/orders/my",
    response_model=OrderListResponse,
    responses=ERROR_RESPONSES,
    tags=["Orders"],
)
async def my_orders(
    auth: AuthContext = Depends(require_student),
    ledger: OrderLedger = Depends(get_order_ledger),
) -> OrderListResponse:
    """The student's 20 most recent orders, newest first."""
    return OrderListResponse(orders=ledger.list_my_orders(auth))


@router.get(
    "/orders/admin",
    response_model=OrderListResponse,
    responses=ERROR_RESPONSES,
    tags=["Orders"],
)
async def all_orders(
    limit: Optional[str] = Query(None),
    auth: AuthContext = Depends(require_admin),
    ledger: OrderLedger = Depends(get_order_ledger),
) -> OrderListResponse:
    """All orders, newest first. ``limit`` is clamped to [1, 300], default 100."""
    return OrderListResponse(orders=ledger.list_all_orders(auth, limit))


@router.post(
    "/orders",
    status_code=201,
    response_model=OrderMessageResponse,
    responses=ERROR_RESPONSES,
    tags=["Orders"],
)
async def place_order(
    body: OrderCreate,
    auth: AuthContext = Depends(require_student),
    ledger: OrderLedger = Depends(get_order_ledger),
) -> OrderMessageResponse:
    order = await ledger.place_order(auth.session, body)
    await queue_order_export(order)
    return OrderMessageResponse(message="order placed", order=order)


@router.patch(
    "/orders/{order_id}/status",
    response_model=OrderMessageResponse,
    responses=ERROR_RESPONSES,
    tags=["Orders"],
)
async def update_order_status(
    order_id: str,
    body: StatusUpdateRequest,
    auth: AuthContext = Depends(require_admin),
    ledger: OrderLedger = Depends(get_order_ledger),
) -> OrderMessageResponse:
    order = await ledger.update_status(auth.session, order_id, body.status)
    return OrderMessageResponse(message="status updated", order=order)


@router.delete(
    "/orders/{order_id}",
    response_model=OrderMessageResponse,
    responses=ERROR_RESPONSES,
    tags=["Orders"],
)
async def delete_order(
    order_id: str,
    auth: AuthContext = Depends(require_admin),
    ledger: OrderLedger = Depends(get_order_ledger),
) -> OrderMessageResponse:
    order = await ledger.delete_order(auth.session, order_id)
    return OrderMessageResponse(message="order cleared", order=order)


app.include_router(router, prefix=settings.api_prefix)


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(HostelOrderError)
async def domain_exception_handler(request: Request, exc: HostelOrderError) -> JSONResponse:
    """Translate domain errors into {message} bodies."""
    if isinstance(exc, PersistenceError):
        logger.error(f"Storage failure on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.debug(f"{request.method} {request.url.path} -> {exc.status_code} {exc.message}")

    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Unparseable bodies are client errors like any other validation failure."""
    errors = exc.errors()
    detail = errors[0].get("msg", "invalid request") if errors else "invalid request"
    location = ".".join(str(p) for p in errors[0].get("loc", ())) if errors else ""
    message = f"invalid request: {location} {detail}".strip() if location else detail

    return JSONResponse(status_code=400, content={"message": message})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "message": str(exc) if settings.debug else "An unexpected error occurred",
        },
    )


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    uvicorn.run(
        "hostel_orders.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    run()
