import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .auth.helpers import require_permission
from .auth.permission_engine import PermissionEngine
from .auth.permissions_loader import load_permissions
from .auth.rbac_contract import CrudOperation
from .config import settings
from .dependencies import get_engine, get_permission_service
from .errors import AppError, error_payload, resolve_error_code, resolve_error_message
from .services.permission_service import PermissionService


def _resolve_log_level(value: str) -> int:
    level = logging.getLevelName(value)
    return level if isinstance(level, int) else logging.INFO


log_level = _resolve_log_level(settings.log_level)

if not logging.getLogger().handlers:
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
logger = logging.getLogger("trossapp")
logger.setLevel(log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting application")
    if settings.debug:
        logger.warning("DEBUG=true — do not use in production")

    # Refuse to serve with a broken permission table
    load_permissions()

    yield


app = FastAPI(title=settings.app_name, debug=settings.debug, lifespan=lifespan)

def _log_error(request: Request, status_code: int, code: str, message: str, exc: Exception | None = None) -> None:
    request_id = request.headers.get("x-request-id")
    log_message = f"[{code}] path={request.url.path} request_id={request_id or 'n/a'} message={message}"
    if status_code >= 500:
        logger.error(log_message, exc_info=exc)
    else:
        logger.warning(log_message)


@app.exception_handler(AppError)
async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
    _log_error(request, exc.status_code, exc.code, exc.message, exc)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_payload(exc.code, exc.message, exc.details),
    )


@app.exception_handler(StarletteHTTPException)
async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = resolve_error_code(exc.status_code)
    message = exc.detail if isinstance(exc.detail, str) else resolve_error_message(exc.status_code)
    _log_error(request, exc.status_code, code, message)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_payload(code, message),
        headers=getattr(exc, "headers", None),
    )


@app.get("/permissions", tags=["Permissions"])
async def get_permissions(engine: PermissionEngine = Depends(get_engine)) -> dict:
    """Validated permission table, so clients evaluate the same rules."""
    return engine.config.to_json_dict()


@app.get(
    "/roles/{role_name}/permissions",
    tags=["Permissions"],
    dependencies=[Depends(require_permission("roles", CrudOperation.READ))],
)
async def get_role_permissions(
    role_name: str,
    service: PermissionService = Depends(get_permission_service),
) -> dict:
    """Resource -> permitted operations for one role. Unknown roles get an empty map."""
    return {
        "role": role_name,
        "priority": service.get_priority(role_name),
        "permissions": service.get_permissions_for(role_name),
    }
