"""
Handler modules with automatic API registration
Functions decorated with @api_handler become FastAPI routes
"""

import inspect
import logging
from datetime import datetime
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Dict,
    List,
    NoReturn,
    Optional,
    Type,
    TypeVar,
)

from fastapi import HTTPException

from herebefore_backend.core.errors import (
    CheckInError,
    CheckInNotFound,
    DuplicateCheckIn,
    EpisodeNotFound,
    PermissionDenied,
    PersistenceFailure,
    RecordNotFound,
)

if TYPE_CHECKING:
    from fastapi import FastAPI

F = TypeVar("F", bound=Callable[..., Any])

logger = logging.getLogger(__name__)

# Global API handler registry
_handler_registry: Dict[str, Dict[str, Any]] = {}

# Most specific first
_STATUS_CODES = (
    ((EpisodeNotFound, CheckInNotFound, RecordNotFound), 404),
    ((DuplicateCheckIn,), 409),
    ((PermissionDenied,), 403),
    ((PersistenceFailure,), 503),
    ((ValueError, TypeError), 400),
)


def api_handler(
    body: Optional[Type] = None,
    method: str = "POST",
    path: Optional[str] = None,
    tags: Optional[List[str]] = None,
    summary: Optional[str] = None,
    description: Optional[str] = None,
):
    """
    API handler decorator

    @param body - Optional request model type for parameter validation
    @param method - HTTP method (GET, POST, PUT, DELETE, etc.)
    @param path - Custom path
    @param tags - API tags
    @param summary - API summary
    @param description - API description
    """

    def decorator(func: F) -> F:
        func_name = getattr(func, "__name__", "unknown")
        func_module = getattr(func, "__module__", "")
        module_name = func_module.split(".")[-1] if func_module else "unknown"
        func_doc = getattr(func, "__doc__", None)

        _handler_registry[func_name] = {
            "func": func,
            "body": body,
            "method": method.upper(),
            "path": path or f"/{func_name}",
            "tags": tags or [module_name],
            "module": module_name,
            "summary": summary or (func_doc.split("\n")[0] if func_doc else func_name),
            "description": description or func_doc or "",
            "docstring": func_doc or "",
            "signature": inspect.signature(func),
        }

        # Keep original function unchanged
        return func

    return decorator


def get_registered_handlers() -> Dict[str, Dict[str, Any]]:
    """
    Get registered handler information (for debugging)

    @returns Handler registry
    """
    return _handler_registry.copy()


def success_response(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    response: Dict[str, Any] = {
        "success": True,
        "data": data,
        "timestamp": datetime.now().isoformat(),
    }
    if message:
        response["message"] = message
    return response


def raise_http_error(exc: Exception, action: str) -> NoReturn:
    """Translate a service error into an HTTP error response"""
    for error_types, status_code in _STATUS_CODES:
        if isinstance(exc, error_types):
            break
    else:
        status_code = 500

    if status_code >= 500:
        logger.error(f"{action}: {exc}", exc_info=True)
    else:
        logger.warning(f"{action}: {exc}")
    raise HTTPException(status_code=status_code, detail=f"{action}: {exc}") from exc


def register_fastapi_routes(app: "FastAPI", prefix: str = "/api") -> None:
    """
    Automatically register all functions decorated with @api_handler as FastAPI routes

    @param app - FastAPI application instance
    @param prefix - Route prefix
    """
    logger.info(f"Starting FastAPI route registration, {len(_handler_registry)} handlers")

    for handler_name, handler_info in _handler_registry.items():
        func = handler_info["func"]
        method = handler_info.get("method", "POST")
        path = handler_info.get("path", f"/{handler_name}")
        module = handler_info.get("module", "unknown")

        full_path = f"{prefix}{path}"
        route_params: Dict[str, Any] = {
            "path": full_path,
            "tags": handler_info.get("tags", []),
            "summary": handler_info.get("summary", handler_name),
            "description": handler_info.get("description", ""),
            "response_model": None,
        }

        if method == "GET":
            app.get(**route_params)(func)
        elif method == "POST":
            app.post(**route_params)(func)
        elif method == "PUT":
            app.put(**route_params)(func)
        elif method == "DELETE":
            app.delete(**route_params)(func)
        elif method == "PATCH":
            app.patch(**route_params)(func)
        else:
            logger.warning(f"Unknown HTTP method: {method} for {handler_name}")
            continue

        logger.debug(f"✓ Registered route: {method} {full_path} ({handler_name} from {module})")

    logger.info(f"FastAPI route registration completed: {len(_handler_registry)} routes")


# Import all handler modules to trigger decorator registration
# ruff: noqa: E402
from . import cards, checkins, episodes, notifications

__all__ = [
    "api_handler",
    "register_fastapi_routes",
    "get_registered_handlers",
    "success_response",
    "raise_http_error",
    "CheckInError",
    "cards",
    "checkins",
    "episodes",
    "notifications",
]
