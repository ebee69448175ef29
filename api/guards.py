"""
API endpoint guards for permission-based authorization.

Provides decorators to protect FastAPI routes based on the RBAC
role-permission table.
"""

import inspect
import logging
from functools import wraps
from typing import Any, Callable, Iterable, Optional, Tuple
from fastapi import Request, HTTPException, status

from core.rbac import PermissionKey, can_all, can_any, missing_permissions
from api.middleware.roles import RequestContext, get_current_user, get_route_template
from core.metrics import record_rbac_check, audit_rbac_denial

logger = logging.getLogger(__name__)


# ============================================================================
# Guard Decorators
# ============================================================================

def require(permission: Any) -> Callable:
    """
    Decorator to require a specific permission for a FastAPI route.

    Checks the session role (from request.state.ctx) against the
    role-permission table. Raises HTTPException 401 when the session has no
    role and 403 when the role lacks the permission.

    Args:
        permission: PermissionKey or ``resource:action:scope`` token

    Examples:
        >>> @app.get("/bank/inventory")
        >>> @require("inventory:read:org")
        >>> def list_inventory(request: Request):
        >>>     return {"units": []}
    """
    return _guard((permission,), mode="any")


def require_any(*permissions: Any) -> Callable:
    """
    Decorator to require ANY of the specified permissions.

    Called with no permissions it denies everyone, matching can_any.

    Examples:
        >>> @app.get("/requests")
        >>> @require_any("requests:read:org", "requests:read:system")
        >>> def list_requests(request: Request):
        >>>     return {"requests": []}
    """
    return _guard(permissions, mode="any")


def require_all(*permissions: Any) -> Callable:
    """
    Decorator to require ALL of the specified permissions.

    Examples:
        >>> @app.post("/bank/inventory")
        >>> @require_all("inventory:read:org", "inventory:create:org")
        >>> def add_unit(request: Request):
        >>>     return {"status": "created"}
    """
    return _guard(permissions, mode="all")


def _guard(permissions: Iterable[Any], mode: str) -> Callable:
    # Parse once, at decoration time: a typo'd key fails at import.
    required = tuple(PermissionKey.parse(p) for p in permissions)

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def async_wrapper(*args, **kwargs) -> Any:
            _authorize(_context_from_args(args, kwargs), required, mode, _extract_request_from_args(args, kwargs))
            return await func(*args, **kwargs)

        @wraps(func)
        def sync_wrapper(*args, **kwargs) -> Any:
            _authorize(_context_from_args(args, kwargs), required, mode, _extract_request_from_args(args, kwargs))
            return func(*args, **kwargs)

        if inspect.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator


def _context_from_args(args: tuple, kwargs: dict) -> RequestContext:
    request = _extract_request_from_args(args, kwargs)

    if request is None:
        logger.error("Permission guard requires a Request parameter")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error: Request not found"
        )

    try:
        return get_current_user(request)
    except AttributeError:
        logger.error("Request context not available. Is RoleResolutionMiddleware configured?")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error: User context not available"
        )


def _authorize(
    ctx: RequestContext,
    required: Tuple[PermissionKey, ...],
    mode: str,
    request: Request,
) -> None:
    route = str(request.url.path)
    template = get_route_template(request)

    if mode == "all":
        allowed = bool(required) and can_all(ctx.role, required)
    else:
        allowed = can_any(ctx.role, required)

    record_rbac_check(allowed=allowed, permissions=required, role=ctx.role, route=template)

    if allowed:
        logger.debug(
            f"Access granted: user_id={ctx.user_id}, "
            f"role={ctx.role}, required_{mode}_of={[str(p) for p in required]}"
        )
        return

    audit_rbac_denial(
        permissions=required,
        user_id=ctx.user_id,
        role=ctx.role,
        route=route,
        method=request.method,
        metadata={"is_authenticated": ctx.is_authenticated},
    )

    if ctx.role is None and not ctx.is_authenticated:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error": "unauthenticated",
                "message": "Authentication required",
            }
        )

    logger.warning(
        f"Access denied: user_id={ctx.user_id}, "
        f"role={ctx.role}, required_{mode}_of={[str(p) for p in required]}"
    )
    detail = {
        "error": "forbidden",
        "permissions": [str(p) for p in required],
        "message": _denial_message(required, mode),
    }
    if mode == "all":
        detail["missing"] = sorted(missing_permissions(ctx.role, required))
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def _denial_message(required: Tuple[PermissionKey, ...], mode: str) -> str:
    tokens = [str(p) for p in required]
    if len(tokens) == 1:
        return f"Permission '{tokens[0]}' required"
    if mode == "all":
        return f"All of {tokens} permissions required"
    return f"One of {tokens} permissions required"


# ============================================================================
# Helper Functions
# ============================================================================

def _extract_request_from_args(args: tuple, kwargs: dict) -> Optional[Request]:
    """
    Extract Request object from function arguments.

    Returns:
        Request object if found, None otherwise
    """
    if 'request' in kwargs:
        return kwargs['request']

    for arg in args:
        if isinstance(arg, Request):
            return arg

    return None
