"""
FastAPI middleware for role resolution and request context population.

Extracts user identity and role from JWT tokens or API keys,
and attaches them to the request state for use in route handlers.
"""

import logging
from typing import Callable, Optional
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from core.metrics import record_rbac_resolution, record_role_distribution
from core.rbac import Role
from core.rbac.resolve import get_resolver, ResolvedUser

logger = logging.getLogger(__name__)


# ============================================================================
# Request State Extensions
# ============================================================================

class RequestContext:
    """
    Request context for user identity and role.

    Attached to request.state by the RoleResolutionMiddleware.
    """

    def __init__(self, user: ResolvedUser):
        self.user_id: Optional[str] = user.user_id
        self.email: Optional[str] = user.email
        self.role: Optional[Role] = user.role
        self.organization_id: Optional[str] = user.organization_id
        self.auth_method: str = user.auth_method
        self.is_authenticated: bool = user.is_authenticated
        self.metadata: dict = user.metadata

    @property
    def has_role(self) -> bool:
        return self.role is not None

    def __repr__(self) -> str:
        return (
            f"RequestContext(user_id={self.user_id}, "
            f"role={self.role}, auth_method={self.auth_method})"
        )


# ============================================================================
# Middleware
# ============================================================================

class RoleResolutionMiddleware(BaseHTTPMiddleware):
    """
    Middleware to resolve user identity and role from request headers.

    Extracts authentication from:
    1. Authorization header (JWT token)
    2. X-API-KEY header (API key)
    3. Falls back to anonymous user with no role

    Attaches a RequestContext to request.state.ctx.
    """

    def __init__(self, app: ASGIApp):
        super().__init__(app)

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        authorization = request.headers.get("Authorization")
        api_key = request.headers.get("X-API-KEY")

        try:
            user = get_resolver().resolve_from_request(
                authorization_header=authorization,
                api_key_header=api_key,
            )
        except Exception as e:
            # Resolution failure must never grant anything: continue as
            # an anonymous user without a role.
            logger.error(f"Error resolving user role: {e}", exc_info=True)
            user = ResolvedUser(
                user_id=None,
                email=None,
                role=None,
                auth_method='anonymous',
                metadata={'error': str(e)},
            )

        request.state.ctx = RequestContext(user)

        record_rbac_resolution(success=user.role is not None, auth_method=user.auth_method)
        record_role_distribution(user.role)

        logger.debug(
            f"Resolved user for {request.method} {request.url.path}: "
            f"user_id={user.user_id}, role={user.role}, method={user.auth_method}"
        )

        return await call_next(request)


# ============================================================================
# Helper Functions
# ============================================================================

def get_current_user(request: Request) -> RequestContext:
    """
    Get current user context from request.

    Raises:
        AttributeError: If middleware has not been applied
    """
    if not hasattr(request.state, "ctx"):
        raise AttributeError(
            "Request state does not have 'ctx' attribute. "
            "Ensure RoleResolutionMiddleware is configured."
        )

    return request.state.ctx


def require_authenticated(request: Request) -> RequestContext:
    """
    Require that the request is from an authenticated user.

    Raises:
        PermissionError: If user is not authenticated
    """
    ctx = get_current_user(request)

    if not ctx.is_authenticated:
        raise PermissionError("Authentication required")

    return ctx


def get_user_id(request: Request) -> Optional[str]:
    """Get user ID from request context (None if anonymous)."""
    return get_current_user(request).user_id


def get_user_role(request: Request) -> Optional[Role]:
    """Get the session role from request context (None if unresolved)."""
    return get_current_user(request).role


def get_route_template(request: Request) -> str:
    """
    Route template the request matched, e.g. "/admin/roles/{role_key}".

    Safe as a metric label: the set of templates is fixed by the app.
    Returns "unmatched" when no route matched.
    """
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"
