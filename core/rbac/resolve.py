"""
Role resolution logic for user authentication and authorization.

Resolves user identity and role from multiple sources:
- Supabase JWT tokens
- API key headers
- Anonymous fallback (no role, so every permission check denies)

External role strings are converted to :class:`Role` here; anything that
is not an exact role value leaves the user without a role.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import jwt

from .vocabulary import Role, UnknownRoleError

logger = logging.getLogger(__name__)


# ============================================================================
# Data Classes
# ============================================================================

@dataclass
class ResolvedUser:
    """Resolved user identity and role."""
    user_id: Optional[str]
    email: Optional[str]
    role: Optional[Role]
    auth_method: str  # 'jwt', 'api_key', 'anonymous'
    organization_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_anonymous(self) -> bool:
        """Check if this is an anonymous user."""
        return self.auth_method == 'anonymous'

    @property
    def is_authenticated(self) -> bool:
        """Check if user is authenticated (not anonymous)."""
        return not self.is_anonymous


def _to_role(value: Any, source: str) -> Optional[Role]:
    if value is None:
        return None
    try:
        return Role.parse(value)
    except UnknownRoleError:
        logger.warning(f"Rejecting unknown role {value!r} from {source}")
        return None


# ============================================================================
# Role Resolver
# ============================================================================

class RoleResolver:
    """
    Resolves user identity and role from various authentication sources.

    Supports:
    - Supabase JWT tokens (Authorization: Bearer <token>)
    - API keys (X-API-KEY header)
    - Anonymous fallback (no role)
    """

    def __init__(
        self,
        supabase_jwt_secret: Optional[str] = None,
        api_key_to_user_map: Optional[Dict[str, Dict[str, Any]]] = None,
        jwt_audience: Optional[str] = None,
    ):
        """
        Initialize role resolver.

        Args:
            supabase_jwt_secret: Secret for verifying Supabase JWT tokens
            api_key_to_user_map: Mapping of API keys to user info
                (user_id, email, role, organization_id)
            jwt_audience: Expected 'aud' claim; not checked when None
        """
        self.supabase_jwt_secret = supabase_jwt_secret
        self.api_key_to_user_map = api_key_to_user_map or {}
        self.jwt_audience = jwt_audience

    def resolve_from_request(
        self,
        authorization_header: Optional[str] = None,
        api_key_header: Optional[str] = None,
    ) -> ResolvedUser:
        """
        Resolve user identity and role from request headers.

        Priority order:
        1. JWT token (Authorization header)
        2. API key (X-API-KEY header)
        3. Anonymous fallback

        Args:
            authorization_header: Authorization header value (e.g., "Bearer <token>")
            api_key_header: API key header value

        Returns:
            ResolvedUser with user_id, email, role, and auth method
        """
        if authorization_header:
            logger.debug("Attempting JWT authentication")
            user = self._resolve_from_jwt(authorization_header)
            if user:
                return user

        if api_key_header:
            logger.debug("Attempting API key authentication")
            user = self._resolve_from_api_key(api_key_header)
            if user:
                return user

        logger.debug("Falling back to anonymous user")
        return self._resolve_anonymous()

    def _resolve_from_jwt(self, authorization_header: str) -> Optional[ResolvedUser]:
        """
        Resolve user from Supabase JWT token.

        Args:
            authorization_header: Authorization header value

        Returns:
            ResolvedUser if JWT is valid, None otherwise
        """
        if not authorization_header.startswith("Bearer "):
            logger.warning("Invalid Authorization header format (missing 'Bearer')")
            return None

        token = authorization_header[7:].strip()
        if not token:
            logger.warning("Empty JWT token")
            return None

        if not self.supabase_jwt_secret:
            logger.warning("No Supabase JWT secret configured, skipping JWT verification")
            return None

        options = {"verify_exp": True, "verify_aud": self.jwt_audience is not None}
        try:
            payload = jwt.decode(
                token,
                self.supabase_jwt_secret,
                algorithms=["HS256"],
                audience=self.jwt_audience,
                options=options,
            )
        except jwt.ExpiredSignatureError:
            logger.warning("JWT token has expired")
            return None
        except jwt.InvalidTokenError as e:
            logger.warning(f"Invalid JWT token: {e}")
            return None

        user_id = payload.get("sub")
        if not user_id:
            logger.warning("JWT token missing 'sub' claim")
            return None

        email = payload.get("email")
        role = _to_role(self._extract_role_from_jwt_payload(payload), "jwt")
        organization_id = self._extract_organization_from_jwt_payload(payload)

        logger.info(f"Resolved user from JWT: user_id={user_id}, role={role}")

        return ResolvedUser(
            user_id=user_id,
            email=email,
            role=role,
            auth_method='jwt',
            organization_id=organization_id,
            metadata={
                'token_issued_at': payload.get('iat'),
                'token_expires_at': payload.get('exp'),
            }
        )

    def _extract_role_from_jwt_payload(self, payload: Dict[str, Any]) -> Optional[Any]:
        """
        Extract the application role from a JWT payload.

        Checks, in order:
        1. payload['app_metadata']['role'] (set server-side only)
        2. payload['user_metadata']['role']
        3. payload['user_role'] (custom access token hook claim)

        The top-level 'role' claim is Supabase's Postgres role
        ("authenticated"), not an application role, and is ignored.
        """
        for section in ('app_metadata', 'user_metadata'):
            metadata = payload.get(section, {})
            if isinstance(metadata, dict) and metadata.get('role') is not None:
                return metadata['role']

        if payload.get('user_role') is not None:
            return payload['user_role']

        logger.debug("No application role found in JWT")
        return None

    def _extract_organization_from_jwt_payload(self, payload: Dict[str, Any]) -> Optional[str]:
        app_metadata = payload.get('app_metadata', {})
        if not isinstance(app_metadata, dict):
            return None
        return app_metadata.get('organization_id') or app_metadata.get('facility_id')

    def _resolve_from_api_key(self, api_key: str) -> Optional[ResolvedUser]:
        """
        Resolve user from API key.

        Args:
            api_key: API key value

        Returns:
            ResolvedUser if API key is valid, None otherwise
        """
        user_info = self.api_key_to_user_map.get(api_key)

        if not user_info:
            logger.warning(f"Unknown API key: {api_key[:8]}...")
            return None

        user_id = user_info.get('user_id')
        role = _to_role(user_info.get('role'), "api_key")

        logger.info(f"Resolved user from API key: user_id={user_id}, role={role}")

        return ResolvedUser(
            user_id=user_id,
            email=user_info.get('email'),
            role=role,
            auth_method='api_key',
            organization_id=user_info.get('organization_id'),
            metadata={
                'api_key_prefix': api_key[:8],
            }
        )

    def _resolve_anonymous(self) -> ResolvedUser:
        return ResolvedUser(
            user_id=None,
            email=None,
            role=None,
            auth_method='anonymous',
        )


# ============================================================================
# Global Resolver Instance
# ============================================================================

# Global resolver instance (configured at app startup)
_global_resolver: Optional[RoleResolver] = None


def get_resolver() -> RoleResolver:
    """
    Get the global role resolver instance.

    Returns a resolver that only produces anonymous users if none has been
    configured.
    """
    global _global_resolver

    if _global_resolver is None:
        logger.warning("Using default role resolver (not configured)")
        _global_resolver = RoleResolver()

    return _global_resolver


def configure_resolver(
    supabase_jwt_secret: Optional[str] = None,
    api_key_to_user_map: Optional[Dict[str, Dict[str, Any]]] = None,
    jwt_audience: Optional[str] = None,
) -> RoleResolver:
    """
    Configure the global role resolver.

    Returns:
        Configured RoleResolver instance
    """
    global _global_resolver

    _global_resolver = RoleResolver(
        supabase_jwt_secret=supabase_jwt_secret,
        api_key_to_user_map=api_key_to_user_map,
        jwt_audience=jwt_audience,
    )

    logger.info("Configured global role resolver")
    return _global_resolver


def reset_resolver():
    """Reset the global resolver (useful for testing)."""
    global _global_resolver
    _global_resolver = None
