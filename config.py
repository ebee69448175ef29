# config.py - sane config with loud failures
#
# The role-permission table and route map are code, not config. Nothing
# here can grant a permission.

import json
import os
import time

# Hard requirements. Fail fast if any are missing.
REQUIRED = [
    "SUPABASE_URL",
    "SUPABASE_JWT_SECRET",
]

# Optional knobs with defaults.
DEFAULTS = {
    "SUPABASE_JWT_AUDIENCE": None,          # e.g. "authenticated"; None = not checked
    "RBAC_UNMAPPED_ROUTE_POLICY": "deny",   # deny, allow
    "RBAC_API_KEYS": "{}",                  # JSON: {key: {user_id, email, role, organization_id}}
    "CORS_ALLOW_ORIGINS": "*",              # comma separated
    "LOG_LEVEL": "INFO",
}

_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
_ROUTE_POLICIES = ["deny", "allow"]


def load_config():
    """
    Load env config, erroring clearly if anything critical is missing.
    Returns a dict of required + defaults (with types normalized).
    """
    missing = [k for k in REQUIRED if not os.getenv(k)]
    if missing:
        missing_list = ', '.join(missing)
        raise RuntimeError(
            f"Missing required environment variables: {missing_list}. "
            f"Please check your .env file and ensure all required variables are set."
        )

    cfg = {k: os.getenv(k) for k in REQUIRED}

    for k, v in DEFAULTS.items():
        val = os.getenv(k, v)

        if k == "SUPABASE_JWT_AUDIENCE":
            val = val or None
        elif k == "RBAC_UNMAPPED_ROUTE_POLICY":
            val = val.lower()
            if val not in _ROUTE_POLICIES:
                raise RuntimeError(
                    f"RBAC_UNMAPPED_ROUTE_POLICY must be one of {_ROUTE_POLICIES}, got: {val}"
                )
        elif k == "RBAC_API_KEYS":
            try:
                val = json.loads(val) if val else {}
            except json.JSONDecodeError as e:
                raise RuntimeError(f"RBAC_API_KEYS must be a JSON object: {e}")
            if not isinstance(val, dict) or not all(isinstance(u, dict) for u in val.values()):
                raise RuntimeError("RBAC_API_KEYS must map each API key to an object")
        elif k == "CORS_ALLOW_ORIGINS":
            val = [origin.strip() for origin in val.split(",") if origin.strip()]
        elif k == "LOG_LEVEL":
            val = val.upper()
            if val not in _LOG_LEVELS:
                raise RuntimeError(f"LOG_LEVEL must be one of {_LOG_LEVELS}, got: {val}")

        cfg[k] = val

    return cfg


def get_debug_config(cfg=None):
    """
    Get configuration for debug endpoint.
    Returns sanitized config (no secrets, no API keys).
    """
    cfg = cfg if cfg is not None else load_config()

    sanitized = {
        k: v for k, v in cfg.items()
        if not any(secret in k.upper() for secret in ["KEY", "SECRET", "PASSWORD", "TOKEN"])
    }

    sanitized["_metadata"] = {
        "environment": os.getenv("ENVIRONMENT", "development"),
        "loaded_at": time.time()
    }

    return sanitized
