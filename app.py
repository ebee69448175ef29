# app.py - builds the FastAPI app, wires role resolution, mounts routers
#
# Run with: uvicorn app:create_app --factory

import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from api.middleware import RoleResolutionMiddleware, get_route_template
from config import load_config
from core.metrics import record_api_call
from core.rbac import UnmappedRoutePolicy, configure_resolver

logger = logging.getLogger(__name__)

# Router modules, mounted in order. Import failures are recorded, not fatal,
# so /debug/routers can say what is missing.
ROUTER_MODULES = [
    "api.navigation",
    "api.admin.roles",
    "api.debug",
]

HTTP_METHODS = frozenset({"GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"})


def create_app(cfg=None) -> FastAPI:
    """
    Build the application.

    Args:
        cfg: Config dict as returned by load_config(); loaded from the
            environment when None. Raises RuntimeError if the environment
            is incomplete.
    """
    cfg = cfg if cfg is not None else load_config()

    logging.basicConfig(
        level=getattr(logging, cfg.get("LOG_LEVEL", "INFO")),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    configure_resolver(
        supabase_jwt_secret=cfg.get("SUPABASE_JWT_SECRET"),
        api_key_to_user_map=cfg.get("RBAC_API_KEYS") or {},
        jwt_audience=cfg.get("SUPABASE_JWT_AUDIENCE"),
    )

    app = FastAPI(
        title="Blood Bank RBAC",
        version="0.1.0",
        description="Role-based access decisions and navigation for the blood-bank logistics front end.",
    )
    app.state.config = cfg
    app.state.unmapped_route_policy = UnmappedRoutePolicy(cfg.get("RBAC_UNMAPPED_ROUTE_POLICY", "deny"))

    # Added last so it runs first: CORS preflights never need a role.
    app.add_middleware(RoleResolutionMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.get("CORS_ALLOW_ORIGINS") or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def _timing(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        record_api_call(
            endpoint=get_route_template(request),
            method=request.method if request.method in HTTP_METHODS else "OTHER",
            status_code=response.status_code,
            latency_ms=(time.perf_counter() - start) * 1000,
        )
        return response

    mounted = []
    failures = []
    for module_name in ROUTER_MODULES:
        try:
            mod = __import__(module_name, fromlist=["router"])
            app.include_router(mod.router)
            mounted.append(module_name)
            logger.info(f"[routers] mounted {module_name}")
        except Exception as e:
            failures.append({"router": module_name, "error": repr(e)})
            logger.error(f"[routers] failed to mount '{module_name}': {e!r}")

    @app.get("/health")
    def health():
        return {"status": "ok" if not failures else "degraded"}

    @app.get("/debug/routers")
    def debug_routers():
        """Which routers mounted and which failed at import time."""
        return {"mounted": mounted, "failures": failures}

    return app
