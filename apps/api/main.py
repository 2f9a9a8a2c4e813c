from __future__ import annotations

import logging
import secrets
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from mdtree_api.config import Settings, load_settings
from mdtree_api.dependencies import get_settings, get_workspace
from mdtree_api.interface.api.routes import router
from mdtree_api.workspace import Workspace

_PUBLIC_PATHS = frozenset({"/health"})


def _is_authorized(settings: Settings, request: Request) -> bool:
    if settings.api_auth_mode != "bearer" or request.url.path in _PUBLIC_PATHS:
        return True
    if not settings.api_auth_token:
        return False
    scheme, _, presented = (request.headers.get("authorization") or "").partition(" ")
    return scheme == "Bearer" and secrets.compare_digest(presented, settings.api_auth_token)


def _json_error(status: int, rid: str, **content) -> JSONResponse:
    return JSONResponse(status_code=status, content=content, headers={"X-Request-ID": rid})


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or load_settings()
    workspace = Workspace.from_settings(settings)

    app = FastAPI(title="mdtree API", version="0.1.0")
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_workspace] = lambda: workspace

    logging.getLogger("mdtree").setLevel(settings.log_level)
    logger = logging.getLogger("mdtree.api")

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        rid = request.headers.get("x-request-id") or uuid.uuid4().hex
        request.state.request_id = rid
        started = time.perf_counter()

        if not _is_authorized(settings, request):
            logger.info("request_unauthorized", extra={"rid": rid, "path": request.url.path})
            return _json_error(401, rid, detail="unauthorized")

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "request_error",
                extra={"rid": rid, "path": request.url.path, "ms": (time.perf_counter() - started) * 1000.0},
            )
            return _json_error(500, rid, detail="internal_error", request_id=rid)

        fields = {
            "rid": rid,
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "ms": (time.perf_counter() - started) * 1000.0,
        }
        if settings.api_debug_log:
            fields["query"] = request.url.query
        logger.info("request", extra=fields)
        response.headers["X-Request-ID"] = rid
        return response

    app.include_router(router)
    return app


app = create_app()
