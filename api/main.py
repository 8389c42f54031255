from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Dict, Type

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.status import (
    HTTP_401_UNAUTHORIZED,
    HTTP_404_NOT_FOUND,
    HTTP_422_UNPROCESSABLE_ENTITY,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_502_BAD_GATEWAY,
    HTTP_503_SERVICE_UNAVAILABLE,
)


def _repo_root() -> Path:
    # `api/main.py` lives at `<repo>/api/main.py`
    return Path(__file__).resolve().parents[1]


def _ensure_src_on_path() -> None:
    src = _repo_root() / "src"
    if not src.is_dir():
        return
    s = str(src)
    if s not in sys.path:
        sys.path.insert(0, s)


_ensure_src_on_path()

from api.http_logging import install_http_logging  # noqa: E402
from api.routes import drafts, health, levels, reports, submissions  # noqa: E402
from api.supabase_client import get_settings  # noqa: E402
from api.utils import error_body, request_id  # noqa: E402
from mea_form.errors import (  # noqa: E402
    AuthenticationMissingError,
    ConnectivityError,
    FormEngineError,
    PersistenceError,
    StepValidationError,
    UnknownLevelError,
)
from mea_form.levels import configure_levels  # noqa: E402

logger = logging.getLogger("api")

# (status, error code) per engine failure; checked in order so subclasses win over the base.
_ENGINE_ERRORS: Dict[Type[FormEngineError], tuple] = {
    StepValidationError: (HTTP_422_UNPROCESSABLE_ENTITY, "validation_error"),
    AuthenticationMissingError: (HTTP_401_UNAUTHORIZED, "authentication_missing"),
    UnknownLevelError: (HTTP_404_NOT_FOUND, "unknown_level"),
    PersistenceError: (HTTP_502_BAD_GATEWAY, "persistence_error"),
    ConnectivityError: (HTTP_503_SERVICE_UNAVAILABLE, "connectivity_error"),
}


def create_app() -> FastAPI:
    # Local dev convenience: load env files if present.
    load_dotenv(_repo_root() / ".env", override=False)
    load_dotenv(_repo_root() / ".env.local", override=False)

    settings = get_settings()
    configure_levels(settings.level_config_path)

    app = FastAPI(title="mea-form-service", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    install_http_logging(app, settings)

    @app.exception_handler(RequestValidationError)
    async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        rid = request_id("val")
        # Keep server logs useful without dumping full bodies.
        logger.warning("422 validation_error requestId=%s path=%s errors=%s", rid, request.url.path, exc.errors())
        return JSONResponse(
            status_code=HTTP_422_UNPROCESSABLE_ENTITY,
            content=error_body(
                "validation_error",
                "Request body did not match expected schema.",
                requestId=rid,
                details=jsonable_errors(exc),
            ),
        )

    @app.exception_handler(FormEngineError)
    async def _engine_error_handler(request: Request, exc: FormEngineError) -> JSONResponse:
        status, code = HTTP_500_INTERNAL_SERVER_ERROR, "engine_error"
        for cls, mapped in _ENGINE_ERRORS.items():
            if isinstance(exc, cls):
                status, code = mapped
                break
        logger.info("%s %s path=%s message=%s", status, code, request.url.path, exc)
        extra = {"step": exc.step} if isinstance(exc, StepValidationError) else {}
        return JSONResponse(status_code=status, content=error_body(code, str(exc), **extra))

    @app.exception_handler(Exception)
    async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        rid = request_id("err")
        logger.exception("500 internal_error requestId=%s path=%s", rid, request.url.path)
        return JSONResponse(
            status_code=HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body("internal_error", "Unhandled server error.", requestId=rid),
        )

    app.include_router(health.router)
    app.include_router(levels.router)
    app.include_router(drafts.router)
    app.include_router(submissions.router)
    app.include_router(reports.router)
    return app


def jsonable_errors(exc: RequestValidationError) -> list:
    # pydantic error contexts can hold exception objects; keep only JSON-safe keys.
    return [{k: e.get(k) for k in ("loc", "msg", "type")} for e in exc.errors()]


app = create_app()
