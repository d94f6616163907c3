from __future__ import annotations

import hmac
import json
import time

from fastapi import FastAPI, Header, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import metrics
from .checkout import process_order_request
from .config import BridgeConfig
from .errors import BridgeError
from .logging_config import get_logger
from .square import PaymentsPlatform, SquareClient

_req_logger = get_logger("requests")
_logger = get_logger("api")

NOT_FOUND = "Not found"


def _parse_body(raw: bytes):
    if not raw.strip():
        return {}
    return json.loads(raw)


def _check_api_key(config: BridgeConfig, x_api_key: str | None) -> None:
    if not config.auth_enabled:
        return  # no shared key configured
    if not x_api_key or not hmac.compare_digest(x_api_key.encode(), config.shared_key.encode()):
        raise HTTPException(status_code=401, detail="Unauthorized")


def create_app(config: BridgeConfig | None = None, platform: PaymentsPlatform | None = None) -> FastAPI:
    config = config or BridgeConfig.from_env()
    platform = platform or SquareClient(config)

    app = FastAPI(title="Terminal Checkout Bridge", version="0.1.0")
    app.state.config = config
    app.state.platform = platform

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "x-api-key"],
    )

    @app.middleware("http")
    async def _logging_middleware(request: Request, call_next):  # pragma: no cover - thin instrumentation
        start = time.perf_counter()
        try:
            response = await call_next(request)
            duration = (time.perf_counter() - start) * 1000.0
            _req_logger.info(f"method={request.method} path={request.url.path} status={response.status_code} dur_ms={duration:.2f}")
            return response
        except Exception as e:
            duration = (time.perf_counter() - start) * 1000.0
            _req_logger.error(f"method={request.method} path={request.url.path} error={e} dur_ms={duration:.2f}")
            raise

    @app.exception_handler(BridgeError)
    async def _bridge_error(request: Request, exc: BridgeError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_body())

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        # only POST /api plus the GET health and metrics routes exist
        if exc.status_code in (404, 405):
            return JSONResponse(status_code=404, content={"error": NOT_FOUND})
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)

    @app.get("/healthz")
    @app.get("/api/healthz")
    def healthz():
        return Response(content="ok", media_type="text/plain")

    @app.get("/metrics")
    def metrics_endpoint():
        return Response(content=metrics.prometheus_exposition(), media_type="text/plain; version=0.0.4")

    @app.post("/api")
    async def create_terminal_checkout(request: Request, x_api_key: str | None = Header(default=None)):
        _check_api_key(config, x_api_key)
        start = time.perf_counter()
        try:
            raw = _parse_body(await request.body())
            body = await run_in_threadpool(process_order_request, raw, config, platform)
        except BridgeError as e:
            metrics.record_request(time.perf_counter() - start, failed_step=e.step or "config")
            if e.status_code >= 500:
                _logger.error(f"checkout failed step={e.step} status={e.status_code} error={e.error}")
            raise
        except Exception as e:
            metrics.record_request(time.perf_counter() - start, failed_step="unexpected")
            _logger.exception("checkout failed unexpectedly")
            return JSONResponse(status_code=500, content={"error": str(e) or e.__class__.__name__})
        metrics.record_request(time.perf_counter() - start, ok=True)
        return body

    return app


app = create_app()
