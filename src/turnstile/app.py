"""FastAPI application for Turnstile."""

import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any, Optional

import structlog
from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from turnstile import __version__
from turnstile.config import Settings, get_settings
from turnstile.controller import AdmissionController
from turnstile.errors import RateLimitExceeded, UnknownPolicyError
from turnstile.guard import RateLimit
from turnstile.logging import setup_logging
from turnstile.metrics import metrics
from turnstile.models import Decision, EvaluateRequest, Policy
from turnstile.policies import GENERAL, PolicyCatalog, build_catalog
from turnstile.responses import rate_limit_headers, rate_limited_response
from turnstile.sweeper import Sweeper

logger = structlog.get_logger()


def create_app(
    settings: Optional[Settings] = None,
    controller: Optional[AdmissionController] = None,
) -> FastAPI:
    """
    Build the Turnstile application.

    ``controller`` lets tests inject one with a fake clock; otherwise a fresh
    controller with an empty store is created on startup.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        setup_logging(settings)
        logger.info("turnstile_starting", version=__version__)

        # Raises PolicyConfigurationError and aborts startup on a bad policy
        catalog = build_catalog(settings.policy_overrides)
        admission = controller or AdmissionController(
            unknown_identity=settings.unknown_identity
        )
        sweeper = Sweeper(admission, interval_seconds=settings.sweep_interval_seconds)

        app.state.catalog = catalog
        app.state.controller = admission
        app.state.sweeper = sweeper
        sweeper.start()

        yield

        await sweeper.stop()
        admission.reset()
        logger.info("turnstile_stopped")

    app = FastAPI(
        title="Turnstile Admission API",
        version=__version__,
        description="Fixed-window request admission and rate limiting",
        lifespan=lifespan,
    )
    app.state.settings = settings

    _register_middleware(app)
    _register_routes(app, settings)
    _register_exception_handlers(app)
    return app


def _register_middleware(app: FastAPI) -> None:
    @app.middleware("http")
    async def metrics_middleware(
        request: Request, call_next: Callable[[Request], Any]
    ) -> Response:
        """Record HTTP metrics for each request."""
        start_time = time.perf_counter()

        response: Response = await call_next(request)

        duration = time.perf_counter() - start_time
        route = request.scope.get("route")
        endpoint = getattr(route, "path", request.url.path)

        metrics.http_requests_total.labels(
            method=request.method,
            endpoint=endpoint,
            status=response.status_code,
        ).inc()
        metrics.http_request_duration.labels(
            method=request.method,
            endpoint=endpoint,
        ).observe(duration)

        return response


def _register_routes(app: FastAPI, settings: Settings) -> None:
    # === Health endpoints ===

    @app.get("/health", tags=["Health"])
    async def health(request: Request) -> dict[str, Any]:
        """Health check endpoint."""
        controller: AdmissionController = request.app.state.controller
        sweeper: Sweeper = request.app.state.sweeper

        return {
            "status": "healthy" if sweeper.running else "degraded",
            "version": __version__,
            "checks": {
                "sweeper": "ok" if sweeper.running else "stopped",
                "counters": len(controller.store),
            },
        }

    @app.get("/ready", tags=["Health"])
    async def ready(request: Request) -> dict[str, str]:
        """Readiness check endpoint."""
        if getattr(request.app.state, "catalog", None) is None:
            raise HTTPException(status_code=503, detail="Policy catalog not loaded")
        return {"status": "ready"}

    # === Metrics endpoint ===

    @app.get("/metrics", tags=["Observability"])
    async def prometheus_metrics() -> Response:
        """Prometheus metrics endpoint."""
        if not settings.metrics_enabled:
            raise HTTPException(status_code=404, detail="Metrics disabled")
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # === Policy endpoints ===

    @app.get(
        "/policies",
        response_model=list[Policy],
        tags=["Policies"],
        dependencies=[Depends(RateLimit(GENERAL))],
    )
    async def list_policies(request: Request) -> list[Policy]:
        """List every configured policy."""
        catalog: PolicyCatalog = request.app.state.catalog
        return list(catalog.values())

    @app.get(
        "/policies/{name}",
        response_model=Policy,
        tags=["Policies"],
        dependencies=[Depends(RateLimit(GENERAL))],
    )
    async def get_policy(name: str, request: Request) -> Policy:
        """Get one policy by name."""
        catalog: PolicyCatalog = request.app.state.catalog
        return catalog.get_policy(name)

    # === Evaluate endpoint ===

    @app.post("/evaluate", response_model=Decision, tags=["Rate Limiting"])
    async def evaluate(body: EvaluateRequest, request: Request) -> JSONResponse:
        """Check admission for an identity under a named policy."""
        catalog: PolicyCatalog = request.app.state.catalog
        controller: AdmissionController = request.app.state.controller

        policy = catalog.get_policy(body.policy)

        start_time = time.perf_counter()
        decision = controller.check_admission(body.identity, policy)
        metrics.evaluate_duration.labels(policy=policy.name).observe(
            time.perf_counter() - start_time
        )

        if not decision.admitted:
            return rate_limited_response(decision)

        return JSONResponse(
            status_code=200,
            content=decision.model_dump(by_alias=True),
            headers=rate_limit_headers(decision),
        )


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_exceeded_handler(
        request: Request, exc: RateLimitExceeded
    ) -> JSONResponse:
        """Render a guard rejection as 429 Too Many Requests."""
        return rate_limited_response(exc.decision)

    @app.exception_handler(UnknownPolicyError)
    async def unknown_policy_handler(request: Request, exc: UnknownPolicyError) -> JSONResponse:
        logger.warning("unknown_policy", policy=exc.name, path=request.url.path)
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("unhandled_exception", error=str(exc), path=request.url.path)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )


app = create_app()
