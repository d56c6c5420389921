"""FastAPI application factory"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from lendada_gateway.api.errors import domain_exception_handler, request_validation_handler
from lendada_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from lendada_gateway.api.v1 import credit, identity, jobs, loans
from lendada_gateway.domain.exceptions import DomainException
from lendada_gateway.infrastructure.clients.blockfrost import OnChainMetricsCollector
from lendada_gateway.infrastructure.database.session import SessionLocal
from lendada_gateway.infrastructure.observability.logging import setup_logging
from lendada_gateway.services.credit import persist_credit_check
from lendada_gateway.services.jobs import JobStore, ScoringJobManager
from lendada_gateway.services.loans import LoanLocks
from lendada_gateway.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app(
    session_factory=SessionLocal,
    collector: OnChainMetricsCollector | None = None,
) -> FastAPI:
    """
    Create and configure FastAPI application.

    The scoring job table and per-loan locks live on app.state for the lifetime of
    the app; in-flight jobs are cancelled on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await app.state.job_manager.shutdown()

    app = FastAPI(
        title="LendADA Gateway",
        description="On-chain credit scoring and peer-to-peer microloan lifecycle service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.state.job_manager = ScoringJobManager(
        collector=collector or OnChainMetricsCollector(),
        store=JobStore(),
        on_complete=persist_credit_check(session_factory),
    )
    app.state.loan_locks = LoanLocks()

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.add_exception_handler(DomainException, domain_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(identity.router, prefix="/v1", tags=["identity"])
    app.include_router(credit.router, prefix="/v1", tags=["credit"])
    app.include_router(jobs.router, prefix="/v1", tags=["scoring-jobs"])
    app.include_router(loans.router, prefix="/v1", tags=["loans"])

    return app


app = create_app()
