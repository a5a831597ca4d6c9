"""
FastAPI application for the backtest engine.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backtester.engine.runner import BacktestEngine
from backtester.infrastructure.storage.result_store import ResultStore

from .routers import backtest

API_VERSION = "1.0.0"


def create_app(
    engine: BacktestEngine | None = None, result_store: ResultStore | None = None
) -> FastAPI:
    """Build the API around an engine and a result store.

    Without an engine, submissions answer 503 while estimates and stored
    results stay available.
    """
    app = FastAPI(
        title="Backtest Engine API",
        version=API_VERSION,
        description="API for point-in-time backtests of trading decision oracles",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:3000",  # Development frontend
            "http://localhost:8080",  # Alternative development port
        ],
        allow_credentials=False,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "Accept", "Origin"],
    )

    app.state.engine = engine
    app.state.result_store = result_store or ResultStore()
    app.include_router(backtest.router, prefix="/api/backtest", tags=["backtest"])

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint returning API information."""
        return {"message": "Backtest Engine API", "version": API_VERSION, "status": "running"}

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()
