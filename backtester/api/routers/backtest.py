"""
Backtest API endpoints.
"""

from fastapi import APIRouter, HTTPException, Request, status
from loguru import logger

from backtester.core.models.backtest import BacktestResult
from backtester.engine.analyzer import analyze_backtest_results
from backtester.engine.runner import BacktestEngine, estimate_ai_calls
from backtester.infrastructure.storage.result_store import ResultStore

from ..schemas.api_models import (
    BacktestRequest,
    BacktestResponse,
    BacktestResults,
    BacktestSummary,
    EstimateResponse,
)

router = APIRouter()


def _engine(request: Request) -> BacktestEngine:
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="No backtest engine configured",
        )
    return engine


def _store(request: Request) -> ResultStore:
    return request.app.state.result_store


def _get_result(request: Request, backtest_id: str) -> BacktestResult:
    result = _store(request).get(backtest_id)
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Backtest not found: {backtest_id}",
        )
    return result


@router.post("/estimate", response_model=EstimateResponse)
async def estimate_backtest(payload: BacktestRequest) -> EstimateResponse:
    """Estimate oracle calls for a backtest before submitting it."""
    return EstimateResponse(estimated_ai_calls=estimate_ai_calls(payload.to_config()))


@router.post("/", response_model=BacktestResponse)
async def submit_backtest(payload: BacktestRequest, request: Request) -> BacktestResponse:
    """Run a backtest to completion and store its result."""
    engine = _engine(request)
    result = await engine.run(payload.to_config())
    _store(request).save(result)

    logger.info(f"API backtest {result.id} finished with phase={result.phase}")
    return BacktestResponse(
        backtest_id=result.id,
        status=result.phase.value,
        message=f"{result.metrics.total_trades} trades simulated",
        errors=list(result.errors),
    )


@router.get("/", response_model=list[BacktestSummary])
async def list_backtests(request: Request) -> list[BacktestSummary]:
    """List stored backtests, newest first."""
    return [
        BacktestSummary(
            backtest_id=result.id,
            symbol=result.config.symbol,
            status=result.phase.value,
            total_trades=result.metrics.total_trades,
            total_return_percent=result.metrics.total_return_percent,
            completed_at=result.completed_at,
        )
        for result in _store(request).list()
    ]


@router.get("/{backtest_id}", response_model=BacktestResults)
async def get_backtest_results(backtest_id: str, request: Request) -> BacktestResults:
    """Get backtest results by ID."""
    data = _get_result(request, backtest_id).to_dict()
    return BacktestResults(
        backtest_id=data["id"],
        status=data["phase"],
        config=data["config"],
        metrics=data["metrics"],
        trades=data["trades"],
        equity_curve=data["equity_curve"],
        errors=data["errors"],
        completed_at=data["completed_at"],
        duration=data["duration"],
    )


@router.get("/{backtest_id}/insights")
async def get_backtest_insights(backtest_id: str, request: Request) -> dict:
    """Get optimization insights for a stored backtest."""
    return analyze_backtest_results(_get_result(request, backtest_id)).to_dict()


@router.delete("/{backtest_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_backtest(backtest_id: str, request: Request) -> None:
    """Delete a stored backtest."""
    if not _store(request).delete(backtest_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Backtest not found: {backtest_id}",
        )
