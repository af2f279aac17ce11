"""
REST API endpoints for session replay.

Each request replays an independent session through a fresh engine.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status

from clearing.api.models import (
    ErrorResponse,
    ExecutionResponse,
    ReplayRequest,
    ReplayResponse,
    TradeResponse,
    UnexecutedResponse,
)
from clearing.services.ingestion import parse_session
from clearing.services.session_service import SessionService
from clearing.utils.formatters import format_price

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/sessions", tags=["sessions"])


# Set from main.py at startup
_session_service: SessionService = None


def get_session_service() -> SessionService:
    """Dependency to get SessionService instance."""
    if _session_service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Session service not initialized"
        )
    return _session_service


def set_session_service(service: SessionService) -> None:
    """Set the global SessionService instance."""
    global _session_service
    _session_service = service


@router.post(
    "/replay",
    response_model=ReplayResponse,
    summary="Replay a session",
    description="Run a seed price and a list of orders through a new engine "
                "and return every execution and residual.",
    responses={
        400: {
            "description": "Malformed input or invalid order",
            "model": ErrorResponse
        },
        422: {
            "description": "Validation error",
            "model": ErrorResponse
        },
        503: {
            "description": "Service unavailable"
        }
    }
)
async def replay_session(
    request: ReplayRequest,
    session_service: SessionService = Depends(get_session_service)
) -> ReplayResponse:
    """
    Replay a session.
    
    **Request Body:**
    - `initial_price` + `orders`: structured session, or
    - `text`: raw input file content
    - `market_orders_first`: optional ranking override
    """
    if request.text is not None:
        session = parse_session(request.text.splitlines())
        initial_price, orders = session.initial_price, session.orders
    else:
        initial_price, orders = request.initial_price, request.to_orders()
    
    service = session_service
    if request.market_orders_first is not None:
        service = SessionService(
            session_service.settings.model_copy(
                update={"market_orders_first": request.market_orders_first}
            )
        )
    
    logger.info(f"Replaying session with {len(orders)} orders")
    report = service.run(initial_price, orders)
    if service is not session_service:
        session_service.sessions_replayed += 1
    
    return ReplayResponse(
        initial_price=format_price(report.initial_price),
        last_traded_price=format_price(report.last_traded_price),
        trades=[TradeResponse.from_trade(t) for t in report.trades],
        executions=[ExecutionResponse.from_record(r) for r in report.executions],
        unexecuted=[UnexecutedResponse.from_record(r) for r in report.unexecuted],
        lines=report.lines(),
        statistics=report.statistics,
        timestamp=datetime.now(timezone.utc),
    )
