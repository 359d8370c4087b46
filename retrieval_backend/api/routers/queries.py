"""
Query routing API endpoints.

Routes:
- POST /queries/dispatch - Decide sync vs async handling; queue a job when async

Dependencies: retrieval_backend.application.services, retrieval_backend.models
System role: Chat query routing HTTP API
"""

from fastapi import APIRouter, Depends

from retrieval_backend.api.deps import get_query_routing_service, require_internal_token
from retrieval_backend.api.routers.error_handling import handle_job_errors
from retrieval_backend.application.services.query_routing_service import QueryRoutingService
from retrieval_backend.models.job import JobResponse, QueryDispatchRequest, QueryDispatchResponse

router = APIRouter(prefix="/queries", tags=["queries"])


@router.post(
    "/dispatch",
    response_model=QueryDispatchResponse,
    dependencies=[Depends(require_internal_token)],
)
@handle_job_errors
async def dispatch_query(
    request: QueryDispatchRequest,
    routing_service: QueryRoutingService = Depends(get_query_routing_service),
) -> QueryDispatchResponse:
    """
    Route a chat query.

    Comparative queries naming two or more terms are queued as comparison
    jobs and the worker is woken in the background; everything else is
    answered inline by the caller.

    Example Response:
        {"mode": "async", "reason": "comparative-query", "job": {"id": "...", "status": "queued", "priority": 3}}
    """
    decision = await routing_service.dispatch_or_queue(
        message=request.message,
        analysis=request.analysis,
        enhancement=request.enhancement,
        conversation_id=request.conversation_id,
        user_id=request.user_id,
        conversation_history_length=request.conversation_history_length,
        web_search_enabled=request.web_search_enabled,
        skip_cache=request.skip_cache,
        trace_id=request.trace_id,
    )
    return QueryDispatchResponse(
        mode=decision.mode,
        reason=decision.reason,
        job=JobResponse.model_validate(decision.job) if decision.job is not None else None,
    )
