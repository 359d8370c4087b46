"""
Query routing orchestrator.

Entry point of the chat path for long-running work: evaluates the routing
heuristics and either hands the query back for inline answering or queues
a job for it and wakes the worker without waiting.

Dependencies: retrieval_backend.application.services.job_service, retrieval_backend.core.dispatch_policy
System role: Sync/async dispatch of chat queries
"""

import logging
from dataclasses import dataclass
from typing import Any, Literal

from retrieval_backend.application.services.dispatch_trigger import DispatchTrigger
from retrieval_backend.application.services.job_service import JobService
from retrieval_backend.boundary.db.models.job_model import JobModel
from retrieval_backend.core.dispatch_policy import evaluate_dispatch
from retrieval_backend.models.query_cache import EnhancementData
from retrieval_backend.observability.correlation import resolve_trace_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DispatchDecision:
    """Where a query is handled: inline ("sync") or as a queued job ("async")."""

    mode: Literal["sync", "async"]
    job: JobModel | None = None
    reason: str | None = None


class QueryRoutingService:
    """Routes chat queries between inline answering and background jobs."""

    def __init__(self, job_service: JobService, trigger: DispatchTrigger | None = None) -> None:
        """
        Initialize routing service.

        Args:
            job_service: Job service used to enqueue routed queries
            trigger: Background dispatch trigger (None leaves jobs to the scheduled dispatcher)
        """
        self.job_service = job_service
        self.trigger = trigger

    async def dispatch_or_queue(
        self,
        message: str,
        analysis: dict[str, Any],
        enhancement: EnhancementData | dict[str, Any],
        conversation_id: str | None = None,
        user_id: str | None = None,
        conversation_history_length: int = 0,
        web_search_enabled: bool = False,
        skip_cache: bool = False,
        trace_id: str | None = None,
    ) -> DispatchDecision:
        """
        Answer inline or queue a job for the query.

        Args:
            message: User message
            analysis: Query analysis from the analyzer
            enhancement: Query enhancement from the analyzer
            conversation_id: Conversation the message belongs to
            user_id: Requesting user
            conversation_history_length: Messages already in the conversation
            web_search_enabled: Whether the answer may use web search
            skip_cache: Whether the worker should bypass the query cache
            trace_id: Correlation id (defaults to the request correlation id)

        Returns:
            DispatchDecision: mode "sync" with no job, or "async" with the queued job

        Raises:
            ValidationError: If the job cannot be created
        """
        if not isinstance(enhancement, EnhancementData):
            enhancement = EnhancementData.model_validate(enhancement)

        evaluation = evaluate_dispatch(message, analysis, enhancement, conversation_history_length)
        if not evaluation.should_enqueue:
            logger.debug(f"{__name__}:dispatch_or_queue - Handling query inline")
            return DispatchDecision(mode="sync")

        trace_id = resolve_trace_id(trace_id)
        payload = {
            "kind": evaluation.job_type.value,
            "message": message,
            "conversationId": conversation_id,
            "webSearchEnabled": web_search_enabled,
            "skipCache": skip_cache,
            "analysis": analysis,
            "enhancement": enhancement.model_dump(by_alias=True),
            "heuristics": evaluation.metadata,
            "userId": user_id,
            "traceId": trace_id,
        }
        metadata = {
            "conversationId": conversation_id,
            "userId": user_id,
            "intent": analysis.get("intent"),
            "reason": evaluation.reason,
        }

        job = await self.job_service.enqueue(
            job_type=evaluation.job_type,
            metadata=metadata,
            payload=payload,
            trace_id=trace_id,
            priority=evaluation.priority,
            reason=evaluation.reason,
            event_metadata=evaluation.metadata,
        )

        if self.trigger is not None:
            self.trigger.kick(job.trace_id)

        logger.info(
            f"{__name__}:dispatch_or_queue - Query queued as background job",
            extra={
                "job_id": str(job.id),
                "reason": evaluation.reason,
                "priority": evaluation.priority,
                "trace_id": job.trace_id,
            },
        )
        return DispatchDecision(mode="async", job=job, reason=evaluation.reason)
