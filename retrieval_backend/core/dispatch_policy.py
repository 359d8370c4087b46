"""
Sync/async routing decision for chat queries.

Decides from the query analysis whether a request is answered inline or
queued as a background job. Only comparative queries naming at least two
terms are queued today; longer prompts get a long-form flag and a higher
priority.

Dependencies: retrieval_backend.boundary.db.models.job_model, retrieval_backend.models.query_cache
System role: Routing heuristics for long-running queries
"""

from dataclasses import dataclass, field
from typing import Any

from retrieval_backend.boundary.db.models.job_model import JobType
from retrieval_backend.models.query_cache import EnhancementData

COMPARISON_INTENT = "comparison"
COMPARATIVE_QUERY_REASON = "comparative-query"

MIN_COMPARATIVE_TERMS = 2
LONG_FORM_WORD_COUNT = 80
HIGH_PRIORITY_WORD_COUNT = 120

COMPARISON_PRIORITY = 3
HIGH_PRIORITY = 5


@dataclass(frozen=True)
class DispatchEvaluation:
    """Routing decision with the heuristics that produced it."""

    should_enqueue: bool
    job_type: JobType | None = None
    reason: str | None = None
    priority: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)


def _analysis_value(analysis: dict[str, Any], camel: str, snake: str) -> Any:
    return analysis.get(camel, analysis.get(snake))


def comparative_terms(analysis: dict[str, Any]) -> list[str]:
    """Non-empty comparative terms listed by the analyzer."""
    terms = _analysis_value(analysis, "comparativeTerms", "comparative_terms") or []
    return [term for term in terms if term]


def is_comparison_intent(analysis: dict[str, Any], enhancement: EnhancementData) -> bool:
    """True when either the analysis or the enhancement tags the query as a comparison."""
    return (
        analysis.get("intent") == COMPARISON_INTENT
        or bool(_analysis_value(analysis, "isComparative", "is_comparative"))
        or enhancement.intent == COMPARISON_INTENT
    )


def evaluate_dispatch(
    message: str,
    analysis: dict[str, Any],
    enhancement: EnhancementData | dict[str, Any],
    conversation_history_length: int = 0,
) -> DispatchEvaluation:
    """
    Decide whether a query should run as a background job.

    Args:
        message: User message
        analysis: Query analysis (camelCase or snake_case keys)
        enhancement: Query enhancement
        conversation_history_length: Messages already in the conversation

    Returns:
        DispatchEvaluation: should_enqueue False for inline handling, otherwise
            a COMPARISON job with priority 3 (5 for very long prompts)
    """
    if not isinstance(enhancement, EnhancementData):
        enhancement = EnhancementData.model_validate(enhancement)

    terms = comparative_terms(analysis)
    if not (is_comparison_intent(analysis, enhancement) and len(terms) >= MIN_COMPARATIVE_TERMS):
        return DispatchEvaluation(should_enqueue=False)

    word_count = len(message.split())
    metadata: dict[str, Any] = {
        "comparativeTerms": terms,
        "messageWordCount": word_count,
        "conversationHistoryLength": conversation_history_length,
        "intent": analysis.get("intent"),
        "shouldEnhance": enhancement.should_enhance,
    }
    if word_count >= LONG_FORM_WORD_COUNT:
        metadata["longForm"] = True

    return DispatchEvaluation(
        should_enqueue=True,
        job_type=JobType.COMPARISON,
        reason=COMPARATIVE_QUERY_REASON,
        priority=HIGH_PRIORITY if word_count >= HIGH_PRIORITY_WORD_COUNT else COMPARISON_PRIORITY,
        metadata=metadata,
    )
