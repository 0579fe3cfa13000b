import functools
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from salescoach.schemas.intent import HandlerParams, HandlerResult
from salescoach.services.error_messages import operation_failed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HandlerContext:
    """Collaborators shared by all handlers. Built once by the app lifespan."""

    llm: Any
    embeddings: Any
    agents: Any
    calls: Any
    search: Any
    rubrics: Any
    list_limit: int = 50
    search_limit: int = 10
    search_similarity_threshold: float = 0.5
    analysis_max_tokens: int = 4096
    summary_max_tokens: int = 2048
    general_max_tokens: int = 512


HandlerFn = Callable[[HandlerContext, HandlerParams, str], Awaitable[HandlerResult]]


def handler_boundary(operation: str):
    """Catch anything a handler raises and return it as a failed HandlerResult."""

    def decorator(fn: HandlerFn) -> HandlerFn:
        @functools.wraps(fn)
        async def wrapper(ctx: HandlerContext, params: HandlerParams, message: str) -> HandlerResult:
            try:
                return await fn(ctx, params, message)
            except Exception as e:
                return operation_failed(operation, e)

        return wrapper

    return decorator


def success(data_type: str, **data) -> HandlerResult:
    return HandlerResult(success=True, data={"type": data_type, **data}, error=None)
