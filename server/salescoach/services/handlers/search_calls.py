import logging

from salescoach.schemas.intent import HandlerParams, HandlerResult
from salescoach.services import error_messages
from salescoach.services.handlers.base import HandlerContext, handler_boundary, success

logger = logging.getLogger(__name__)


@handler_boundary("search calls")
async def handle_search_calls(ctx: HandlerContext, params: HandlerParams, message: str) -> HandlerResult:
    query = params.search_query
    if not query:
        return error_messages.format_error(error_messages.search_query_required())

    # An unmatched agent name does not fail a search; it just runs unscoped
    scope = {
        "agent_user_id": params.agent_id,
        "start_date": params.start_date,
        "end_date": params.end_date,
        "limit": params.limit or ctx.search_limit,
    }
    data = {
        "search_query": query,
        "agent_name": params.agent_name if params.agent_id else None,
        "start_date": params.start_date.isoformat(),
        "end_date": params.end_date.isoformat(),
    }

    embedding = await ctx.embeddings.embed(query)
    results = await ctx.search.semantic_search(
        embedding, similarity_threshold=ctx.search_similarity_threshold, **scope
    )
    search_type = "semantic"

    if not results:
        logger.info(f"No semantic matches for '{query}', falling back to text search")
        results = await ctx.search.text_search(query, **scope)
        search_type = "text"

    if not results:
        return success(
            "search_results",
            result_count=0,
            results=[],
            message=error_messages.no_search_results(query),
            **data,
        )

    return success(
        "search_results",
        result_count=len(results),
        results=[r.model_dump(mode="json") for r in results],
        search_type=search_type,
        **data,
    )
