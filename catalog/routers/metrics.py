from fastapi import APIRouter, Request

from catalog.schemas import MetricsResponse

router = APIRouter(prefix="/metrics", tags=["metrics"])


@router.get("", response_model=MetricsResponse)
async def get_metrics(request: Request):
    state = request.app.state
    return MetricsResponse(
        total_articles=await state.article_store.count(),
        total_users=await state.user_store.count(),
        cache_info=state.cache.stats,
    )
