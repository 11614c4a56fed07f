import uuid

from fastapi import APIRouter, Depends, Response, status

from catalog.dependencies import get_article_service, get_filter_spec, get_principal
from catalog.schemas import ArticleCreate, ArticleResponse, ArticleUpdate, FilterSpec, PageResult, Principal
from catalog.services.article_service import ArticleService

router = APIRouter(prefix="/articles", tags=["articles"])


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ArticleResponse)
async def create_article(
    data: ArticleCreate,
    principal: Principal = Depends(get_principal),
    service: ArticleService = Depends(get_article_service),
):
    return await service.create(data, principal)


@router.get("", response_model=PageResult)
async def list_articles(
    spec: FilterSpec = Depends(get_filter_spec),
    service: ArticleService = Depends(get_article_service),
):
    return await service.list(spec)


@router.get("/{article_id}", response_model=ArticleResponse)
async def get_article(article_id: uuid.UUID, service: ArticleService = Depends(get_article_service)):
    return await service.get(article_id)


@router.patch("/{article_id}", response_model=ArticleResponse)
async def update_article(
    article_id: uuid.UUID,
    data: ArticleUpdate,
    principal: Principal = Depends(get_principal),
    service: ArticleService = Depends(get_article_service),
):
    return await service.update(article_id, data, principal)


@router.delete("/{article_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_article(
    article_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    service: ArticleService = Depends(get_article_service),
):
    await service.remove(article_id, principal)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
