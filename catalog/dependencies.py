import uuid
from datetime import datetime

from fastapi import Depends, Query, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from catalog.errors import Unauthenticated
from catalog.schemas import FilterSpec, Principal
from catalog.services.article_service import ArticleService
from catalog.services.auth_service import AuthService

bearer_scheme = HTTPBearer(auto_error=False)


# ---------------------------------------------------------------------------
# Services (built once in ``create_app`` and kept on ``app.state``)
# ---------------------------------------------------------------------------

def get_article_service(request: Request) -> ArticleService:
    return request.app.state.article_service


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------

def get_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    auth: AuthService = Depends(get_auth_service),
) -> Principal:
    """Resolve the bearer token into a ``Principal``; 401 when absent or invalid."""
    if credentials is None:
        raise Unauthenticated("Missing bearer token")
    return auth.authenticate(credentials.credentials)


# ---------------------------------------------------------------------------
# Collection query parameters
# ---------------------------------------------------------------------------

def get_filter_spec(
    request: Request,
    page: int = Query(1, ge=1, description="Page number (1-based)."),
    limit: int = Query(
        10,
        ge=1,
        description="Items per page, clamped to the configured maximum.",
    ),
    author_id: uuid.UUID | None = Query(None, alias="authorId"),
    from_date: datetime | None = Query(None, alias="fromDate"),
    to_date: datetime | None = Query(None, alias="toDate"),
    search: str | None = Query(None, description="Case-insensitive title/description match."),
) -> FilterSpec:
    """
    Parse the list query string into a ``FilterSpec``.

    Respects the application-level page size ceiling so that a settings
    change is sufficient to tighten it.
    """
    settings = request.app.state.settings
    return FilterSpec(
        page=page,
        limit=min(limit, settings.MAX_PAGE_SIZE),
        author_id=author_id,
        from_date=from_date,
        to_date=to_date,
        search=search,
    )
