import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncEngine

from catalog.cache import CacheManager
from catalog.config import Settings, get_settings
from catalog.database import create_engine, create_session_factory
from catalog.errors import CatalogError, Unauthenticated
from catalog.middleware import TimingMiddleware
from catalog.repositories import ArticleStore, UserStore
from catalog.routers import articles, auth, metrics
from catalog.services.article_service import ArticleService
from catalog.services.auth_service import AuthService
from catalog.services.cache_aside import CacheAsideReader, CacheInvalidator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup; the app keeps working from the store alone without Redis
    await app.state.cache.connect()
    yield
    # Shutdown
    await app.state.cache.disconnect()
    await app.state.engine.dispose()


async def catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message}, headers=headers)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed ids, bad query types and invalid bodies are all plain 400s."""
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


def create_app(
    settings: Settings | None = None,
    engine: AsyncEngine | None = None,
    cache: CacheManager | None = None,
) -> FastAPI:
    """
    Build the application and its collaborators exactly once.

    Engine, cache, stores and services are kept on ``app.state``; request
    handlers reach them through the dependencies in ``catalog.dependencies``.
    Tests pass their own *engine* and *cache*.
    """
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    engine = engine or create_engine(settings)
    session_factory = create_session_factory(engine)
    cache = cache or CacheManager(settings.REDIS_URL, timeout=settings.CACHE_TIMEOUT)

    article_store = ArticleStore(session_factory, timeout=settings.STORE_TIMEOUT)
    user_store = UserStore(session_factory, timeout=settings.STORE_TIMEOUT)

    app = FastAPI(
        title="Content Catalog API",
        description="Authenticated article catalog with a cache-aside read path",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.cache = cache
    app.state.article_store = article_store
    app.state.user_store = user_store
    app.state.article_service = ArticleService(
        article_store,
        CacheAsideReader(cache, ttl=settings.CACHE_TTL),
        CacheInvalidator(cache),
    )
    app.state.auth_service = AuthService(user_store, settings)

    app.add_exception_handler(CatalogError, catalog_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    # Middleware
    app.add_middleware(TimingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(auth.router)
    app.include_router(articles.router)
    app.include_router(metrics.router)

    @app.get("/health")
    async def health():
        return {"status": "healthy", "version": "1.0.0"}

    return app
