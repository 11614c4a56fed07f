"""
Article service: business logic for the Article aggregate.

Design notes
------------
- Detail and list reads go through ``CacheAsideReader``.  Detail entries
  live under ``article:{id}``; list entries under a canonical key derived
  from the full filter (see ``query_planner.list_cache_key``).
- Mutations resolve the current article through the same cached read a
  client would see, run the ownership check on that payload, write to the
  store and then drop the ``article:{id}`` entry.  List entries are left
  to expire after ``CACHE_TTL`` seconds.
- Payloads are plain JSON-safe dicts so that a cache hit and a store read
  return exactly the same shape.
"""
import logging
import math
import uuid
from datetime import datetime, timedelta, timezone

from catalog.errors import Forbidden, InvalidRequest, NotFound, NotFoundAfterWrite
from catalog.models import Article, User, utcnow
from catalog.repositories import ArticleStore
from catalog.schemas import ArticleCreate, ArticleUpdate, FilterSpec, Principal
from catalog.services import ownership, query_planner
from catalog.services.cache_aside import CacheAsideReader, CacheInvalidator

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _author_to_dict(author: User | None) -> dict | None:
    if author is None:
        return None
    return {
        "id": str(author.id),
        "email": author.email,
        "first_name": author.first_name,
        "last_name": author.last_name,
    }


def _article_to_dict(article: Article) -> dict:
    return {
        "id": str(article.id),
        "title": article.title,
        "description": article.description,
        "publication_date": _iso(article.publication_date),
        "author_id": str(article.author_id),
        "created_at": _iso(article.created_at),
        "updated_at": _iso(article.updated_at),
        "author": _author_to_dict(article.author),
    }


def _next_updated_at(previous: str) -> datetime:
    """Current time, nudged forward if the clock has not moved past *previous*."""
    now = utcnow()
    floor = datetime.fromisoformat(previous) + timedelta(microseconds=1)
    return now if now >= floor else floor


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class ArticleService:
    def __init__(
        self,
        store: ArticleStore,
        reader: CacheAsideReader,
        invalidator: CacheInvalidator,
    ) -> None:
        self._store = store
        self._reader = reader
        self._invalidator = invalidator

    async def create(self, data: ArticleCreate, principal: Principal) -> dict:
        """
        Persist a new article owned by *principal* and return it joined with
        its author.

        The row is read back after the write; a miss there means the store
        lost an acknowledged write and is reported as an internal error.
        """
        logger.info("Creating article for user %s: %s", principal.id, data.title)
        article_id = await self._store.add(data.model_dump(), author_id=principal.id)

        article = await self._store.get(article_id)
        if article is None:
            logger.error("Article %s not found after creation", article_id)
            raise NotFoundAfterWrite(f"Article with ID {article_id} not found after creation")

        logger.info("Article created successfully: %s", article_id)
        return _article_to_dict(article)

    async def list(self, spec: FilterSpec) -> dict:
        """Return one page of articles matching *spec*, most recent first."""
        key = query_planner.list_cache_key(spec)

        async def load() -> dict:
            articles, total = await self._store.page(spec)
            logger.info(
                "Found %d articles, returning page %d (limit %d)", total, spec.page, spec.limit
            )
            return {
                "data": [_article_to_dict(a) for a in articles],
                "total": total,
                "page": spec.page,
                "limit": spec.limit,
                "total_pages": math.ceil(total / spec.limit),
            }

        return await self._reader.read(key, load)

    async def get(self, article_id: uuid.UUID) -> dict:
        """Return the article payload; raises ``NotFound`` if it does not exist."""

        async def load() -> dict:
            article = await self._store.get(article_id)
            if article is None:
                logger.warning("Article not found: %s", article_id)
                raise NotFound(f"Article with ID {article_id} not found")
            return _article_to_dict(article)

        return await self._reader.read(query_planner.article_cache_key(article_id), load)

    async def resolve_for_mutation(
        self, article_id: uuid.UUID, principal: Principal, action: str
    ) -> dict:
        """Read the article the way a client would, then check ownership."""
        article = await self.get(article_id)
        try:
            ownership.authorize(article, principal, action)
        except Forbidden:
            logger.warning(
                "Unauthorized %s attempt on article %s by user %s", action, article_id, principal.id
            )
            raise
        return article

    async def update(
        self, article_id: uuid.UUID, data: ArticleUpdate, principal: Principal
    ) -> dict:
        changes = data.model_dump(exclude_unset=True)
        if not changes:
            logger.warning("Update failed: no fields provided for article %s", article_id)
            raise InvalidRequest("At least one field must be provided for update")

        logger.info("User %s attempting to update article %s", principal.id, article_id)
        current = await self.resolve_for_mutation(article_id, principal, "update")

        updated_at = _next_updated_at(current["updated_at"])
        saved = await self._store.save(article_id, changes, updated_at=updated_at)
        await self._invalidator.invalidate(article_id)
        if not saved:
            raise NotFound(f"Article with ID {article_id} not found")

        updated = dict(current)
        for field, value in changes.items():
            updated[field] = _iso(value) if isinstance(value, datetime) else value
        updated["updated_at"] = _iso(updated_at)

        logger.info("Article %s updated successfully by user %s", article_id, principal.id)
        return updated

    async def remove(self, article_id: uuid.UUID, principal: Principal) -> None:
        logger.info("User %s attempting to delete article %s", principal.id, article_id)
        await self.resolve_for_mutation(article_id, principal, "delete")

        deleted = await self._store.delete(article_id)
        await self._invalidator.invalidate(article_id)
        if not deleted:
            raise NotFound(f"Article with ID {article_id} not found")

        logger.info("Article %s deleted successfully by user %s", article_id, principal.id)
