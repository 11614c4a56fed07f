"""
Store gateway for the ``users`` and ``articles`` tables.

Each public method opens its own session and runs in a single-row
transaction; no use case needs more than one row per write. Calls are
bounded by the configured store timeout and connectivity failures are
reported as ``UpstreamUnavailable`` so the HTTP layer can answer 503.
"""
import asyncio
import functools
import logging
import uuid
from datetime import datetime

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import joinedload

from catalog.errors import Conflict, Timeout, UpstreamUnavailable
from catalog.models import Article, User
from catalog.schemas import FilterSpec
from catalog.services import query_planner

logger = logging.getLogger(__name__)


def _bounded(method):
    """Apply the store timeout and translate connectivity errors."""

    @functools.wraps(method)
    async def wrapper(self, *args, **kwargs):
        try:
            return await asyncio.wait_for(method(self, *args, **kwargs), self._timeout)
        except asyncio.TimeoutError:
            logger.error("Store call %s timed out after %.1fs", method.__name__, self._timeout)
            raise Timeout("Database call timed out")
        except (OperationalError, InterfaceError) as exc:
            logger.error("Store call %s failed: %s", method.__name__, exc)
            raise UpstreamUnavailable("Database unavailable") from exc

    return wrapper


class _Store:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession], timeout: float = 10.0) -> None:
        self._session_factory = session_factory
        self._timeout = timeout


class ArticleStore(_Store):
    @_bounded
    async def get(self, article_id: uuid.UUID) -> Article | None:
        """Point lookup by primary key, joined with the author."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(Article)
                .where(Article.id == article_id)
                .options(joinedload(Article.author))
            )
            return result.scalar_one_or_none()

    @_bounded
    async def page(self, spec: FilterSpec) -> tuple[list[Article], int]:
        """Return one page of rows matching *spec* and the total match count."""
        async with self._session_factory() as session:
            total: int = (await session.execute(query_planner.count_statement(spec))).scalar_one()
            if total == 0 or query_planner.offset(spec) >= total:
                return [], total
            result = await session.execute(query_planner.page_statement(spec))
            return list(result.scalars().all()), total

    @_bounded
    async def add(self, fields: dict, author_id: uuid.UUID) -> uuid.UUID:
        async with self._session_factory() as session, session.begin():
            article = Article(**fields, author_id=author_id)
            session.add(article)
            await session.flush()
            return article.id

    @_bounded
    async def save(self, article_id: uuid.UUID, changes: dict, updated_at: datetime) -> bool:
        """Apply *changes* to one row; False when the row no longer exists."""
        async with self._session_factory() as session, session.begin():
            result = await session.execute(
                update(Article)
                .where(Article.id == article_id)
                .values(**changes, updated_at=updated_at)
            )
            return result.rowcount == 1

    @_bounded
    async def delete(self, article_id: uuid.UUID) -> bool:
        async with self._session_factory() as session, session.begin():
            result = await session.execute(delete(Article).where(Article.id == article_id))
            return result.rowcount == 1

    @_bounded
    async def count(self) -> int:
        async with self._session_factory() as session:
            return (await session.execute(select(func.count()).select_from(Article))).scalar_one()


class UserStore(_Store):
    @_bounded
    async def get_by_email(self, email: str) -> User | None:
        async with self._session_factory() as session:
            result = await session.execute(select(User).where(User.email == email))
            return result.scalar_one_or_none()

    @_bounded
    async def add(self, email: str, password_hash: str, first_name: str, last_name: str) -> User:
        """
        Insert a user; the unique constraint on ``email`` is the final
        arbiter for concurrent registrations of the same address.
        """
        try:
            async with self._session_factory() as session, session.begin():
                user = User(
                    email=email,
                    password_hash=password_hash,
                    first_name=first_name,
                    last_name=last_name,
                )
                session.add(user)
                await session.flush()
                return user
        except IntegrityError as exc:
            raise Conflict("User with this email already exists") from exc

    @_bounded
    async def count(self) -> int:
        async with self._session_factory() as session:
            return (await session.execute(select(func.count()).select_from(User))).scalar_one()
