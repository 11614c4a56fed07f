"""
Query planner: turns a ``FilterSpec`` into store statements and cache keys.

The list cache key is a canonical serialisation of the filter: fields are
written in a fixed order after defaults have been applied, so any two
requests with the same effective filter share one key regardless of how
the caller spelled the query string.
"""
import json
import uuid
from datetime import datetime, timezone

from sqlalchemy import Select, func, or_, select
from sqlalchemy.orm import joinedload

from catalog.models import Article
from catalog.schemas import FilterSpec

ARTICLE_KEY_PREFIX = "article:"
LIST_KEY_PREFIX = "articles:list:"

_KEY_FIELDS = ("page", "limit", "author_id", "from_date", "to_date", "search")


def article_cache_key(article_id: uuid.UUID | str) -> str:
    return f"{ARTICLE_KEY_PREFIX}{article_id}"


def _canonical(field: str, value):
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat()
    if isinstance(value, uuid.UUID):
        return str(value)
    # ``search`` stays as typed: Python case folding merges strings that the
    # database's ILIKE keeps apart (``ß`` and ``ss``).
    return value


def list_cache_key(spec: FilterSpec) -> str:
    canonical = {field: _canonical(field, getattr(spec, field)) for field in _KEY_FIELDS}
    return LIST_KEY_PREFIX + json.dumps(canonical, separators=(",", ":"), ensure_ascii=False)


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def build_conditions(spec: FilterSpec) -> list:
    """
    Return the WHERE clauses for *spec*.

    Date bounds are inclusive on both ends: ``from_date`` alone is ``>=``,
    ``to_date`` alone is ``<=``, both together is ``BETWEEN``.
    """
    conditions = []
    if spec.author_id is not None:
        conditions.append(Article.author_id == spec.author_id)

    if spec.from_date is not None and spec.to_date is not None:
        conditions.append(Article.publication_date.between(spec.from_date, spec.to_date))
    elif spec.from_date is not None:
        conditions.append(Article.publication_date >= spec.from_date)
    elif spec.to_date is not None:
        conditions.append(Article.publication_date <= spec.to_date)

    if spec.search:
        pattern = f"%{_escape_like(spec.search)}%"
        conditions.append(
            or_(
                Article.title.ilike(pattern, escape="\\"),
                Article.description.ilike(pattern, escape="\\"),
            )
        )
    return conditions


def offset(spec: FilterSpec) -> int:
    return (spec.page - 1) * spec.limit


def count_statement(spec: FilterSpec) -> Select:
    return select(func.count()).select_from(Article).where(*build_conditions(spec))


def page_statement(spec: FilterSpec) -> Select:
    """
    Most recent publication first; ``id`` breaks ties so a page boundary
    never splits or repeats rows with the same date.
    """
    return (
        select(Article)
        .where(*build_conditions(spec))
        .options(joinedload(Article.author))
        .order_by(Article.publication_date.desc(), Article.id.asc())
        .offset(offset(spec))
        .limit(spec.limit)
    )
