import uuid

from catalog.errors import Forbidden
from catalog.schemas import Principal


def authorize(article: dict, principal: Principal, action: str = "modify") -> None:
    """
    Allow the mutation only when *principal* wrote *article*.

    *article* is the payload resolved through the cache-aside reader, so
    ``author_id`` may be a string (cache hit) or a UUID.
    """
    if uuid.UUID(str(article["author_id"])) != principal.id:
        raise Forbidden(f"You are not authorized to {action} this article")
