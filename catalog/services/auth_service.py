"""
Auth service: registration, login and bearer-token verification.

Tokens carry the user id as ``sub``; ``authenticate`` turns a token back
into a ``Principal`` without touching the store.
"""
import logging
import uuid

from catalog import security
from catalog.config import Settings
from catalog.errors import Conflict, Unauthenticated
from catalog.repositories import UserStore
from catalog.schemas import Principal, UserLogin, UserRegister

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, store: UserStore, settings: Settings) -> None:
        self._store = store
        self._settings = settings

    async def register(self, data: UserRegister) -> str:
        logger.info("Registration attempt for email: %s", data.email)

        if await self._store.get_by_email(data.email) is not None:
            logger.warning("Registration failed: email already exists - %s", data.email)
            raise Conflict("User with this email already exists")

        user = await self._store.add(
            email=data.email,
            password_hash=security.get_password_hash(data.password),
            first_name=data.first_name,
            last_name=data.last_name,
        )
        logger.info("User registered successfully: %s (%s)", user.id, user.email)
        return security.create_access_token(self._settings, user.id, user.email)

    async def login(self, data: UserLogin) -> str:
        logger.info("Login attempt for email: %s", data.email)

        user = await self._store.get_by_email(data.email)
        if user is None or not security.verify_password(data.password, user.password_hash):
            logger.warning("Login failed for email: %s", data.email)
            raise Unauthenticated("Invalid credentials")

        logger.info("User logged in successfully: %s (%s)", user.id, user.email)
        return security.create_access_token(self._settings, user.id, user.email)

    def authenticate(self, token: str) -> Principal:
        payload = security.decode_access_token(self._settings, token)
        if payload is None or "sub" not in payload:
            raise Unauthenticated()
        try:
            return Principal(id=uuid.UUID(payload["sub"]))
        except (TypeError, ValueError):
            raise Unauthenticated()
