# app/client/session.py
"""
Session state for dashboard clients.

The identity backend is reached only through the IdentityProvider interface
(get_token / current_user / on_change), so the store can be driven by any
provider and replaced in tests. SessionStore fans provider changes out to
its own subscribers.

Usage:
    provider = LocalIdentityProvider.from_settings({"ops@example.com": hash_password("pw")})
    session = SessionStore(provider)
    unsubscribe = session.subscribe(lambda user: print("user is now", user))
    await session.sign_in("ops@example.com", "pw")
    token = await session.get_token()
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional
import logging

from jose import jwt, JWTError
from passlib.context import CryptContext

from app.config import settings as default_settings, Settings

logger = logging.getLogger(__name__)

User = Dict[str, Any]
Listener = Callable[[Optional[User]], None]
Unsubscribe = Callable[[], None]

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return pwd_context.verify(password, hashed)


class AuthenticationError(Exception):
    pass


class IdentityProvider(ABC):
    """Capability the session store needs from an identity backend."""

    @abstractmethod
    async def get_token(self, force_refresh: bool = False) -> Optional[str]:
        """Return a bearer token for the signed-in user, or None."""

    @abstractmethod
    def current_user(self) -> Optional[User]:
        ...

    @abstractmethod
    def on_change(self, callback: Listener) -> Unsubscribe:
        """Call `callback(user)` whenever the signed-in user changes."""

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> User:
        ...

    @abstractmethod
    async def sign_out(self) -> None:
        ...


class _Listeners:
    def __init__(self):
        self._items: List[Listener] = []

    def add(self, fn: Listener) -> Unsubscribe:
        self._items.append(fn)

        def _remove():
            if fn in self._items:
                self._items.remove(fn)

        return _remove

    def notify(self, user: Optional[User]) -> None:
        for fn in list(self._items):
            try:
                fn(user)
            except Exception:
                # one broken listener must not stop the others
                logger.exception("session listener failed")


class LocalIdentityProvider(IdentityProvider):
    """
    Development identity provider: checks email/password against a map of
    password hashes and issues short-lived signed JWTs. get_token() re-issues
    the token when it is within `refresh_margin` of expiring.
    """

    def __init__(
        self,
        users: Dict[str, str],
        secret_key: Optional[str],
        algorithm: str = "HS256",
        token_minutes: int = 60,
        refresh_margin_seconds: int = 300,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        if not secret_key:
            raise ValueError("IDENTITY_SECRET_KEY must be configured")
        self._users = {email.strip().lower(): hashed for email, hashed in users.items()}
        self._secret = secret_key
        self._algorithm = algorithm
        self._lifetime = timedelta(minutes=token_minutes)
        self._margin = timedelta(seconds=refresh_margin_seconds)
        self._clock = clock
        self._listeners = _Listeners()
        self._user: Optional[User] = None
        self._token: Optional[str] = None
        self._expires_at: Optional[datetime] = None

    @classmethod
    def from_settings(cls, users: Dict[str, str], settings: Settings = default_settings) -> "LocalIdentityProvider":
        return cls(
            users,
            settings.IDENTITY_SECRET_KEY,
            algorithm=settings.IDENTITY_ALGORITHM,
            token_minutes=settings.IDENTITY_TOKEN_MINUTES,
            refresh_margin_seconds=settings.IDENTITY_REFRESH_MARGIN_SECONDS,
        )

    def _issue(self) -> str:
        now = self._clock()
        self._expires_at = now + self._lifetime
        claims = {"sub": self._user["email"], "iat": now, "exp": self._expires_at}
        self._token = jwt.encode(claims, self._secret, algorithm=self._algorithm)
        return self._token

    def decode(self, token: str) -> Dict[str, Any]:
        """Verify a token issued by this provider and return its claims."""
        try:
            return jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except JWTError as exc:
            raise AuthenticationError(str(exc)) from exc

    async def get_token(self, force_refresh: bool = False) -> Optional[str]:
        if self._user is None:
            return None
        stale = self._expires_at is None or self._clock() >= self._expires_at - self._margin
        if force_refresh or stale or not self._token:
            return self._issue()
        return self._token

    def current_user(self) -> Optional[User]:
        return dict(self._user) if self._user else None

    def on_change(self, callback: Listener) -> Unsubscribe:
        return self._listeners.add(callback)

    async def sign_in(self, email: str, password: str) -> User:
        key = (email or "").strip().lower()
        hashed = self._users.get(key)
        if not hashed or not verify_password(password, hashed):
            raise AuthenticationError("Invalid email or password")
        self._user = {"email": key}
        self._issue()
        self._listeners.notify(self.current_user())
        return self.current_user()

    async def sign_out(self) -> None:
        self._user = None
        self._token = None
        self._expires_at = None
        self._listeners.notify(None)


class SessionStore:
    """
    Application-wide session state. Holds the current user as last reported by
    the provider and lets UI code subscribe to changes.
    """

    def __init__(self, provider: IdentityProvider):
        self.provider = provider
        self.user: Optional[User] = provider.current_user()
        self._listeners = _Listeners()
        self._unsubscribe_provider = provider.on_change(self._on_provider_change)

    def _on_provider_change(self, user: Optional[User]) -> None:
        self.user = user
        self._listeners.notify(user)

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    def subscribe(self, callback: Listener) -> Unsubscribe:
        return self._listeners.add(callback)

    async def get_token(self, force_refresh: bool = False) -> Optional[str]:
        return await self.provider.get_token(force_refresh=force_refresh)

    async def sign_in(self, email: str, password: str) -> User:
        return await self.provider.sign_in(email, password)

    async def sign_out(self) -> None:
        await self.provider.sign_out()

    async def refresh(self) -> Optional[str]:
        """Force a new token, e.g. after a 401 from the backend."""
        return await self.provider.get_token(force_refresh=True)

    def close(self) -> None:
        self._unsubscribe_provider()
