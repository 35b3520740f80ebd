import logging
import time
import uuid
from datetime import timedelta
from typing import Callable, Dict, List, Optional

from wastereport.config import get_settings
from wastereport.crud import user as user_crud
from wastereport.models import User

logger = logging.getLogger(__name__)

USER_EMAIL_KEY = "userEmail"
USER_ROLE_KEY = "userRole"

DEFAULT_USER_NAME = "Anonymous User"


class SessionStore:
    """
    Key-value store holding per-session identity values

    A session expires once it has not been touched for ttl. Expired sessions
    read as missing and are dropped by purge_expired.
    """

    def __init__(self, ttl: Optional[timedelta] = None, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self.clock = clock
        self._sessions: Dict[str, Dict[str, str]] = {}
        self._last_used: Dict[str, float] = {}

    def _is_expired(self, session_id: str, now: float) -> bool:
        if self.ttl is None:
            return False
        return now - self._last_used.get(session_id, now) > self.ttl.total_seconds()

    def create_session(self) -> str:
        session_id = uuid.uuid4().hex
        self._sessions[session_id] = {}
        self._last_used[session_id] = self.clock()
        return session_id

    def exists(self, session_id: str) -> bool:
        return session_id in self._sessions and not self._is_expired(session_id, self.clock())

    def touch(self, session_id: str):
        if self.exists(session_id):
            self._last_used[session_id] = self.clock()

    def purge_expired(self) -> List[str]:
        """Drop expired sessions and return their ids"""
        now = self.clock()
        expired = [session_id for session_id in self._sessions if self._is_expired(session_id, now)]
        for session_id in expired:
            self.clear(session_id)
        if expired:
            logger.info(f"Expired {len(expired)} idle session(s)")
        return expired

    def get(self, session_id: str, key: str) -> Optional[str]:
        if not self.exists(session_id):
            return None
        return self._sessions[session_id].get(key)

    def set(self, session_id: str, key: str, value: str):
        self._sessions.setdefault(session_id, {})[key] = value
        self._last_used.setdefault(session_id, self.clock())

    def remove(self, session_id: str, key: str):
        self._sessions.get(session_id, {}).pop(key, None)

    def clear(self, session_id: str):
        self._sessions.pop(session_id, None)
        self._last_used.pop(session_id, None)


class SessionIdentity:
    """
    Resolves the user behind a session

    The session store is read on resolve and again every time the current
    user is asked for, so a logout takes effect immediately.
    """

    def __init__(self, store: SessionStore, session_id: str, users=user_crud):
        self.store = store
        self.session_id = session_id
        self.users = users
        self._user: Optional[User] = None

    @property
    def email(self) -> Optional[str]:
        return self.store.get(self.session_id, USER_EMAIL_KEY)

    @property
    def role(self) -> Optional[str]:
        return self.store.get(self.session_id, USER_ROLE_KEY)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.email)

    async def resolve_user(self) -> Optional[User]:
        """Look up the session user, creating an account on first visit"""
        email = self.email
        if not email:
            self._user = None
            return None

        user = await self.users.get_user_by_email(email)
        if not user:
            logger.info(f"Creating user for {email}")
            user = await self.users.create_user(email, DEFAULT_USER_NAME)

        self._user = User.from_mongo(user)
        return self._user

    @property
    def current_user(self) -> Optional[User]:
        email = self.email
        if self._user is None or not email or self._user.email.lower() != email.lower():
            return None
        return self._user


# Process-wide store shared by all requests
session_store = SessionStore(ttl=timedelta(minutes=get_settings().SESSION_EXPIRE_MINUTES))
