# src/channel_gate/stores.py

import secrets
import threading
import time
from typing import Callable, Dict, Optional

from .session_data import SessionRecord, TokenRecord

Clock = Callable[[], float]

TOKEN_BYTES = 16
SESSION_ID_BYTES = 32


class TokenStore:
    """
    Single-use access tokens, keyed by value.

    A token is redeemable only while it exists, has not expired and has not been
    consumed. The check and the removal happen under one lock, so a value can be
    redeemed at most once even when requests race on it.
    """

    def __init__(self, duration_seconds: float, clock: Clock = time.time):
        self.duration_seconds = duration_seconds
        self.clock = clock
        self._tokens: Dict[str, TokenRecord] = {}
        self._lock = threading.Lock()

    def issue(self) -> TokenRecord:
        with self._lock:
            value = secrets.token_hex(TOKEN_BYTES)
            while value in self._tokens:
                value = secrets.token_hex(TOKEN_BYTES)
            record = TokenRecord(value=value, expires_at=self.clock() + self.duration_seconds)
            self._tokens[value] = record
        print(f"STORE: Issued token, {len(self._tokens)} live.")
        return record.model_copy()

    def consume(self, value: Optional[str]) -> bool:
        if not value:
            return False
        with self._lock:
            record = self._tokens.get(value)
            if record is None or record.consumed or self.clock() > record.expires_at:
                return False
            record.consumed = True
            del self._tokens[value]
        return True

    def sweep(self, now: Optional[float] = None) -> int:
        with self._lock:
            if now is None:
                now = self.clock()
            expired = [value for value, record in self._tokens.items() if record.expires_at < now]
            for value in expired:
                del self._tokens[value]
        return len(expired)

    def __len__(self) -> int:
        return len(self._tokens)

    def __contains__(self, value: object) -> bool:
        return value in self._tokens


class SessionStore:
    """Browser sessions with a sliding expiry."""

    def __init__(self, duration_seconds: float, clock: Clock = time.time):
        self.duration_seconds = duration_seconds
        self.clock = clock
        self._sessions: Dict[str, SessionRecord] = {}
        self._lock = threading.Lock()

    def issue(self) -> SessionRecord:
        with self._lock:
            session_id = secrets.token_hex(SESSION_ID_BYTES)
            while session_id in self._sessions:
                session_id = secrets.token_hex(SESSION_ID_BYTES)
            record = SessionRecord(id=session_id, expires_at=self.clock() + self.duration_seconds)
            self._sessions[session_id] = record
        print(f"STORE: Issued session, {len(self._sessions)} live.")
        return record.model_copy()

    def _live(self, session_id: Optional[str]) -> Optional[SessionRecord]:
        # Caller holds the lock. Expired entries count as absent even before a sweep.
        if not session_id:
            return None
        record = self._sessions.get(session_id)
        if record is None or self.clock() > record.expires_at:
            return None
        return record

    def validate(self, session_id: Optional[str]) -> bool:
        with self._lock:
            return self._live(session_id) is not None

    def expiry(self, session_id: Optional[str]) -> Optional[float]:
        with self._lock:
            record = self._live(session_id)
            return record.expires_at if record else None

    def refresh(self, session_id: Optional[str]) -> Optional[float]:
        with self._lock:
            record = self._live(session_id)
            if record is None:
                return None
            record.expires_at = self.clock() + self.duration_seconds
            return record.expires_at

    def revoke(self, session_id: Optional[str]) -> bool:
        if not session_id:
            return False
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def sweep(self, now: Optional[float] = None) -> int:
        with self._lock:
            if now is None:
                now = self.clock()
            expired = [sid for sid, record in self._sessions.items() if record.expires_at < now]
            for sid in expired:
                del self._sessions[sid]
        return len(expired)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions
