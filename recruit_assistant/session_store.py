from __future__ import annotations

import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from .models import Role, StoredMessage

DEFAULT_IDLE_TTL_SEC = 60 * 60


@dataclass
class _Session:
    messages: List[StoredMessage] = field(default_factory=list)
    pending: bool = False
    last_active: float = 0.0


class SessionStore:
    """In-memory conversation state: ordered messages and a pending flag per session."""

    def __init__(
        self,
        idle_ttl_sec: Optional[float] = DEFAULT_IDLE_TTL_SEC,
        greeting: Optional[str] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Purpose: Initialize an empty store.
        Inputs/Outputs: Inputs are an optional idle TTL, greeting text, and clock; no return.
        Side Effects / State: Nothing is persisted; a restart starts every chat fresh.
        Dependencies: StoredMessage model.
        Failure Modes: None.
        If Removed: The assistant has nowhere to keep transcripts or the pending flag.
        Testing Notes: Inject a fake clock to step past the idle TTL.
        """
        self._idle_ttl_sec = idle_ttl_sec
        self._greeting = greeting
        self._clock = clock
        self._sessions: Dict[str, _Session] = {}
        self._lock = threading.Lock()

    def create_session(self) -> str:
        """Purpose: Start a new conversation, seeded with the greeting when configured.
        Inputs/Outputs: No inputs; returns the new session id.
        Side Effects / State: Adds a session and drops sessions idle past the TTL.
        Dependencies: Uses _ensure_locked.
        Failure Modes: None.
        If Removed: Each page load has no session id to post messages under.
        Testing Notes: New session holds exactly one assistant message when greeting is set.
        """
        session_id = uuid.uuid4().hex
        with self._lock:
            self._ensure_locked(session_id)
        return session_id

    def _ensure_locked(self, session_id: str) -> _Session:
        # Caller holds the lock.
        self._prune_idle_sessions()
        session = self._sessions.get(session_id)
        if session is None:
            session = _Session(last_active=self._clock())
            if self._greeting:
                session.messages.append(
                    StoredMessage(role="assistant", content=self._greeting, timestamp=time.time())
                )
            self._sessions[session_id] = session
        return session

    def has_session(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions

    def begin_turn(self, session_id: str) -> bool:
        """Purpose: Ensure the session exists and mark a reply as in flight, atomically.
        Inputs/Outputs: Input is session_id; returns False if a reply is already in flight.
        Side Effects / State: May create the session; sets pending and refreshes activity.
        Dependencies: Uses _ensure_locked under one lock acquisition.
        Failure Modes: None; the session cannot be pruned between creation and claim.
        If Removed: Two concurrent sends could both run against one conversation.
        Testing Notes: Call twice without end_turn and verify the second returns False.
        """
        with self._lock:
            session = self._ensure_locked(session_id)
            if session.pending:
                return False
            session.pending = True
            session.last_active = self._clock()
            return True

    def end_turn(self, session_id: str) -> None:
        with self._lock:
            session = self._sessions.get(session_id)
            if session:
                session.pending = False
                session.last_active = self._clock()

    def add_message(self, session_id: str, role: Role, content: str) -> StoredMessage:
        """Purpose: Append a message to the end of a session.
        Inputs/Outputs: Inputs are session_id, role, content; returns the stored message.
        Side Effects / State: Mutates the session and refreshes its activity time.
        Dependencies: StoredMessage.
        Failure Modes: KeyError for an unknown session; callers begin a turn first.
        If Removed: Nothing is recorded and transcripts stay at the greeting.
        Testing Notes: Append several messages and verify insertion order.
        """
        # Append only; messages are never edited or removed.
        message = StoredMessage(role=role, content=content, timestamp=time.time())
        with self._lock:
            session = self._sessions[session_id]
            session.messages.append(message)
            session.last_active = self._clock()
        return message

    def get_messages(self, session_id: str) -> List[StoredMessage]:
        with self._lock:
            session = self._sessions.get(session_id)
            return list(session.messages) if session else []

    def is_pending(self, session_id: str) -> bool:
        with self._lock:
            session = self._sessions.get(session_id)
            return bool(session and session.pending)

    def _prune_idle_sessions(self) -> bool:
        """Purpose: Drop sessions nobody has used for longer than the idle TTL.
        Inputs/Outputs: No inputs; returns True if any sessions were removed.
        Side Effects / State: Mutates _sessions; caller holds the lock.
        Dependencies: Uses _idle_ttl_sec and the injected clock.
        Failure Modes: None; no-op when the TTL is unset. Sessions with a reply in
            flight are kept regardless of age.
        If Removed: Abandoned tabs accumulate in memory for the life of the process.
        Testing Notes: Advance a fake clock past the TTL and verify only idle sessions go.
        """
        if not self._idle_ttl_sec or self._idle_ttl_sec <= 0:
            return False
        cutoff = self._clock() - self._idle_ttl_sec
        removed = [
            session_id
            for session_id, session in self._sessions.items()
            if session.last_active < cutoff and not session.pending
        ]
        for session_id in removed:
            self._sessions.pop(session_id, None)
        return bool(removed)
