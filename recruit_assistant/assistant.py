"""Recruitment assistant orchestration.

Role:
    Owns the application state (candidate store, conversation sessions) and turns
    one candidate message into one assistant reply.

Reply steps:
    Intent Routing:
        Classifies the text and builds local replies for HR contact and status lookups.
    AI Fallback:
        Runs only for general queries; asks Gemini with the system instruction.

Failure contract:
    Any exception from the steps becomes the glitch reply for that exchange only.
    The pending flag is cleared in every case and nothing is retried.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence, Tuple

from .config import Settings
from .intent_router import Intent, route_message
from .models import Candidate, QuickAction, StoredMessage
from .pipeline import PipelineStep, StepRunner
from .prompt_loader import build_system_instruction
from .session_store import SessionStore

logger = logging.getLogger("recruit.assistant")

GLITCH_REPLY = "I'm having a technical glitch. Please try again or contact HR directly."
EMPTY_MODEL_REPLY = "I'm sorry, can you rephrase that?"

QUICK_ACTIONS: List[QuickAction] = [
    QuickAction(label="🔍 Check Status", message="Check My Status"),
    QuickAction(label="📞 Contact HR", message="Contact HR"),
]


def build_greeting(company_name: str) -> str:
    return (
        f"👋 Hello! I'm your Recruitment Assistant at **{company_name}**.\n\n"
        "How can I help you today? You can check your **Status** or get **HR Contact** details below."
    )


class ConversationBusyError(RuntimeError):
    """Raised when a session already has a reply in flight."""


class CandidateSource(Protocol):
    def candidates(self) -> Sequence[Candidate]: ...

    def refresh(self) -> int: ...


class ReplyModel(Protocol):
    def generate_reply(self, prompt: str, system_instruction: str = "") -> str: ...


@dataclass
class ReplyContext:
    """Mutable state passed across reply steps for one exchange."""
    session_id: str
    user_message: str
    intent: Optional[Intent] = None
    reply: Optional[str] = None
    executed_steps: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class AssistantTurn:
    session_id: str
    intent: Optional[Intent]
    reply: str
    messages: Tuple[StoredMessage, ...] = ()
    failed: bool = False


class RecruitmentAssistant:
    """Single controller for candidate data, conversations, and reply generation."""

    def __init__(
        self,
        store: CandidateSource,
        gemini: ReplyModel,
        settings: Settings,
        sessions: Optional[SessionStore] = None,
    ) -> None:
        """Purpose: Wire the assistant with injected collaborators.
        Inputs/Outputs: Inputs are the candidate store, reply model, settings, and an
            optional SessionStore; no return value.
        Side Effects / State: Loads the system instruction template once.
        Dependencies: build_system_instruction, StepRunner, SessionStore.
        Failure Modes: A missing prompt file raises FileNotFoundError at startup.
        If Removed: Nothing ties routing, the model, and the transcripts together.
        Testing Notes: Inject fakes for store and gemini; no network needed.
        """
        self._store = store
        self._gemini = gemini
        self._settings = settings
        self._sessions = sessions or SessionStore(
            idle_ttl_sec=settings.session_idle_ttl,
            greeting=build_greeting(settings.company_name),
        )
        self._system_instruction = build_system_instruction(settings)
        self._runner = StepRunner(
            [
                PipelineStep("Intent Routing", self._step_route),
                PipelineStep(
                    "AI Fallback",
                    self._step_ai_fallback,
                    skip_if=lambda ctx: ctx.reply is not None,
                ),
            ]
        )

    @property
    def store(self) -> CandidateSource:
        return self._store

    @property
    def sessions(self) -> SessionStore:
        return self._sessions

    def start_session(self) -> str:
        session_id = self._sessions.create_session()
        logger.info("session=%s status=created", session_id)
        return session_id

    def refresh_candidates(self) -> int:
        return self._store.refresh()

    def handle_message(self, session_id: Optional[str], text: str) -> AssistantTurn:
        """Purpose: Process one candidate message end to end.
        Inputs/Outputs: Inputs are an optional session_id and raw text; returns an
            AssistantTurn carrying only the user and assistant messages of this exchange.
        Side Effects / State: Appends the user message and exactly one assistant message;
            toggles the session pending flag.
        Dependencies: StepRunner steps, SessionStore.begin_turn/end_turn.
        Failure Modes: Blank text raises ValueError; a second message while one is in
            flight raises ConversationBusyError. Step failures never escape.
        If Removed: The chat endpoint has nothing to answer candidates with.
        Testing Notes: Make the fake model raise and check the glitch reply and that
            pending is cleared.
        """
        # Validate and claim the session before touching history.
        user_text = (text or "").strip()
        if not user_text:
            raise ValueError("Message is empty")
        if not session_id:
            session_id = self.start_session()
        if not self._sessions.begin_turn(session_id):
            raise ConversationBusyError(f"Session {session_id} already has a reply in progress")

        context = ReplyContext(session_id=session_id, user_message=user_text)
        failed = False
        try:
            user_message = self._sessions.add_message(session_id, "user", user_text)
            logger.info("session=%s question=%s", session_id, user_text)
            try:
                context.executed_steps = self._runner.run(context)
                reply = context.reply or EMPTY_MODEL_REPLY
            except Exception:
                logger.exception("session=%s intent=%s status=failed", session_id, context.intent)
                reply = GLITCH_REPLY
                failed = True
            reply_message = self._sessions.add_message(session_id, "assistant", reply)
        finally:
            self._sessions.end_turn(session_id)

        logger.info(
            "session=%s intent=%s steps=%s failed=%s",
            session_id,
            context.intent.value if context.intent else None,
            ",".join(context.executed_steps),
            failed,
        )
        return AssistantTurn(
            session_id=session_id,
            intent=context.intent,
            reply=reply,
            messages=(user_message, reply_message),
            failed=failed,
        )

    def get_messages(self, session_id: str) -> List[StoredMessage]:
        return self._sessions.get_messages(session_id)

    def _step_route(self, context: ReplyContext) -> None:
        decision = route_message(
            context.user_message,
            self._store.candidates(),
            self._settings.hr_contact,
        )
        context.intent = decision.intent
        context.reply = decision.reply
        logger.info("session=%s intent=%s", context.session_id, decision.intent.value)

    def _step_ai_fallback(self, context: ReplyContext) -> None:
        reply = self._gemini.generate_reply(context.user_message, system_instruction=self._system_instruction)
        context.reply = reply or EMPTY_MODEL_REPLY
