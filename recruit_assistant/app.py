from __future__ import annotations

import logging
import os
import threading
from contextlib import asynccontextmanager
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from .assistant import QUICK_ACTIONS, ConversationBusyError, RecruitmentAssistant
from .config import load_settings
from .gemini_client import GeminiClient
from .models import ChatRequest, ChatResponse, QuickAction, RenderedMessage, SessionView, StoredMessage
from .sheet_loader import CandidateStore
from .utils import render_markup_html

BASE_DIR = Path(__file__).resolve().parent
FRONTEND_DIR = (BASE_DIR / ".." / "frontend").resolve()

ENV_PATH = BASE_DIR / ".env"
if ENV_PATH.exists():
    load_dotenv(ENV_PATH, override=True)

log_level_name = os.getenv("LOG_LEVEL", "INFO").upper()
log_level = getattr(logging, log_level_name, logging.INFO)
if not logging.getLogger().handlers:
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

logging.getLogger("recruit").setLevel(log_level)
logger = logging.getLogger("recruit.app")


def render_message(message: StoredMessage) -> RenderedMessage:
    return RenderedMessage(
        role=message.role,
        content=message.content,
        html=render_markup_html(message.content),
        timestamp=message.timestamp,
    )


def build_assistant() -> RecruitmentAssistant:
    """Purpose: Construct the production assistant from environment settings.
    Inputs/Outputs: No inputs; returns a RecruitmentAssistant.
    Side Effects / State: Reads configuration once; no network until startup.
    Dependencies: load_settings, CandidateStore, GeminiClient.
    Failure Modes: Invalid numeric settings raise ValueError.
    If Removed: create_app needs an injected assistant to start.
    """
    settings = load_settings()
    store = CandidateStore(
        settings.sheet_csv_url,
        timeout=settings.sheet_fetch_timeout,
        drop_empty_phone=settings.drop_empty_phone,
    )
    return RecruitmentAssistant(store=store, gemini=GeminiClient(settings), settings=settings)


def create_app(assistant: Optional[RecruitmentAssistant] = None, load_on_startup: bool = True) -> FastAPI:
    """Purpose: Build the FastAPI app around one assistant instance.
    Inputs/Outputs: Inputs are an optional assistant (tests inject fakes) and whether to
        fetch the sheet at startup; returns the app.
    Side Effects / State: Startup spawns one background sheet fetch, not awaited.
    Dependencies: RecruitmentAssistant, FastAPI, StaticFiles.
    Failure Modes: Fetch failures are handled inside the store and never stop startup.
    If Removed: The candidate list is never fetched and every lookup is not-found.
    Testing Notes: Use TestClient with an injected assistant and load_on_startup=False.
    """
    assistant = assistant or build_assistant()

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        # Messages sent before this finishes see an empty candidate set.
        if load_on_startup:
            threading.Thread(target=assistant.refresh_candidates, name="sheet-loader", daemon=True).start()
        yield

    app = FastAPI(title="Recruitment Status Assistant", lifespan=lifespan)
    app.state.assistant = assistant
    app.mount("/static", StaticFiles(directory=FRONTEND_DIR, check_dir=False), name="static")

    def session_view(session_id: str) -> SessionView:
        return SessionView(
            session_id=session_id,
            pending=assistant.sessions.is_pending(session_id),
            messages=[render_message(message) for message in assistant.get_messages(session_id)],
        )

    @app.get("/", include_in_schema=False)
    def serve_index() -> FileResponse:
        """Serve the chat widget."""
        return FileResponse(FRONTEND_DIR / "index.html")

    @app.post("/api/sessions", response_model=SessionView)
    def create_session() -> SessionView:
        return session_view(assistant.start_session())

    @app.get("/api/sessions/{session_id}", response_model=SessionView)
    def get_session(session_id: str) -> SessionView:
        """Purpose: Return the transcript of one session.
        Inputs/Outputs: Input is session_id; output is a SessionView.
        Failure Modes: Unknown session returns 404.
        """
        if not assistant.sessions.has_session(session_id):
            raise HTTPException(status_code=404, detail="Unknown session")
        return session_view(session_id)

    @app.post("/api/chat", response_model=ChatResponse)
    def chat(request: ChatRequest) -> ChatResponse:
        """Purpose: Handle one chat message and return the messages it added.
        Inputs/Outputs: Input is ChatRequest; output is ChatResponse holding only the user
            message and the reply of this exchange, so the widget appends them.
        Side Effects / State: Appends user and assistant messages to the session.
        Dependencies: RecruitmentAssistant.handle_message.
        Failure Modes: Blank message returns 400; a reply already in flight returns 409.
            Model errors are absorbed into the glitch reply with status 200.
        If Removed: The widget has no endpoint to send messages to.
        Testing Notes: Send a phone number and verify the status card in the reply.
        """
        # Run the assistant and render just this exchange.
        try:
            turn = assistant.handle_message(request.session_id, request.message)
        except ConversationBusyError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return ChatResponse(
            session_id=turn.session_id,
            reply=turn.reply,
            messages=[render_message(message) for message in turn.messages],
        )

    @app.get("/api/quick-actions", response_model=List[QuickAction])
    def quick_actions() -> List[QuickAction]:
        return QUICK_ACTIONS

    @app.get("/api/health")
    def health() -> dict:
        store = assistant.store
        return {
            "status": "ok",
            "candidates": len(store.candidates()),
            "loaded_at": getattr(store, "loaded_at", None),
        }

    return app


app = create_app()
