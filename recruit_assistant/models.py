from __future__ import annotations

from dataclasses import dataclass
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

Role = Literal["user", "assistant"]


@dataclass(frozen=True)
class Candidate:
    """One applicant row from the published sheet, keyed by normalized phone."""
    name: str = ""
    phone: str = ""
    status: str = ""
    position: str = ""
    interview_date: str = ""


class ChatRequest(BaseModel):
    """Request payload for chat API."""
    session_id: Optional[str] = Field(default=None)
    message: str


class StoredMessage(BaseModel):
    """Conversation entry; never edited after it is appended."""
    role: Role
    content: str
    timestamp: float


class RenderedMessage(BaseModel):
    """Message with bold markup rendered for the widget; the browser formats the time."""
    role: Role
    content: str
    html: str
    timestamp: float


class SessionView(BaseModel):
    session_id: str
    pending: bool
    messages: List[RenderedMessage]


class ChatResponse(BaseModel):
    """Response payload returned by the chat API."""
    session_id: str
    reply: str
    messages: List[RenderedMessage]


class QuickAction(BaseModel):
    label: str
    message: str
