from __future__ import annotations

"""Rule-based routing of candidate messages.

Precedence is fixed: HR contact requests first, then phone-number status lookups,
then everything else goes to the model. A sentence that mentions "contact" and
also carries a phone number is a contact request.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from .config import HrContact
from .models import Candidate
from .sheet_loader import find_candidate
from .utils import is_likely_phone_number

CONTACT_KEYWORDS = ("contact", "hr")

NOT_FOUND_REPLY = (
    "❌ I couldn't find any application for that number. "
    "Please double-check your phone number or contact HR."
)
POSITION_FALLBACK = "N/A"
DATE_FALLBACK = "To be scheduled"


class Intent(str, Enum):
    CONTACT_HR = "contact_hr"
    STATUS_LOOKUP = "status_lookup"
    GENERAL_QUERY = "general_query"


@dataclass(frozen=True)
class RouteDecision:
    """Routing outcome; reply is None only for GENERAL_QUERY."""
    intent: Intent
    reply: Optional[str] = None


def is_contact_request(text: str) -> bool:
    lowered = text.lower()
    return any(keyword in lowered for keyword in CONTACT_KEYWORDS)


def format_hr_contact(contact: HrContact) -> str:
    return (
        "📞 **HR Contact Details**\n\n"
        f"- **Name:** {contact.name}\n"
        f"- **Phone:** {contact.phone}\n"
        f"- **Email:** {contact.email}\n\n"
        "You can reach out for any interview-related queries."
    )


def format_status_summary(candidate: Candidate) -> str:
    """Purpose: Build the status card for a matched candidate.
    Inputs/Outputs: Input is a Candidate; output is markup text.
    Side Effects / State: None.
    Dependencies: POSITION_FALLBACK and DATE_FALLBACK for empty fields.
    Failure Modes: None; empty name/status are shown as empty.
    If Removed: Found candidates get no answer from the local path.
    Testing Notes: Empty interview_date renders "To be scheduled".
    """
    return (
        "✅ **Interview Status Found!**\n\n"
        f"- **Name:** {candidate.name}\n"
        f"- **Position:** {candidate.position or POSITION_FALLBACK}\n"
        f"- **Status:** {candidate.status}\n"
        f"- **Date:** {candidate.interview_date or DATE_FALLBACK}"
    )


def route_message(
    text: str,
    candidates: Sequence[Candidate],
    hr_contact: HrContact,
) -> RouteDecision:
    """Purpose: Pick exactly one path for a message and build local replies.
    Inputs/Outputs: Inputs are raw user text, the current record set, and the HR
        contact; output is a RouteDecision.
    Side Effects / State: None; deterministic for the same inputs.
    Dependencies: Uses is_contact_request, is_likely_phone_number, find_candidate.
    Failure Modes: None; an empty record set turns every lookup into not-found.
    If Removed: Every message goes to the model, including phone lookups.
    Testing Notes: "please contact me, my phone is 9344117877" -> CONTACT_HR.
    """
    # Contact requests pre-empt phone-shaped text.
    if is_contact_request(text):
        return RouteDecision(intent=Intent.CONTACT_HR, reply=format_hr_contact(hr_contact))

    if is_likely_phone_number(text):
        match = find_candidate(candidates, text)
        if match:
            return RouteDecision(intent=Intent.STATUS_LOOKUP, reply=format_status_summary(match))
        return RouteDecision(intent=Intent.STATUS_LOOKUP, reply=NOT_FOUND_REPLY)

    return RouteDecision(intent=Intent.GENERAL_QUERY)
