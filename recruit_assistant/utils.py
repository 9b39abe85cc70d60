import html
import re
from typing import List, Tuple

NON_DIGIT_RE = re.compile(r"\D")
BOLD_DELIMITER = "**"
PHONE_MIN_DIGITS = 10
PHONE_MAX_DIGITS = 13


def normalize_phone(text: str) -> str:
    """Purpose: Reduce free text to its digit characters for phone comparison.
    Inputs/Outputs: Input is any string; output is the digits in original order.
    Side Effects / State: None; pure function.
    Dependencies: Regex only; used by the sheet parser, the store, and the router.
    Failure Modes: Returns an empty string for falsy input.
    If Removed: Formatted phone numbers stop matching sheet rows.
    Testing Notes: "(93) 441-178-77" -> "9344117877".
    """
    # Drop every non-digit character.
    if not text:
        return ""
    return NON_DIGIT_RE.sub("", text)


def is_likely_phone_number(text: str) -> bool:
    """Return True when the text carries 10 to 13 digits."""
    return PHONE_MIN_DIGITS <= len(normalize_phone(text)) <= PHONE_MAX_DIGITS


def split_bold(text: str) -> List[Tuple[str, bool]]:
    """Purpose: Split message text on ** delimiters into (segment, is_bold) pairs.
    Inputs/Outputs: Input is message text; output keeps every segment, odd ones bold.
    Side Effects / State: None; pure function.
    Dependencies: Used by render_markup_html.
    Failure Modes: Unpaired delimiters bold everything after the last one; there is
        no escape for a literal "**".
    If Removed: Bold markup reaches the widget as literal asterisks.
    Testing Notes: "a **b** c" -> [("a ", False), ("b", True), (" c", False)].
    """
    # Alternate plain/bold on each delimiter, like the widget always did.
    parts = (text or "").split(BOLD_DELIMITER)
    return [(part, index % 2 == 1) for index, part in enumerate(parts)]


def render_markup_html(text: str) -> str:
    """Escape message text and wrap bold segments in <b> tags."""
    rendered = []
    for part, bold in split_bold(text):
        if not part:
            continue
        escaped = html.escape(part)
        rendered.append(f"<b>{escaped}</b>" if bold else escaped)
    return "".join(rendered)
