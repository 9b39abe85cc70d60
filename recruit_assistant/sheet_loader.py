from __future__ import annotations

"""Candidate sheet fetching and parsing.

The published spreadsheet is exported as CSV. Header names vary between sheets, so
columns are mapped to Candidate fields by substring through HEADER_FIELD_MAP.
"""

import logging
import threading
import time
from typing import Dict, List, Optional, Sequence, Tuple

import requests

from .models import Candidate
from .utils import normalize_phone

logger = logging.getLogger("recruit.sheet")

# Order matters: a header takes the first field whose alias it contains.
HEADER_FIELD_MAP: List[Tuple[str, str]] = [
    ("name", "name"),
    ("phone", "phone"),
    ("contact", "phone"),
    ("status", "status"),
    ("position", "position"),
    ("date", "interview_date"),
]


def resolve_header_field(header: str) -> Optional[str]:
    """Purpose: Map one header string to a Candidate field name.
    Inputs/Outputs: Input is a raw header; output is a field name or None.
    Side Effects / State: None; pure function.
    Dependencies: Uses HEADER_FIELD_MAP in order.
    Failure Modes: Unknown headers return None and are ignored by the parser.
    If Removed: Renamed sheet columns stop mapping onto candidate fields.
    Testing Notes: "Contact No." -> "phone"; "Interview Date" -> "interview_date".
    """
    # First alias contained in the lower-cased header wins.
    lowered = header.lower()
    for alias, field_name in HEADER_FIELD_MAP:
        if alias in lowered:
            return field_name
    return None


def _clean_cell(cell: str) -> str:
    cleaned = cell.strip()
    if cleaned.startswith('"'):
        cleaned = cleaned[1:]
    if cleaned.endswith('"'):
        cleaned = cleaned[:-1]
    return cleaned.strip()


def split_csv_rows(text: str) -> List[List[str]]:
    """Split CSV text into cleaned cells. Quoted commas are not supported."""
    return [[_clean_cell(cell) for cell in line.split(",")] for line in text.splitlines()]


def parse_candidates_csv(text: str, drop_empty_phone: bool = True) -> List[Candidate]:
    """Purpose: Convert the sheet CSV export into Candidate records.
    Inputs/Outputs: Input is CSV text and the empty-phone policy; output is a list of
        Candidate in sheet order.
    Side Effects / State: None; pure function.
    Dependencies: Uses split_csv_rows, resolve_header_field, normalize_phone.
    Failure Modes: Fewer than two rows returns an empty list; short rows fill missing
        cells with empty strings.
    If Removed: The sheet text is never turned into candidates.
    Testing Notes: Header-only input is empty; rows without a phone are dropped when
        drop_empty_phone is True.
    """
    # Row 0 is headers; each later row becomes one record.
    rows = split_csv_rows(text or "")
    if len(rows) < 2:
        return []

    columns: List[Tuple[int, str]] = []
    for index, header in enumerate(rows[0]):
        field_name = resolve_header_field(header)
        if field_name:
            columns.append((index, field_name))

    candidates: List[Candidate] = []
    for row in rows[1:]:
        values: Dict[str, str] = {}
        for index, field_name in columns:
            value = row[index] if index < len(row) else ""
            if field_name == "phone":
                value = normalize_phone(value)
            values[field_name] = value
        candidate = Candidate(**values)
        if drop_empty_phone and not candidate.phone:
            continue
        candidates.append(candidate)
    return candidates


def find_candidate(candidates: Sequence[Candidate], text: str) -> Optional[Candidate]:
    """First candidate whose stored phone equals the normalized input, else None."""
    target = normalize_phone(text)
    if not target:
        return None
    for candidate in candidates:
        if candidate.phone == target:
            return candidate
    return None


def fetch_csv_text(url: str, timeout: Optional[float] = None) -> str:
    """Download the CSV export; non-success statuses raise requests.HTTPError."""
    response = requests.get(url, timeout=timeout)
    response.raise_for_status()
    return response.text


class CandidateStore:
    """Holds the record set from the most recent sheet fetch."""

    def __init__(
        self,
        url: str,
        timeout: Optional[float] = None,
        drop_empty_phone: bool = True,
    ) -> None:
        """Purpose: Configure the store with the sheet URL and parsing policy.
        Inputs/Outputs: Inputs are URL, optional timeout, and empty-phone policy.
        Side Effects / State: Starts with an empty record set; refresh() fills it.
        Dependencies: None at init.
        Failure Modes: None at init.
        If Removed: Candidates have nowhere to live between fetches.
        Testing Notes: A fresh store returns no candidates and no loaded_at.
        """
        # Keep fetch configuration; the record set starts empty.
        self._url = url
        self._timeout = timeout
        self._drop_empty_phone = drop_empty_phone
        self._candidates: Tuple[Candidate, ...] = ()
        self._loaded_at: Optional[float] = None
        self._refresh_lock = threading.Lock()

    @property
    def loaded_at(self) -> Optional[float]:
        return self._loaded_at

    def candidates(self) -> Sequence[Candidate]:
        return self._candidates

    def replace(self, candidates: Sequence[Candidate]) -> None:
        """Swap in a complete record set in one assignment."""
        self._candidates = tuple(candidates)
        self._loaded_at = time.time()

    def refresh(self) -> int:
        """Purpose: Fetch and parse the sheet, replacing the current record set.
        Inputs/Outputs: No inputs; returns the number of candidates now held.
        Side Effects / State: Network GET; replaces the record set wholesale.
        Dependencies: Uses fetch_csv_text and parse_candidates_csv.
        Failure Modes: Network, status, and parse errors are logged and leave an
            empty record set; nothing is raised to the caller.
        If Removed: A fetch failure at startup would take the app down.
        Testing Notes: Monkeypatch requests.get to raise and verify an empty set.
        """
        # Parse fully before swapping so partial results are never visible.
        with self._refresh_lock:
            try:
                text = fetch_csv_text(self._url, timeout=self._timeout)
                candidates = parse_candidates_csv(text, drop_empty_phone=self._drop_empty_phone)
            except requests.RequestException as exc:
                logger.error("sheet fetch failed url=%s error=%s", self._url, exc)
                candidates = []
            except (ValueError, TypeError) as exc:
                logger.error("sheet parse failed url=%s error=%s", self._url, exc)
                candidates = []
            self.replace(candidates)
        logger.info("sheet loaded candidates=%s", len(candidates))
        return len(candidates)
