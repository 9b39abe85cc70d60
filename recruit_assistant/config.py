from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

BASE_DIR = Path(__file__).resolve().parent

DEFAULT_SHEET_CSV_URL = (
    "https://docs.google.com/spreadsheets/d/e/"
    "2PACX-1vRepxomgRBDE_pqjpyVhc9oFs9usT02D8CkJRAvdX0hGpZkd2EnXgVRrK1iZFza3yXUGCOtgLTzXt3j/pub?output=csv"
)


@dataclass(frozen=True)
class HrContact:
    """Fixed HR contact shown to candidates and given to the model."""
    name: str
    phone: str
    email: str


@dataclass(frozen=True)
class Settings:
    """Configuration container for the model, sheet source, and HR details."""
    gemini_api_key: str
    gemini_model: str
    sheet_csv_url: str
    sheet_fetch_timeout: Optional[float]
    drop_empty_phone: bool
    company_name: str
    hr_contact: HrContact
    prompts_dir: Path
    session_idle_ttl: float


def _parse_bool(value: Optional[str], default: bool) -> bool:
    if value is None or not value.strip():
        return default
    lowered = value.strip().lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"Invalid boolean value: {value!r}")


def load_settings() -> Settings:
    """Purpose: Load configuration from environment variables and defaults.
    Inputs/Outputs: No inputs; returns a Settings instance.
    Side Effects / State: Reads environment variables once; callers keep the result.
    Dependencies: Uses os.getenv and BASE_DIR for the default prompts path.
    Failure Modes: Invalid SHEET_FETCH_TIMEOUT/SESSION_IDLE_TTL/SHEET_DROP_EMPTY_PHONE
        values raise ValueError.
    If Removed: Every module hard-codes its own copy of the HR and sheet details.
    Testing Notes: Verify defaults and overrides via monkeypatched environment.
    """
    # Resolve optional values first, then build Settings.
    timeout_raw = os.getenv("SHEET_FETCH_TIMEOUT", "").strip()
    timeout = float(timeout_raw) if timeout_raw else None

    prompts_dir_env = os.getenv("PROMPTS_DIR")
    prompts_dir = Path(prompts_dir_env) if prompts_dir_env else (BASE_DIR / "prompts").resolve()

    return Settings(
        gemini_api_key=os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY", ""),
        gemini_model=os.getenv("GEMINI_MODEL", "gemini-2.5-flash"),
        sheet_csv_url=os.getenv("SHEET_CSV_URL", DEFAULT_SHEET_CSV_URL),
        sheet_fetch_timeout=timeout,
        drop_empty_phone=_parse_bool(os.getenv("SHEET_DROP_EMPTY_PHONE"), True),
        company_name=os.getenv("COMPANY_NAME", "Evolv Clothing"),
        hr_contact=HrContact(
            name=os.getenv("HR_NAME", "Vigneshwaran"),
            phone=os.getenv("HR_PHONE", "9344117877"),
            email=os.getenv("HR_EMAIL", "Careers@evolv clothing"),
        ),
        prompts_dir=prompts_dir,
        session_idle_ttl=float(os.getenv("SESSION_IDLE_TTL", "3600")),
    )
