from __future__ import annotations

from pathlib import Path

from .config import Settings

SYSTEM_INSTRUCTION_FILE = "system_instruction.md"


def load_prompt(prompt_path: Path) -> str:
    """Purpose: Load a prompt file as UTF-8 text and strip BOM if present.
    Inputs/Outputs: Input is a Path to the prompt file; output is the decoded string.
    Side Effects / State: None; pure function reading the filesystem.
    Dependencies: Uses Path.read_text/read_bytes.
    Failure Modes: UnicodeDecodeError triggers a fallback decode with errors ignored,
        which can drop invalid bytes. A missing file raises FileNotFoundError.
    If Removed: The model runs without the assistant persona or HR details.
    Testing Notes: Validate BOM-stripping and fallback decoding on non-UTF8 files.
    """
    # Read as UTF-8 and fall back to a tolerant decode if needed.
    try:
        return prompt_path.read_text(encoding="utf-8").lstrip("\ufeff")
    except UnicodeDecodeError:
        raw = prompt_path.read_bytes()
        text = raw.decode("utf-8", errors="ignore")
        return text.lstrip("\ufeff")


def build_system_instruction(settings: Settings) -> str:
    """Fill the system instruction template with company and HR contact facts."""
    template = load_prompt(settings.prompts_dir / SYSTEM_INSTRUCTION_FILE)
    contact = settings.hr_contact
    return template.format(
        company_name=settings.company_name,
        hr_name=contact.name,
        hr_phone=contact.phone,
        hr_email=contact.email,
    ).strip()
