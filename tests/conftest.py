from pathlib import Path

import pytest

from recruit_assistant.config import HrContact, Settings
from recruit_assistant.models import Candidate

PROMPTS_DIR = Path(__file__).resolve().parents[1] / "recruit_assistant" / "prompts"


@pytest.fixture
def settings():
    return Settings(
        gemini_api_key="test-key",
        gemini_model="gemini-2.5-flash",
        sheet_csv_url="https://example.com/sheet.csv",
        sheet_fetch_timeout=None,
        drop_empty_phone=True,
        company_name="Evolv Clothing",
        hr_contact=HrContact(name="Vigneshwaran", phone="9344117877", email="Careers@evolv clothing"),
        prompts_dir=PROMPTS_DIR,
        session_idle_ttl=3600.0,
    )


class FakeStore:
    def __init__(self, candidates=None):
        self._candidates = tuple(candidates or [])
        self.refresh_calls = 0
        self.loaded_at = None

    def candidates(self):
        return self._candidates

    def refresh(self):
        self.refresh_calls += 1
        return len(self._candidates)


class FakeGemini:
    def __init__(self, reply="Happy to help!", error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    def generate_reply(self, prompt, system_instruction=""):
        self.calls.append({"prompt": prompt, "system_instruction": system_instruction})
        if self.error:
            raise self.error
        return self.reply


@pytest.fixture
def candidates():
    return [
        Candidate(
            name="Priya Shah",
            phone="9344117877",
            status="Scheduled",
            position="Store Manager",
            interview_date="2026-10-21",
        ),
        Candidate(name="Rahul Menon", phone="9876543210", status="Under Review"),
    ]


@pytest.fixture
def fake_store(candidates):
    return FakeStore(candidates)
