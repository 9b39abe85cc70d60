import pytest

from recruit_assistant.config import DEFAULT_SHEET_CSV_URL, load_settings
from recruit_assistant.prompt_loader import build_system_instruction, load_prompt

ENV_KEYS = [
    "GEMINI_API_KEY",
    "API_KEY",
    "GEMINI_MODEL",
    "SHEET_CSV_URL",
    "SHEET_FETCH_TIMEOUT",
    "SHEET_DROP_EMPTY_PHONE",
    "COMPANY_NAME",
    "HR_NAME",
    "HR_PHONE",
    "HR_EMAIL",
    "SESSION_IDLE_TTL",
    "PROMPTS_DIR",
]


@pytest.fixture
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    settings = load_settings()

    assert settings.gemini_api_key == ""
    assert settings.gemini_model == "gemini-2.5-flash"
    assert settings.sheet_csv_url == DEFAULT_SHEET_CSV_URL
    assert settings.sheet_fetch_timeout is None
    assert settings.drop_empty_phone is True
    assert settings.session_idle_ttl == 3600.0
    assert settings.hr_contact.phone == "9344117877"
    assert (settings.prompts_dir / "system_instruction.md").exists()


def test_overrides(clean_env):
    clean_env.setenv("API_KEY", "legacy-key")
    clean_env.setenv("SHEET_FETCH_TIMEOUT", "7.5")
    clean_env.setenv("SHEET_DROP_EMPTY_PHONE", "no")
    clean_env.setenv("HR_NAME", "Anita")
    clean_env.setenv("SESSION_IDLE_TTL", "3")

    settings = load_settings()

    assert settings.gemini_api_key == "legacy-key"
    assert settings.sheet_fetch_timeout == 7.5
    assert settings.drop_empty_phone is False
    assert settings.hr_contact.name == "Anita"
    assert settings.session_idle_ttl == 3.0


def test_gemini_key_takes_precedence(clean_env):
    clean_env.setenv("API_KEY", "legacy-key")
    clean_env.setenv("GEMINI_API_KEY", "gemini-key")

    assert load_settings().gemini_api_key == "gemini-key"


@pytest.mark.parametrize("key, value", [("SESSION_IDLE_TTL", "many"), ("SHEET_DROP_EMPTY_PHONE", "maybe")])
def test_invalid_values_raise(clean_env, key, value):
    clean_env.setenv(key, value)

    with pytest.raises(ValueError):
        load_settings()


def test_load_prompt_strips_bom(tmp_path):
    path = tmp_path / "prompt.md"
    path.write_bytes("\ufeffHello".encode("utf-8"))

    assert load_prompt(path) == "Hello"


def test_system_instruction_mentions_hr_and_phone_request(settings):
    instruction = build_system_instruction(settings)

    assert instruction.startswith("You are the Evolv Clothing Recruitment Assistant.")
    assert "Vigneshwaran, 9344117877, Careers@evolv clothing" in instruction
    assert "phone number" in instruction
