import pytest

from recruit_assistant.assistant import (
    EMPTY_MODEL_REPLY,
    GLITCH_REPLY,
    QUICK_ACTIONS,
    ConversationBusyError,
    RecruitmentAssistant,
)
from recruit_assistant.intent_router import NOT_FOUND_REPLY, Intent

from conftest import FakeGemini, FakeStore


def _assistant(settings, store, gemini):
    return RecruitmentAssistant(store=store, gemini=gemini, settings=settings)


def test_new_session_starts_with_greeting(settings, fake_store):
    assistant = _assistant(settings, fake_store, FakeGemini())

    session_id = assistant.start_session()
    messages = assistant.get_messages(session_id)

    assert len(messages) == 1
    assert messages[0].role == "assistant"
    assert "**Evolv Clothing**" in messages[0].content


def test_phone_lookup_answers_locally(settings, fake_store):
    gemini = FakeGemini()
    assistant = _assistant(settings, fake_store, gemini)
    session_id = assistant.start_session()

    turn = assistant.handle_message(session_id, "  934-411-7877 ")

    assert turn.intent == Intent.STATUS_LOOKUP
    assert "Scheduled" in turn.reply
    assert gemini.calls == []
    messages = assistant.get_messages(session_id)
    assert [m.role for m in messages] == ["assistant", "user", "assistant"]
    assert messages[1].content == "934-411-7877"
    assert turn.messages == tuple(messages[1:])


def test_unknown_number_is_not_found_not_glitch(settings, fake_store):
    assistant = _assistant(settings, fake_store, FakeGemini())

    turn = assistant.handle_message(None, "0000000000")

    assert turn.reply == NOT_FOUND_REPLY
    assert turn.failed is False


def test_contact_request_skips_model(settings, fake_store):
    gemini = FakeGemini()
    assistant = _assistant(settings, fake_store, gemini)

    turn = assistant.handle_message(None, "please contact me, my phone is 9344117877")

    assert turn.intent == Intent.CONTACT_HR
    assert gemini.calls == []


def test_general_query_goes_to_model_with_system_instruction(settings, fake_store):
    gemini = FakeGemini(reply="Please share the phone number you applied with.")
    assistant = _assistant(settings, fake_store, gemini)

    turn = assistant.handle_message(None, "Check My Status")

    assert turn.intent == Intent.GENERAL_QUERY
    assert turn.reply == "Please share the phone number you applied with."
    assert gemini.calls[0]["prompt"] == "Check My Status"
    instruction = gemini.calls[0]["system_instruction"]
    assert "Evolv Clothing Recruitment Assistant" in instruction
    assert "Vigneshwaran, 9344117877" in instruction
    assert "{" not in instruction


def test_empty_model_reply_uses_apology(settings, fake_store):
    assistant = _assistant(settings, fake_store, FakeGemini(reply=""))

    turn = assistant.handle_message(None, "hello there")

    assert turn.reply == EMPTY_MODEL_REPLY


def test_model_failure_appends_one_glitch_message(settings, fake_store):
    gemini = FakeGemini(error=RuntimeError("quota exceeded"))
    assistant = _assistant(settings, fake_store, gemini)
    session_id = assistant.start_session()
    assistant.handle_message(session_id, "9344117877")
    before = assistant.get_messages(session_id)

    turn = assistant.handle_message(session_id, "what is the dress code?")

    after = assistant.get_messages(session_id)
    assert turn.failed is True
    assert turn.reply == GLITCH_REPLY
    assert after[: len(before)] == before
    assert len(after) == len(before) + 2
    assert after[-1].content == GLITCH_REPLY
    assert [m.content for m in after].count(GLITCH_REPLY) == 1
    assert assistant.sessions.is_pending(session_id) is False
    assert len(gemini.calls) == 1


def test_session_keeps_working_after_failure(settings, fake_store):
    gemini = FakeGemini(error=RuntimeError("network down"))
    assistant = _assistant(settings, fake_store, gemini)
    session_id = assistant.start_session()
    assistant.handle_message(session_id, "hello")

    gemini.error = None
    turn = assistant.handle_message(session_id, "hello again")

    assert turn.failed is False
    assert turn.reply == "Happy to help!"


def test_blank_message_is_rejected(settings, fake_store):
    assistant = _assistant(settings, fake_store, FakeGemini())
    session_id = assistant.start_session()

    with pytest.raises(ValueError):
        assistant.handle_message(session_id, "   ")

    assert len(assistant.get_messages(session_id)) == 1


def test_second_message_while_pending_is_rejected(settings, fake_store):
    assistant = _assistant(settings, fake_store, FakeGemini())
    session_id = assistant.start_session()
    assert assistant.sessions.begin_turn(session_id)

    with pytest.raises(ConversationBusyError):
        assistant.handle_message(session_id, "9344117877")

    assert len(assistant.get_messages(session_id)) == 1


def test_lookup_before_first_fetch_reports_not_found(settings):
    store = FakeStore([])
    assistant = _assistant(settings, store, FakeGemini())

    assert assistant.handle_message(None, "9344117877").reply == NOT_FOUND_REPLY
    assert assistant.refresh_candidates() == 0
    assert store.refresh_calls == 1


def test_quick_actions_feed_the_same_router(settings, fake_store):
    gemini = FakeGemini()
    assistant = _assistant(settings, fake_store, gemini)
    messages = {action.label: action.message for action in QUICK_ACTIONS}

    contact = assistant.handle_message(None, messages["📞 Contact HR"])
    status = assistant.handle_message(None, messages["🔍 Check Status"])

    assert contact.intent == Intent.CONTACT_HR
    assert status.intent == Intent.GENERAL_QUERY
    assert len(gemini.calls) == 1


def test_message_for_unknown_session_id_starts_that_session(settings, fake_store):
    assistant = _assistant(settings, fake_store, FakeGemini())

    turn = assistant.handle_message("tab-after-restart", "Contact HR")

    assert turn.session_id == "tab-after-restart"
    assert [m.role for m in assistant.get_messages("tab-after-restart")] == ["assistant", "user", "assistant"]
    assert assistant.sessions.is_pending("tab-after-restart") is False
