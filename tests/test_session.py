import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from econ_shorts.credentials import CredentialStore
from econ_shorts.errors import (
    MalformedResponseError,
    QuotaExceededError,
    SessionBusyError,
)
from econ_shorts.models import Idea, Script, ScriptSection, ScriptType
from econ_shorts.service import GeminiService
from econ_shorts.session import INVALID_KEY_MESSAGE, ScriptSession, Step


@pytest.fixture
def store(tmp_path):
    return CredentialStore(path=tmp_path / "settings.json", external_key="AIzaSyTestKey")


@pytest.fixture
def service():
    return MagicMock()


@pytest.fixture
def ideas():
    return [Idea(id=f"idea-{i}-1", title=f"제목 {i}", premise="p") for i in range(5)]


def test_generate_ideas(service, store, ideas):
    service.generate_video_ideas = AsyncMock(return_value=ideas)
    session = ScriptSession(service, store)

    result = asyncio.run(session.generate_ideas("삼성전자 주가"))

    assert result == ideas
    assert session.ideas == ideas
    assert session.keyword == "삼성전자 주가"
    assert not session.loading_ideas
    service.generate_video_ideas.assert_awaited_once_with("삼성전자 주가")


def test_generate_ideas_quota_error(service, store, ideas):
    service.generate_video_ideas = AsyncMock(side_effect=QuotaExceededError())
    session = ScriptSession(service, store)
    session.ideas = ideas

    with pytest.raises(QuotaExceededError):
        asyncio.run(session.generate_ideas("x"))

    assert session.quota_exceeded
    assert "API 할당량" in session.error
    assert session.ideas == []
    assert not session.loading_ideas
    assert store.has_key()


def test_invalid_key_is_forgotten(service, store):
    service.generate_video_ideas = AsyncMock(
        side_effect=Exception("Requested entity was not found."),
    )
    session = ScriptSession(service, store)

    with pytest.raises(Exception, match="entity was not found"):
        asyncio.run(session.generate_ideas("x"))

    assert session.error == INVALID_KEY_MESSAGE
    assert not session.quota_exceeded
    assert session.needs_key
    assert not store.has_key()


def test_duplicate_idea_request_is_rejected(service, store, ideas):
    async def slow_ideas(keyword):
        await asyncio.sleep(0)
        return ideas

    service.generate_video_ideas = slow_ideas
    session = ScriptSession(service, store)

    async def submit_twice():
        return await asyncio.gather(
            session.generate_ideas("a"),
            session.generate_ideas("b"),
            return_exceptions=True,
        )

    first, second = asyncio.run(submit_twice())

    assert first == ideas
    assert isinstance(second, SessionBusyError)
    assert not session.loading_ideas


def test_select_idea(service, store, ideas):
    sections = [ScriptSection(id=1, title="훅", content="사실 말이야...")]
    service.generate_script = AsyncMock(return_value=Script(title="t", sections=sections))
    session = ScriptSession(service, store, protagonist_name="민수", script_type=ScriptType.LONGFORM)

    result = asyncio.run(session.select_idea(ideas[2]))

    assert result == sections
    assert session.step is Step.SCRIPT
    assert session.selected_idea == ideas[2]
    assert not session.loading_script
    service.generate_script.assert_awaited_once_with("제목 2", "민수", ScriptType.LONGFORM)


def test_select_idea_failure_returns_to_ideas(service, store, ideas):
    service.generate_script = AsyncMock(
        side_effect=MalformedResponseError("Invalid script response: missing sections"),
    )
    session = ScriptSession(service, store)

    with pytest.raises(MalformedResponseError):
        asyncio.run(session.select_idea(ideas[0]))

    assert session.step is Step.IDEAS
    assert "Invalid script response" in session.error
    assert not session.quota_exceeded


def test_new_request_clears_previous_error(service, store, ideas):
    service.generate_video_ideas = AsyncMock(side_effect=[QuotaExceededError(), ideas])
    session = ScriptSession(service, store)

    with pytest.raises(QuotaExceededError):
        asyncio.run(session.generate_ideas("x"))
    asyncio.run(session.generate_ideas("x"))

    assert session.error is None
    assert not session.quota_exceeded


def test_reset(service, store, ideas):
    session = ScriptSession(service, store)
    session.step = Step.SCRIPT
    session.selected_idea = ideas[0]
    session.sections = [ScriptSection(id=1, title="a", content="b")]
    session.error = "boom"
    session.quota_exceeded = True

    session.reset()

    assert session.step is Step.IDEAS
    assert session.selected_idea is None
    assert session.sections == []
    assert session.error is None
    assert not session.quota_exceeded


def test_keyword_to_shorts_script(store):
    ideas_payload = [
        {"title": f"삼성전자 주가 아이디어 {i}", "premise": f"패턴 {i}"} for i in range(5)
    ]
    script_payload = {
        "title": "삼성전자 주가 아이디어 2",
        "sections": [
            {"id": i, "title": f"섹션 {i}", "content": "가" * 275} for i in range(1, 5)
        ],
    }
    responses = [MagicMock(text=json.dumps(ideas_payload)), MagicMock(text=json.dumps(script_payload))]

    with patch("econ_shorts.service.genai.Client") as client:
        generate = AsyncMock(side_effect=responses)
        client.return_value.aio.models.generate_content = generate
        session = ScriptSession(GeminiService(store), store, script_type=ScriptType.SHORTS)

        found = asyncio.run(session.generate_ideas("삼성전자 주가"))
        sections = asyncio.run(session.select_idea(found[2]))

    assert len(found) == 5
    assert len({idea.id for idea in found}) == 5
    assert [s.id for s in sections] == [1, 2, 3, 4]
    assert 1000 <= sum(len(s.content) for s in sections) <= 1200
    assert session.step is Step.SCRIPT

    idea_call, script_call = generate.call_args_list
    assert "삼성전자 주가" in idea_call.kwargs["contents"]
    assert "삼성전자 주가 아이디어 2" in script_call.kwargs["contents"]
    assert "숏폼" in script_call.kwargs["contents"]
