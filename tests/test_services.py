import asyncio

import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel

from crux.core import extract_profile
from crux.errors import CompletionServiceError
from crux.models import AppConfig, LLMConfig
from crux.services import LLMService
from crux.services.llm_service import message_text


def test_config_reads_nested_env(monkeypatch):
    monkeypatch.setenv("CRUX_DEPLOY__TOKEN", "tok")
    monkeypatch.setenv("CRUX_DEPLOY__TEAM_ID", "team_1")
    monkeypatch.setenv("CRUX_PIPELINE__ARTIFACT_MIN_LENGTH", "120")

    config = AppConfig(_env_file=None)

    assert config.deploy.token == "tok"
    assert config.deploy.team_id == "team_1"
    assert config.deploy.branding_suffix == "crux-ai"
    assert config.pipeline.artifact_min_length == 120


def test_message_text_flattens_parts():
    assert message_text("plain") == "plain"
    assert message_text(None) == ""
    assert message_text(["a", {"type": "text", "text": "b"}, {"type": "image_url"}]) == "ab"


async def test_llm_service_complete():
    service = LLMService(LLMConfig(timeout_seconds=5))
    service._llm = FakeListChatModel(responses=['{"personalInfo": {"name": "Jane"}}'])

    assert await service.complete("Resume Text: Jane") == '{"personalInfo": {"name": "Jane"}}'


class StalledModel:
    async def ainvoke(self, messages):
        await asyncio.sleep(1)


async def test_llm_service_timeout_is_a_service_error():
    service = LLMService(LLMConfig(timeout_seconds=0.01))
    service._llm = StalledModel()

    with pytest.raises(asyncio.TimeoutError):
        await service.complete("Resume Text: Jane")

    with pytest.raises(CompletionServiceError) as exc_info:
        await extract_profile("Jane Doe", service)
    assert exc_info.value.status_code == 502
    assert exc_info.value.details == "TimeoutError"
