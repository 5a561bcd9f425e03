"""Tests for result extraction and the agent HTTP backend."""

import json

import httpx
import pytest

from eduia_session.backends import get_generation_provider
from eduia_session.backends.agent import AgentHTTPProvider, parse_agent_payload
from eduia_session.backends.offline import OfflineProvider
from eduia_session.core import ArtifactFile
from eduia_session.result import GenerationResult, extract_artifacts, extract_text

CONTEXT = {"user_id": "u-1", "session_id": "s-1"}


class TestExtraction:
    def test_primary_text_wins(self):
        result = GenerationResult.ok("primario", structured={"text": "secundario"})
        assert extract_text(result) == "primario"

    def test_structured_fallback(self):
        result = GenerationResult.ok(None, structured={"message": "", "text": "do fallback"})
        assert extract_text(result) == "do fallback"

    def test_structured_nested(self):
        result = GenerationResult.ok(None, structured={"result": {"answer": "aninhado"}})
        assert extract_text(result) == "aninhado"

    def test_empty_when_nothing_found(self):
        assert extract_text(GenerationResult.ok(None)) == ""
        assert extract_text(GenerationResult.ok(None, structured={"status": "ok"})) == ""

    def test_artifacts(self):
        result = GenerationResult.ok("x", artifact_files=[ArtifactFile("https://a"), ArtifactFile("")])
        assert extract_artifacts(result) == (ArtifactFile("https://a"),)

    def test_failed(self):
        result = GenerationResult.failed("quota")
        assert result.success is False
        assert result.error == "quota"


class TestParseAgentPayload:
    def test_success_with_primary_and_files(self):
        result = parse_agent_payload({
            "success": True,
            "response": {"result": {"response": "# Trabalho"}},
            "module_outputs": {"artifact_files": [{"file_url": "https://f/1.docx"}, {"nope": 1}]},
        })
        assert result.success is True
        assert extract_text(result) == "# Trabalho"
        assert result.artifact_files == (ArtifactFile("https://f/1.docx"),)

    def test_success_without_primary_uses_structured(self):
        result = parse_agent_payload({"success": True, "response": {"result": {"text": "via fallback"}}})
        assert result.text is None
        assert extract_text(result) == "via fallback"

    def test_failure_prefers_error_field(self):
        result = parse_agent_payload({"success": False, "error": "Agente indisponivel", "response": {"message": "m"}})
        assert result.success is False
        assert result.error == "Agente indisponivel"

    def test_failure_falls_back_to_response_message(self):
        result = parse_agent_payload({"success": False, "response": {"message": "Limite atingido"}})
        assert result.error == "Limite atingido"

    def test_failure_without_text(self):
        assert parse_agent_payload({}).error is None


class TestAgentHTTPProvider:
    @pytest.mark.asyncio
    async def test_posts_prompt_and_context(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = json.loads(request.content)
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json={"success": True, "response": {"result": {"response": "ok"}}})

        provider = AgentHTTPProvider(
            "http://agent.test/chat", api_key="k-1", transport=httpx.MockTransport(handler)
        )
        result = await provider.generate("Tema", "agent-1", CONTEXT)

        assert extract_text(result) == "ok"
        assert seen["body"] == {"message": "Tema", "agent_id": "agent-1", "user_id": "u-1", "session_id": "s-1"}
        assert seen["auth"] == "Bearer k-1"

    @pytest.mark.asyncio
    async def test_http_error_is_failed_result(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(503, json={"error": "Em manutencao"}))
        provider = AgentHTTPProvider("http://agent.test/chat", transport=transport)
        result = await provider.generate("Tema", "agent-1", CONTEXT)
        assert result.success is False
        assert result.error == "Em manutencao"

    @pytest.mark.asyncio
    async def test_non_json_body_is_failed_result(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>"))
        provider = AgentHTTPProvider("http://agent.test/chat", transport=transport)
        result = await provider.generate("Tema", "agent-1", CONTEXT)
        assert result.success is False

    @pytest.mark.asyncio
    async def test_network_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        provider = AgentHTTPProvider("http://agent.test/chat", transport=httpx.MockTransport(handler))
        with pytest.raises(httpx.ConnectError):
            await provider.generate("Tema", "agent-1", CONTEXT)


class TestOfflineProvider:
    @pytest.mark.asyncio
    async def test_generates_outline(self):
        result = await OfflineProvider().generate("Apresentacao sobre o ciclo da agua", "a", CONTEXT)
        text = extract_text(result)
        assert text.startswith("# Apresentacao sobre o ciclo da agua")
        assert "Slide 1" in text


def test_provider_selection(settings):
    from dataclasses import replace

    assert isinstance(get_generation_provider(settings), OfflineProvider)
    agent = get_generation_provider(replace(settings, agent_url="http://agent.test/chat"))
    assert isinstance(agent, AgentHTTPProvider)
