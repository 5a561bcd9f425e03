"""HTTP client for the remote content generation agent.

The agent answers with a JSON body of this shape (every field optional)::

    {
      "success": true,
      "response": {"result": {"response": "..."}, "message": "..."},
      "module_outputs": {"artifact_files": [{"file_url": "https://..."}]},
      "error": "..."
    }

All probing of that shape happens in ``parse_agent_payload``; the rest of the
package only sees a GenerationResult.
"""

import logging
from typing import Any

import httpx

from ..config import DEFAULT_AGENT_TIMEOUT
from ..core import ArtifactFile
from ..provider import GenerationContext, GenerationProvider
from ..result import GenerationResult

logger = logging.getLogger(__name__)


class AgentHTTPProvider(GenerationProvider):
    """Provider that POSTs prompts to the configured agent endpoint."""

    name = "agent"

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout: float = DEFAULT_AGENT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    def is_available(self) -> bool:
        return bool(self.base_url)

    async def generate(
        self, prompt: str, agent_id: str, context: GenerationContext
    ) -> GenerationResult:
        body = {
            "message": prompt,
            "agent_id": agent_id,
            "user_id": context["user_id"],
            "session_id": context["session_id"],
        }
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            resp = await client.post(self.base_url, json=body, headers=headers)

        try:
            data = resp.json()
        except ValueError:
            data = None

        if resp.is_error:
            logger.warning("Agent returned HTTP %d", resp.status_code)
            message = _failure_message(data) if isinstance(data, dict) else None
            return GenerationResult.failed(message or f"HTTP {resp.status_code}")

        if not isinstance(data, dict):
            return GenerationResult.failed("Resposta invalida do agente.")

        logger.debug("Agent payload keys: %s", sorted(data))
        return parse_agent_payload(data)


def parse_agent_payload(data: dict[str, Any]) -> GenerationResult:
    """Convert the agent's JSON body into a GenerationResult."""
    if not data.get("success", False):
        return GenerationResult.failed(_failure_message(data))

    response = data.get("response")
    primary = None
    structured = None
    if isinstance(response, dict):
        structured = response
        result = response.get("result")
        if isinstance(result, dict) and isinstance(result.get("response"), str):
            primary = result["response"]
    elif isinstance(response, str):
        primary = response

    artifacts = []
    outputs = data.get("module_outputs")
    if isinstance(outputs, dict) and isinstance(outputs.get("artifact_files"), list):
        for item in outputs["artifact_files"]:
            if isinstance(item, dict) and item.get("file_url"):
                artifacts.append(ArtifactFile(file_url=str(item["file_url"])))

    return GenerationResult.ok(primary, structured=structured, artifact_files=artifacts)


def _failure_message(data: dict[str, Any]) -> str | None:
    error = data.get("error")
    if isinstance(error, str) and error.strip():
        return error
    response = data.get("response")
    if isinstance(response, dict):
        message = response.get("message")
        if isinstance(message, str) and message.strip():
            return message
    return None
