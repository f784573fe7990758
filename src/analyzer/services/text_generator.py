"""Text-generation collaborators: OpenRouter chat completions and a fixed mock."""
from __future__ import annotations

import json
import logging
from typing import Any, Protocol, runtime_checkable

import httpx

from src.analyzer.services.prompts import SYSTEM_PROMPT, build_user_prompt
from src.shared.config import AnalyzerConfig
from src.shared.constants import UPSTREAM_REFERER, UPSTREAM_TEMPERATURE, UPSTREAM_TITLE
from src.shared.errors import ConfigurationError, UpstreamServiceError

logger = logging.getLogger(__name__)

# Body excerpt kept in error details and logs
_MAX_ERROR_BODY = 2000

MOCK_DOCUMENT: dict[str, Any] = {
    "processes": [
        {
            "name": "Demo process",
            "description": "Generated without AI (mock)",
            "subprocesses": [
                {
                    "name": "Demo subprocess",
                    "description": "Mock",
                    "use_cases": [
                        {
                            "name": "UC-001 Demo",
                            "description": "Simulated use case",
                            "primary_actor": "User",
                            "kind": 1,
                            "preconditions": "Authenticated",
                            "postconditions": "Saved",
                            "acceptance_criteria": "OK",
                        }
                    ],
                }
            ],
        }
    ]
}


@runtime_checkable
class TextGenerator(Protocol):
    """Turns specification text into raw model output."""

    async def generate(self, spec_text: str) -> str:
        """Return the raw text answer for *spec_text*."""
        ...


class MockGenerator:
    """Answers every request with :data:`MOCK_DOCUMENT` in a ``json`` fence."""

    async def generate(self, spec_text: str) -> str:
        return "```json\n" + json.dumps(MOCK_DOCUMENT, indent=2) + "\n```"


class OpenRouterGenerator:
    """OpenAI-compatible chat completions client for OpenRouter.

    Makes a single attempt per call. Transport failures and non-2xx
    responses surface as :class:`UpstreamServiceError`.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _payload(self, spec_text: str) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_user_prompt(spec_text)},
            ],
            "temperature": UPSTREAM_TEMPERATURE,
            "response_format": {"type": "json_object"},
        }

    async def generate(self, spec_text: str) -> str:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": UPSTREAM_REFERER,
            "X-Title": UPSTREAM_TITLE,
        }
        url = f"{self.base_url}/chat/completions"
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(url, json=self._payload(spec_text), headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("Upstream request to %s failed: %s", url, exc)
            raise UpstreamServiceError(
                f"Upstream service unavailable: {exc.__class__.__name__}"
            ) from exc

        if response.is_error:
            body = response.text[:_MAX_ERROR_BODY]
            logger.warning("Upstream error %d: %s", response.status_code, body)
            raise UpstreamServiceError(
                f"Upstream returned {response.status_code}: {body}",
                upstream_status=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise UpstreamServiceError("Upstream returned a non-JSON body") from exc

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None
        if not isinstance(content, str):
            logger.warning("Upstream response has no message content")
            return ""
        return content


def build_generator(config: AnalyzerConfig, model: str | None = None) -> TextGenerator:
    """Create the OpenRouter generator for *config*.

    Raises:
        ConfigurationError: When no API key is configured; only the mock
            path is usable then.
    """
    if not config.openrouter_api_key:
        raise ConfigurationError(
            "OPENROUTER_API_KEY is not configured. Use /api/analyze/mock to try "
            "the pipeline without a model."
        )
    return OpenRouterGenerator(
        api_key=config.openrouter_api_key,
        model=model or config.model_id,
        base_url=config.openrouter_base_url,
        timeout=config.upstream_timeout_seconds,
    )
