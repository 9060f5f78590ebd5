"""Base agent class for Roma CRM LLM calls.

Agents wrap a single Gemini request/response exchange and return an
``AgentResult`` instead of raising, with latency and token usage
measured on every call.
"""

import asyncio
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Optional

logger = logging.getLogger(__name__)

GENERATION_TIMEOUT_SECONDS = 120


# ---------------------------------------------------------------------------
# Result type
# ---------------------------------------------------------------------------

@dataclass
class AgentResult:
    """Standard result type for agent operations.

    Callers check ``result.ok`` to determine success or failure.

    Attributes:
        ok: True if the operation succeeded.
        data: The response payload (text or parsed JSON).
        error: Human-readable error description when ``ok`` is False.
        tokens_used: Total tokens consumed (prompt + completion).
        latency_ms: Wall-clock time for the operation in milliseconds.
    """

    ok: bool
    data: Any = None
    error: Optional[str] = None
    tokens_used: int = 0
    latency_ms: int = 0

    @classmethod
    def success(cls, data: Any, tokens_used: int = 0, latency_ms: int = 0) -> "AgentResult":
        return cls(ok=True, data=data, tokens_used=tokens_used, latency_ms=latency_ms)

    @classmethod
    def failure(cls, error: str, latency_ms: int = 0) -> "AgentResult":
        return cls(ok=False, error=error, latency_ms=latency_ms)



# ---------------------------------------------------------------------------
# Base agent
# ---------------------------------------------------------------------------

def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


def _token_count(response: Any) -> int:
    usage = getattr(response, "usage_metadata", None)
    if usage is None:
        return 0
    prompt_tokens = getattr(usage, "prompt_token_count", 0) or 0
    completion_tokens = getattr(usage, "candidates_token_count", 0) or 0
    return prompt_tokens + completion_tokens


def _strip_code_fence(text: str) -> str:
    """Drop a ```json ... ``` wrapper some replies carry despite JSON mode."""
    stripped = text.strip()
    if not stripped.startswith("```"):
        return stripped
    stripped = stripped.split("\n", 1)[1] if "\n" in stripped else ""
    if stripped.rstrip().endswith("```"):
        stripped = stripped.rstrip()[:-3]
    return stripped.strip()


class BaseAgent:
    """Single-turn Gemini generation with JSON parsing support."""

    def __init__(
        self,
        agent_name: str,
        model_name: Optional[str] = None,
        temperature: float = 0.7,
    ):
        self.agent_name = agent_name
        self.model_name = model_name
        self.temperature = temperature

    async def generate(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        json_mode: bool = False,
    ) -> AgentResult:
        """Run one prompt against Gemini; ``data`` holds the reply text."""
        started = time.perf_counter()
        try:
            from roma_crm.infra.gemini_client import get_model

            model = get_model(
                model_name=self.model_name,
                temperature=self.temperature,
                json_mode=json_mode,
                system_instruction=system_instruction,
            )
            response = await asyncio.wait_for(
                model.generate_content_async(prompt), timeout=GENERATION_TIMEOUT_SECONDS,
            )
            text = response.text
        except asyncio.TimeoutError:
            latency_ms = _elapsed_ms(started)
            logger.error("[%s] Generation timed out after %dms", self.agent_name, latency_ms)
            return AgentResult.failure(
                f"Generation timed out after {GENERATION_TIMEOUT_SECONDS}s", latency_ms=latency_ms,
            )
        except Exception as exc:
            latency_ms = _elapsed_ms(started)
            logger.error("[%s] Generation failed after %dms: %s", self.agent_name, latency_ms, exc)
            return AgentResult.failure(str(exc), latency_ms=latency_ms)

        latency_ms = _elapsed_ms(started)
        tokens_used = _token_count(response)
        logger.info("[%s] tokens=%d latency=%dms", self.agent_name, tokens_used, latency_ms)
        return AgentResult.success(text, tokens_used=tokens_used, latency_ms=latency_ms)

    async def generate_json(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
    ) -> AgentResult:
        """Like ``generate`` but parses the reply; unparseable JSON is a failure."""
        result = await self.generate(prompt, system_instruction=system_instruction, json_mode=True)
        if not result.ok:
            return result

        try:
            parsed = json.loads(_strip_code_fence(result.data or ""))
        except json.JSONDecodeError as exc:
            logger.warning("[%s] Reply is not JSON (%s): %.200s", self.agent_name, exc, result.data)
            return AgentResult.failure(f"JSON parse error: {exc}", latency_ms=result.latency_ms)

        return AgentResult.success(parsed, tokens_used=result.tokens_used, latency_ms=result.latency_ms)
