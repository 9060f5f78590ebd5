"""Gemini model factory used by the intake agents."""

import google.generativeai as genai

from roma_crm.app.config import get_settings


def get_model(
    model_name: str | None = None,
    temperature: float = 0.2,
    json_mode: bool = False,
    system_instruction: str | None = None,
) -> genai.GenerativeModel:
    """Return a configured Gemini GenerativeModel.

    Args:
        model_name: Gemini model identifier; defaults to ``settings.gemini_model``.
        temperature: Generation temperature (0.0-2.0).
        json_mode: If True, the response is constrained to JSON.
        system_instruction: Optional system-level instruction.

    Raises:
        RuntimeError: when no API key is configured.
    """
    settings = get_settings()
    if not settings.gemini_api_key:
        raise RuntimeError("GEMINI_API_KEY is not configured")
    genai.configure(api_key=settings.gemini_api_key)

    generation_config = {"temperature": temperature}
    if json_mode:
        generation_config["response_mime_type"] = "application/json"

    return genai.GenerativeModel(
        model_name=model_name or settings.gemini_model,
        generation_config=generation_config,
        system_instruction=system_instruction,
    )
