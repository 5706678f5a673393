"""
Briefing Backends
Turns a booking prompt into front-of-house briefing text.

  claude             Anthropic SDK, model from ANTHROPIC_MODEL
  deepseek-chat      DeepSeek's OpenAI-compatible HTTP API
  deepseek-reasoner  same API, reasoning model (only the final answer is used)

A missing API key raises ValueError; a failed or malformed call raises
RuntimeError. briefing.py turns both into its error string.
"""

import logging
from typing import Callable, Dict

import requests
from anthropic import Anthropic

from eventdesk.config import config

logger = logging.getLogger(__name__)

BRIEFING_SYSTEM_PROMPT = (
    "You are an expert event coordinator at a craft distillery. Generate a highly "
    "professional, concise Front of House (FOH) intelligence briefing based on the "
    "provided event data. Focus on critical operational details: staffing, bar "
    "setup, food timing and anything the floor team must not miss."
)

BRIEFING_MAX_TOKENS = 800
DEEPSEEK_TIMEOUT = (10, 120)  # connect, read


def _claude_briefing(prompt: str, model: str) -> str:
    if not config.ANTHROPIC_API_KEY:
        raise ValueError("ANTHROPIC_API_KEY not set in environment")

    client = Anthropic(api_key=config.ANTHROPIC_API_KEY)
    try:
        message = client.messages.create(
            model=config.ANTHROPIC_MODEL,
            max_tokens=BRIEFING_MAX_TOKENS,
            system=BRIEFING_SYSTEM_PROMPT,
            messages=[{"role": "user", "content": prompt}],
        )
    except Exception as e:
        raise RuntimeError(f"Claude briefing request failed: {e}") from e

    # Text blocks only; the SDK may also return tool or thinking blocks
    return "".join(getattr(block, "text", "") or "" for block in message.content)


def _deepseek_briefing(prompt: str, model: str) -> str:
    if not config.DEEPSEEK_API_KEY:
        raise ValueError("DEEPSEEK_API_KEY not set in environment")

    try:
        response = requests.post(
            f"{config.DEEPSEEK_BASE_URL.rstrip('/')}/chat/completions",
            json={
                "model": model,
                "messages": [
                    {"role": "system", "content": BRIEFING_SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                "max_tokens": BRIEFING_MAX_TOKENS,
                "stream": False,
            },
            headers={"Authorization": f"Bearer {config.DEEPSEEK_API_KEY}"},
            timeout=DEEPSEEK_TIMEOUT,
        )
        response.raise_for_status()
        body = response.json()
    except requests.exceptions.RequestException as e:
        raise RuntimeError(f"DeepSeek briefing request failed: {e}") from e
    except ValueError as e:
        raise RuntimeError(f"DeepSeek returned a non-JSON body: {e}") from e

    try:
        return body["choices"][0]["message"]["content"] or ""
    except (KeyError, IndexError, TypeError) as e:
        raise RuntimeError(f"Unexpected DeepSeek response format: {e}") from e


BACKENDS: Dict[str, Callable[[str, str], str]] = {
    'claude': _claude_briefing,
    'deepseek-chat': _deepseek_briefing,
    'deepseek-reasoner': _deepseek_briefing,
}

MODEL_CHOICES = list(BACKENDS)


def request_briefing(prompt: str, model: str) -> str:
    """Raw briefing text from the chosen backend (may be empty)."""
    backend = BACKENDS.get(model)
    if backend is None:
        raise ValueError(f"Unknown AI model '{model}'. Choose from: {', '.join(MODEL_CHOICES)}")

    logger.debug(f"Requesting briefing from {model}")
    try:
        return backend(prompt, model)
    except (ValueError, RuntimeError) as e:
        logger.error(f"{model} briefing failed: {e}")
        raise
