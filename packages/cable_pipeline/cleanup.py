from __future__ import annotations

import logging
from typing import Optional

import httpx

_log = logging.getLogger(__name__)

GEMINI_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
DEFAULT_MODEL = "gemini-2.5-flash"

# Bodies shorter than this are passed through untouched.
MIN_CLEANUP_CHARS = 50

CLEANUP_INSTRUCTION = "\n".join(
    [
        "You are an expert archivist cleaning OCR text of diplomatic cables.",
        "I will provide raw text. Your task is to output CLEAN MARKDOWN based on it.",
        "Strict Rules:",
        "1. Fix ALL CAPS text to Sentence case for readability.",
        "2. Keep proper nouns (names, countries, acronyms like NATO, US) capitalized.",
        "3. Format numbered paragraphs with Markdown (e.g. '1. **Summary:** Text...').",
        "4. Merge paragraphs broken across lines/pages.",
        "5. DO NOT include the header metadata (Date, From, To) or footer metadata tables.",
        "6. Return ONLY the cleaned body text.",
    ]
)


def build_request_body(raw_text: str) -> dict:
    """generateContent payload: fixed system instruction plus the raw body."""
    return {
        "system_instruction": {"parts": [{"text": CLEANUP_INSTRUCTION}]},
        "contents": [{"role": "user", "parts": [{"text": raw_text}]}],
    }


def needs_cleanup(raw_text: str, api_key: Optional[str]) -> bool:
    """True when clean_body_text would send a request for this body."""
    return bool(api_key) and len(raw_text) >= MIN_CLEANUP_CHARS


def clean_body_text(
    raw_text: str,
    api_key: Optional[str],
    *,
    model: str = DEFAULT_MODEL,
    client: Optional[httpx.Client] = None,
    timeout: float = 120.0,
) -> str:
    """
    Ask Gemini to reformat an OCR'd cable body.

    Returns the first candidate's text verbatim. Without an API key, for
    very short bodies, or on any request/response failure the raw text is
    returned instead.
    """
    if not needs_cleanup(raw_text, api_key):
        return raw_text

    url = GEMINI_ENDPOINT.format(model=model)
    body = build_request_body(raw_text)

    try:
        if client is None:
            with httpx.Client(timeout=timeout) as own_client:
                resp = own_client.post(url, params={"key": api_key}, json=body)
        else:
            resp = client.post(url, params={"key": api_key}, json=body)
        resp.raise_for_status()
        data = resp.json()
        return data["candidates"][0]["content"]["parts"][0]["text"]
    except httpx.HTTPStatusError as exc:
        _log.warning("LLM request failed: HTTP %s", exc.response.status_code)
    except httpx.HTTPError as exc:
        _log.warning("LLM request failed: %s", exc)
    except (KeyError, IndexError, TypeError, ValueError) as exc:
        _log.warning("LLM response had unexpected shape: %s", exc)
    return raw_text


__all__ = ["CLEANUP_INSTRUCTION", "build_request_body", "clean_body_text", "needs_cleanup"]
