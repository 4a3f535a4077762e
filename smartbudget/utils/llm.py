from __future__ import annotations
from typing import List, Dict, Optional
import os, requests, time, random, email.utils as eut
import logging

from smartbudget.config import settings

_log = logging.getLogger(__name__)


class LLMUnavailableError(RuntimeError):
    """Completion capability is not configured or intentionally stubbed."""


def _parse_retry_after(v: Optional[str]) -> Optional[float]:
    if not v:
        return None
    try:
        return float(v)
    except ValueError:
        try:
            d = eut.parsedate_to_datetime(v)
            return max(0.0, (d.timestamp() - time.time()))
        except (TypeError, ValueError):
            return None


def _post_chat(base: str, key: str, payload: dict) -> dict:
    """POST a chat completion to an OpenAI-compatible endpoint with limited retry on 429.

    Behavior:
    - 2xx: return parsed JSON immediately
    - 429: honor Retry-After or use backoff, then retry (bounded, ~15s total)
    - other 4xx/5xx: raise HTTPError via raise_for_status
    - network/timeouts: bubble up requests.RequestException
    """
    root = base.rstrip("/")
    if not root.endswith("/v1"):
        root = f"{root}/v1"
    url = f"{root}/chat/completions"
    headers = {"Authorization": f"Bearer {key}", "Content-Type": "application/json"}
    delays = [1.5, 3.0, 6.0, 0.0]
    total_wait = 0.0
    max_attempts = 4
    attempt = 0
    timeout = (settings.LLM_CONNECT_TIMEOUT, settings.LLM_READ_TIMEOUT)
    while True:
        r = requests.post(url, json=payload, headers=headers, timeout=timeout)
        if r.status_code == 429:
            ra = _parse_retry_after(r.headers.get("Retry-After"))
            base_delay = delays[attempt] if attempt < len(delays) else delays[-1]
            wait = ra if (ra is not None and ra > 0) else base_delay
            wait = min(8.0, wait + random.uniform(0, max(0.0, wait * 0.4)))
            if attempt >= (max_attempts - 1) or (total_wait + wait > 15.0):
                r.raise_for_status()
            _log.info(
                "LLM:retry attempt=%d status=429 wait=%.2f",
                attempt + 1,
                wait,
                extra={"evt": "llm.retry"},
            )
            time.sleep(wait)
            total_wait += wait
            attempt += 1
            continue
        r.raise_for_status()
        return r.json()


def llm_available() -> bool:
    """Stub mode and missing/"mock" keys disable real completion calls."""
    if os.getenv("DEV_ALLOW_NO_LLM", "1" if settings.DEV_ALLOW_NO_LLM else "0") == "1":
        return False
    key = (os.getenv("OPENAI_API_KEY") or settings.OPENAI_API_KEY or "").strip()
    return bool(key) and key != "mock"


def call_llm(
    *,
    messages: List[Dict[str, str]],
    temperature: float = 0.7,
    model: Optional[str] = None,
) -> str:
    """
    Provider-agnostic chat call against an OpenAI-compatible Chat Completions API.

    Raises LLMUnavailableError when no provider is configured, and lets
    requests.RequestException (timeouts, 5xx, exhausted 429 retries) bubble up so
    callers can apply their deterministic fallbacks.
    """
    if not llm_available():
        raise LLMUnavailableError("completion capability disabled")
    model = model or settings.DEFAULT_LLM_MODEL
    key = (os.getenv("OPENAI_API_KEY") or settings.OPENAI_API_KEY).strip()
    payload = {
        "model": model,
        "messages": messages,
        "temperature": temperature,
        "max_tokens": settings.LLM_MAX_TOKENS,
    }
    _log.info("LLM:call start model=%s msgs=%d", model, len(messages))
    data = _post_chat(settings.OPENAI_BASE_URL, key, payload)
    try:
        reply = data["choices"][0]["message"]["content"] or ""
    except (KeyError, IndexError, TypeError) as err:
        raise ValueError(f"unexpected completion payload: {err}") from err
    _log.info("LLM:ok chars=%d", len(reply))
    return reply


def complete(system: str, user: str, temperature: float = 0.7) -> str:
    """System + user instruction -> text."""
    return call_llm(
        messages=[
            {"role": "system", "content": system},
            {"role": "user", "content": user},
        ],
        temperature=temperature,
    )


def complete_chat(messages: List[Dict[str, str]], temperature: float = 0.7) -> str:
    """Full role-tagged conversation -> text."""
    clean = [
        {"role": m.get("role", "user"), "content": m.get("content", "")}
        for m in messages
    ]
    return call_llm(messages=clean, temperature=temperature)
