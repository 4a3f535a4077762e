"""Best-effort translation through the completion capability.

Failures never propagate: the source text is returned unchanged.
"""
from __future__ import annotations
import logging
from typing import List

from smartbudget.config import settings
from smartbudget.utils import llm as llm_mod

_log = logging.getLogger(__name__)

_LANG_NAMES = {"EN": "English", "DE": "German", "FR": "French", "IT": "Italian"}


def _system_prompt(target_lang: str) -> str:
    name = _LANG_NAMES.get(target_lang.upper(), target_lang)
    return f"You are a translator. Translate the user text into {name}. Return only the translation."


def translate_text(text: str, target_lang: str) -> str:
    if not text or not llm_mod.llm_available():
        return text
    try:
        out = llm_mod.complete(_system_prompt(target_lang), text, temperature=0)
    except Exception as err:
        _log.warning("translate: fallback to source text (%s)", type(err).__name__)
        return text
    out = (out or "").strip()
    return out or text


def translate_texts(texts: List[str], target_lang: str) -> List[str]:
    """Translate each text; output list always aligns with input."""
    return [translate_text(t, target_lang) for t in texts]


def translate_to_default_language(text: str) -> str:
    return translate_text(text, settings.SECONDARY_LANGUAGE)
