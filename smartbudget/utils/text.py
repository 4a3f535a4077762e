# -*- coding: utf-8 -*-
"""
Text utilities shared across services.

normalize_text: lowercases and transliterates German/French accents so that
goal titles and chat messages compare accent-insensitively.
  "Ferien in Zürich" -> "ferien in zuerich"
  "Café Crème"       -> "cafe creme"

canonicalize_merchant: lowercases, strips punctuation and store numbers,
collapses spaces. Used to group merchants for recurring detection.
  "SPOTIFY #1234"    -> "spotify"
  "  Migros  Bern "  -> "migros bern"

extract_json_object: returns the first well-formed JSON object embedded in a
model reply ("Sure! {...} Hope that helps").
"""
from __future__ import annotations
import json
import re
from typing import Any, Dict, Optional

_WS_RE = re.compile(r"\s+")
_PUNCT_RE = re.compile(r"[^\w\s&]", re.UNICODE)
_STORE_NUM_RE = re.compile(r"\s*#\s*\d+\b")

# Fixed transliteration table; anything else is left untouched
_TRANSLIT = {
    "ä": "ae",
    "ö": "oe",
    "ü": "ue",
    "ß": "ss",
    "à": "a",
    "á": "a",
    "â": "a",
    "é": "e",
    "è": "e",
    "ê": "e",
    "ë": "e",
    "î": "i",
    "ï": "i",
    "ô": "o",
    "ù": "u",
    "û": "u",
    "ç": "c",
    "ñ": "n",
}
_TRANSLIT_RE = re.compile("|".join(_TRANSLIT))

_decoder = json.JSONDecoder()


def normalize_text(val: Optional[str]) -> str:
    if not val:
        return ""
    s = val.lower()
    return _TRANSLIT_RE.sub(lambda m: _TRANSLIT[m.group(0)], s)


def canonicalize_merchant(val: Optional[str]) -> str:
    if not val:
        return ""
    s = normalize_text(val.strip())
    s = _STORE_NUM_RE.sub("", s)
    s = _PUNCT_RE.sub(" ", s)
    return _WS_RE.sub(" ", s).strip()


def extract_json_object(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """Decode the first JSON object found in ``text`` or return None."""
    if not text:
        return None
    idx = text.find("{")
    while idx != -1:
        try:
            obj, _end = _decoder.raw_decode(text, idx)
        except json.JSONDecodeError:
            idx = text.find("{", idx + 1)
            continue
        if isinstance(obj, dict):
            return obj
        idx = text.find("{", idx + 1)
    return None


def parse_amount(token: str) -> Optional[float]:
    """'1,5' / '1.5' / '200' -> float; None on garbage."""
    try:
        return float(token.replace(",", "."))
    except (TypeError, ValueError):
        return None
