"""Helpers for reading structured output out of free-form model replies."""

from __future__ import annotations

import json
import re
from typing import Optional

FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)


def extract_json_object(raw: str) -> Optional[dict]:
    """Return the JSON object in ``raw``, or None if there isn't one.

    Accepts a bare object, an object inside a markdown code fence, or an
    object surrounded by prose (first '{' to last '}').
    """
    if not raw or not raw.strip():
        return None

    candidates = [raw.strip()]
    fenced = FENCE_RE.search(raw)
    if fenced:
        candidates.insert(0, fenced.group(1).strip())

    start = raw.find("{")
    end = raw.rfind("}")
    if 0 <= start < end:
        candidates.append(raw[start:end + 1])

    for candidate in candidates:
        try:
            value = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(value, dict):
            return value

    return None
