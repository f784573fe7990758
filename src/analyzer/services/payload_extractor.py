"""Recover the JSON document from a text-generation response.

Models are asked for bare JSON but regularly answer with a fenced
```` ```json ```` block or with commentary around the object. Extraction
tries, in order:

1. The inner content of the first ```` ```json ```` fence, when present,
   otherwise the whole text, parsed as is.
2. The span from the first ``{`` to the last ``}`` of that candidate.

Only a JSON object counts as a document; anything else is an
:class:`ExtractionError`.
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any

from src.shared.errors import ExtractionError

logger = logging.getLogger(__name__)

_JSON_FENCE_RE = re.compile(r"```json\s*([\s\S]*?)\s*```", re.IGNORECASE)


def _loads_object(candidate: str) -> dict[str, Any]:
    value = json.loads(candidate)
    if not isinstance(value, dict):
        raise json.JSONDecodeError(
            f"Expected a JSON object, got {type(value).__name__}", candidate, 0
        )
    return value


def _reason(exc: Exception) -> str:
    if isinstance(exc, json.JSONDecodeError):
        return exc.msg
    if isinstance(exc, RecursionError):
        return "document is nested too deeply"
    return str(exc)


def extract_payload(raw_text: str | None) -> dict[str, Any]:
    """Extract a single JSON object from *raw_text*.

    Raises:
        ExtractionError: When neither the candidate nor its outermost
            brace span parses into a JSON object.
    """
    text = raw_text if isinstance(raw_text, str) else ""
    fence = _JSON_FENCE_RE.search(text)
    candidate = fence.group(1) if fence else text

    # JSONDecodeError is a ValueError; so are oversized integer literals
    try:
        return _loads_object(candidate)
    except (ValueError, RecursionError) as exc:
        first_error = exc

    first = candidate.find("{")
    last = candidate.rfind("}")
    if first == -1 or last == -1 or last < first:
        raise ExtractionError(
            f"Model output is not valid JSON: {_reason(first_error)}"
        ) from first_error

    logger.debug("Direct parse failed, retrying on brace span %d..%d", first, last)
    try:
        return _loads_object(candidate[first:last + 1])
    except (ValueError, RecursionError) as exc:
        raise ExtractionError(
            f"Model output is not valid JSON: {_reason(exc)}"
        ) from exc
