"""Lower an untrusted decomposition document into a :class:`Hierarchy`.

The normalizer never rejects input. Missing collections become empty,
missing names get a level placeholder, blank optional strings become
``None`` and ``kind`` is coerced into the 1..3 range.
"""
from __future__ import annotations

import logging
import math
import re
from typing import Any

from src.shared.constants import (
    DEFAULT_PROCESS_NAME,
    DEFAULT_SUBPROCESS_NAME,
    DEFAULT_USE_CASE_NAME,
    MAX_USE_CASE_KIND,
    MIN_USE_CASE_KIND,
)
from src.shared.models.hierarchy import (
    Hierarchy,
    Process,
    Subprocess,
    UseCase,
    UseCaseKind,
)

logger = logging.getLogger(__name__)


_DECIMAL_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|[+-]?Infinity")
_PREFIXED_RE = re.compile(r"0(?:[xX][0-9a-fA-F]+|[oO][0-7]+|[bB][01]+)")


def _int_to_float(value: int) -> float:
    try:
        return float(value)
    except OverflowError:
        return math.nan


def _to_number(value: Any) -> float:
    """Numeric coercion following JavaScript ``Number()``.

    Integers too large for a float give NaN rather than infinity; both fall
    back to the default kind.
    """
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, int):
        return _int_to_float(value)
    if isinstance(value, float):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return 0.0
        if _PREFIXED_RE.fullmatch(stripped):
            return _int_to_float(int(stripped, 0))
        if _DECIMAL_RE.fullmatch(stripped):
            return float(stripped.replace("Infinity", "inf"))
        return math.nan
    return math.nan


def coerce_kind(value: Any, default: int = MIN_USE_CASE_KIND) -> UseCaseKind:
    """Coerce *value* into a :class:`UseCaseKind`.

    Non-finite input falls back to *default*; finite input is rounded half
    up and clamped into ``[1, 3]``.
    """
    number = _to_number(value)
    if not math.isfinite(number):
        return UseCaseKind(default)
    rounded = math.floor(number + 0.5)
    return UseCaseKind(min(max(MIN_USE_CASE_KIND, rounded), MAX_USE_CASE_KIND))


def _text(value: Any) -> str | None:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = value if isinstance(value, str) else str(value)
    return text or None


def _name(value: Any, placeholder: str) -> str:
    return _text(value) or placeholder


def _items(container: dict[str, Any], key: str) -> list[dict[str, Any]]:
    value = container.get(key)
    if not isinstance(value, list):
        return []
    items = [item for item in value if isinstance(item, dict)]
    if len(items) != len(value):
        logger.debug("Skipped %d non-object entries under '%s'", len(value) - len(items), key)
    return items


def normalize_use_case(raw: dict[str, Any]) -> UseCase:
    # an absent kind defaults to 1 before coercion; an explicit null coerces to 0
    return UseCase(
        name=_name(raw.get("name"), DEFAULT_USE_CASE_NAME),
        description=_text(raw.get("description")),
        primary_actor=_text(raw.get("primary_actor")),
        kind=coerce_kind(raw.get("kind", MIN_USE_CASE_KIND)),
        preconditions=_text(raw.get("preconditions")),
        postconditions=_text(raw.get("postconditions")),
        acceptance_criteria=_text(raw.get("acceptance_criteria")),
    )


def normalize_subprocess(raw: dict[str, Any]) -> Subprocess:
    return Subprocess(
        name=_name(raw.get("name"), DEFAULT_SUBPROCESS_NAME),
        description=_text(raw.get("description")),
        use_cases=[normalize_use_case(u) for u in _items(raw, "use_cases")],
    )


def normalize_process(raw: dict[str, Any]) -> Process:
    return Process(
        name=_name(raw.get("name"), DEFAULT_PROCESS_NAME),
        description=_text(raw.get("description")),
        subprocesses=[normalize_subprocess(s) for s in _items(raw, "subprocesses")],
    )


def normalize_hierarchy(document: Any) -> Hierarchy:
    """Normalize an arbitrary document into a :class:`Hierarchy`.

    Args:
        document: Parsed model output or a client-supplied document. Values
            that are not JSON objects yield an empty hierarchy.

    Returns:
        A hierarchy satisfying every schema invariant. Cardinality limits
        are not enforced here.
    """
    if not isinstance(document, dict):
        logger.warning("Decomposition document is %s, not an object", type(document).__name__)
        return Hierarchy()
    return Hierarchy(
        processes=[normalize_process(p) for p in _items(document, "processes")],
    )
