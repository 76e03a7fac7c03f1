from __future__ import annotations

import math
import re
from typing import Any, Dict, Iterable, List, Optional

__all__ = [
    "clean_text",
    "coerce_float",
    "coerce_int",
    "canonical_option",
    "canonical_option_list",
    "option_lookup",
]


def clean_text(value: Any, max_len: int = 120) -> Optional[str]:
    if not isinstance(value, str):
        return None
    cleaned = value.strip()
    if not cleaned:
        return None
    if len(cleaned) > max_len:
        cleaned = cleaned[:max_len]
    return cleaned


def coerce_float(
    value: Any,
    *,
    min_val: Optional[float] = None,
    max_val: Optional[float] = None,
) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        num = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(num) or math.isinf(num):
        return None
    if min_val is not None and num < min_val:
        return None
    if max_val is not None and num > max_val:
        return None
    return num


def coerce_int(
    value: Any,
    *,
    min_val: Optional[int] = None,
    max_val: Optional[int] = None,
) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
    try:
        num = int(value)
    except (TypeError, ValueError):
        return None
    if min_val is not None and num < min_val:
        return None
    if max_val is not None and num > max_val:
        return None
    return num


_LOOKUP_STRIP = re.compile(r"[\s_\-]+")


def _lookup_key(text: str) -> str:
    return _LOOKUP_STRIP.sub("", text.lower())


def option_lookup(options: Iterable[str], aliases: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    """Build a case/spacing-insensitive lookup from raw text to canonical option."""

    lookup = {_lookup_key(option): option for option in options}
    for alias, target in (aliases or {}).items():
        lookup[_lookup_key(alias)] = target
    return lookup


def canonical_option(value: Any, lookup: Dict[str, str], max_len: int = 32) -> Optional[str]:
    text = clean_text(value, max_len)
    if not text:
        return None
    return lookup.get(_lookup_key(text))


def canonical_option_list(
    raw: Any,
    lookup: Dict[str, str],
    *,
    strict: bool = False,
    limit: int = 32,
) -> List[str]:
    """Canonicalize and deduplicate a list of vocabulary values, keeping order.

    Unknown entries are dropped, or raise ``ValueError`` when ``strict``.
    """
    if raw is None:
        return []
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, (list, tuple, set, frozenset)):
        if strict:
            raise ValueError("expected a list of strings")
        return []
    values: List[str] = []
    for entry in raw:
        canonical = canonical_option(entry, lookup)
        if canonical is None:
            if strict:
                raise ValueError(f"unknown option: {entry!r}")
            continue
        if canonical in values:
            continue
        values.append(canonical)
        if len(values) >= limit:
            break
    return values
