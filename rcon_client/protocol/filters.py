"""Classify frames on the broadcast connection as genuine broadcasts or noise."""

from __future__ import annotations

import re
from typing import Iterable, Pattern, Tuple, Union

from .messages import Response

PatternLike = Union[str, Pattern[str]]


def compile_pattern(pattern: PatternLike) -> Pattern[str]:
    if isinstance(pattern, re.Pattern):
        return pattern
    return re.compile(pattern)


def compile_patterns(patterns: Iterable[PatternLike]) -> Tuple[Pattern[str], ...]:
    return tuple(compile_pattern(p) for p in patterns)


def is_suppressed(body: str, patterns: Iterable[Pattern[str]]) -> bool:
    """True when any non-broadcast pattern matches somewhere in the body."""
    return any(pattern.search(body) for pattern in patterns)


def classify(response: Response, patterns: Iterable[Pattern[str]]) -> Response:
    return response.model_copy(update={"suppressed": is_suppressed(response.text, patterns)})


__all__ = ["PatternLike", "compile_pattern", "compile_patterns", "is_suppressed", "classify"]
