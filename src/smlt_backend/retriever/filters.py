"""Combines caller filter expressions into one filter shared by both signals."""

from __future__ import annotations

from typing import Callable, Iterable, List, Optional

from ..errors import FilterParseError
from ..index.filters import MetadataFilter
from ..observer import PipelineObserver


def build_combined_filter(
    expressions: Iterable[str],
    parse: Callable[[str], MetadataFilter],
    observer: PipelineObserver,
) -> Optional[MetadataFilter]:
    """AND of every expression that parses; a bad expression is reported and skipped."""
    parsed: List[MetadataFilter] = []
    for expression in expressions:
        if expression is None or not expression.strip():
            continue
        try:
            parsed.append(parse(expression))
        except FilterParseError as exc:
            observer.filter_rejected(expression, exc)
    return MetadataFilter.all_of(parsed)
