"""除外範囲と重なるトークンを取り除く。"""
from __future__ import annotations

from typing import Iterable, List, Sequence

from .markdown_filter import ExcludedRange
from .tokens import Token


def _valid(ranges: Iterable[ExcludedRange]) -> List[ExcludedRange]:
    # start >= end の不正な範囲は無視する
    return [r for r in ranges if r.start < r.end]


def is_excluded(token: Token, ranges: Sequence[ExcludedRange]) -> bool:
    return any(token.start < r.end and token.end > r.start for r in _valid(ranges))


def filter_tokens(tokens: Iterable[Token], excluded_ranges: Sequence[ExcludedRange]) -> List[Token]:
    ranges = _valid(excluded_ranges)
    if not ranges:
        return list(tokens)
    return [t for t in tokens if not any(t.start < r.end and t.end > r.start for r in ranges)]


__all__ = ["is_excluded", "filter_tokens"]
