"""診断位置の正規化と、フィルタ後テキスト⇔元テキストの位置対応。

ルールの位置表現には2通りある:
- 行/桁の組 (grammar_rules など)
- 行0の character に生の文字オフセットを入れたもの (advanced_rules)

fix_diagnostic_range がこれを行/桁に揃え、PositionMapper が除外済み文字を
飛ばした座標から元文書の座標へ戻す。どちらも呼び出しごとに LineIndex を作り、
モジュール状態は持たない。
"""
from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from .diagnostics import Position, Range
from .markdown_filter import ExcludedRange


class LineIndex:
    """テキストの行頭オフセット表。"""

    def __init__(self, text: str):
        self.text = text
        starts = [0]
        for i, ch in enumerate(text):
            if ch == "\n":
                starts.append(i + 1)
        self.line_starts: List[int] = starts

    @property
    def first_line_length(self) -> int:
        nl = self.text.find("\n")
        return len(self.text) if nl < 0 else nl

    def line_length(self, line: int) -> int:
        """改行を含まない行の長さ。"""
        if line < 0 or line >= len(self.line_starts):
            return 0
        if line + 1 < len(self.line_starts):
            return self.line_starts[line + 1] - 1 - self.line_starts[line]
        return len(self.text) - self.line_starts[line]

    def position_at(self, offset: int) -> Position:
        """オフセットを行/桁に変換する（先頭からの前進走査）。"""
        offset = max(0, min(offset, len(self.text)))
        line = 0
        for i in range(1, len(self.line_starts)):
            if self.line_starts[i] > offset:
                break
            line = i
        return Position(line, offset - self.line_starts[line])

    def offset_at(self, position: Position) -> int:
        if position.line < 0:
            return 0
        if position.line >= len(self.line_starts):
            return len(self.text)
        return min(self.line_starts[position.line] + position.character, len(self.text))


def fix_diagnostic_range(raw: Range, line_index: LineIndex) -> Range:
    """行0に置かれた生オフセットを検出して行/桁に直す。

    両端とも行0で、どちらかの character が1行目の長さを超える場合のみ変換する。
    1行目の長さと等しい値は行0の行末として扱い、変換しない。
    """
    if raw.start.line != 0 or raw.end.line != 0:
        return raw
    first_len = line_index.first_line_length
    if raw.start.character > first_len or raw.end.character > first_len:
        return Range(
            line_index.position_at(raw.start.character),
            line_index.position_at(raw.end.character),
        )
    return raw


def _merge(ranges: Sequence[ExcludedRange]) -> List[Tuple[int, int]]:
    spans = sorted((r.start, r.end) for r in ranges if r.start < r.end)
    merged: List[Tuple[int, int]] = []
    for s, e in spans:
        if merged and s <= merged[-1][1]:
            if e > merged[-1][1]:
                merged[-1] = (merged[-1][0], e)
        else:
            merged.append((s, e))
    return merged


class PositionMapper:
    """除外範囲を取り除いた座標（フィルタ座標）と元テキスト座標の対応。

    フィルタ座標の n 番目の文字は、元テキストで除外範囲に含まれない n 番目の文字に当たる。
    重なり合う除外範囲（table とその区切り文字など）は1つにまとめて数える。
    """

    def __init__(self, original_text: str, filtered_text: str,
                 excluded_ranges: Sequence[ExcludedRange]):
        self.original_text = original_text
        self.filtered_text = filtered_text
        self._spans = _merge(excluded_ranges)
        self._index = LineIndex(original_text)

    def _original_offset(self, filtered_offset: int) -> Optional[int]:
        if filtered_offset < 0 or filtered_offset >= len(self.filtered_text):
            return None
        remaining = filtered_offset
        pos = 0
        for s, e in self._spans:
            gap = s - pos
            if remaining < gap:
                break
            remaining -= gap
            pos = e
        orig = pos + remaining
        if orig >= len(self.original_text):
            return None
        return orig

    def map_to_original(self, filtered_offset: int) -> Optional[Position]:
        orig = self._original_offset(filtered_offset)
        if orig is None:
            return None
        return self._index.position_at(orig)

    def map_range_to_original(self, start: int, end: int) -> Optional[Range]:
        s = self.map_to_original(start)
        e = self.map_to_original(end)
        if s is None or e is None:
            return None
        return Range(s, e)

    def map_to_filtered(self, original_offset: int) -> Optional[int]:
        if original_offset < 0 or original_offset >= len(self.original_text):
            return None
        excluded_before = 0
        for s, e in self._spans:
            if s > original_offset:
                break
            if original_offset < e:
                return None
            excluded_before += e - s
        return original_offset - excluded_before


__all__ = ["LineIndex", "fix_diagnostic_range", "PositionMapper"]
