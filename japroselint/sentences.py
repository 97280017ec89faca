"""文分割。

句点類（。！？!?）の連続を1つの境界として扱い、空行（段落区切り）と
Markdown の構造上の切れ目（見出し、表、コードブロック、強調だけの行、コロンで終わる行、
リスト項目の先頭）でも文を区切る。
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from .markdown_filter import ExcludedRange
from .tokens import Token

TERMINATORS = frozenset("。！？!?")
_TRAILING_PUNCT_RE = re.compile(r"[。！？!?\s]+$")
_DESU_MASU_RE = re.compile(r"(です|ます)$")
_DEARU_RE = re.compile(r"である$")
# 常体: である、ている、てある、〜た（ました以外）、〜だ（んだ以外）
_JOUTAI_RE = re.compile(r"(である|ている|てある|[^し]た|[^ん]だ)$")
_EMPHASIS_LINE_RE = re.compile(r"^\s*\*\*[^*]+\*\*\s*$")


@dataclass(frozen=True)
class Sentence:
    text: str
    start: int
    end: int
    tokens: List[Token] = field(default_factory=list)
    comma_count: int = 0

    @property
    def body(self) -> str:
        """文末の句点類を除いた本文。"""
        return _TRAILING_PUNCT_RE.sub("", self.text)

    @property
    def ends_with_desu_masu(self) -> bool:
        return bool(_DESU_MASU_RE.search(self.body))

    @property
    def ends_with_dearu(self) -> bool:
        return bool(_DEARU_RE.search(self.body))

    @property
    def style(self) -> str:
        """文末の文体: keigo（です・ます）/ joutai（だ・である）/ neutral。"""
        body = self.body
        if _DESU_MASU_RE.search(body):
            return "keigo"
        if _JOUTAI_RE.search(body):
            return "joutai"
        return "neutral"


def _line_end(text: str, offset: int) -> int:
    nl = text.find("\n", offset)
    return len(text) if nl < 0 else nl


def _line_start(text: str, offset: int) -> int:
    return text.rfind("\n", 0, offset) + 1


def structural_breaks(text: str, excluded_ranges: Sequence[ExcludedRange]) -> Set[int]:
    """文が跨いではならないオフセットの集合。"""
    breaks: Set[int] = set()
    for r in excluded_ranges:
        if r.type in ("table", "code-block"):
            breaks.add(r.start)
            breaks.add(r.end)
        elif r.type == "heading":
            breaks.add(_line_start(text, r.start))
            breaks.add(_line_end(text, r.start))
        elif r.type == "list-marker":
            breaks.add(_line_start(text, r.start))

    offset = 0
    for line in text.split("\n"):
        end = offset + len(line)
        if _EMPHASIS_LINE_RE.match(line):
            breaks.add(offset)
            breaks.add(end)
        stripped = line.rstrip()
        if stripped.endswith((":", "：")):
            breaks.add(end)
        offset = end + 1
    return breaks


def _is_blank_line_break(text: str, i: int) -> bool:
    """text[i] が改行で、その次の行が空白のみなら段落区切り。"""
    if text[i] != "\n":
        return False
    j = i + 1
    while j < len(text) and text[j] in " \t\r　":
        j += 1
    return j < len(text) and text[j] == "\n"


def _split_spans(text: str, breaks: Set[int]) -> List[Tuple[int, int]]:
    spans: List[Tuple[int, int]] = []
    start = 0
    i = 0
    n = len(text)
    while i < n:
        if i in breaks and i > start:
            spans.append((start, i))
            start = i
        ch = text[i]
        if ch in TERMINATORS:
            j = i + 1
            while j < n and text[j] in TERMINATORS:
                j += 1
            spans.append((start, j))
            start = j
            i = j
            continue
        if _is_blank_line_break(text, i):
            spans.append((start, i))
            start = i + 1
        i += 1
    if start < n:
        spans.append((start, n))
    return spans


def _trim(text: str, start: int, end: int) -> Optional[Tuple[int, int]]:
    while start < end and text[start].isspace():
        start += 1
    while end > start and text[end - 1].isspace():
        end -= 1
    if start >= end:
        return None
    return start, end


def segment(filtered_text: str, tokens: Iterable[Token],
            excluded_ranges: Optional[Sequence[ExcludedRange]] = None) -> List[Sentence]:
    """フィルタ後テキストを文に分割し、文内に完全に収まるトークンを割り当てる。"""
    token_list = list(tokens)
    breaks = structural_breaks(filtered_text, excluded_ranges) if excluded_ranges is not None else set()
    sentences: List[Sentence] = []
    for s, e in _split_spans(filtered_text, breaks):
        trimmed = _trim(filtered_text, s, e)
        if trimmed is None:
            continue
        s, e = trimmed
        body = filtered_text[s:e]
        inside = [t for t in token_list if t.start >= s and t.end <= e]
        sentences.append(Sentence(text=body, start=s, end=e, tokens=inside,
                                  comma_count=body.count("、")))
    return sentences


__all__ = ["Sentence", "TERMINATORS", "structural_breaks", "segment"]
