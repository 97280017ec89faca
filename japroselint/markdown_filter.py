"""Markdown / 技術文書向けの除外範囲検出とマスキング。

コードブロック、インラインコード、URL、設定キー、テーブル、見出し・リストの記号など、
文章チェックの対象にすべきでない範囲を検出し、同じ長さの「フィルタ後テキスト」を作る。

- 検出は優先度順に行い、先に確定した範囲と重なる候補は捨てる
- マスキングは改行以外の文字を半角スペースに置き換えるため、文字オフセットは変わらない
- 内部で例外が起きても元テキストをそのまま返し、呼び出し側へは送出しない
"""
from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Pattern, Sequence, Tuple, Union

logger = logging.getLogger(__name__)

RANGE_TYPES = (
    "code-block",
    "inline-code",
    "table",
    "table-delimiter",
    "table-separator",
    "url",
    "config-key",
    "heading",
    "list-marker",
    "custom",
)

_CODE_BLOCK_RE = re.compile(r"```[\s\S]*?```")
_INLINE_CODE_RE = re.compile(r"`[^`\n]+`")
_PLAIN_URL_RE = re.compile(r"https?://[^\s<>\[\]()]+")
_MD_LINK_RE = re.compile(r"\[([^\]]*)\]\(([^)]+)\)")
_AUTO_LINK_RE = re.compile(r"<(https?://[^>]+)>")
# JS の \b と同じく ASCII の単語境界で区切る（日本語に隣接していても検出する）
_CONFIG_KEY_RE = re.compile(
    r"(?<![A-Za-z0-9_])(?:japroselint|config|settings)\.[a-zA-Z0-9_.]+"
)
_TABLE_ROW_RE = re.compile(r"^\|.*\|$")
_TABLE_SEPARATOR_RE = re.compile(r"^\|[-:|]+\|$")
_HEADING_RE = re.compile(r"^(#{1,6}\s)")
_BULLET_RE = re.compile(r"^(\s*[-*+]\s)")
_ORDINAL_RE = re.compile(r"^(\s*\d+\.\s)")


@dataclass(frozen=True)
class ExcludedRange:
    start: int
    end: int
    type: str
    content: str = ""
    reason: str = ""

    @property
    def length(self) -> int:
        return self.end - self.start

    def overlaps(self, start: int, end: int) -> bool:
        return start < self.end and end > self.start


@dataclass(frozen=True)
class FilterConfig:
    exclude_code_blocks: bool = True
    exclude_inline_code: bool = True
    exclude_tables: bool = True
    exclude_urls: bool = True
    exclude_config_keys: bool = True
    exclude_headings: bool = True
    exclude_list_markers: bool = True
    custom_exclude_patterns: Tuple[Union[str, Pattern[str]], ...] = ()
    debug_mode: bool = False


DEFAULT_FILTER_CONFIG = FilterConfig()


@dataclass
class DebugInfo:
    processing_time_ms: float = 0.0
    total_excluded_characters: int = 0
    excluded_by_type: Dict[str, int] = field(default_factory=dict)
    logs: List[str] = field(default_factory=list)


@dataclass
class FilterResult:
    filtered_text: str
    excluded_ranges: List[ExcludedRange]
    original_text: str
    debug_info: Optional[DebugInfo] = None


def is_overlapping(start: int, end: int, ranges: Sequence[ExcludedRange]) -> bool:
    return any(r.overlaps(start, end) for r in ranges)


def _iter_lines(text: str):
    """(行頭オフセット, 行文字列) を返す。行文字列は改行を含まない。"""
    offset = 0
    for line in text.split("\n"):
        yield offset, line
        offset += len(line) + 1


class _Detector:
    """1回の検出パス分の状態。確定済み範囲を保持して重なりを判定する。"""

    def __init__(self, text: str, config: FilterConfig, trace: Optional[List[str]] = None):
        self.text = text
        self.config = config
        self.accepted: List[ExcludedRange] = []
        self.trace = trace

    def _log(self, msg: str) -> None:
        logger.debug(msg)
        if self.trace is not None:
            self.trace.append(msg)

    def _accept(self, start: int, end: int, type_: str, reason: str,
                against: Optional[Sequence[ExcludedRange]] = None) -> bool:
        if start >= end:
            return False
        pool = self.accepted if against is None else against
        if is_overlapping(start, end, pool):
            self._log(f"skip {type_} [{start},{end}): 既存の除外範囲と重複")
            return False
        self.accepted.append(ExcludedRange(start, end, type_, self.text[start:end], reason))
        self._log(f"{type_} [{start},{end}): {reason}")
        return True

    def _regex(self, pattern: Pattern[str], type_: str, reason: str) -> None:
        for m in pattern.finditer(self.text):
            self._accept(m.start(), m.end(), type_, reason)

    def code_blocks(self) -> None:
        self._regex(_CODE_BLOCK_RE, "code-block", "コードブロック検出")

    def inline_code(self) -> None:
        self._regex(_INLINE_CODE_RE, "inline-code", "インラインコード検出")

    def urls(self) -> None:
        self._regex(_PLAIN_URL_RE, "url", "URL検出")
        for m in _MD_LINK_RE.finditer(self.text):
            # [text](url) の url 部分のみ
            url_start = m.start() + len(m.group(1)) + 3
            self._accept(url_start, m.end() - 1, "url", "マークダウンリンクURL検出")
        for m in _AUTO_LINK_RE.finditer(self.text):
            self._accept(m.start(1), m.end(1), "url", "自動リンク検出")

    def config_keys(self) -> None:
        self._regex(_CONFIG_KEY_RE, "config-key", "設定キー名検出")

    def custom_patterns(self) -> None:
        for pat in self.config.custom_exclude_patterns:
            try:
                compiled = re.compile(pat) if isinstance(pat, str) else pat
            except re.error as e:
                logger.warning("無効なカスタム除外パターンをスキップしました: %r (%s)", pat, e)
                continue
            for m in compiled.finditer(self.text):
                self._accept(m.start(), m.end(), "custom",
                             f"カスタムパターン検出: {compiled.pattern}")

    def tables(self) -> None:
        code_blocks = [r for r in self.accepted if r.type == "code-block"]
        # 区切り文字・セパレーター行は表ブロック以外の確定範囲と重ならないものだけ採用する
        table_start = -1
        for line_start, line in _iter_lines(self.text):
            stripped = line.strip()
            is_row = bool(_TABLE_ROW_RE.match(stripped))
            is_separator = bool(_TABLE_SEPARATOR_RE.match(re.sub(r"\s", "", line)))
            if is_row or is_separator:
                if table_start < 0:
                    table_start = line_start
                if is_separator:
                    self._accept(line_start, line_start + len(line), "table-separator",
                                 "マークダウンテーブルセパレーター行検出")
                else:
                    for i, ch in enumerate(line):
                        if ch == "|":
                            self._accept(line_start + i, line_start + i + 1, "table-delimiter",
                                         "マークダウンテーブル区切り文字検出")
                continue
            if table_start >= 0:
                self._table_block(table_start, line_start, code_blocks)
                table_start = -1
        if table_start >= 0:
            self._table_block(table_start, len(self.text), code_blocks)

    def _table_block(self, start: int, end: int, code_blocks: List[ExcludedRange]) -> None:
        self._accept(start, end, "table", "マークダウンテーブル検出", against=code_blocks)

    def _line_prefix(self, patterns: Sequence[Pattern[str]], type_: str, reason: str) -> None:
        blocks = [r for r in self.accepted if r.type != "table"]
        for line_start, line in _iter_lines(self.text):
            for pattern in patterns:
                m = pattern.match(line)
                if m:
                    start = line_start + m.start(1)
                    end = line_start + m.end(1)
                    if not is_overlapping(start, end, blocks):
                        self._accept(start, end, type_, reason, against=blocks)
                    break

    def headings(self) -> None:
        self._line_prefix([_HEADING_RE], "heading", "マークダウン見出しマーカー検出")

    def list_markers(self) -> None:
        self._line_prefix([_BULLET_RE, _ORDINAL_RE], "list-marker", "リストマーカー検出")

    def run(self) -> List[ExcludedRange]:
        cfg = self.config
        steps = [
            (cfg.exclude_code_blocks, self.code_blocks),
            (cfg.exclude_inline_code, self.inline_code),
            (cfg.exclude_urls, self.urls),
            (cfg.exclude_config_keys, self.config_keys),
            (bool(cfg.custom_exclude_patterns), self.custom_patterns),
            (cfg.exclude_tables, self.tables),
            (cfg.exclude_headings, self.headings),
            (cfg.exclude_list_markers, self.list_markers),
        ]
        for enabled, step in steps:
            if enabled:
                step()
        return sorted(self.accepted, key=lambda r: (r.start, r.end))


def detect(text: str, config: Optional[FilterConfig] = None,
           trace: Optional[List[str]] = None) -> List[ExcludedRange]:
    """除外範囲を検出して開始位置順に返す。"""
    return _Detector(text, config or DEFAULT_FILTER_CONFIG, trace).run()


def mask(text: str, ranges: Sequence[ExcludedRange]) -> str:
    """table 以外の範囲の改行以外の文字を空白に置き換える（長さは不変）。"""
    chars = list(text)
    for r in ranges:
        if r.type == "table":
            continue
        for i in range(max(r.start, 0), min(r.end, len(chars))):
            if chars[i] != "\n":
                chars[i] = " "
    return "".join(chars)


def filter_text(text: str, config: Optional[FilterConfig] = None) -> FilterResult:
    """除外範囲を検出し、マスキング済みテキストを返す。失敗時は元テキストを返す。"""
    cfg = config or DEFAULT_FILTER_CONFIG
    started = time.perf_counter()
    trace: Optional[List[str]] = [] if cfg.debug_mode else None
    try:
        ranges = detect(text, cfg, trace)
        filtered = mask(text, ranges)
    except Exception as e:
        logger.warning("除外範囲の検出に失敗したため元のテキストを使用します: %s", e)
        return FilterResult(filtered_text=text, excluded_ranges=[], original_text=text)

    debug_info: Optional[DebugInfo] = None
    if cfg.debug_mode:
        by_type: Dict[str, int] = {}
        for r in ranges:
            by_type[r.type] = by_type.get(r.type, 0) + r.length
        debug_info = DebugInfo(
            processing_time_ms=(time.perf_counter() - started) * 1000.0,
            total_excluded_characters=sum(r.length for r in ranges if r.type != "table"),
            excluded_by_type=by_type,
            logs=trace or [],
        )
    return FilterResult(filtered_text=filtered, excluded_ranges=ranges,
                        original_text=text, debug_info=debug_info)


__all__ = [
    "RANGE_TYPES",
    "ExcludedRange",
    "FilterConfig",
    "DEFAULT_FILTER_CONFIG",
    "DebugInfo",
    "FilterResult",
    "is_overlapping",
    "detect",
    "mask",
    "filter_text",
]
