"""ソースコードからのコメント抽出。

対応:
- C系 (C/C++/Java/JS/TS/Go など): // 行コメント, /* ... */ ブロックコメント
- Python: '#' 行コメント, 三重引用符の文字列（docstring）
- Rust: //, ///, //!, /* */。r"..." / r#"..."# の生文字列は読み飛ばす
- シェル/Ruby/YAML/TOML など: '#' 行コメント

文字列リテラルの中の '//' や '#' はコメントとみなさない。
build_prose_view はコメント本文だけを連結した「散文ビュー」と、取り除いた範囲を返す。
散文ビュー上の位置は PositionMapper で元ファイルの位置に戻せる。
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .markdown_filter import ExcludedRange


@dataclass(frozen=True)
class Comment:
    start: int
    end: int
    text: str
    kind: str  # "line" | "block"
    spans: Tuple[Tuple[int, int], ...] = ()  # 記号を除いた本文の範囲（元テキスト上）

    def body(self, source: str) -> str:
        return "\n".join(source[s:e] for s, e in self.spans)


@dataclass(frozen=True)
class _Syntax:
    line_markers: Tuple[str, ...] = ()
    block: Optional[Tuple[str, str]] = None
    quotes: str = "\"'"
    docstrings: bool = False
    raw_strings: bool = False


_C_STYLE = _Syntax(line_markers=("//",), block=("/*", "*/"), quotes="\"'`")
_PYTHON = _Syntax(line_markers=("#",), docstrings=True)
_RUST = _Syntax(line_markers=("//",), block=("/*", "*/"), quotes="\"", raw_strings=True)
_HASH = _Syntax(line_markers=("#",))

LANGUAGE_SYNTAX: Dict[str, _Syntax] = {
    **{lang: _C_STYLE for lang in (
        "c", "cpp", "csharp", "java", "javascript", "typescript", "javascriptreact",
        "typescriptreact", "go", "kotlin", "swift", "scala", "dart",
    )},
    "python": _PYTHON,
    "rust": _RUST,
    **{lang: _HASH for lang in (
        "shellscript", "ruby", "yaml", "toml", "perl", "r", "dockerfile", "makefile",
        "powershell", "elixir",
    )},
}

_BLOCK_CONTINUATION_RE = re.compile(r"[ \t]*(?:\*(?!/)[ \t]?)?")
_INDENT_RE = re.compile(r"[ \t]*")


def is_code_language(language_id: str) -> bool:
    return language_id in LANGUAGE_SYNTAX


def _line_body(text: str, start: int, end: int, marker: str) -> Tuple[int, int]:
    i = start + len(marker)
    # "///", "//!", "##" などの追加記号
    while i < end and (text[i] == marker[-1] or text[i] == "!"):
        i += 1
    if i < end and text[i] == " ":
        i += 1
    while end > i and text[end - 1] == "\r":
        end -= 1
    return i, end


def _block_body(text: str, start: int, end: int, open_len: int, close_len: int,
                star_prefix: bool) -> Tuple[Tuple[int, int], ...]:
    body_start = start + open_len
    body_end = max(body_start, end - close_len)
    # "/**" "/*!" の追加記号
    while star_prefix and body_start < body_end and text[body_start] in "*!":
        body_start += 1
    spans = []
    line_start = body_start
    first = True
    while line_start <= body_end:
        nl = text.find("\n", line_start, body_end)
        line_end = body_end if nl < 0 else nl
        s = line_start
        if not first:
            rx = _BLOCK_CONTINUATION_RE if star_prefix else _INDENT_RE
            s = rx.match(text, s, line_end).end()
        else:
            s = _INDENT_RE.match(text, s, line_end).end()
        e = line_end
        while e > s and text[e - 1] in " \t\r":
            e -= 1
        if s < e:
            spans.append((s, e))
        if nl < 0:
            break
        line_start = nl + 1
        first = False
    return tuple(spans)


def _skip_string(text: str, i: int, quote: str) -> int:
    j = i + 1
    n = len(text)
    while j < n:
        ch = text[j]
        if ch == "\\":
            j += 2
            continue
        if ch == quote:
            return j + 1
        # 閉じていない通常の文字列は行末で打ち切る
        if ch == "\n" and quote != "`":
            return j
        j += 1
    return n


def _skip_raw_string(text: str, i: int) -> Optional[int]:
    if i > 0 and (text[i - 1].isalnum() or text[i - 1] == "_"):
        return None
    j = i + 1
    hashes = 0
    while j < len(text) and text[j] == "#":
        hashes += 1
        j += 1
    if j >= len(text) or text[j] != '"':
        return None
    close = '"' + "#" * hashes
    end = text.find(close, j + 1)
    return len(text) if end < 0 else end + len(close)


def extract_comments(text: str, language_id: str) -> List[Comment]:
    """コメントを出現順に返す。未対応の言語では空リスト。"""
    syntax = LANGUAGE_SYNTAX.get(language_id)
    if syntax is None or not text:
        return []
    comments: List[Comment] = []
    n = len(text)
    i = 0
    while i < n:
        ch = text[i]
        if syntax.docstrings and text.startswith(('"""', "'''"), i):
            delim = text[i:i + 3]
            close = text.find(delim, i + 3)
            end = n if close < 0 else close + 3
            close_len = 3 if close >= 0 else 0
            comments.append(Comment(i, end, text[i:end], "block",
                                    _block_body(text, i, end, 3, close_len, False)))
            i = end
            continue
        if syntax.raw_strings and ch == "r":
            skipped = _skip_raw_string(text, i)
            if skipped is not None:
                i = skipped
                continue
        if ch in syntax.quotes:
            i = _skip_string(text, i, ch)
            continue
        marker = next((m for m in syntax.line_markers if text.startswith(m, i)), None)
        if marker is not None:
            nl = text.find("\n", i)
            end = n if nl < 0 else nl
            comments.append(Comment(i, end, text[i:end], "line",
                                    (_line_body(text, i, end, marker),)))
            i = end
            continue
        if syntax.block is not None and text.startswith(syntax.block[0], i):
            opener, closer = syntax.block
            close = text.find(closer, i + len(opener))
            end = n if close < 0 else close + len(closer)
            close_len = len(closer) if close >= 0 else 0
            comments.append(Comment(i, end, text[i:end], "block",
                                    _block_body(text, i, end, len(opener), close_len, True)))
            i = end
            continue
        i += 1
    return comments


@dataclass
class ProseView:
    """コメント本文だけを連結したテキストと、取り除いた範囲。"""
    text: str
    excluded_ranges: List[ExcludedRange] = field(default_factory=list)
    comments: List[Comment] = field(default_factory=list)


def _excluded_runs(source: str, keep: List[bool], comment_at: List[bool]) -> List[ExcludedRange]:
    ranges: List[ExcludedRange] = []
    i = 0
    n = len(source)
    while i < n:
        if keep[i] or source[i] == "\n":
            i += 1
            continue
        j = i
        kind = "comment-marker" if comment_at[i] else "code"
        while j < n and not keep[j] and source[j] != "\n" and comment_at[j] == comment_at[i]:
            j += 1
        ranges.append(ExcludedRange(i, j, kind, source[i:j], "コメント以外"))
        i = j
    return ranges


def build_prose_view(text: str, language_id: str) -> ProseView:
    """コメント本文以外（コード・コメント記号）を取り除いた散文ビューを作る。

    改行は常に残すので、散文ビューの行構造は元ファイルと一致する。
    コード言語でなければテキスト全体をそのまま返す。
    """
    if not is_code_language(language_id):
        return ProseView(text=text)
    comments = extract_comments(text, language_id)
    keep = [False] * len(text)
    in_comment = [False] * len(text)
    for c in comments:
        for k in range(c.start, c.end):
            in_comment[k] = True
        for s, e in c.spans:
            for k in range(s, e):
                keep[k] = True
    ranges = _excluded_runs(text, keep, in_comment)
    prose = "".join(ch for ch, k in zip(text, keep) if k or ch == "\n")
    return ProseView(text=prose, excluded_ranges=ranges, comments=comments)


__all__ = [
    "Comment",
    "ProseView",
    "LANGUAGE_SYNTAX",
    "is_code_language",
    "extract_comments",
    "build_prose_view",
]
