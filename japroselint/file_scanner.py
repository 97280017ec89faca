"""任意拡張子ファイルの走査ユーティリティ。

- 拡張子フィルタは行わず、バイナリらしいものは除外(ヒューリスティック)。
- 拡張子から言語IDを決める（コメント抽出と文書フィルタで使う）。
- VCS や依存パッケージのディレクトリは読み飛ばす。
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, Iterator

logger = logging.getLogger(__name__)

BINARY_BYTES = set(range(0, 9)) | {11, 12} | set(range(14, 32))
SKIP_DIRS = {".git", ".hg", ".svn", "__pycache__", "node_modules", ".venv", ".tox"}

LANGUAGE_BY_SUFFIX = {
    ".md": "markdown", ".markdown": "markdown", ".mdx": "markdown",
    ".txt": "plaintext", ".text": "plaintext",
    ".c": "c", ".h": "c", ".cc": "cpp", ".cpp": "cpp", ".cxx": "cpp", ".hpp": "cpp",
    ".cs": "csharp", ".java": "java", ".go": "go", ".kt": "kotlin", ".swift": "swift",
    ".scala": "scala", ".dart": "dart",
    ".js": "javascript", ".mjs": "javascript", ".cjs": "javascript", ".jsx": "javascriptreact",
    ".ts": "typescript", ".tsx": "typescriptreact",
    ".py": "python", ".pyi": "python",
    ".rs": "rust",
    ".sh": "shellscript", ".bash": "shellscript", ".zsh": "shellscript",
    ".rb": "ruby", ".yaml": "yaml", ".yml": "yaml", ".toml": "toml", ".pl": "perl",
    ".r": "r", ".ps1": "powershell", ".ex": "elixir", ".exs": "elixir",
}
LANGUAGE_BY_NAME = {"Dockerfile": "dockerfile", "Makefile": "makefile", "makefile": "makefile"}


def language_for_path(path: str | os.PathLike[str]) -> str:
    """ファイル名から言語IDを推定する。不明なら空文字（拡張子なし・未知の拡張子）。"""
    p = Path(path)
    if p.name in LANGUAGE_BY_NAME:
        return LANGUAGE_BY_NAME[p.name]
    return LANGUAGE_BY_SUFFIX.get(p.suffix.lower(), "")


def is_probably_text(data: bytes, threshold: float = 0.30) -> bool:
    if not data:
        return True
    non_text = sum(b in BINARY_BYTES for b in data)
    ratio = non_text / len(data)
    return ratio < threshold


TEXT_ENCODINGS = ("utf-8", "utf-8-sig", "utf-16", "utf-16-le", "utf-16-be", "cp932", "shift_jis")
UTF16_BOMS = (b"\xff\xfe", b"\xfe\xff")


def decode_bytes(raw: bytes, encoding_candidates=TEXT_ENCODINGS) -> str | None:
    """候補のエンコーディングを順に試す。UTF-16 系は BOM がある場合だけ試す。"""
    has_bom = raw.startswith(UTF16_BOMS)
    for enc in encoding_candidates:
        if enc.startswith("utf-16") and not has_bom:
            continue
        try:
            text = raw.decode(enc)
        except UnicodeDecodeError:
            continue
        return text.lstrip("﻿")
    return None


def read_text(path: Path, encoding_candidates=TEXT_ENCODINGS) -> str | None:
    try:
        raw = path.read_bytes()
    except OSError as e:
        logger.debug("cannot read %s: %s", path, e)
        return None
    if not is_probably_text(raw):
        return None
    return decode_bytes(raw, encoding_candidates)


def iter_files(paths: Iterable[str | os.PathLike[str]]) -> Iterator[Path]:
    for p in paths:
        path = Path(p)
        if path.is_file():
            yield path
        elif path.is_dir():
            for root, dirs, files in os.walk(path):
                dirs[:] = sorted(d for d in dirs if d not in SKIP_DIRS)
                for f in sorted(files):
                    yield Path(root) / f
        else:
            logger.warning("no such file or directory: %s", path)


__all__ = ["iter_files", "read_text", "decode_bytes", "is_probably_text", "language_for_path", "LANGUAGE_BY_SUFFIX"]
