"""ファイル単位の診断キャッシュ。

キーはファイルパス、値は {fingerprint, digest, issues}。fingerprint（mtime とサイズ）と
digest（設定のハッシュ）の両方が一致したときだけ保存済みの結果を再利用する。
"""
from __future__ import annotations

import dataclasses
import hashlib
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_CACHE = ".japroselint_cache.json"
CACHE_VERSION = 1


def load_cache(root: str, filename: str = DEFAULT_CACHE) -> Dict[str, Any]:
    p = Path(root) / filename
    if not p.is_file():
        return {}
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except Exception as e:
        logger.warning("キャッシュを読み込めないため破棄します: %s: %s", p, e)
        return {}
    if not isinstance(data, dict) or data.get("version") != CACHE_VERSION:
        return {}
    files = data.get("files")
    return files if isinstance(files, dict) else {}


def save_cache(root: str, data: Dict[str, Any], filename: str = DEFAULT_CACHE) -> None:
    p = Path(root) / filename
    payload = {"version": CACHE_VERSION, "files": data}
    p.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")


def file_fingerprint(path: Path) -> str:
    stat = path.stat()
    return f"{stat.st_mtime_ns}:{stat.st_size}"


def _plain(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: _plain(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, dict):
        return {str(k): _plain(v) for k, v in sorted(value.items(), key=lambda kv: str(kv[0]))}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    if hasattr(value, "pattern"):  # compiled regex
        return value.pattern
    return value


def config_digest(*parts: Any) -> str:
    """設定オブジェクト群から安定したハッシュ値を作る。"""
    blob = json.dumps([_plain(p) for p in parts], ensure_ascii=False, sort_keys=True, default=str)
    return hashlib.sha256(blob.encode("utf-8")).hexdigest()


def lookup(cache: Dict[str, Any], key: str, fingerprint: str, digest: str) -> Optional[List[Dict[str, Any]]]:
    entry = cache.get(key)
    if not isinstance(entry, dict):
        return None
    if entry.get("fingerprint") != fingerprint or entry.get("digest") != digest:
        return None
    issues = entry.get("issues")
    return issues if isinstance(issues, list) else None


def store(cache: Dict[str, Any], key: str, fingerprint: str, digest: str,
          issues: Iterable[Dict[str, Any]]) -> None:
    cache[key] = {"fingerprint": fingerprint, "digest": digest, "issues": list(issues)}


__all__ = [
    "load_cache",
    "save_cache",
    "file_fingerprint",
    "config_digest",
    "lookup",
    "store",
    "DEFAULT_CACHE",
]
