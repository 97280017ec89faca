"""文書単位の解析可否判定。

Untitled バッファや拡張子のないファイルも、日本語を含んでいれば解析対象にする。
"""
from __future__ import annotations

import re

from .config import AdvancedRulesConfig, DEFAULT_RULES_CONFIG

JAPANESE_RE = re.compile(r"[぀-ゟ゠-ヿ一-龯]")
UNTITLED_LANGUAGE_IDS = ("plaintext", "untitled", "")
ALWAYS_ANALYZED_LANGUAGE_IDS = ("markdown", "plaintext", "untitled", "")
# 先頭のこの文字数だけで日本語の有無を判定する
DETECTION_LIMIT = 1000


def is_untitled(uri: str, language_id: str) -> bool:
    return language_id in UNTITLED_LANGUAGE_IDS or uri.startswith("untitled:")


def contains_japanese(text: str) -> bool:
    return JAPANESE_RE.search(text[:DETECTION_LIMIT]) is not None


def should_analyze(uri: str, language_id: str, text: str,
                   config: AdvancedRulesConfig = DEFAULT_RULES_CONFIG) -> bool:
    if language_id in config.excluded_language_ids:
        return False
    if not config.enable_untitled_files and is_untitled(uri, language_id):
        return False
    if language_id in ALWAYS_ANALYZED_LANGUAGE_IDS or uri.startswith("untitled:"):
        return True
    if config.enable_content_based_detection:
        return contains_japanese(text)
    return False


__all__ = [
    "JAPANESE_RE",
    "DETECTION_LIMIT",
    "is_untitled",
    "contains_japanese",
    "should_analyze",
]
