"""YAML / JSON の外部ルールファイル。

フォーマット例 (YAML):

    excludePatterns:
      - "TODO\\(.*?\\)"
    notation:
      Github: GitHub
    settings:
      commaCountThreshold: 3
    rules:
      - id: no-kudasai
        pattern: "して下さい"
        message: "「してください」と書きます"
        suggestion: "してください"
        severity: warning

トップレベルが配列の場合は rules の配列とみなす。JSON も同じ構造。
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Pattern

import yaml

from .config import (
    AdvancedRulesConfig,
    ConfigError,
    Settings,
    rules_config_from_mapping,
    with_exclude_patterns,
    with_notation_rules,
)
from .diagnostics import SOURCE_ADVANCED, normalize_severity
from .file_scanner import decode_bytes
from .rule_base import Rule


class PatternRule(Rule):
    """正規表現1つで検出するユーザー定義ルール。"""

    source = SOURCE_ADVANCED

    def __init__(self, name: str, pattern: Pattern[str], message: str,
                 suggestion: Optional[str] = None, severity: Any = "warning"):
        self.name = name
        self.pattern = pattern
        self.message = message
        self.suggestion = suggestion
        self.severity = normalize_severity(severity)
        self.description = message

    def is_enabled(self, config: AdvancedRulesConfig) -> bool:
        return True

    def check(self, tokens, context):
        suggestions = [self.suggestion] if self.suggestion else []
        return [
            self.at_offsets(m.start(), m.end(), self.message or f"「{m.group(0)}」が検出されました",
                            suggestions=suggestions)
            for m in self.pattern.finditer(context.document_text)
            if m.end() > m.start()
        ]


@dataclass
class RuleFile:
    path: str
    rules: List[PatternRule] = field(default_factory=list)
    exclude_patterns: List[str] = field(default_factory=list)
    notation: Dict[str, str] = field(default_factory=dict)
    settings: Dict[str, Any] = field(default_factory=dict)

    def apply(self, settings: Settings) -> Settings:
        """ルールファイルの内容を設定に重ねた新しい Settings を返す。"""
        rules = rules_config_from_mapping(self.settings, settings.rules) if self.settings else settings.rules
        if self.notation:
            rules = with_notation_rules(rules, self.notation)
        flt = settings.filter
        if self.exclude_patterns:
            flt = with_exclude_patterns(flt, self.exclude_patterns)
        return Settings(rules=rules, filter=flt, cli=dict(settings.cli))


def _decode(raw: bytes) -> str:
    # PowerShell Set-Content の UTF-16 (BOM 付き) と Shift_JIS も読む
    text = decode_bytes(raw)
    if text is None:
        raise UnicodeDecodeError("unknown", raw, 0, len(raw), "Unable to decode rule file with tried encodings")
    return text


def _pattern_rules(items: Any, path: str) -> List[PatternRule]:
    if not isinstance(items, list):
        raise ValueError(f"rules は配列である必要があります: {path}")
    out: List[PatternRule] = []
    for n, item in enumerate(items, 1):
        if not isinstance(item, dict):
            continue
        pat = item.get("pattern")
        if not isinstance(pat, str) or not pat:
            raise ValueError(f"{path}: {n}番目のルールに pattern がありません")
        try:
            r = re.compile(pat)
        except re.error as e:
            raise ValueError(f"Invalid regex: {pat}: {e}") from e
        out.append(PatternRule(
            name=str(item.get("id") or f"custom-{n}"),
            pattern=r,
            message=str(item.get("message") or ""),
            suggestion=item.get("suggestion"),
            severity=item.get("severity", "warning"),
        ))
    return out


def parse_rule_data(data: Any, path: str = "<memory>") -> RuleFile:
    if isinstance(data, list):
        return RuleFile(path=path, rules=_pattern_rules(data, path))
    if not isinstance(data, Mapping):
        raise ValueError("ルールファイルは配列または連想配列である必要があります")
    result = RuleFile(path=path)
    if "rules" in data:
        result.rules = _pattern_rules(data["rules"], path)
    excludes = data.get("excludePatterns", data.get("exclude_patterns", []))
    if not isinstance(excludes, list):
        raise ValueError(f"excludePatterns は配列である必要があります: {path}")
    for pat in excludes:
        try:
            re.compile(str(pat))
        except re.error as e:
            raise ValueError(f"Invalid regex: {pat}: {e}") from e
    result.exclude_patterns = [str(p) for p in excludes]
    notation = data.get("notation", {})
    if not isinstance(notation, Mapping):
        raise ValueError(f"notation は連想配列である必要があります: {path}")
    result.notation = {str(k): str(v) for k, v in notation.items()}
    settings = data.get("settings", {})
    if not isinstance(settings, Mapping):
        raise ValueError(f"settings は連想配列である必要があります: {path}")
    result.settings = dict(settings)
    # 値の検証だけ先に行う
    try:
        rules_config_from_mapping(result.settings)
    except ConfigError as e:
        raise ValueError(f"{path}: {e}") from e
    return result


def load_rule_file(path: str) -> RuleFile:
    p = Path(path)
    if not p.is_file():
        raise FileNotFoundError(path)
    text = _decode(p.read_bytes())
    if p.suffix.lower() in {".yaml", ".yml"}:
        data = yaml.safe_load(text)
    else:
        data = json.loads(text)
    if data is None:
        data = {}
    return parse_rule_data(data, str(p))


__all__ = ["PatternRule", "RuleFile", "parse_rule_data", "load_rule_file"]
