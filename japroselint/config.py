"""ルール設定と設定ファイル(TOML)の読み込み。

pyproject.toml 等の [tool.japroselint] セクションを読む。キーは camelCase
(`nounChainThreshold`) でも snake_case (`noun_chain_threshold`) でもよい。

    [tool.japroselint]
    commaCountThreshold = 3
    weakExpressionLevel = "strict"

    [tool.japroselint.filter]
    excludeTables = false
    customExcludePatterns = ["TODO\\(.*?\\)"]

    [tool.japroselint.notation]
    Github = "GitHub"
"""
from __future__ import annotations

import dataclasses
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Tuple

try:
    import tomllib  # Python 3.11+
except Exception:  # pragma: no cover
    tomllib = None  # type: ignore

from .markdown_filter import FilterConfig

WEAK_EXPRESSION_LEVELS = ("strict", "normal", "loose")


class ConfigError(ValueError):
    """設定値・設定ファイルの誤り。"""


@dataclass(frozen=True)
class AdvancedRulesConfig:
    # 基本ルール（隣接トークン）
    enable_double_particle: bool = True
    enable_particle_sequence: bool = True
    enable_verb_particle_mismatch: bool = True
    enable_redundant_copula: bool = True
    # 文・テキストパターンのルール
    enable_style_consistency: bool = True
    enable_ra_nuki_detection: bool = True
    enable_double_negation: bool = True
    enable_particle_repetition: bool = False
    enable_conjunction_repetition: bool = True
    enable_adversative_ga: bool = True
    enable_alphabet_width: bool = True
    enable_weak_expression: bool = True
    enable_comma_count: bool = True
    enable_term_notation: bool = True
    enable_kanji_opening: bool = True
    enable_redundant_expression: bool = True
    enable_tautology: bool = True
    enable_no_particle_chain: bool = True
    enable_monotonous_ending: bool = True
    enable_long_sentence: bool = True
    enable_sahen_verb: bool = True
    enable_missing_subject: bool = True
    enable_twisted_sentence: bool = True
    enable_homophone: bool = True
    enable_honorific_error: bool = True
    enable_adverb_agreement: bool = True
    enable_modifier_position: bool = True
    enable_ambiguous_demonstrative: bool = True
    enable_passive_overuse: bool = True
    enable_noun_chain: bool = True
    enable_conjunction_misuse: bool = True
    enable_halfwidth_kana: bool = True
    # 用語辞書
    enable_web_tech_dictionary: bool = True
    enable_generative_ai_dictionary: bool = True
    enable_aws_dictionary: bool = True
    enable_azure_dictionary: bool = True
    enable_oci_dictionary: bool = True
    # 文書フィルタ
    enable_untitled_files: bool = True
    enable_content_based_detection: bool = True
    excluded_language_ids: Tuple[str, ...] = ()
    # しきい値など
    comma_count_threshold: int = 4
    weak_expression_level: str = "normal"
    custom_notation_rules: Dict[str, str] = field(default_factory=dict)
    no_particle_chain_threshold: int = 3
    monotonous_ending_threshold: int = 3
    long_sentence_threshold: int = 120
    noun_chain_threshold: int = 5
    passive_overuse_threshold: int = 3


DEFAULT_RULES_CONFIG = AdvancedRulesConfig()

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def to_snake(key: str) -> str:
    """`enableAWSDictionary` → `enable_aws_dictionary`"""
    return _CAMEL_BOUNDARY.sub("_", key).replace("-", "_").lower()


def _coerce(name: str, current: Any, value: Any) -> Any:
    if isinstance(current, bool):
        if not isinstance(value, bool):
            raise ConfigError(f"{name} は真偽値で指定してください: {value!r}")
        return value
    if isinstance(current, int):
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(f"{name} は整数で指定してください: {value!r}")
        if value < 1:
            raise ConfigError(f"{name} は1以上で指定してください: {value!r}")
        return value
    if isinstance(current, tuple):
        if isinstance(value, str) or not isinstance(value, (list, tuple)):
            raise ConfigError(f"{name} は配列で指定してください: {value!r}")
        return tuple(value)
    if isinstance(current, dict):
        if not isinstance(value, Mapping):
            raise ConfigError(f"{name} はテーブル(連想配列)で指定してください: {value!r}")
        return {str(k): str(v) for k, v in value.items()}
    return value


def _apply(instance: Any, options: Mapping[str, Any]):
    fields = {f.name: f for f in dataclasses.fields(instance)}
    changes: Dict[str, Any] = {}
    for key, value in options.items():
        name = to_snake(str(key))
        if name not in fields:
            continue
        changes[name] = _coerce(name, getattr(instance, name), value)
    return dataclasses.replace(instance, **changes) if changes else instance


def rules_config_from_mapping(options: Mapping[str, Any],
                              base: AdvancedRulesConfig = DEFAULT_RULES_CONFIG) -> AdvancedRulesConfig:
    """設定辞書から AdvancedRulesConfig を作る。未知のキーは無視する。"""
    cfg = _apply(base, options)
    if cfg.weak_expression_level not in WEAK_EXPRESSION_LEVELS:
        raise ConfigError(
            f"weakExpressionLevel は {'/'.join(WEAK_EXPRESSION_LEVELS)} のいずれかです: "
            f"{cfg.weak_expression_level!r}"
        )
    return cfg


def filter_config_from_mapping(options: Mapping[str, Any],
                               base: FilterConfig = FilterConfig()) -> FilterConfig:
    return _apply(base, options)


def with_notation_rules(cfg: AdvancedRulesConfig, rules: Mapping[str, str]) -> AdvancedRulesConfig:
    merged = dict(cfg.custom_notation_rules)
    merged.update(rules)
    return dataclasses.replace(cfg, custom_notation_rules=merged)


def with_exclude_patterns(cfg: FilterConfig, patterns) -> FilterConfig:
    return dataclasses.replace(
        cfg, custom_exclude_patterns=tuple(cfg.custom_exclude_patterns) + tuple(patterns)
    )


@dataclass
class Settings:
    """CLI / API で使う設定一式。"""
    rules: AdvancedRulesConfig = DEFAULT_RULES_CONFIG
    filter: FilterConfig = FilterConfig()
    cli: Dict[str, Any] = field(default_factory=dict)


_CLI_KEYS = {"jobs", "min_severity", "morph", "cache", "json", "fail_on_issue"}


def settings_from_mapping(section: Mapping[str, Any]) -> Settings:
    settings = Settings()
    flat = {k: v for k, v in section.items() if not isinstance(v, Mapping)}
    settings.rules = rules_config_from_mapping(flat)
    if isinstance(section.get("notation"), Mapping):
        settings.rules = with_notation_rules(
            settings.rules, {str(k): str(v) for k, v in section["notation"].items()}
        )
    if isinstance(section.get("filter"), Mapping):
        settings.filter = filter_config_from_mapping(section["filter"])
    settings.cli = {to_snake(k): v for k, v in flat.items() if to_snake(k) in _CLI_KEYS}
    return settings


def load_settings(path: str) -> Settings:
    """TOML ファイルの [tool.japroselint] を読む。セクションが無ければ既定値。"""
    p = Path(path)
    if not p.is_file():
        raise ConfigError(f"設定ファイルが見つかりません: {path}")
    if tomllib is None:  # pragma: no cover
        raise ConfigError("TOML の読み込みには Python 3.11 以降が必要です")
    try:
        with p.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"TOML の解析に失敗しました: {path}: {e}") from e
    tool = data.get("tool", {}) if isinstance(data, dict) else {}
    section = tool.get("japroselint", {}) if isinstance(tool, dict) else {}
    return settings_from_mapping(section)


__all__ = [
    "ConfigError",
    "AdvancedRulesConfig",
    "DEFAULT_RULES_CONFIG",
    "WEAK_EXPRESSION_LEVELS",
    "Settings",
    "to_snake",
    "rules_config_from_mapping",
    "filter_config_from_mapping",
    "with_notation_rules",
    "with_exclude_patterns",
    "settings_from_mapping",
    "load_settings",
]
