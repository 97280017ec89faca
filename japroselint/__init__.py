"""japroselint
Markdown・技術文書・ソースコードのコメントに書かれた日本語文章の校閲ライブラリ。

主な提供機能:
- コードブロック/URL/テーブルなど文章以外の範囲の除外（位置は保ったままマスキング）
- 形態素解析（fugashi / Janome）に基づく助詞・動詞の組み合わせチェック
- 文単位・テキストパターンの校閲ルール（文体の混在、ら抜き言葉、冗長表現、長文など）
- 診断位置の行/桁への正規化と、コメント抽出時の元ファイル位置への対応付け
- CLI インターフェース
"""
from .checker import Issue, check_document, check_file, check_paths, check_text, check_text_async
from .config import AdvancedRulesConfig, ConfigError, Settings, load_settings
from .diagnostics import Diagnostic, Position, Range, Severity
from .markdown_filter import ExcludedRange, FilterConfig, filter_text
from .rule_engine import RuleEngine

__all__ = [
    "check_text",
    "check_text_async",
    "check_document",
    "check_file",
    "check_paths",
    "Issue",
    "Diagnostic",
    "Position",
    "Range",
    "Severity",
    "ExcludedRange",
    "FilterConfig",
    "filter_text",
    "AdvancedRulesConfig",
    "ConfigError",
    "Settings",
    "load_settings",
    "RuleEngine",
]

__version__ = "0.1.0"
