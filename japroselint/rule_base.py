"""ルールの共通インターフェース。

各ルールは name / enable_flag を持ち、check(tokens, context) で Diagnostic を返す。
位置は行/桁で返しても、行0に生オフセットを入れて返してもよい
（rule_engine が position.fix_diagnostic_range で正規化する）。
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .config import AdvancedRulesConfig, DEFAULT_RULES_CONFIG
from .diagnostics import SOURCE_ADVANCED, Diagnostic, Range, Severity
from .position import LineIndex
from .sentences import Sentence
from .tokens import Token


@dataclass
class RuleContext:
    document_text: str
    sentences: List[Sentence] = field(default_factory=list)
    config: AdvancedRulesConfig = DEFAULT_RULES_CONFIG
    line_index: Optional[LineIndex] = None

    def __post_init__(self) -> None:
        if self.line_index is None:
            self.line_index = LineIndex(self.document_text)


class Rule:
    name: str = ""
    description: str = ""
    enable_flag: str = ""
    source: str = SOURCE_ADVANCED
    severity: Severity = Severity.WARNING

    def is_enabled(self, config: AdvancedRulesConfig) -> bool:
        if not self.enable_flag:
            return True
        return bool(getattr(config, self.enable_flag, False))

    def check(self, tokens: Sequence[Token], context: RuleContext) -> List[Diagnostic]:
        raise NotImplementedError

    # 生オフセットで診断を作る（行0に character として格納）
    def at_offsets(self, start: int, end: int, message: str, code: str | None = None,
                   suggestions: Sequence[str] = ()) -> Diagnostic:
        return Diagnostic(
            code=code or self.name,
            message=message,
            range=Range.from_offsets(start, end),
            severity=self.severity,
            source=self.source,
            suggestions=list(suggestions),
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


__all__ = ["Rule", "RuleContext"]
