"""ルールエンジン: 登録済みルールを順に実行し、診断の位置を正規化して集める。

1つのルールが例外を投げても他のルールの結果には影響しない（ログに残して続行）。
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence

from .advanced_rules import advanced_rules
from .config import AdvancedRulesConfig, DEFAULT_RULES_CONFIG
from .diagnostics import Diagnostic
from .grammar_rules import basic_rules
from .position import LineIndex, fix_diagnostic_range
from .rule_base import Rule, RuleContext
from .sentences import Sentence
from .tokens import Token

logger = logging.getLogger(__name__)


def default_rules() -> List[Rule]:
    return basic_rules() + advanced_rules()


class RuleEngine:
    def __init__(self, rules: Optional[Iterable[Rule]] = None,
                 config: AdvancedRulesConfig = DEFAULT_RULES_CONFIG):
        self.config = config
        self._rules: Dict[str, Rule] = {}
        for rule in (default_rules() if rules is None else rules):
            self.register(rule)

    def register(self, rule: Rule) -> None:
        """同名のルールは置き換える。"""
        if not rule.name:
            raise ValueError(f"rule has no name: {rule!r}")
        self._rules[rule.name] = rule

    def unregister(self, name: str) -> bool:
        return self._rules.pop(name, None) is not None

    @property
    def rules(self) -> List[Rule]:
        return list(self._rules.values())

    @property
    def rule_names(self) -> List[str]:
        return list(self._rules)

    def get(self, name: str) -> Optional[Rule]:
        return self._rules.get(name)

    def enabled_rules(self, config: Optional[AdvancedRulesConfig] = None) -> List[Rule]:
        cfg = config or self.config
        return [r for r in self._rules.values() if r.is_enabled(cfg)]

    def check(self, text: str, tokens: Sequence[Token],
              sentences: Optional[List[Sentence]] = None,
              config: Optional[AdvancedRulesConfig] = None) -> List[Diagnostic]:
        cfg = config or self.config
        return self._run(self.enabled_rules(cfg), text, tokens, sentences, cfg)

    def check_with_rules(self, text: str, tokens: Sequence[Token], names: Iterable[str],
                         sentences: Optional[List[Sentence]] = None,
                         config: Optional[AdvancedRulesConfig] = None) -> List[Diagnostic]:
        """指定した名前のルールだけを実行する（有効フラグは見る）。未知の名前は無視。"""
        cfg = config or self.config
        wanted = set(names)
        rules = [r for r in self.enabled_rules(cfg) if r.name in wanted]
        return self._run(rules, text, tokens, sentences, cfg)

    def _run(self, rules: List[Rule], text: str, tokens: Sequence[Token],
             sentences: Optional[List[Sentence]], cfg: AdvancedRulesConfig) -> List[Diagnostic]:
        index = LineIndex(text)
        context = RuleContext(text, list(sentences or []), cfg, index)
        out: List[Diagnostic] = []
        for rule in rules:
            # ジェネレータや不正な要素もここで失敗させる
            try:
                found = [d.with_range(fix_diagnostic_range(d.range, index))
                         for d in rule.check(tokens, context)]
            except Exception:
                logger.exception("rule %s failed; skipping", rule.name)
                continue
            out.extend(found)
        logger.debug("ran %d rules, %d diagnostics", len(rules), len(out))
        return out


__all__ = ["RuleEngine", "default_rules"]
