import logging

from japroselint.advanced_rules import TautologyRule
from japroselint.config import AdvancedRulesConfig
from japroselint.rule_base import Rule, RuleContext
from japroselint.rule_engine import RuleEngine, default_rules


class BoomRule(Rule):
    name = "boom"

    def check(self, tokens, context):
        raise RuntimeError("壊れたルール")


def test_failing_rule_does_not_stop_others(caplog):
    engine = RuleEngine(rules=[BoomRule(), TautologyRule()])
    with caplog.at_level(logging.ERROR, logger="japroselint.rule_engine"):
        diags = engine.check("頭痛が痛い。", [])
    assert [d.code for d in diags] == ["tautology"]
    assert any("boom" in rec.getMessage() for rec in caplog.records)


def test_disabled_rules_are_not_run():
    class ExplodingTautology(TautologyRule):
        def check(self, tokens, context):
            raise AssertionError("must not run")

    engine = RuleEngine(rules=[ExplodingTautology()])
    assert engine.check("頭痛が痛い。", [], config=AdvancedRulesConfig(enable_tautology=False)) == []
    assert engine.enabled_rules(AdvancedRulesConfig(enable_tautology=False)) == []


def test_check_with_rules_runs_named_subset():
    engine = RuleEngine()
    diags = engine.check_with_rules("頭痛が痛い。まず最初に書く。", [], ["tautology", "unknown"])
    assert {d.code for d in diags} == {"tautology"}


def test_register_replaces_and_unregister():
    engine = RuleEngine(rules=[])
    engine.register(TautologyRule())
    engine.register(TautologyRule())
    assert engine.rule_names == ["tautology"]
    assert engine.unregister("tautology") is True
    assert engine.unregister("tautology") is False
    assert engine.rules == []


def test_offsets_are_reconciled_to_line_and_character():
    engine = RuleEngine(rules=[TautologyRule()])
    (diag,) = engine.check("一行目です。\n頭痛が痛い。", [])
    r = diag.range
    assert (r.start.line, r.start.character, r.end.line, r.end.character) == (1, 0, 1, 5)


def test_default_rules_are_unique():
    names = [r.name for r in default_rules()]
    assert len(names) == len(set(names))
    assert {"double-particle", "verb-particle-mismatch", "style-consistency", "halfwidth-kana"} <= set(names)


def test_diagnostic_dict_shape():
    (diag,) = RuleEngine(rules=[TautologyRule()]).check("頭痛が痛い。", [])
    data = diag.to_dict()
    assert data["severity"] == 1
    assert data["range"] == {"start": {"line": 0, "character": 0}, "end": {"line": 0, "character": 5}}
    assert data["source"] == "japroselint-advanced"
    assert data["suggestions"] == ["頭が痛い", "頭痛がする"]


class LateFailureRule(Rule):
    name = "late-failure"

    def check(self, tokens, context):
        yield self.at_offsets(0, 1, "最初の診断")
        raise RuntimeError("途中で失敗")


class NoneResultRule(Rule):
    name = "none-result"

    def check(self, tokens, context):
        return [None]


def test_generator_rule_failing_midway_is_isolated(caplog):
    engine = RuleEngine(rules=[LateFailureRule(), TautologyRule()])
    with caplog.at_level(logging.ERROR, logger="japroselint.rule_engine"):
        diags = engine.check("頭痛が痛い。", [])
    assert [d.code for d in diags] == ["tautology"]
    assert any("late-failure" in rec.getMessage() for rec in caplog.records)


def test_malformed_rule_result_is_isolated():
    engine = RuleEngine(rules=[NoneResultRule(), TautologyRule()])
    assert [d.code for d in engine.check_with_rules("頭痛が痛い。", [], ["none-result", "tautology"])] == ["tautology"]


def test_context_builds_line_index_when_omitted():
    context = RuleContext("一行目\n二行目")
    assert context.line_index is not None
    assert context.line_index.line_starts == [0, 4]
