"""基本ルール: 隣接する2トークンの組み合わせを見る文法チェック。

- double-particle: 同じ助詞の連続（「がが」など）
- particle-sequence: 不自然な助詞の連続（「がを」など）
- verb-particle-mismatch: 「を」+ 自動詞（「学校を行く」など）
- redundant-copula: 「で/に」+「です/ます」
"""
from __future__ import annotations

from typing import Iterator, List, Optional, Sequence, Tuple

from .diagnostics import SOURCE_BASIC, Diagnostic, Range
from .rule_base import Rule, RuleContext
from .tokens import Token

# 助詞の組み合わせは連結した表層形で照合する
DISALLOWED_PARTICLE_PAIRS = frozenset({
    "がを", "をが", "がに", "にが", "がで", "でが", "をに", "にを", "をで", "でを",
})

ALLOWED_PARTICLE_PAIRS = frozenset({
    "には", "では", "とは", "からは", "まで", "への", "からの", "との",
})

INTRANSITIVE_VERBS = frozenset({
    "行く", "来る", "帰る", "走る", "歩く", "泳ぐ", "飛ぶ", "落ちる",
    "いる", "ある", "なる", "できる", "起きる", "寝る", "座る", "立つ",
    "住む", "通う", "届く", "入る", "出る", "着く", "戻る",
})

REDUNDANT_COPULA_PATTERNS = {
    ("で", "です"): "「でです」は冗長です。「です」のみにしてください。",
    ("で", "ます"): "「でます」は不自然です。文の構造を見直してください。",
    ("に", "です"): "「にです」は不自然です。文の構造を見直してください。",
}


def _pairs(tokens: Sequence[Token]) -> Iterator[Tuple[Token, Token]]:
    for i in range(len(tokens) - 1):
        yield tokens[i], tokens[i + 1]


class TokenPairRule(Rule):
    """2トークンの窓を滑らせて判定するルール。位置は行/桁で返す。"""

    source = SOURCE_BASIC

    def match(self, first: Token, second: Token) -> Optional[Tuple[str, List[str]]]:
        raise NotImplementedError

    def check(self, tokens: Sequence[Token], context: RuleContext) -> List[Diagnostic]:
        out: List[Diagnostic] = []
        index = context.line_index
        for first, second in _pairs(tokens):
            hit = self.match(first, second)
            if hit is None:
                continue
            message, suggestions = hit
            out.append(Diagnostic(
                code=self.name,
                message=message,
                range=Range(index.position_at(first.start), index.position_at(second.end)),
                severity=self.severity,
                source=self.source,
                suggestions=suggestions,
            ))
        return out


class DoubleParticleRule(TokenPairRule):
    name = "double-particle"
    description = "同じ助詞の連続を検出します"
    enable_flag = "enable_double_particle"

    def match(self, first, second):
        if first.is_particle and second.is_particle and first.surface == second.surface:
            p = first.surface
            return (
                f"二重助詞「{p}{p}」が検出されました。「{p}」を1つにしてください。",
                [f"「{p}」を1つにする"],
            )
        return None


class ParticleSequenceRule(TokenPairRule):
    name = "particle-sequence"
    description = "不適切な助詞の連続を検出します"
    enable_flag = "enable_particle_sequence"

    def match(self, first, second):
        if not (first.is_particle and second.is_particle):
            return None
        # 同一助詞の連続は double-particle の担当
        if first.surface == second.surface:
            return None
        combination = first.surface + second.surface
        if combination in ALLOWED_PARTICLE_PAIRS or combination not in DISALLOWED_PARTICLE_PAIRS:
            return None
        return (
            f"不適切な助詞連続「{combination}」が検出されました。文の構造を見直してください。",
            ["助詞の使い方を見直す"],
        )


class VerbParticleMismatchRule(TokenPairRule):
    name = "verb-particle-mismatch"
    description = "自動詞に対する「を」の使用を検出します"
    enable_flag = "enable_verb_particle_mismatch"

    def match(self, first, second):
        if not (first.is_particle and first.surface == "を" and second.is_verb):
            return None
        if second.base_form in INTRANSITIVE_VERBS or second.surface in INTRANSITIVE_VERBS:
            return (
                f"動詞「{second.surface}」は自動詞のため、助詞「を」との組み合わせが不自然です。"
                "「に」や「へ」を使用してください。",
                ["「を」を「に」または「へ」に変更する"],
            )
        return None


class RedundantCopulaRule(TokenPairRule):
    name = "redundant-copula"
    description = "「でです」「でます」などの不自然な助詞と助動詞の連続を検出します"
    enable_flag = "enable_redundant_copula"

    def match(self, first, second):
        if not (first.is_particle and second.is_auxiliary):
            return None
        message = REDUNDANT_COPULA_PATTERNS.get((first.surface, second.surface))
        if message is None:
            return None
        return (message, [f"「{first.surface}」を削除する"])


def basic_rules() -> List[Rule]:
    return [
        DoubleParticleRule(),
        ParticleSequenceRule(),
        VerbParticleMismatchRule(),
        RedundantCopulaRule(),
    ]


__all__ = [
    "TokenPairRule",
    "DoubleParticleRule",
    "ParticleSequenceRule",
    "VerbParticleMismatchRule",
    "RedundantCopulaRule",
    "DISALLOWED_PARTICLE_PAIRS",
    "ALLOWED_PARTICLE_PAIRS",
    "INTRANSITIVE_VERBS",
    "basic_rules",
]
