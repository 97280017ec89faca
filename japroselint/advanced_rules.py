"""高度校閲ルール（文・テキストパターン）。

フィルタ後テキスト全体または文単位で、語句表・正規表現・しきい値に基づいて検出する。
位置は行0の character に生の文字オフセットを入れて返す（rule_engine が行/桁に直す）。

- 文体: 敬体/常体の混在、文末の単調さ
- 表現: ら抜き、二重否定、弱い表現、冗長表現、重言、サ変動詞、二重敬語、同音異義語
- 構造: 長文、読点の多さ、「の」の連続、名詞の連続、受身の多用、主語の欠如、ねじれ文
- 表記: 全角/半角英字の混在、半角カナ、技術用語の表記、漢字の開き
"""
from __future__ import annotations

import json
import re
import unicodedata
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from .config import AdvancedRulesConfig
from .diagnostics import Diagnostic
from .rule_base import Rule
from .sentences import Sentence
from .tokens import Token

_TERMINATORS = "。！？!?"
_TRAILING_TERMINATOR_RE = re.compile(r"[。！？!?]$")


def find_all(text: str, phrase: str) -> Iterator[int]:
    """phrase の出現位置をすべて返す（重なりも含む）。"""
    if not phrase:
        return
    idx = text.find(phrase)
    while idx != -1:
        yield idx
        idx = text.find(phrase, idx + 1)


def sentence_spans(text: str) -> Iterator[Tuple[int, int]]:
    """句点類の直後で区切った文の (start, end)。前後の空白は除く。"""
    for m in re.finditer(r"[^。！？!?]+[。！？!?]*", text):
        s, e = m.start(), m.end()
        while s < e and text[s].isspace():
            s += 1
        while e > s and text[e - 1].isspace():
            e -= 1
        if s < e:
            yield s, e


class PhraseTableRule(Rule):
    """語句表（誤り → 提案）を使ってテキスト中の出現箇所を検出するルールの基底。"""

    table: Dict[str, Sequence[str]] = {}

    def message_for(self, phrase: str, suggestions: Sequence[str]) -> str:
        raise NotImplementedError

    def check(self, tokens, context):
        text = context.document_text
        out: List[Diagnostic] = []
        for phrase, suggestions in self.table.items():
            for idx in find_all(text, phrase):
                out.append(self.at_offsets(idx, idx + len(phrase),
                                           self.message_for(phrase, suggestions),
                                           suggestions=suggestions))
        return out


# ---------------------------------------------------------------------------
# 文体の混在
# ---------------------------------------------------------------------------

def dominant_style(sentences: Sequence[Sentence]) -> str:
    keigo = sum(1 for s in sentences if s.style == "keigo")
    joutai = sum(1 for s in sentences if s.style == "joutai")
    if keigo > joutai:
        return "keigo"
    if joutai > keigo:
        return "joutai"
    # 同数なら敬体を優先
    return "keigo" if keigo > 0 else "neutral"


class StyleConsistencyRule(Rule):
    name = "style-consistency"
    description = "文体の混在（敬体/常体）を検出します"
    enable_flag = "enable_style_consistency"

    def check(self, tokens, context):
        dominant = dominant_style(context.sentences)
        if dominant == "neutral":
            return []
        label = {"keigo": "敬体", "joutai": "常体"}
        ending = "です/ます" if dominant == "keigo" else "である"
        out = []
        for s in context.sentences:
            style = s.style
            if style == "neutral" or style == dominant:
                continue
            out.append(self.at_offsets(
                s.start, s.end,
                f"文体の混在が検出されました。この文は{label[style]}ですが、"
                f"文書全体は{label[dominant]}が主に使用されています。",
                code="style-inconsistency",
                suggestions=[f"文末を「{ending}」に統一してください"],
            ))
        return out


# ---------------------------------------------------------------------------
# ら抜き言葉
# ---------------------------------------------------------------------------

_RA_NUKI_STEMS = [
    "食べ", "見", "起き", "考え", "出", "寝", "着", "居", "い", "受け", "信じ", "感じ",
    "落ち", "生き", "降り", "始め", "決め", "変え", "止め", "覚え", "教え", "逃げ",
    "開け", "閉め",
]
_RA_NUKI_ENDINGS = ["る", "た", "ない", "ます", "ません"]
RA_NUKI_PATTERNS: Dict[str, str] = {
    f"{stem}れ{end}": f"{stem}られ{end}" for stem in _RA_NUKI_STEMS for end in _RA_NUKI_ENDINGS
}
_RA_NUKI_RE = re.compile(r"^(.+[えいけげせてねべめれ])れ(る|た|ない|ます|ません)$")


def detect_ra_nuki(surface: str, conjugation: str = "") -> Optional[str]:
    """ら抜きなら正しい形を返す。"""
    if surface in RA_NUKI_PATTERNS:
        return RA_NUKI_PATTERNS[surface]
    # 五段動詞の可能動詞（「書ける」等）は対象外
    if conjugation.startswith("五段"):
        return None
    m = _RA_NUKI_RE.match(surface)
    if m:
        return f"{m.group(1)}られ{m.group(2)}"
    return None


class RaNukiRule(Rule):
    name = "ra-nuki-detection"
    description = "ら抜き言葉を検出します"
    enable_flag = "enable_ra_nuki_detection"

    def check(self, tokens, context):
        out = []
        i = 0
        while i < len(tokens):
            tok = tokens[i]
            if tok.is_verb:
                correct = detect_ra_nuki(tok.surface, tok.conjugation)
                if correct:
                    out.append(self._diag(tok.start, tok.end, tok.surface, correct))
                    i += 1
                    continue
            if i + 1 < len(tokens):
                nxt = tokens[i + 1]
                hit = self._two_token(tok, nxt)
                if hit:
                    out.append(self._diag(tok.start, nxt.end, *hit))
                    i += 2
                    continue
            i += 1
        return out

    @staticmethod
    def _two_token(verb: Token, aux: Token) -> Optional[Tuple[str, str]]:
        # 「見」+「れる」のように分割された場合
        if not (verb.is_verb and aux.is_verb):
            return None
        if not aux.surface.startswith("れ") or "一段" not in verb.conjugation:
            return None
        if not verb.base_form.endswith("る"):
            return None
        return verb.surface + aux.surface, f"{verb.surface}られ{aux.surface[1:]}"

    def _diag(self, start: int, end: int, surface: str, correct: str) -> Diagnostic:
        return self.at_offsets(
            start, end,
            f"ら抜き言葉「{surface}」が検出されました。正しくは「{correct}」です。",
            code="ra-nuki", suggestions=[correct],
        )


# ---------------------------------------------------------------------------
# 二重否定 / 弱い表現
# ---------------------------------------------------------------------------

DOUBLE_NEGATION_PATTERNS: List[Tuple[str, str]] = [
    ("ないわけではない", "肯定表現に書き換えることを検討してください（例：「ある」「する」など）"),
    ("ないことはない", "肯定表現に書き換えることを検討してください（例：「ある」「できる」など）"),
    ("なくはない", "肯定表現に書き換えることを検討してください（例：「ある」など）"),
    ("ないとは言えない", "肯定表現に書き換えることを検討してください（例：「あり得る」「可能性がある」など）"),
    ("ないではいられない", "「せずにはいられない」や肯定的な表現に書き換えることを検討してください"),
    ("ずにはいられない", "肯定的な表現に書き換えることを検討してください"),
    ("ないとも限らない", "「あり得る」「可能性がある」などの表現を検討してください"),
    ("ないでもない", "肯定表現に書き換えることを検討してください"),
]


class DoubleNegationRule(Rule):
    name = "double-negation"
    description = "二重否定を検出します"
    enable_flag = "enable_double_negation"

    def check(self, tokens, context):
        text = context.document_text
        out = []
        for phrase, suggestion in DOUBLE_NEGATION_PATTERNS:
            for m in re.finditer(re.escape(phrase), text):
                out.append(self.at_offsets(
                    m.start(), m.end(),
                    f"二重否定「{phrase}」が検出されました。わかりにくい表現になる可能性があります。",
                    suggestions=[suggestion],
                ))
        return out


# (パターン, 表示名, 言い換え, レベル)
WEAK_PATTERNS: List[Tuple[str, str, str, str]] = [
    (r"かもしれない", "かもしれない", "可能性がある", "normal"),
    (r"かもしれません", "かもしれません", "可能性があります", "normal"),
    (r"と思われる", "と思われる", "と考えられる", "normal"),
    (r"と思われます", "と思われます", "と考えられます", "normal"),
    (r"ような気がする", "ような気がする", "と推測される", "normal"),
    (r"ような気がします", "ような気がします", "と推測されます", "normal"),
    (r"気がする", "気がする", "と感じる", "strict"),
    (r"と思う(?!われ)", "と思う", "と考える", "strict"),
    (r"と思います(?!が)", "と思います", "と考えます", "strict"),
    (r"多分", "多分", "おそらく", "loose"),
    (r"たぶん", "たぶん", "おそらく", "loose"),
    (r"なんとなく", "なんとなく", "具体的な理由を述べる", "strict"),
    (r"一応", "一応", "念のため", "loose"),
]
_WEAK_RES = [(re.compile(p), name, stronger, level) for p, name, stronger, level in WEAK_PATTERNS]


def active_weak_patterns(level: str):
    if level == "strict":
        return list(_WEAK_RES)
    if level == "loose":
        return [w for w in _WEAK_RES if w[3] == "loose"]
    return [w for w in _WEAK_RES if w[3] != "strict"]


class WeakExpressionRule(Rule):
    name = "weak-expression"
    description = "弱い日本語表現を検出します"
    enable_flag = "enable_weak_expression"

    def check(self, tokens, context):
        text = context.document_text
        out = []
        for rx, name, stronger, _level in active_weak_patterns(context.config.weak_expression_level):
            for m in rx.finditer(text):
                out.append(self.at_offsets(
                    m.start(), m.end(),
                    f"弱い表現「{name}」が使用されています。より断定的な表現を検討してください。",
                    suggestions=[f"「{stronger}」に変更する"],
                ))
        return out


# ---------------------------------------------------------------------------
# 文単位の構造チェック
# ---------------------------------------------------------------------------

class ParticleRepetitionRule(Rule):
    name = "particle-repetition"
    description = "同じ助詞の連続使用を検出します"
    enable_flag = "enable_particle_repetition"

    def check(self, tokens, context):
        out = []
        for s in context.sentences:
            counts: Dict[str, int] = {}
            for t in s.tokens:
                if t.is_particle:
                    counts[t.surface] = counts.get(t.surface, 0) + 1
            for particle, n in counts.items():
                if n >= 2:
                    out.append(self.at_offsets(
                        s.start, s.end,
                        f"同じ助詞「{particle}」が{n}回使用されています。文の構造を見直してください。",
                        suggestions=["文を分割する", "別の表現に言い換える"],
                    ))
        return out


COMMON_CONJUNCTIONS = [
    "しかし", "また", "そして", "それで", "だから", "ところが",
    "すると", "それから", "さらに", "ただし", "なお", "ちなみに",
    "つまり", "要するに", "したがって", "ゆえに", "なぜなら",
]
CONJUNCTION_ALTERNATIVES: Dict[str, List[str]] = {
    "しかし": ["ところが", "けれども", "一方で"],
    "また": ["さらに", "加えて", "そのうえ"],
    "そして": ["それから", "さらに", "加えて"],
    "だから": ["したがって", "よって", "そのため"],
    "つまり": ["要するに", "言い換えれば", "すなわち"],
}


def leading_conjunction(sentence: Sentence) -> Optional[str]:
    text = sentence.text.strip()
    for conj in COMMON_CONJUNCTIONS:
        if text.startswith(conj):
            return conj
    return None


class ConjunctionRepetitionRule(Rule):
    name = "conjunction-repetition"
    description = "同じ接続詞の連続使用を検出します"
    enable_flag = "enable_conjunction_repetition"

    def check(self, tokens, context):
        out = []
        sents = context.sentences
        for prev, cur in zip(sents, sents[1:]):
            conj = leading_conjunction(cur)
            if conj and conj == leading_conjunction(prev):
                alts = CONJUNCTION_ALTERNATIVES.get(conj, ["別の接続詞"])
                out.append(self.at_offsets(
                    cur.start, cur.start + len(conj),
                    f"接続詞「{conj}」が連続して使用されています。",
                    suggestions=[f"「{a}」に変更する" for a in alts],
                ))
        return out


def _adversative_ga(sentence: Sentence) -> List[Token]:
    found = []
    toks = sentence.tokens
    for i, tok in enumerate(toks):
        if tok.surface != "が" or not tok.is_particle or i == 0:
            continue
        prev = toks[i - 1]
        if prev.is_verb or prev.is_adjective or prev.is_auxiliary or prev.surface in ("です", "ます"):
            found.append(tok)
    return found


class AdversativeGaRule(Rule):
    name = "adversative-ga"
    description = "逆接の「が」の連続使用を検出します"
    enable_flag = "enable_adversative_ga"

    def check(self, tokens, context):
        out = []
        sents = context.sentences
        for prev, cur in zip(sents, sents[1:]):
            cur_gas = _adversative_ga(cur)
            if cur_gas and _adversative_ga(prev):
                ga = cur_gas[0]
                out.append(self.at_offsets(
                    ga.start, ga.end,
                    "逆接の「が」が連続する文で使用されています。文の分割や接続詞の変更を検討してください。",
                    suggestions=["文を分割する", "「しかし」「けれども」などの接続詞に変更する"],
                ))
        return out


class CommaCountRule(Rule):
    name = "comma-count"
    description = "1文中の読点の数をチェックします"
    enable_flag = "enable_comma_count"

    def check(self, tokens, context):
        threshold = context.config.comma_count_threshold
        return [
            self.at_offsets(
                s.start, s.end,
                f"1文中に読点が{s.comma_count}個使用されています（閾値: {threshold}個）。"
                "文を分割することを検討してください。",
                suggestions=["文を複数の短い文に分割する", "不要な修飾語を削除する"],
            )
            for s in context.sentences if s.comma_count > threshold
        ]


class LongSentenceRule(Rule):
    name = "long-sentence"
    description = "長すぎる文を検出します"
    enable_flag = "enable_long_sentence"

    @staticmethod
    def split_suggestions(text: str) -> List[str]:
        out = []
        if "、" in text:
            out.append("読点「、」の位置で文を分割することを検討してください")
        for conj in ("そして", "また", "しかし", "したがって", "なお", "ただし"):
            if conj in text:
                out.append(f"「{conj}」の前後で文を分割することを検討してください")
                break
        out.append("1文を2〜3文に分割して、読みやすくすることを検討してください")
        out.append("主語と述語を明確にして、文の構造を単純化してください")
        return out

    def check(self, tokens, context):
        threshold = context.config.long_sentence_threshold
        out = []
        for s in context.sentences:
            n = len(s.text)
            if n > threshold:
                out.append(self.at_offsets(
                    s.start, s.end,
                    f"文が長すぎます（{n}文字、閾値: {threshold}文字）。文の分割を検討してください。",
                    suggestions=self.split_suggestions(s.text),
                ))
        return out


_ENDING_RE = re.compile(r"(です|ます|である|だった|でした|ました|だ|た)[。！？!?]?$")
ENDING_VARIATIONS: Dict[str, List[str]] = {
    "です": ["である", "だ", "になります", "となります"],
    "ます": ["る", "である", "だ", "になる", "となる"],
    "である": ["です", "だ", "になる", "となる"],
    "だ": ["です", "である", "になる", "となる"],
    "ました": ["た", "だった", "でした"],
    "た": ["ました", "だった", "でした"],
    "でした": ["ました", "た", "だった"],
    "だった": ["でした", "た", "ました"],
}


def sentence_ending(sentence: Sentence) -> Optional[str]:
    m = _ENDING_RE.search(sentence.text)
    return m.group(1) if m else None


class MonotonousEndingRule(Rule):
    name = "monotonous-ending"
    description = "文末表現の単調さを検出します"
    enable_flag = "enable_monotonous_ending"

    def check(self, tokens, context):
        threshold = context.config.monotonous_ending_threshold
        sents = context.sentences
        if len(sents) < threshold:
            return []
        out = []
        run: List[Sentence] = []
        current: Optional[str] = None

        def flush():
            if current and len(run) >= threshold:
                out.append(self.at_offsets(
                    run[0].start, run[-1].end,
                    f"文末「{current}」が{len(run)}回連続しています（閾値: {threshold}回）。"
                    "表現を多様化してください。",
                    suggestions=ENDING_VARIATIONS.get(current, ["文末表現を変化させてください"]),
                ))

        for s in sents:
            ending = sentence_ending(s)
            if ending == current:
                run.append(s)
                continue
            flush()
            current = ending
            run = [s]
        flush()
        return out


class NoParticleChainRule(Rule):
    name = "no-particle-chain"
    description = "助詞「の」の連続使用を検出します"
    enable_flag = "enable_no_particle_chain"
    max_gap = 20

    def check(self, tokens, context):
        text = context.document_text
        threshold = context.config.no_particle_chain_threshold
        out = []
        for seg in re.finditer(r"[^。！？!?\n]+", text):
            positions = [seg.start() + i for i, ch in enumerate(seg.group(0)) if ch == "の"]
            if len(positions) < threshold:
                continue
            chain = [positions[0]]
            for pos in positions[1:]:
                if pos - chain[-1] <= self.max_gap:
                    chain.append(pos)
                    continue
                self._emit(out, chain, threshold)
                chain = [pos]
            self._emit(out, chain, threshold)
        return out

    def _emit(self, out: List[Diagnostic], chain: List[int], threshold: int) -> None:
        if len(chain) < threshold:
            return
        out.append(self.at_offsets(
            chain[0], chain[-1] + 1,
            f"助詞「の」が{len(chain)}回連続しています（閾値: {threshold}回）。文の書き換えを検討してください。",
            suggestions=[
                "文を分割して「の」の使用回数を減らす",
                "一部を別の表現に置き換える（例：「における」「に関する」）",
                "主語を明確にして文を書き換える",
            ],
        ))


NOUN_CHAIN_PATTERNS: Dict[str, str] = {
    "東京都渋谷区松濤一丁目住所": "「東京都渋谷区松濤一丁目の住所」のように助詞を挿入",
    "品質管理体制強化計画書": "「品質管理体制の強化計画書」のように分割",
    "情報システム管理者連絡先": "「情報システム管理者の連絡先」のように分割",
    "顧客満足度向上施策検討会議": "「顧客満足度向上のための施策検討会議」のように分割",
}


class NounChainRule(Rule):
    name = "noun-chain"
    description = "名詞の連続による読みにくさを検出します"
    enable_flag = "enable_noun_chain"

    def check(self, tokens, context):
        text = context.document_text
        threshold = context.config.noun_chain_threshold
        found: List[Tuple[int, int, str]] = []
        for phrase, suggestion in NOUN_CHAIN_PATTERNS.items():
            for idx in find_all(text, phrase):
                found.append((idx, idx + len(phrase), suggestion))

        run: List[Token] = []
        for tok in list(tokens) + [None]:
            if tok is not None and tok.is_noun:
                run.append(tok)
                continue
            if len(run) >= threshold:
                start, end = run[0].start, run[-1].end
                if not any(s <= start and e >= end for s, e, _ in found):
                    found.append((start, end, "名詞の間に助詞を挿入して読みやすくしてください"))
            run = []

        return [
            self.at_offsets(s, e, f"名詞が連続して読みにくくなっています。{sug}", suggestions=[sug])
            for s, e, sug in found
        ]


_PASSIVE_RES = [re.compile(p) for p in (
    r"れた[。、]", r"られた[。、]", r"された[。、]",
    r"されました[。、]", r"れました[。、]", r"られました[。、]",
)]
_CONSECUTIVE_PASSIVE_RE = re.compile(r"[^。]*された[。][^。]*された[。][^。]*された[。]")


class PassiveOveruseRule(Rule):
    name = "passive-overuse"
    description = "受身表現の多用を検出します"
    enable_flag = "enable_passive_overuse"

    def check(self, tokens, context):
        text = context.document_text
        m = _CONSECUTIVE_PASSIVE_RE.search(text)
        if m:
            return [self.at_offsets(
                m.start(), m.end(),
                "受身表現が3回連続で使用されています。能動態への書き換えを検討してください。",
                suggestions=["能動態に書き換えることを検討してください"],
            )]
        # パターン同士は重なって数えられる（「された。」は「れた。」にも一致する）
        count = sum(len(rx.findall(text)) for rx in _PASSIVE_RES)
        threshold = context.config.passive_overuse_threshold
        if count >= threshold:
            return [self.at_offsets(
                0, len(text),
                f"受身表現が{count}回使用されています（閾値: {threshold}回）。能動態への書き換えを検討してください。",
                suggestions=["能動態への書き換えを検討してください"],
            )]
        return []


class MissingSubjectRule(Rule):
    name = "missing-subject"
    description = "主語が欠如している文を検出します"
    enable_flag = "enable_missing_subject"
    max_length = 25

    def check(self, tokens, context):
        text = context.document_text
        out = []
        for s, e in sentence_spans(text):
            body = text[s:e]
            if len(body) >= self.max_length or "は" in body or "が" in body:
                continue
            if body.endswith(("ました。", "ます。", "です。")):
                out.append(self.at_offsets(
                    s, e,
                    "主語が明示されていない可能性があります。主語を明示することを検討してください",
                    suggestions=["「私は」「彼は」などの主語を追加"],
                ))
        return out


ADVERB_AGREEMENT_RULES: List[Tuple[str, List[str], List[str], str]] = [
    ("決して", ["ない", "ません", "なかった", "ませんでした"], ["ます"], "決して行きません"),
    ("全く", ["ない", "ません", "なかった", "ませんでした"], ["ます"], "全く分かりません"),
    ("必ずしも", ["ない", "ません", "とは限らない", "わけではない"], ["ます", "です"], "必ずしも正しいとは限らない"),
    ("たぶん", ["だろう", "でしょう", "かもしれない", "と思う"], ["ません"], "たぶん行くでしょう"),
    ("おそらく", ["だろう", "でしょう", "かもしれない", "と思われる"], ["ません"], "おそらく正しいでしょう"),
    ("もし", ["なら", "たら", "ば", "と"], ["ない"], "もし晴れたら行きます"),
]


class AdverbAgreementRule(Rule):
    name = "adverb-agreement"
    description = "副詞と述語の呼応の誤りを検出します"
    enable_flag = "enable_adverb_agreement"

    def check(self, tokens, context):
        text = context.document_text
        out = []
        for s, e in sentence_spans(text):
            body = text[s:e]
            stem = _TRAILING_TERMINATOR_RE.sub("", body)
            for adverb, required, forbidden, example in ADVERB_AGREEMENT_RULES:
                if adverb not in body:
                    continue
                actual = next((f for f in forbidden if stem.endswith(f)), None)
                if actual is None:
                    continue
                out.append(self.at_offsets(
                    s, e,
                    f"副詞「{adverb}」は「{'、'.join(required)}」などと呼応します。"
                    f"現在の文末「{actual}」との呼応を確認してください。",
                    suggestions=[example],
                ))
        return out


# ---------------------------------------------------------------------------
# 語句表ベースのルール
# ---------------------------------------------------------------------------

class RedundantExpressionRule(PhraseTableRule):
    name = "redundant-expression"
    description = "冗長表現を検出します"
    enable_flag = "enable_redundant_expression"
    table = {k: [v] for k, v in {
        "馬から落馬": "落馬", "後で後悔": "後悔", "一番最初": "最初", "各々それぞれ": "それぞれ",
        "まず最初に": "最初に", "過半数を超える": "過半数", "元旦の朝": "元旦", "炎天下の下": "炎天下",
        "頭頂部の頭": "頭頂部", "射程距離": "射程", "製造メーカー": "メーカー", "最後の切り札": "切り札",
        "思いがけないハプニング": "ハプニング", "返事を返す": "返事をする", "連日続く": "連日",
        "日本に来日": "来日", "あらかじめ予約": "予約", "必ず必要": "必要", "全て全員": "全員",
        "今現在": "現在",
    }.items()}

    def message_for(self, phrase, suggestions):
        return f"冗長表現「{phrase}」が検出されました。「{suggestions[0]}」に簡潔化できます。"


TAUTOLOGY_PATTERNS: Dict[str, List[str]] = {
    "頭痛が痛い": ["頭が痛い", "頭痛がする"],
    "違和感を感じる": ["違和感がある", "違和感を覚える"],
    "被害を被る": ["被害を受ける", "被害にあう"],
    "犯罪を犯す": ["罪を犯す", "犯罪を行う"],
    "危険が危ない": ["危険がある", "危ない"],
    "心配が心配": ["心配がある", "心配だ"],
    "不安が不安": ["不安がある", "不安だ"],
    "問題が問題": ["問題がある", "問題だ"],
    "歌を歌う": ["歌う", "歌を披露する"],
    "踊りを踊る": ["踊る", "踊りを披露する"],
    "話を話す": ["話す", "話をする"],
    "旅行を旅する": ["旅行する", "旅をする"],
    "返事を返す": ["返事をする", "答える"],
    "挨拶を挨拶する": ["挨拶をする", "挨拶する"],
    "過去を振り返る": ["過去を思い出す", "振り返る"],
    "日本に来日": ["来日する", "日本に来る"],
    "アメリカに渡米": ["渡米する", "アメリカに行く"],
    "電車に乗車": ["乗車する", "電車に乗る"],
    "車から下車": ["下車する", "車から降りる"],
}
DUPLICATED_ELEMENTS: Dict[str, str] = {
    "頭痛が痛い": "「頭」と「痛い」", "違和感を感じる": "「感」", "被害を被る": "「被」",
    "犯罪を犯す": "「犯」", "危険が危ない": "「危」", "歌を歌う": "「歌」", "踊りを踊る": "「踊」",
    "話を話す": "「話」", "日本に来日": "「日」", "アメリカに渡米": "「米」",
    "電車に乗車": "「車」", "車から下車": "「車」",
}


class TautologyRule(PhraseTableRule):
    name = "tautology"
    description = "重複表現（同語反復）を検出します"
    enable_flag = "enable_tautology"
    table = TAUTOLOGY_PATTERNS

    def message_for(self, phrase, suggestions):
        dup = DUPLICATED_ELEMENTS.get(phrase, phrase)
        return f"重複表現「{phrase}」が検出されました。{dup}が重複しています。"


class SahenVerbRule(PhraseTableRule):
    name = "sahen-verb"
    description = "サ変動詞の「〜をする」パターンを検出します"
    enable_flag = "enable_sahen_verb"
    table = {
        f"{noun}を{tail}": [f"{noun}{tail}"]
        for tail in ("する", "し")
        for noun in ("勉強", "料理", "掃除", "洗濯", "散歩", "運動", "買物", "買い物", "仕事", "練習")
    }

    def message_for(self, phrase, suggestions):
        return (f"サ変動詞「{phrase}」の「を」は省略できます。"
                f"「{suggestions[0]}」への簡潔化を検討してください。")


HOMOPHONE_PATTERNS: Dict[str, Tuple[List[str], str]] = {
    "意志が低い": (["意識が低い", "志が低い"], "「意志」は決意や意図、「意識」は認識や自覚を意味します"),
    "異動の制約": (["移動の制約"], "物理的な移動には「移動」、人事には「異動」を使用します"),
    "移動の制約": (["異動の制約"], "人事異動の文脈では「異動」を使用します"),
    "移動の辞令": (["異動の辞令"], "人事関連には「異動」を使用します"),
    "以外に多い": (["意外に多い"], "予想外を表す場合は「意外」を使用します"),
    "意外の人": (["以外の人"], "〜を除いてを表す場合は「以外」を使用します"),
    "過程が良い": (["家庭が良い"], "家族関係を表す場合は「家庭」を使用します"),
    "家庭で作る": (["過程で作る"], "プロセスを表す場合は「過程」を使用します"),
}


class HomophoneRule(PhraseTableRule):
    name = "homophone"
    description = "同音異義語の誤用を検出します"
    enable_flag = "enable_homophone"
    table = {k: v[0] for k, v in HOMOPHONE_PATTERNS.items()}

    def message_for(self, phrase, suggestions):
        return f"同音異義語「{phrase}」の使い方を確認してください。{HOMOPHONE_PATTERNS[phrase][1]}"


DOUBLE_HONORIFIC_PATTERNS: Dict[str, str] = {
    "おっしゃられ": "おっしゃい",
    "ご覧になられ": "ご覧にな",
    "お見えになられ": "お見えにな",
    "お越しになられ": "お越しにな",
    "お帰りになられ": "お帰りにな",
    "お召し上がりになられ": "お召し上がりにな",
    "ご利用になられ": "ご利用にな",
    "お読みになられ": "お読みにな",
    "お書きになられ": "お書きにな",
    "お聞きになられ": "お聞きにな",
}
HONORIFIC_MISUSE_PATTERNS: Dict[str, str] = {
    "お客様がおっしゃられました": "お客様がおっしゃいました",
    "ご覧になられる": "ご覧になる",
    "部長がお見えになられる": "部長がお見えになる",
    "お越しになられました": "お越しになりました",
    "お帰りになられました": "お帰りになりました",
}


class HonorificErrorRule(Rule):
    name = "honorific-error"
    description = "敬語の誤用（二重敬語など）を検出します"
    enable_flag = "enable_honorific_error"

    def check(self, tokens, context):
        text = context.document_text
        hits: List[Tuple[int, str, str]] = []
        for phrase, correct in DOUBLE_HONORIFIC_PATTERNS.items():
            hits.extend((idx, phrase, correct) for idx in find_all(text, phrase))
        # 同じ開始位置で検出済みのものは重ねない
        starts = {h[0] for h in hits}
        for phrase, correct in HONORIFIC_MISUSE_PATTERNS.items():
            for idx in find_all(text, phrase):
                if idx not in starts:
                    hits.append((idx, phrase, correct))
                    starts.add(idx)
        return [
            self.at_offsets(idx, idx + len(phrase),
                            f"二重敬語「{phrase}」が検出されました。「{correct}」が正しい形式です。",
                            suggestions=[correct])
            for idx, phrase, correct in hits
        ]


MODIFIER_ORDER_PATTERNS: Dict[str, Tuple[str, str]] = {
    "赤い大きな": ("大きな赤い", "修飾語は「大きさ」→「色」の順序が自然です"),
    "青い小さな": ("小さな青い", "修飾語は「大きさ」→「色」の順序が自然です"),
    "白い大きな": ("大きな白い", "修飾語は「大きさ」→「色」の順序が自然です"),
    "黒い小さな": ("小さな黒い", "修飾語は「大きさ」→「色」の順序が自然です"),
    "古い素敵な": ("素敵な古い", "主観的な修飾語は客観的な修飾語の前に置くのが自然です"),
    "新しい素晴らしい": ("素晴らしい新しい", "主観的な修飾語は客観的な修飾語の前に置くのが自然です"),
}
AMBIGUOUS_MODIFIER_PATTERNS: Dict[str, str] = {
    "美しい女性の写真": "「美しい」が「女性」と「写真」のどちらを修飾するか曖昧です",
    "大きな子供の靴": "「大きな」が「子供」と「靴」のどちらを修飾するか曖昧です",
    "新しい社員の机": "「新しい」が「社員」と「机」のどちらを修飾するか曖昧です",
}


class ModifierPositionRule(Rule):
    name = "modifier-position"
    description = "修飾語の位置による曖昧さを検出します"
    enable_flag = "enable_modifier_position"

    def check(self, tokens, context):
        text = context.document_text
        out = []
        for phrase, (order, explanation) in MODIFIER_ORDER_PATTERNS.items():
            for idx in find_all(text, phrase):
                out.append(self.at_offsets(
                    idx, idx + len(phrase),
                    f"修飾語の位置に問題がある可能性があります。{explanation}",
                    suggestions=[f"「{order}」に並べ替える"],
                ))
        for phrase, explanation in AMBIGUOUS_MODIFIER_PATTERNS.items():
            for idx in find_all(text, phrase):
                out.append(self.at_offsets(
                    idx, idx + len(phrase),
                    f"修飾語の位置に問題がある可能性があります。{explanation}",
                    suggestions=[explanation],
                ))
        return out


AMBIGUOUS_DEMONSTRATIVE_PATTERNS: Dict[str, str] = {
    "それは問題だ。しかし、それも": "複数の「それ」が異なる対象を指している可能性があります",
    "これについては、あれを参照": "「これ」「あれ」の指す対象が不明確です",
    "それについて、それを": "「それ」が繰り返し使用され、指す対象が曖昧です",
    "あれは重要だ。あれも": "複数の「あれ」の指す対象を明確にしてください",
    "これが正しい。これは": "「これ」が繰り返し使用され、指す対象が曖昧です",
}
# 文書の先頭にある指示語（先行詞がない）
_LEADING_DEMONSTRATIVE_RES = [
    re.compile(r"それは[^。]*問題"),
    re.compile(r"これは[^。]*重要"),
    re.compile(r"あれは[^。]*必要"),
]


class AmbiguousDemonstrativeRule(Rule):
    name = "ambiguous-demonstrative"
    description = "曖昧な指示語の使用を検出します"
    enable_flag = "enable_ambiguous_demonstrative"

    def check(self, tokens, context):
        text = context.document_text
        found: List[Tuple[int, int, str]] = []
        for phrase, explanation in AMBIGUOUS_DEMONSTRATIVE_PATTERNS.items():
            found.extend((idx, idx + len(phrase), explanation) for idx in find_all(text, phrase))
        head = len(text) - len(text.lstrip())
        for rx in _LEADING_DEMONSTRATIVE_RES:
            m = rx.match(text, head)
            if m:
                found.append((m.start(), m.end(),
                              "文頭の指示語には先行詞がありません。具体的な名詞を使用することを検討してください"))
        return [
            self.at_offsets(s, e, f"曖昧な指示語が検出されました。{explanation}",
                            suggestions=["具体的な名詞で置き換える"])
            for s, e, explanation in found
        ]


TWISTED_SENTENCE_PATTERNS: Dict[str, str] = {
    "私の夢は医者になりたいです": "私の夢は医者になることです",
    "彼の特技は絵を上手です": "彼の特技は絵を描くことです",
    "私の趣味は映画を見たいです": "私の趣味は映画を見ることです",
    "私の目標は成功したいです": "私の目標は成功することです",
    "私の希望は合格したいです": "私の希望は合格することです",
}
_TWISTED_RES: List[Tuple["re.Pattern[str]", str]] = [
    (re.compile(r"私の(夢|目標|希望|願い)は[^。]*たいです"),
     "「〜は」と「〜たいです」が対応していません。「〜は〜ことです」の形式を検討してください"),
    (re.compile(r"[^の]の(特技|得意|長所)は[^を]*を[^。]*です"),
     "「〜は」と述語が対応していません。文の構造を見直してください"),
]


class TwistedSentenceRule(Rule):
    name = "twisted-sentence"
    description = "ねじれ文（主語と述語の不対応）を検出します"
    enable_flag = "enable_twisted_sentence"

    def check(self, tokens, context):
        text = context.document_text
        found: List[Tuple[int, int, str]] = []
        for phrase, fixed in TWISTED_SENTENCE_PATTERNS.items():
            found.extend((idx, idx + len(phrase), fixed) for idx in find_all(text, phrase))
        for rx, explanation in _TWISTED_RES:
            m = rx.search(text)
            if m and not any(s <= m.start() and e >= m.end() for s, e, _ in found):
                found.append((m.start(), m.end(), explanation))
        return [
            self.at_offsets(s, e, "ねじれ文が検出されました。主語と述語の対応を確認してください。",
                            suggestions=[sug])
            for s, e, sug in found
        ]


CONJUNCTION_MISUSE_PATTERNS: Dict[str, Tuple[str, str, str]] = {
    "晴れた。しかし、外出した": (
        "しかし", "晴れた。そこで、外出した",
        "「しかし」は逆接の接続詞です。天気と外出は順接の関係では「そこで」「だから」が適切です"),
    "忙しい。だから、暇だ": (
        "だから", "忙しい。しかし、暇だ",
        "「だから」は順接の接続詞です。矛盾する内容には「しかし」「けれども」が適切です"),
    "雨だ。だから、傘を持たない": (
        "だから", "雨だ。しかし、傘を持たない",
        "「だから」は順接の接続詞です。逆の行動には「しかし」「けれども」が適切です"),
    "成功した。しかし、嬉しい": (
        "しかし", "成功した。だから、嬉しい",
        "「しかし」は逆接の接続詞です。成功と喜びは順接の関係では「だから」「そのため」が適切です"),
}


class ConjunctionMisuseRule(Rule):
    name = "conjunction-misuse"
    description = "接続詞の誤用を検出します"
    enable_flag = "enable_conjunction_misuse"

    def check(self, tokens, context):
        text = context.document_text
        out = []
        for phrase, (conj, correct, explanation) in CONJUNCTION_MISUSE_PATTERNS.items():
            for idx in find_all(text, phrase):
                out.append(self.at_offsets(
                    idx, idx + len(phrase),
                    f"接続詞「{conj}」の使い方が文脈に合わない可能性があります。{explanation}",
                    suggestions=[correct],
                ))
        return out


KANJI_OPENING_RULES: Dict[str, str] = {
    "下さい": "ください", "頂く": "いただく", "頂きます": "いただきます", "頂ける": "いただける",
    "頂ければ": "いただければ", "致します": "いたします", "致しました": "いたしました",
    "参ります": "まいります", "参りました": "まいりました", "出来る": "できる", "出来ます": "できます",
    "出来ない": "できない", "出来ません": "できません", "出来た": "できた", "出来ました": "できました",
    "但し": "ただし", "又は": "または", "及び": "および", "並びに": "ならびに", "若しくは": "もしくは",
    "更に": "さらに", "即ち": "すなわち", "従って": "したがって", "予め": "あらかじめ",
    "概ね": "おおむね", "既に": "すでに", "直ぐ": "すぐ", "未だ": "いまだ", "殆ど": "ほとんど",
    "僅か": "わずか", "漸く": "ようやく", "事": "こと", "物": "もの", "所": "ところ", "時": "とき",
    "為": "ため", "筈": "はず", "訳": "わけ", "様": "よう", "有難う": "ありがとう",
    "有難うございます": "ありがとうございます", "御座います": "ございます", "御願い": "お願い",
    "宜しく": "よろしく", "宜しくお願い": "よろしくお願い", "沢山": "たくさん", "色々": "いろいろ",
    "様々": "さまざま", "是非": "ぜひ", "丁度": "ちょうど", "何故": "なぜ", "尚": "なお",
    "敢えて": "あえて",
}


class KanjiOpeningRule(Rule):
    name = "kanji-opening"
    description = "漢字の開き方を統一します"
    enable_flag = "enable_kanji_opening"

    def check(self, tokens, context):
        text = context.document_text
        hits = [(idx, kanji, opened)
                for kanji, opened in KANJI_OPENING_RULES.items()
                for idx in find_all(text, kanji)]
        hits.sort(key=lambda h: h[0])
        return [
            self.at_offsets(idx, idx + len(kanji),
                            f"漢字「{kanji}」はひらがな「{opened}」で表記することが推奨されます。",
                            suggestions=[f"「{opened}」に変更する"])
            for idx, kanji, opened in hits
        ]


# ---------------------------------------------------------------------------
# 表記
# ---------------------------------------------------------------------------

_FULLWIDTH_ALPHA_RE = re.compile(r"[Ａ-Ｚａ-ｚ]+")
_HALFWIDTH_ALPHA_RE = re.compile(r"[A-Za-z]+")


def to_halfwidth_alpha(text: str) -> str:
    return "".join(chr(ord(c) - 0xFEE0) if "Ａ" <= c <= "Ｚ" or "ａ" <= c <= "ｚ" else c for c in text)


class AlphabetWidthRule(Rule):
    name = "alphabet-width"
    description = "全角と半角アルファベットの混在を検出します"
    enable_flag = "enable_alphabet_width"

    def check(self, tokens, context):
        text = context.document_text
        full = list(_FULLWIDTH_ALPHA_RE.finditer(text))
        half = list(_HALFWIDTH_ALPHA_RE.finditer(text))
        if not full or not half:
            return []
        full_chars = sum(len(m.group(0)) for m in full)
        half_chars = sum(len(m.group(0)) for m in half)
        dominant = "full" if full_chars > half_chars else "half"
        minority = full if dominant == "half" else half
        label = "半角" if dominant == "half" else "全角"
        out = []
        for m in minority:
            word = m.group(0)
            if dominant == "half":
                suggestion = f"「{to_halfwidth_alpha(word)}」に変更する"
            else:
                suggestion = f"半角「{to_halfwidth_alpha(word)}」に変更する"
            out.append(self.at_offsets(
                m.start(), m.end(),
                f"全角と半角アルファベットが混在しています。「{word}」を{label}に統一してください。",
                suggestions=[suggestion],
            ))
        return out


_HALFWIDTH_KANA_RE = re.compile(r"[｡-ﾟ]+")


class HalfwidthKanaRule(Rule):
    name = "halfwidth-kana"
    description = "半角カナを検出し、全角カナへの変換を提案します"
    enable_flag = "enable_halfwidth_kana"

    def check(self, tokens, context):
        out = []
        for m in _HALFWIDTH_KANA_RE.finditer(context.document_text):
            half = m.group(0)
            # NFKC で濁点・半濁点の結合も含めて全角に揃う
            full = unicodedata.normalize("NFKC", half)
            out.append(self.at_offsets(
                m.start(), m.end(),
                f"半角カナ「{half}」は全角カナ「{full}」に変換することを推奨します。",
                suggestions=[f"「{full}」に変更する"],
            ))
        return out


_TERM_DICT_PATH = Path(__file__).parent / "rules" / "term_notation.json"
_DICTIONARY_FLAGS = [
    ("web_tech", "enable_web_tech_dictionary"),
    ("generative_ai", "enable_generative_ai_dictionary"),
    ("aws", "enable_aws_dictionary"),
    ("azure", "enable_azure_dictionary"),
    ("oci", "enable_oci_dictionary"),
]


@lru_cache(maxsize=1)
def load_term_dictionaries() -> Dict[str, Dict[str, str]]:
    data = json.loads(_TERM_DICT_PATH.read_text(encoding="utf-8"))
    return {str(k): {str(a): str(b) for a, b in v.items()} for k, v in data.items()}


def active_notation_rules(config: AdvancedRulesConfig) -> Dict[str, str]:
    combined: Dict[str, str] = {}
    dictionaries = load_term_dictionaries()
    for key, flag in _DICTIONARY_FLAGS:
        if getattr(config, flag, False):
            combined.update(dictionaries.get(key, {}))
    combined.update(config.custom_notation_rules)
    return combined


class TermNotationRule(Rule):
    name = "term-notation"
    description = "技術用語の表記を統一します"
    enable_flag = "enable_term_notation"

    def check(self, tokens, context):
        text = context.document_text
        out = []
        for incorrect, correct in active_notation_rules(context.config).items():
            if incorrect == correct:
                continue
            # 英数字の境界のみで区切る（日本語に隣接していても一致させる）
            rx = re.compile(r"(?<![A-Za-z0-9_])" + re.escape(incorrect) + r"(?![A-Za-z0-9_])")
            for m in rx.finditer(text):
                out.append(self.at_offsets(
                    m.start(), m.end(),
                    f"技術用語の表記「{m.group(0)}」は「{correct}」に統一してください。",
                    suggestions=[f"「{correct}」に変更する"],
                ))
        return out


def advanced_rules() -> List[Rule]:
    return [
        StyleConsistencyRule(),
        RaNukiRule(),
        DoubleNegationRule(),
        ParticleRepetitionRule(),
        ConjunctionRepetitionRule(),
        AdversativeGaRule(),
        AlphabetWidthRule(),
        WeakExpressionRule(),
        CommaCountRule(),
        TermNotationRule(),
        KanjiOpeningRule(),
        RedundantExpressionRule(),
        TautologyRule(),
        NoParticleChainRule(),
        MonotonousEndingRule(),
        LongSentenceRule(),
        SahenVerbRule(),
        MissingSubjectRule(),
        TwistedSentenceRule(),
        HomophoneRule(),
        HonorificErrorRule(),
        AdverbAgreementRule(),
        ModifierPositionRule(),
        AmbiguousDemonstrativeRule(),
        PassiveOveruseRule(),
        NounChainRule(),
        ConjunctionMisuseRule(),
        HalfwidthKanaRule(),
    ]


__all__ = [
    "find_all",
    "sentence_spans",
    "dominant_style",
    "detect_ra_nuki",
    "active_weak_patterns",
    "active_notation_rules",
    "load_term_dictionaries",
    "to_halfwidth_alpha",
    "PhraseTableRule",
    "advanced_rules",
] + [cls.__name__ for cls in (
    StyleConsistencyRule, RaNukiRule, DoubleNegationRule, ParticleRepetitionRule,
    ConjunctionRepetitionRule, AdversativeGaRule, AlphabetWidthRule, WeakExpressionRule,
    CommaCountRule, TermNotationRule, KanjiOpeningRule, RedundantExpressionRule, TautologyRule,
    NoParticleChainRule, MonotonousEndingRule, LongSentenceRule, SahenVerbRule, MissingSubjectRule,
    TwistedSentenceRule, HomophoneRule, HonorificErrorRule, AdverbAgreementRule,
    ModifierPositionRule, AmbiguousDemonstrativeRule, PassiveOveruseRule, NounChainRule,
    ConjunctionMisuseRule, HalfwidthKanaRule,
)]
