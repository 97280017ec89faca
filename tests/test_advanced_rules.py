import pytest

from japroselint import advanced_rules as ar
from japroselint.config import AdvancedRulesConfig
from japroselint.rule_engine import RuleEngine
from japroselint.sentences import segment
from japroselint.tokens import parse_mecab_output


def _run(rule, text, tokens=(), config=None):
    tokens = list(tokens)
    engine = RuleEngine(rules=[rule], config=config or AdvancedRulesConfig())
    return engine.check(text, tokens, segment(text, tokens, []))


def _spans(diags):
    return [(d.range.start.character, d.range.end.character) for d in diags]


def test_style_consistency_flags_minority_sentence():
    diags = _run(ar.StyleConsistencyRule(), "これはペンです。それは本です。あれは机である。")
    assert [d.code for d in diags] == ["style-inconsistency"]
    assert _spans(diags) == [(15, 23)]
    assert "常体" in diags[0].message and "敬体" in diags[0].message
    assert diags[0].source == "japroselint-advanced"


def test_style_consistency_tie_prefers_keigo():
    assert ar.dominant_style(segment("雨です。雨である。", [])) == "keigo"
    assert ar.dominant_style(segment("体言止め。", [])) == "neutral"


@pytest.mark.parametrize("surface,conj,expected", [
    ("見れる", "一段", "見られる"),
    ("食べれない", "", "食べられない"),
    ("着れます", "", "着られます"),
    ("書ける", "五段・カ行イ音便", None),
    ("走る", "五段・ラ行", None),
])
def test_detect_ra_nuki(surface, conj, expected):
    assert ar.detect_ra_nuki(surface, conj) == expected


def test_ra_nuki_rule_on_tokens():
    tokens = parse_mecab_output("見れる\t動詞,自立,*,*,一段,基本形,見れる,ミレル,ミレル\nEOS\n")
    diags = _run(ar.RaNukiRule(), "見れる", tokens)
    assert [d.code for d in diags] == ["ra-nuki"]
    assert diags[0].suggestions == ["見られる"]


def test_ra_nuki_split_tokens():
    tokens = parse_mecab_output(
        "見\t動詞,自立,*,*,一段,未然形,見る,ミ,ミ\n"
        "れる\t動詞,接尾,*,*,一段,基本形,れる,レル,レル\n"
    )
    diags = _run(ar.RaNukiRule(), "見れる", tokens)
    assert len(diags) == 1
    assert diags[0].suggestions == ["見られる"]
    assert _spans(diags) == [(0, 3)]


def test_double_negation():
    diags = _run(ar.DoubleNegationRule(), "できないわけではない。")
    assert len(diags) == 1
    assert "ないわけではない" in diags[0].message


def test_weak_expression_levels():
    text = "明日は雨かもしれない。たぶん行く。"
    normal = _run(ar.WeakExpressionRule(), text)
    assert any("かもしれない" in d.message for d in normal)
    loose = _run(ar.WeakExpressionRule(), text, config=AdvancedRulesConfig(weak_expression_level="loose"))
    assert [d.message for d in loose] == [m.message for m in loose if "たぶん" in m.message]
    assert len(loose) == 1
    strict = _run(ar.WeakExpressionRule(), "そうだと思う。", config=AdvancedRulesConfig(weak_expression_level="strict"))
    assert len(strict) == 1
    assert _run(ar.WeakExpressionRule(), "そうだと思う。") == []


def test_comma_count_threshold():
    assert len(_run(ar.CommaCountRule(), "あ、い、う、え、お、か。")) == 1
    assert _run(ar.CommaCountRule(), "あ、い、う、え、お。") == []
    cfg = AdvancedRulesConfig(comma_count_threshold=1)
    assert len(_run(ar.CommaCountRule(), "あ、い、う。", config=cfg)) == 1


def test_term_notation_dictionary_and_custom():
    diags = _run(ar.TermNotationRule(), "Githubで管理する。")
    assert len(diags) == 1
    assert diags[0].suggestions == ["「GitHub」に変更する"]
    assert _run(ar.TermNotationRule(), "GitHubで管理する。") == []
    cfg = AdvancedRulesConfig(enable_web_tech_dictionary=False, custom_notation_rules={"Foo": "FOO"})
    assert _run(ar.TermNotationRule(), "Githubで管理する。", config=cfg) == []
    assert len(_run(ar.TermNotationRule(), "Fooを使う。", config=cfg)) == 1


def test_term_notation_respects_ascii_word_boundary():
    assert _run(ar.TermNotationRule(), "mygithub です") == []


def test_load_term_dictionaries():
    dictionaries = ar.load_term_dictionaries()
    assert set(dictionaries) == {"web_tech", "generative_ai", "aws", "azure", "oci"}
    assert dictionaries["aws"]["dynamodb"] == "DynamoDB"


def test_kanji_opening_sorted():
    diags = _run(ar.KanjiOpeningRule(), "出来る限り送って下さい。")
    assert _spans(diags) == [(0, 3), (8, 11)]


def test_redundant_and_tautology():
    assert len(_run(ar.RedundantExpressionRule(), "まず最初に説明する。")) == 1
    diags = _run(ar.TautologyRule(), "頭痛が痛い。")
    assert len(diags) == 1
    assert "重複表現" in diags[0].message
    assert diags[0].suggestions == ["頭が痛い", "頭痛がする"]


def test_sahen_verb():
    diags = _run(ar.SahenVerbRule(), "毎日勉強をする。")
    assert len(diags) == 1
    assert diags[0].suggestions == ["勉強する"]


def test_halfwidth_kana():
    diags = _run(ar.HalfwidthKanaRule(), "ｶﾞｲﾄﾞを読む")
    assert _spans(diags) == [(0, 5)]
    assert diags[0].suggestions == ["「ガイド」に変更する"]


def test_alphabet_width_flags_minority():
    diags = _run(ar.AlphabetWidthRule(), "ＡＰＩとAPIとSDK")
    assert _spans(diags) == [(0, 3)]
    assert diags[0].suggestions == ["「API」に変更する"]
    assert _run(ar.AlphabetWidthRule(), "APIとSDK") == []


def test_long_sentence():
    text = "あ" * 121 + "。"
    diags = _run(ar.LongSentenceRule(), text)
    assert len(diags) == 1
    assert "122文字" in diags[0].message


def test_missing_subject():
    assert len(_run(ar.MissingSubjectRule(), "行きました。")) == 1
    assert _run(ar.MissingSubjectRule(), "私は行きました。") == []


def test_no_particle_chain():
    diags = _run(ar.NoParticleChainRule(), "私の兄の友人の車を見た。")
    assert _spans(diags) == [(1, 7)]


def test_monotonous_ending():
    diags = _run(ar.MonotonousEndingRule(), "雨です。風です。雪です。")
    assert len(diags) == 1
    assert _spans(diags) == [(0, 12)]
    assert _run(ar.MonotonousEndingRule(), "雨です。風だ。雪です。") == []


def test_passive_overuse():
    diags = _run(ar.PassiveOveruseRule(), "本が読まれた。歌が歌われた。絵が描かれた。")
    assert len(diags) == 1
    assert "3回" in diags[0].message


def test_adverb_agreement():
    assert len(_run(ar.AdverbAgreementRule(), "決して行きます。")) == 1
    assert _run(ar.AdverbAgreementRule(), "決して行きません。") == []


def test_honorific_error():
    diags = _run(ar.HonorificErrorRule(), "社長がおっしゃられました。")
    assert len(diags) == 1
    assert diags[0].suggestions == ["おっしゃい"]


def test_conjunction_repetition():
    diags = _run(ar.ConjunctionRepetitionRule(), "しかし雨だ。しかし行く。")
    assert _spans(diags) == [(6, 9)]


def test_adversative_ga():
    mecab = (
        "行く\t動詞,自立,*,*,五段・カ行促音便,基本形,行く,イク,イク\n"
        "が\t助詞,接続助詞,*,*,*,*,が,ガ,ガ\n"
        "、\t記号,読点,*,*,*,*,、,、,、\n"
        "帰る\t動詞,自立,*,*,五段・ラ行,基本形,帰る,カエル,カエル\n"
        "。\t記号,句点,*,*,*,*,。,。,。\n"
        "来る\t動詞,自立,*,*,カ変・来ル,基本形,来る,クル,クル\n"
        "が\t助詞,接続助詞,*,*,*,*,が,ガ,ガ\n"
        "、\t記号,読点,*,*,*,*,、,、,、\n"
        "寝る\t動詞,自立,*,*,一段,基本形,寝る,ネル,ネル\n"
        "。\t記号,句点,*,*,*,*,。,。,。\n"
    )
    tokens = parse_mecab_output(mecab)
    diags = _run(ar.AdversativeGaRule(), "行くが、帰る。来るが、寝る。", tokens)
    assert _spans(diags) == [(9, 10)]


def test_noun_chain_from_tokens():
    mecab = "".join(f"{w}\t名詞,一般,*,*,*,*,{w},*,*\n" for w in ["情報", "処理", "技術", "者", "試験"])
    diags = _run(ar.NounChainRule(), "情報処理技術者試験", parse_mecab_output(mecab))
    assert _spans(diags) == [(0, 9)]


def test_pattern_tables():
    assert len(_run(ar.HomophoneRule(), "以外に多い。")) == 1
    assert len(_run(ar.TwistedSentenceRule(), "私の夢は医者になりたいです。")) == 1
    assert len(_run(ar.ModifierPositionRule(), "赤い大きな車")) == 1
    assert len(_run(ar.ConjunctionMisuseRule(), "忙しい。だから、暇だ。")) == 1
    assert len(_run(ar.AmbiguousDemonstrativeRule(), "それは大きな問題だ。")) == 1


def test_particle_repetition_disabled_by_default():
    rule = ar.ParticleRepetitionRule()
    assert not rule.is_enabled(AdvancedRulesConfig())
    assert rule.is_enabled(AdvancedRulesConfig(enable_particle_repetition=True))


def test_every_advanced_rule_has_a_config_flag():
    cfg = AdvancedRulesConfig()
    names = [r.name for r in ar.advanced_rules()]
    assert len(names) == len(set(names)) == 28
    for rule in ar.advanced_rules():
        assert hasattr(cfg, rule.enable_flag), rule.name
