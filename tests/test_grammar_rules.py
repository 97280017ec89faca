from japroselint.grammar_rules import basic_rules
from japroselint.rule_engine import RuleEngine
from japroselint.tokens import parse_mecab_output

WATASHI = "私\t名詞,代名詞,一般,*,*,*,私,ワタシ,ワタシ\n"
GA = "が\t助詞,格助詞,一般,*,*,*,が,ガ,ガ\n"
WO = "を\t助詞,格助詞,一般,*,*,*,を,ヲ,ヲ\n"
IKU = "行く\t動詞,自立,*,*,五段・カ行促音便,基本形,行く,イク,イク\n"


def _check(text, mecab):
    tokens = parse_mecab_output(mecab + "EOS\n")
    assert "".join(t.surface for t in tokens) == text
    return RuleEngine(rules=basic_rules()).check(text, tokens)


def test_double_particle_spans_both_particles():
    diags = _check("私がが行く", WATASHI + GA + GA + IKU)
    assert [d.code for d in diags] == ["double-particle"]
    d = diags[0]
    assert (d.range.start.line, d.range.start.character) == (0, 1)
    assert (d.range.end.line, d.range.end.character) == (0, 3)
    assert d.source == "japroselint"
    assert "がが" in d.message


def test_verb_particle_mismatch():
    mecab = "学校\t名詞,一般,*,*,*,*,学校,ガッコウ,ガッコー\n" + WO + IKU
    diags = _check("学校を行く", mecab)
    assert [d.code for d in diags] == ["verb-particle-mismatch"]
    assert (diags[0].range.start.character, diags[0].range.end.character) == (2, 5)


def test_particle_sequence():
    diags = _check("私がを", WATASHI + GA + WO)
    assert [d.code for d in diags] == ["particle-sequence"]
    assert "がを" in diags[0].message


def test_allowed_particle_pair_is_not_flagged():
    mecab = "東京\t名詞,固有名詞,地域,一般,*,*,東京,トウキョウ,トーキョー\n" \
            "に\t助詞,格助詞,一般,*,*,*,に,ニ,ニ\n" \
            "は\t助詞,係助詞,*,*,*,*,は,ハ,ワ\n"
    assert _check("東京には", mecab) == []


def test_redundant_copula():
    mecab = "雨\t名詞,一般,*,*,*,*,雨,アメ,アメ\n" \
            "で\t助詞,格助詞,一般,*,*,*,で,デ,デ\n" \
            "です\t助動詞,*,*,*,特殊・デス,基本形,です,デス,デス\n"
    diags = _check("雨でです", mecab)
    assert [d.code for d in diags] == ["redundant-copula"]
    assert diags[0].suggestions == ["「で」を削除する"]


def test_positions_on_later_lines():
    from dataclasses import replace

    text = "はい\n私がが"
    tokens = parse_mecab_output("はい\t感動詞,*,*,*,*,*,はい,ハイ,ハイ\n" + WATASHI + GA + GA)
    # 改行は MeCab 出力に現れないので位置を1文字ずらす
    shifted = [tokens[0]] + [replace(t, start=t.start + 1, end=t.end + 1) for t in tokens[1:]]
    diags = RuleEngine(rules=basic_rules()).check(text, shifted)
    assert len(diags) == 1
    r = diags[0].range
    assert (r.start.line, r.start.character, r.end.line, r.end.character) == (1, 1, 1, 3)
