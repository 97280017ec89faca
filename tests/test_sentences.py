from japroselint.markdown_filter import ExcludedRange, filter_text
from japroselint.sentences import Sentence, segment
from japroselint.token_filter import filter_tokens, is_excluded
from japroselint.tokens import Token, parse_mecab_output


def _texts(sentences):
    return [s.text for s in sentences]


def test_split_on_terminators():
    sents = segment("今日は晴れです。明日は雨です！", [])
    assert _texts(sents) == ["今日は晴れです。", "明日は雨です！"]
    assert [(s.start, s.end) for s in sents] == [(0, 8), (8, 15)]


def test_consecutive_terminators_are_one_boundary():
    assert _texts(segment("本当？！そうです。", [])) == ["本当？！", "そうです。"]


def test_blank_line_breaks_paragraph():
    assert _texts(segment("一行目\n\n二行目", [])) == ["一行目", "二行目"]
    assert _texts(segment("一行目\n二行目", [])) == ["一行目\n二行目"]


def test_heading_is_its_own_sentence():
    result = filter_text("# 見出し\n本文です。")
    sents = segment(result.filtered_text, [], result.excluded_ranges)
    assert _texts(sents) == ["見出し", "本文です。"]
    assert (sents[0].start, sents[0].end) == (2, 5)


def test_colon_and_emphasis_lines_break():
    text = "手順は次のとおり：\n作業を開始する\n**注意**\n続きの文"
    sents = segment(text, [], [])
    assert _texts(sents) == ["手順は次のとおり：", "作業を開始する", "**注意**", "続きの文"]


def test_halfwidth_colon_line_breaks():
    assert _texts(segment("手順:\n作業", [], [])) == ["手順:", "作業"]


def test_code_block_edges_break():
    result = filter_text("説明\n```\ncode\n```\n続き")
    sents = segment(result.filtered_text, [], result.excluded_ranges)
    assert _texts(sents) == ["説明", "続き"]


def test_table_edges_break():
    result = filter_text("前文\n| A | B |\n後文")
    sents = segment(result.filtered_text, [], result.excluded_ranges)
    assert _texts(sents) == ["前文", "A   B", "後文"]


def test_list_items_are_separate():
    result = filter_text("- 一つ目の項目\n- 二つ目の項目")
    sents = segment(result.filtered_text, [], result.excluded_ranges)
    assert _texts(sents) == ["一つ目の項目", "二つ目の項目"]


def test_tokens_and_commas_attached():
    text = "私は、行く。君も、来る、はず。"
    tokens = [Token("私", "名詞", start=0, end=1), Token("行く", "動詞", start=3, end=5),
              Token("君", "名詞", start=6, end=7)]
    first, second = segment(text, tokens)
    assert [t.surface for t in first.tokens] == ["私", "行く"]
    assert [t.surface for t in second.tokens] == ["君"]
    assert (first.comma_count, second.comma_count) == (1, 2)


def test_whitespace_only_sentences_are_dropped():
    assert segment("   \n\n  。", []) == [Sentence("。", 7, 8)]


def test_style_classification():
    assert Sentence("これはペンです。", 0, 8).style == "keigo"
    assert Sentence("行きます", 0, 4).ends_with_desu_masu
    assert Sentence("これはペンである。", 0, 9).style == "joutai"
    assert Sentence("これはペンである。", 0, 9).ends_with_dearu
    assert Sentence("昨日は雨だった。", 0, 8).style == "joutai"
    assert Sentence("行きました。", 0, 6).style == "neutral"
    assert Sentence("体言止め", 0, 4).style == "neutral"


def test_filter_tokens_drops_overlapping_tokens():
    tokens = parse_mecab_output(
        "見る\t動詞,自立,*,*,一段,基本形,見る,ミル,ミル\n"
        "`x`\t記号,一般,*,*,*,*,*\n"
        "こと\t名詞,非自立,一般,*,*,*,こと,コト,コト\nEOS\n"
    )
    ranges = [ExcludedRange(2, 5, "inline-code"), ExcludedRange(4, 1, "custom")]
    kept = filter_tokens(tokens, ranges)
    assert [t.surface for t in kept] == ["見る", "こと"]
    assert is_excluded(tokens[1], ranges)
    assert not is_excluded(tokens[1], [ExcludedRange(4, 1, "custom")])


def test_parse_mecab_output_offsets():
    tokens = parse_mecab_output("私\t名詞,代名詞,一般,*,*,*,私,ワタシ,ワタシ\nが\t助詞,格助詞\n\nEOS\n")
    assert [(t.surface, t.start, t.end) for t in tokens] == [("私", 0, 1), ("が", 1, 2)]
    assert tokens[0].is_noun and tokens[1].is_particle
    assert tokens[1].base_form == "*" and tokens[1].lemma == "が"
