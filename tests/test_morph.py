import pytest

from japroselint import morph

pytest.importorskip("janome")


def test_analyze_round_trip():
    text = "今日は 晴れ  です。\n明日も"
    tokens = morph.analyze(text)
    assert "".join(t.surface for t in tokens) == text
    for prev, cur in zip(tokens, tokens[1:]):
        assert prev.end == cur.start
    assert morph.backend() in ("fugashi", "janome")


def test_analyze_pos_tags():
    tokens = [t for t in morph.analyze("私は学校に行く") if t.surface.strip()]
    assert any(t.surface == "学校" and t.is_noun for t in tokens)
    assert any(t.is_particle and t.surface == "は" for t in tokens)
    assert any(t.is_verb for t in tokens)


def test_analyze_empty():
    assert morph.analyze("") == []
