"""形態素トークンのデータ構造。

トークンは形態素解析器（fugashi / Janome）またはMeCab形式の出力から生成され、
生成後は変更しない。位置はフィルタ後テキスト上の半開区間 [start, end)。
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List

UNKNOWN = "*"


@dataclass(frozen=True)
class Token:
    surface: str
    pos: str = UNKNOWN
    pos_detail1: str = UNKNOWN
    pos_detail2: str = UNKNOWN
    pos_detail3: str = UNKNOWN
    conjugation: str = UNKNOWN
    conjugation_form: str = UNKNOWN
    base_form: str = UNKNOWN
    reading: str = UNKNOWN
    pronunciation: str = UNKNOWN
    start: int = 0
    end: int = 0

    @property
    def is_noun(self) -> bool:
        return self.pos == "名詞"

    @property
    def is_verb(self) -> bool:
        return self.pos == "動詞"

    @property
    def is_particle(self) -> bool:
        return self.pos == "助詞"

    @property
    def is_adjective(self) -> bool:
        return self.pos == "形容詞"

    @property
    def is_adverb(self) -> bool:
        return self.pos == "副詞"

    @property
    def is_auxiliary(self) -> bool:
        return self.pos == "助動詞"

    @property
    def lemma(self) -> str:
        """基本形。未知なら表層形。"""
        return self.surface if self.base_form == UNKNOWN else self.base_form


def _feature(values: List[str], idx: int) -> str:
    if idx < len(values) and values[idx]:
        return values[idx]
    return UNKNOWN


def make_token(surface: str, features: List[str], start: int) -> Token:
    """IPA辞書形式の素性列 (品詞,細分類1-3,活用型,活用形,原形,読み,発音) から Token を作る。"""
    return Token(
        surface=surface,
        pos=_feature(features, 0),
        pos_detail1=_feature(features, 1),
        pos_detail2=_feature(features, 2),
        pos_detail3=_feature(features, 3),
        conjugation=_feature(features, 4),
        conjugation_form=_feature(features, 5),
        base_form=_feature(features, 6),
        reading=_feature(features, 7),
        pronunciation=_feature(features, 8),
        start=start,
        end=start + len(surface),
    )


def parse_mecab_output(output: str) -> List[Token]:
    """MeCab の `表層形\\t素性,...` 形式の出力を Token 列に変換する。

    EOS 行と空行は読み飛ばす。位置は表層形の累積長で決まる。
    """
    tokens: List[Token] = []
    offset = 0
    for line in output.splitlines():
        if not line or line == "EOS":
            continue
        surface, _, feature_str = line.partition("\t")
        if not surface:
            continue
        features = feature_str.split(",") if feature_str else []
        tok = make_token(surface, features, offset)
        tokens.append(tok)
        offset = tok.end
    return tokens


__all__ = ["Token", "UNKNOWN", "make_token", "parse_mecab_output"]
