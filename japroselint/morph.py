"""形態素解析サポート。

優先度:
- fugashi(MeCab) + unidic系 があればそれを利用
- なければ Janome にフォールバック

どちらの結果も IPA 形式に近い Token に揃える。表層形の隙間（fugashi が落とす空白など）は
空白トークンで埋めるので、surface を連結すると必ず入力テキストに戻る。
"""
from __future__ import annotations

import logging
import threading
from typing import List, Optional

from .tokens import UNKNOWN, Token

logger = logging.getLogger(__name__)

_tokenizer = None
_backend: Optional[str] = None  # "fugashi" | "janome" | None
_lock = threading.Lock()


def is_available() -> bool:
    global _tokenizer, _backend
    if _tokenizer is not None:
        return True
    # Try fugashi first
    try:
        from fugashi import Tagger  # type: ignore
        _tokenizer = Tagger()
        _backend = "fugashi"
        logger.debug("morph backend: fugashi")
        return True
    except Exception as e:
        logger.debug("fugashi unavailable: %s", e)
    # Fallback to janome
    try:
        from janome.tokenizer import Tokenizer  # type: ignore
        _tokenizer = Tokenizer()
        _backend = "janome"
        logger.debug("morph backend: janome")
        return True
    except Exception as e:
        logger.debug("janome unavailable: %s", e)
        return False


def backend() -> Optional[str]:
    """利用中のバックエンド名。未初期化なら初期化を試みる。"""
    is_available()
    return _backend


def _f(value) -> str:
    if value is None or value == "":
        return UNKNOWN
    return str(value)


def _from_fugashi(word, start: int) -> Token:
    feat = word.feature
    return Token(
        surface=word.surface,
        pos=_f(getattr(feat, "pos1", None)),
        pos_detail1=_f(getattr(feat, "pos2", None)),
        pos_detail2=_f(getattr(feat, "pos3", None)),
        pos_detail3=_f(getattr(feat, "pos4", None)),
        conjugation=_f(getattr(feat, "cType", None)),
        conjugation_form=_f(getattr(feat, "cForm", None)),
        base_form=_f(getattr(feat, "orthBase", None) or getattr(feat, "lemma", None)),
        reading=_f(getattr(feat, "kana", None)),
        pronunciation=_f(getattr(feat, "pron", None)),
        start=start,
        end=start + len(word.surface),
    )


def _from_janome(tok, start: int) -> Token:
    pos = (tok.part_of_speech.split(",") + [UNKNOWN] * 4)[:4]
    return Token(
        surface=tok.surface,
        pos=_f(pos[0]),
        pos_detail1=_f(pos[1]),
        pos_detail2=_f(pos[2]),
        pos_detail3=_f(pos[3]),
        conjugation=_f(tok.infl_type),
        conjugation_form=_f(tok.infl_form),
        base_form=_f(tok.base_form),
        reading=_f(tok.reading),
        pronunciation=_f(tok.phonetic),
        start=start,
        end=start + len(tok.surface),
    )


def _gap(text: str, start: int, end: int) -> Token:
    return Token(surface=text[start:end], pos="記号", pos_detail1="空白", start=start, end=end)


def analyze(text: str) -> List[Token]:
    """テキストを形態素解析して Token 列を返す。

    形態素器が無い場合は RuntimeError。
    """
    if not is_available():
        raise RuntimeError(
            "形態素解析器が見つかりません。'pip install janome' または "
            "'pip install fugashi unidic-lite' を実行してください"
        )
    if not text:
        return []
    with _lock:
        if _backend == "fugashi":
            raw = [(w.surface, w) for w in _tokenizer(text)]
        else:
            raw = [(t.surface, t) for t in _tokenizer.tokenize(text)]
    convert = _from_fugashi if _backend == "fugashi" else _from_janome
    tokens: List[Token] = []
    idx = 0
    for surf, word in raw:
        if not surf:
            continue
        pos = text.find(surf, idx)
        if pos < 0:
            # 正規化などで表層形が見つからない場合は読み飛ばす
            logger.debug("surface not found in text: %r at %d", surf, idx)
            continue
        if pos > idx:
            tokens.append(_gap(text, idx, pos))
        tokens.append(convert(word, pos))
        idx = pos + len(surf)
    if idx < len(text):
        tokens.append(_gap(text, idx, len(text)))
    return tokens


__all__ = ["is_available", "backend", "analyze"]
