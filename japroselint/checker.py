"""高レベル API: テキスト/文書/ファイル/パス群に対する日本語校閲

処理の流れ:
1. コードファイルならコメント本文だけの散文ビューを作る
2. 除外範囲を検出してマスキング（markdown_filter）
3. 形態素解析し、除外範囲に掛かるトークンを捨てる（token_filter）
4. 文分割（sentences）
5. ルール実行と位置の正規化（rule_engine）
6. 表の中の診断を捨て、散文ビューの位置を元ファイルの位置に戻す（position）

パス群の走査はスレッドプールとファイル単位のキャッシュを使う。
"""
from __future__ import annotations

import inspect
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from . import morph
from .cache import DEFAULT_CACHE, config_digest, file_fingerprint, load_cache, lookup, save_cache, store
from .comments import build_prose_view, is_code_language
from .config import Settings
from .diagnostics import Diagnostic, Position, Range
from .document_filter import should_analyze
from .file_scanner import iter_files, language_for_path, read_text
from .markdown_filter import FilterResult, filter_text
from .position import LineIndex, PositionMapper
from .rule_engine import RuleEngine
from .sentences import segment
from .token_filter import filter_tokens
from .tokens import Token

logger = logging.getLogger(__name__)

Tokenizer = Callable[[str], Union[List[Token], Awaitable[List[Token]]]]


@dataclass
class Issue:
    file: str | None
    diagnostic: Diagnostic
    snippet: str = ""

    @property
    def line(self) -> int:
        return self.diagnostic.range.start.line

    @property
    def character(self) -> int:
        return self.diagnostic.range.start.character

    @property
    def code(self) -> str:
        return self.diagnostic.code

    @property
    def message(self) -> str:
        return self.diagnostic.message

    @property
    def severity(self):
        return self.diagnostic.severity

    @property
    def suggestions(self) -> List[str]:
        return self.diagnostic.suggestions

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"file": self.file}
        data.update(self.diagnostic.to_dict())
        data["snippet"] = self.snippet
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Issue":
        return cls(file=data.get("file"), diagnostic=Diagnostic.from_dict(data),
                   snippet=str(data.get("snippet", "")))


@dataclass
class _Prepared:
    original: str
    prose: str
    filtered: FilterResult
    mapper: Optional[PositionMapper]


def _prepare(text: str, language_id: str, settings: Settings) -> _Prepared:
    mapper = None
    prose = text
    if is_code_language(language_id):
        view = build_prose_view(text, language_id)
        prose = view.text
        mapper = PositionMapper(text, prose, view.excluded_ranges)
    return _Prepared(text, prose, filter_text(prose, settings.filter), mapper)


def _default_tokenizer(use_morph: bool) -> Optional[Tokenizer]:
    if use_morph and morph.is_available():
        return morph.analyze
    return None


def _in_table(offset: int, result: FilterResult) -> bool:
    return any(r.type == "table" and r.start <= offset < r.end for r in result.excluded_ranges)


def _to_original(diag: Diagnostic, prose_index: LineIndex, orig_index: LineIndex,
                 mapper: PositionMapper) -> Optional[Diagnostic]:
    start = prose_index.offset_at(diag.range.start)
    end = prose_index.offset_at(diag.range.end)
    s = mapper.map_to_original(start)
    if s is None:
        return None
    if end > start:
        # 終端は排他的なので最後の1文字を写して1文字進める（行末を越えない）
        last = mapper.map_to_original(end - 1)
        if last is None:
            return None
        e = Position(last.line, min(last.character + 1, orig_index.line_length(last.line)))
    else:
        e = s
    return diag.with_range(Range(s, e))


def _snippet(index: LineIndex, diag: Diagnostic) -> str:
    start = index.offset_at(diag.range.start)
    end = index.offset_at(diag.range.end)
    return index.text[start:end].split("\n", 1)[0]


def _finish(prep: _Prepared, tokens: Sequence[Token], settings: Settings, file: str | None,
            engine: Optional[RuleEngine], rule_names: Optional[Iterable[str]]) -> List[Issue]:
    result = prep.filtered
    kept = filter_tokens(tokens, result.excluded_ranges)
    sentences = segment(result.filtered_text, kept, result.excluded_ranges)
    eng = engine or RuleEngine(config=settings.rules)
    if rule_names is None:
        diags = eng.check(result.filtered_text, kept, sentences, settings.rules)
    else:
        diags = eng.check_with_rules(result.filtered_text, kept, rule_names, sentences, settings.rules)

    prose_index = LineIndex(result.filtered_text)
    orig_index = LineIndex(prep.original)
    seen = set()
    issues: List[Issue] = []
    for diag in diags:
        if _in_table(prose_index.offset_at(diag.range.start), result):
            continue
        if prep.mapper is not None:
            mapped = _to_original(diag, prose_index, orig_index, prep.mapper)
            if mapped is None:
                logger.debug("dropping unmappable diagnostic %s at %s", diag.code, diag.range)
                continue
            diag = mapped
        key = (diag.range, diag.code, diag.message)
        if key in seen:
            continue
        seen.add(key)
        issues.append(Issue(file=file, diagnostic=diag, snippet=_snippet(orig_index, diag)))
    issues.sort(key=lambda i: (i.diagnostic.range, i.diagnostic.code, i.diagnostic.message))
    return issues


def check_text(
    text: str,
    language_id: str = "markdown",
    file: str | None = None,
    settings: Optional[Settings] = None,
    morph_enabled: bool = True,
    tokenizer: Optional[Callable[[str], List[Token]]] = None,
    engine: Optional[RuleEngine] = None,
    rule_names: Optional[Iterable[str]] = None,
) -> List[Issue]:
    """テキストを校閲して Issue を位置順に返す。

    tokenizer を省略すると形態素解析器（fugashi / Janome）を使う。
    morph_enabled=False または解析器が無い場合はトークンなしで実行し、
    トークンを使うルールは何も検出しない。
    """
    settings = settings or Settings()
    prep = _prepare(text, language_id, settings)
    tok = tokenizer or _default_tokenizer(morph_enabled)
    tokens = list(tok(prep.filtered.filtered_text)) if tok else []
    return _finish(prep, tokens, settings, file, engine, rule_names)


async def check_text_async(
    text: str,
    language_id: str = "markdown",
    file: str | None = None,
    settings: Optional[Settings] = None,
    morph_enabled: bool = True,
    tokenizer: Optional[Tokenizer] = None,
    engine: Optional[RuleEngine] = None,
    rule_names: Optional[Iterable[str]] = None,
) -> List[Issue]:
    """check_text と同じ。tokenizer はコルーチン関数でもよい（1文書につき1回 await する）。"""
    settings = settings or Settings()
    prep = _prepare(text, language_id, settings)
    tok = tokenizer or _default_tokenizer(morph_enabled)
    tokens: List[Token] = []
    if tok:
        produced = tok(prep.filtered.filtered_text)
        if inspect.isawaitable(produced):
            produced = await produced
        tokens = list(produced)
    return _finish(prep, tokens, settings, file, engine, rule_names)


def check_document(uri: str, language_id: str, text: str, settings: Optional[Settings] = None,
                   **kwargs) -> List[Issue]:
    """文書フィルタを通った場合だけ check_text を実行する。"""
    settings = settings or Settings()
    if not should_analyze(uri, language_id, text, settings.rules):
        logger.debug("skip %s (language_id=%r)", uri, language_id)
        return []
    return check_text(text, language_id=language_id, file=kwargs.pop("file", uri),
                      settings=settings, **kwargs)


def check_file(path: str, settings: Optional[Settings] = None, morph_enabled: bool = True,
               engine: Optional[RuleEngine] = None,
               rule_names: Optional[Iterable[str]] = None) -> List[Issue]:
    content = read_text(Path(path))
    if content is None:
        return []
    return check_document(
        str(path), language_for_path(path), content,
        settings=settings,
        morph_enabled=morph_enabled,
        engine=engine,
        rule_names=rule_names,
    )


def check_paths(
    paths: Iterable[str],
    settings: Optional[Settings] = None,
    morph_enabled: bool = True,
    jobs: int = 1,
    use_cache: bool = True,
    engine: Optional[RuleEngine] = None,
    rule_names: Optional[Iterable[str]] = None,
    cache_root: str | None = None,
) -> List[Issue]:
    settings = settings or Settings()
    engine = engine or RuleEngine(config=settings.rules)
    names = None if rule_names is None else sorted(set(rule_names))
    files = [f for f in iter_files(paths) if f.name != DEFAULT_CACHE]
    root = cache_root or str(Path.cwd())

    # キャッシュ読み込み
    cache = load_cache(root) if use_cache else {}
    digest = config_digest(
        settings.rules, settings.filter, names,
        [repr(r) + str(getattr(r, "pattern", "")) for r in engine.rules],
        morph.backend() if morph_enabled else None,
    )
    to_scan: List[Tuple[str, str]] = []  # (path, fingerprint)
    results: List[Issue] = []

    for f in files:
        key = str(f)
        fp = file_fingerprint(Path(f))
        hit = lookup(cache, key, fp, digest) if use_cache else None
        if hit is not None:
            results.extend(Issue.from_dict(d) for d in hit)
            continue
        to_scan.append((key, fp))

    def _record(key: str, fp: str, res: List[Issue]) -> None:
        results.extend(res)
        if use_cache:
            store(cache, key, fp, digest, [i.to_dict() for i in res])

    # 並列/直列実行
    if jobs and jobs > 1:
        with ThreadPoolExecutor(max_workers=jobs) as ex:
            futs = {
                ex.submit(check_file, key, settings, morph_enabled, engine, names): (key, fp)
                for key, fp in to_scan
            }
            for fut in as_completed(futs):
                key, fp = futs[fut]
                try:
                    res = fut.result()
                except Exception:
                    logger.exception("failed to check %s", key)
                    continue
                _record(key, fp, res)
    else:
        for key, fp in to_scan:
            _record(key, fp, check_file(key, settings, morph_enabled, engine, names))

    # キャッシュ保存
    if use_cache:
        try:
            save_cache(root, cache)
        except OSError as e:
            logger.warning("キャッシュを保存できません: %s", e)

    results.sort(key=lambda i: (i.file or "", i.diagnostic.range, i.diagnostic.code))
    return results


__all__ = ["Issue", "check_text", "check_text_async", "check_document", "check_file", "check_paths"]
