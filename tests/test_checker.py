import asyncio
import json
import re

from japroselint import check_document, check_file, check_paths, check_text, check_text_async
from japroselint.cache import DEFAULT_CACHE
from japroselint.external_rules import PatternRule
from japroselint.rule_engine import RuleEngine
from japroselint.tokens import parse_mecab_output

MECAB = (
    "私\t名詞,代名詞,一般,*,*,*,私,ワタシ,ワタシ\n"
    "が\t助詞,格助詞,一般,*,*,*,が,ガ,ガ\n"
    "が\t助詞,格助詞,一般,*,*,*,が,ガ,ガ\n"
    "行く\t動詞,自立,*,*,五段・カ行促音便,基本形,行く,イク,イク\n"
    "EOS\n"
)


def _codes(issues):
    return [i.code for i in issues]


def test_markdown_positions_are_line_and_character():
    issues = check_text("# 見出し\n\n頭痛が痛い。", morph_enabled=False)
    (taut,) = [i for i in issues if i.code == "tautology"]
    assert (taut.line, taut.character) == (2, 0)
    assert taut.snippet == "頭痛が痛い"


def test_excluded_regions_produce_no_issues():
    assert "tautology" not in _codes(check_text("```\n頭痛が痛い\n```\n", morph_enabled=False))
    assert "tautology" not in _codes(check_text("文は`頭痛が痛い`です。", morph_enabled=False))


def test_issues_inside_tables_are_dropped():
    issues = check_text("| 頭痛が痛い | x |\n|---|---|\n", morph_enabled=False)
    assert "tautology" not in _codes(issues)


def test_python_comment_positions_map_to_source():
    issues = check_text("x = 1  # 頭痛が痛い\n", language_id="python", morph_enabled=False)
    (taut,) = [i for i in issues if i.code == "tautology"]
    r = taut.diagnostic.range
    assert (r.start.line, r.start.character, r.end.line, r.end.character) == (0, 9, 0, 14)
    assert taut.snippet == "頭痛が痛い"


def test_comment_range_ending_on_newline_stays_on_line():
    engine = RuleEngine(rules=[PatternRule("pain-eol", re.compile("痛い\n"), "行末の痛い")])
    (issue,) = check_text("x = 1  # 頭痛が痛い\ny = 2\n", language_id="python",
                          morph_enabled=False, engine=engine)
    r = issue.diagnostic.range
    assert (r.start.line, r.start.character, r.end.line, r.end.character) == (0, 12, 0, 14)


def test_code_outside_comments_is_ignored():
    issues = check_text('s = "頭痛が痛い"\n', language_id="python", morph_enabled=False)
    assert issues == []


def test_injected_tokenizer():
    issues = check_text("私がが行く", tokenizer=lambda t: parse_mecab_output(MECAB))
    assert "double-particle" in _codes(issues)


def test_async_tokenizer():
    async def tokenize(text):
        return parse_mecab_output(MECAB)

    issues = asyncio.run(check_text_async("私がが行く", tokenizer=tokenize))
    assert "double-particle" in _codes(issues)


def test_rule_names_subset():
    issues = check_text("頭痛が痛い。まず最初に書く。", morph_enabled=False, rule_names=["redundant-expression"])
    assert set(_codes(issues)) == {"redundant-expression"}


def test_results_are_sorted_and_unique():
    issues = check_text("頭痛が痛い。\n頭痛が痛い。", morph_enabled=False)
    keys = [(i.diagnostic.range, i.code, i.message) for i in issues]
    assert keys == sorted(keys)
    assert len(keys) == len(set(keys))


def test_check_document_gate():
    assert check_document("file:///a.py", "python", "print(1)") == []
    issues = check_document("untitled:1", "", "頭痛が痛い。", morph_enabled=False)
    assert "tautology" in _codes(issues)
    assert issues[0].file == "untitled:1"


def test_check_file_and_paths_with_cache(tmp_path):
    src = tmp_path / "src"
    src.mkdir()
    doc = src / "a.md"
    doc.write_text("頭痛が痛い。", encoding="utf-8")
    (src / "b.py").write_text("print(1)\n", encoding="utf-8")
    (src / "c.bin").write_bytes(b"\x00\x01\x02\x03" * 10)

    assert "tautology" in _codes(check_file(str(doc), morph_enabled=False))

    cache_dir = tmp_path / "cache"
    cache_dir.mkdir()
    first = check_paths([str(src)], morph_enabled=False, cache_root=str(cache_dir))
    assert {i.file for i in first} == {str(doc)}
    cache = json.loads((cache_dir / DEFAULT_CACHE).read_text(encoding="utf-8"))
    assert str(doc) in cache["files"]

    second = check_paths([str(src)], morph_enabled=False, cache_root=str(cache_dir), jobs=2)
    assert [i.to_dict() for i in second] == [i.to_dict() for i in first]


def test_issue_dict_round_trip():
    (issue,) = [i for i in check_text("頭痛が痛い。", morph_enabled=False) if i.code == "tautology"]
    data = issue.to_dict()
    assert data["file"] is None and data["code"] == "tautology"
    assert type(issue).from_dict(data).to_dict() == data


def test_shift_jis_file_is_read(tmp_path):
    doc = tmp_path / "sjis.md"
    doc.write_bytes("頭痛が痛い。\n".encode("cp932"))
    assert "tautology" in _codes(check_file(str(doc), morph_enabled=False))
