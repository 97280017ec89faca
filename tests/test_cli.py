import json

from japroselint.cli import main


def _write(tmp_path, text, name="doc.md"):
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return str(path)


def test_text_output(tmp_path, capsys):
    path = _write(tmp_path, "頭痛が痛い。")
    assert main(["--no-morph", "--no-cache", path]) == 0
    out = capsys.readouterr().out
    assert ":1:1: [WARNING]" in out
    assert "| tautology" in out
    assert "suggest: 頭が痛い / 頭痛がする" in out
    assert "Total:" in out


def test_fail_on_issue_and_json(tmp_path, capsys):
    path = _write(tmp_path, "頭痛が痛い。")
    assert main(["--no-morph", "--no-cache", "--fail-on-issue", "--json", path]) == 1
    data = json.loads(capsys.readouterr().out)
    assert any(d["code"] == "tautology" for d in data)


def test_only_disable_and_min_severity(tmp_path, capsys):
    path = _write(tmp_path, "頭痛が痛い。まず最初に書く。")
    main(["--no-morph", "--no-cache", "--json", "--only", "tautology", path])
    assert {d["code"] for d in json.loads(capsys.readouterr().out)} == {"tautology"}
    main(["--no-morph", "--no-cache", "--json", "--disable", "tautology", path])
    assert "tautology" not in {d["code"] for d in json.loads(capsys.readouterr().out)}
    main(["--no-morph", "--no-cache", "--min-severity", "error", path])
    assert "No issues found." in capsys.readouterr().out


def test_no_issues(tmp_path, capsys):
    path = _write(tmp_path, "Hello")
    assert main(["--no-morph", "--no-cache", path]) == 0
    assert "No issues found." in capsys.readouterr().out


def test_list_rules(capsys):
    assert main(["--list-rules"]) == 0
    out = capsys.readouterr().out
    assert "tautology" in out and "double-particle" in out
    assert "off particle-repetition" in out


def test_config_and_rule_files(tmp_path, capsys):
    cfg = _write(tmp_path, "[tool.japroselint]\nenableTautology = false\n", "pyproject.toml")
    rules = _write(tmp_path, '[{"id": "no-test", "pattern": "テスト", "message": "テスト禁止"}]', "rules.json")
    path = _write(tmp_path, "頭痛が痛いテスト。")
    main(["--no-morph", "--no-cache", "--json", "--config", cfg, "--rules", rules, path])
    codes = {d["code"] for d in json.loads(capsys.readouterr().out)}
    assert "tautology" not in codes
    assert "no-test" in codes


def test_bad_config_exits_2(tmp_path, capsys):
    assert main(["--config", str(tmp_path / "missing.toml"), "x.md"]) == 2
    assert main(["--rules", str(tmp_path / "missing.json"), "x.md"]) == 2
    assert "Failed to load" in capsys.readouterr().err
