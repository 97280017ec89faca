from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .checker import Issue, check_paths
from .config import ConfigError, Settings, load_settings
from .diagnostics import Severity, normalize_severity
from .external_rules import load_rule_file
from .morph import backend as morph_backend
from .morph import is_available as morph_available
from .rule_engine import RuleEngine

SEVERITY_CHOICES = ["error", "warning", "information", "hint"]


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="japroselint",
        description="Markdown・プレーンテキスト・ソースコードのコメント中の日本語文章を校閲します"
    )
    p.add_argument("paths", nargs="*", help="走査するファイル/ディレクトリ")
    p.add_argument("--json", action="store_true", default=None, help="JSONで出力")
    p.add_argument("--config", help="設定ファイル(TOML: pyproject.toml など)の [tool.japroselint] を読み込む")
    p.add_argument("--rules", action="append", metavar="FILE", help="追加のYAML/JSONルールファイル (複数指定は繰り返し)")
    p.add_argument("--only", action="append", metavar="RULE", help="指定したルールだけを実行 (複数指定は繰り返し)")
    p.add_argument("--disable", action="append", metavar="RULE", help="指定したルールを実行しない (複数指定は繰り返し)")
    p.add_argument("--min-severity", choices=SEVERITY_CHOICES, default=None, help="この重大度未満を非表示にします (既定: hint)")
    p.add_argument("--no-morph", dest="morph", action="store_false", default=None, help="形態素解析を無効化")
    p.add_argument("--jobs", type=int, default=None, help="並列実行のワーカー数")
    p.add_argument("--no-cache", dest="cache", action="store_false", default=None, help="キャッシュを使わず毎回フルスキャン")
    p.add_argument("--fail-on-issue", action="store_true", default=None, help="問題が1件でもあれば終了コード1")
    p.add_argument("--list-rules", action="store_true", help="ルールの一覧と有効/無効を表示して終了")
    p.add_argument("--debug", action="store_true", help="デバッグログを出力")
    return p


def _option(args: argparse.Namespace, settings: Settings, name: str, default):
    """CLI引数が最優先。未指定なら設定ファイルの値、それも無ければ既定値。"""
    value = getattr(args, name)
    if value is not None:
        return value
    return settings.cli.get(name, default)


def _format(issue: Issue) -> str:
    d = issue.diagnostic
    loc = str(Path(issue.file).resolve()) if issue.file else "<memory>"
    # VS Code でクリック可能な file:line:col 形式（1始まり）
    head = f"{loc}:{d.range.start.line + 1}:{d.range.start.character + 1}: " \
           f"[{Severity(d.severity).name}] {d.message}"
    extra = [d.code]
    if d.suggestions:
        extra.append("suggest: " + " / ".join(d.suggestions))
    return head + " | " + " | ".join(extra)


def _list_rules(engine: RuleEngine, settings: Settings) -> None:
    for rule in engine.rules:
        state = "on " if rule.is_enabled(settings.rules) else "off"
        print(f"{state} {rule.name:<28} {rule.description}")


def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    settings = Settings()
    if args.config:
        try:
            settings = load_settings(args.config)
        except ConfigError as e:
            print(f"Failed to load config {args.config}: {e}", file=sys.stderr)
            return 2

    engine = RuleEngine(config=settings.rules)
    for rf in args.rules or []:
        try:
            rule_file = load_rule_file(rf)
        except Exception as e:  # CLIエラーパス
            print(f"Failed to load rules {rf}: {e}", file=sys.stderr)
            return 2
        settings = rule_file.apply(settings)
        for rule in rule_file.rules:
            engine.register(rule)
    engine.config = settings.rules

    if args.list_rules:
        _list_rules(engine, settings)
        return 0
    if not args.paths:
        parser.error("paths を指定してください")

    known = set(engine.rule_names)
    for name in (args.only or []) + (args.disable or []):
        if name not in known:
            print(f"[warn] 未知のルール名です: {name}", file=sys.stderr)
    rule_names: Optional[List[str]] = None
    if args.only or args.disable:
        only = set(args.only or known)
        rule_names = [n for n in engine.rule_names if n in only and n not in set(args.disable or [])]

    use_morph = bool(_option(args, settings, "morph", True))
    if use_morph and not morph_available():
        print("[warn] 形態素解析器(janome/fugashi) が見つかりません。トークンを使うルールは無効になります。", file=sys.stderr)
        use_morph = False
    logging.getLogger(__name__).debug("morph backend: %s", morph_backend() if use_morph else None)

    try:
        min_severity = normalize_severity(_option(args, settings, "min_severity", "hint"))
        issues = check_paths(
            args.paths,
            settings=settings,
            morph_enabled=use_morph,
            jobs=int(_option(args, settings, "jobs", 1)),
            use_cache=bool(_option(args, settings, "cache", True)),
            engine=engine,
            rule_names=rule_names,
        )
    except (TypeError, ValueError) as e:
        print(f"[error] {e}", file=sys.stderr)
        return 2

    # 重大度フィルタ（数値が小さいほど重大）
    issues = [i for i in issues if normalize_severity(i.severity) <= min_severity]
    if _option(args, settings, "json", False):
        print(json.dumps([i.to_dict() for i in issues], ensure_ascii=False, indent=2))
    else:
        if not issues:
            print("No issues found.")
        else:
            for i in issues:
                print(_format(i))
            print(f"Total: {len(issues)} issue(s)")
    if _option(args, settings, "fail_on_issue", False) and issues:
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
