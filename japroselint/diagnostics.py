"""診断結果（Diagnostic）と位置の型。

出力形式はエディタ連携向けの固定形:
    {code, message, severity(0-3), range:{start:{line,character}, end:{...}}, source, suggestions?}
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import IntEnum
from typing import Any, Dict, List

SOURCE_BASIC = "japroselint"
SOURCE_ADVANCED = "japroselint-advanced"


class Severity(IntEnum):
    ERROR = 0
    WARNING = 1
    INFORMATION = 2
    HINT = 3


_SEVERITY_NAMES = {
    "error": Severity.ERROR,
    "warning": Severity.WARNING,
    "warn": Severity.WARNING,
    "information": Severity.INFORMATION,
    "info": Severity.INFORMATION,
    "hint": Severity.HINT,
}


def normalize_severity(value: Any) -> Severity:
    """0-3 の数値または名称を Severity に正規化する。認識できない値は WARNING。"""
    if isinstance(value, bool):
        return Severity.WARNING
    if isinstance(value, int):
        try:
            return Severity(value)
        except ValueError:
            return Severity.WARNING
    if isinstance(value, str):
        key = value.strip().lower()
        if key.isdigit():
            return normalize_severity(int(key))
        return _SEVERITY_NAMES.get(key, Severity.WARNING)
    return Severity.WARNING


@dataclass(frozen=True, order=True)
class Position:
    line: int
    character: int

    def to_dict(self) -> Dict[str, int]:
        return {"line": self.line, "character": self.character}


@dataclass(frozen=True, order=True)
class Range:
    start: Position
    end: Position

    @classmethod
    def from_offsets(cls, start: int, end: int) -> "Range":
        """行0に生の文字オフセットを置いた範囲（曖昧な位置表現）を作る。"""
        return cls(Position(0, start), Position(0, end))

    def to_dict(self) -> Dict[str, Any]:
        return {"start": self.start.to_dict(), "end": self.end.to_dict()}


@dataclass(frozen=True)
class Diagnostic:
    code: str
    message: str
    range: Range
    severity: Severity = Severity.WARNING
    source: str = SOURCE_BASIC
    suggestions: List[str] = field(default_factory=list)

    def with_range(self, new_range: Range) -> "Diagnostic":
        return replace(self, range=new_range)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "code": self.code,
            "message": self.message,
            "severity": int(normalize_severity(self.severity)),
            "range": self.range.to_dict(),
            "source": self.source,
        }
        if self.suggestions:
            data["suggestions"] = list(self.suggestions)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Diagnostic":
        r = data["range"]
        return cls(
            code=str(data["code"]),
            message=str(data["message"]),
            range=Range(Position(int(r["start"]["line"]), int(r["start"]["character"])),
                        Position(int(r["end"]["line"]), int(r["end"]["character"]))),
            severity=normalize_severity(data.get("severity", Severity.WARNING)),
            source=str(data.get("source", SOURCE_BASIC)),
            suggestions=[str(s) for s in data.get("suggestions", [])],
        )


__all__ = [
    "Severity",
    "normalize_severity",
    "Position",
    "Range",
    "Diagnostic",
    "SOURCE_BASIC",
    "SOURCE_ADVANCED",
]
