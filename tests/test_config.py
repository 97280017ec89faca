import pytest

from japroselint.config import (
    ConfigError,
    load_settings,
    rules_config_from_mapping,
    settings_from_mapping,
    to_snake,
)
from japroselint.diagnostics import Severity, normalize_severity


def test_to_snake():
    assert to_snake("enableAWSDictionary") == "enable_aws_dictionary"
    assert to_snake("commaCountThreshold") == "comma_count_threshold"
    assert to_snake("long_sentence_threshold") == "long_sentence_threshold"


def test_rules_config_from_mapping():
    cfg = rules_config_from_mapping({"commaCountThreshold": 2, "weakExpressionLevel": "strict",
                                     "enableTautology": False, "unknownKey": 1})
    assert cfg.comma_count_threshold == 2
    assert cfg.weak_expression_level == "strict"
    assert cfg.enable_tautology is False


@pytest.mark.parametrize("options", [
    {"weakExpressionLevel": "extreme"},
    {"enableTautology": "yes"},
    {"commaCountThreshold": 0},
    {"commaCountThreshold": True},
    {"excludedLanguageIds": "python"},
])
def test_invalid_values_raise(options):
    with pytest.raises(ConfigError):
        rules_config_from_mapping(options)


def test_settings_sections():
    settings = settings_from_mapping({
        "longSentenceThreshold": 80,
        "jobs": 4,
        "minSeverity": "error",
        "notation": {"Github": "GitHub"},
        "filter": {"excludeTables": False, "customExcludePatterns": ["TODO"]},
    })
    assert settings.rules.long_sentence_threshold == 80
    assert settings.rules.custom_notation_rules == {"Github": "GitHub"}
    assert settings.filter.exclude_tables is False
    assert settings.filter.custom_exclude_patterns == ("TODO",)
    assert settings.cli == {"jobs": 4, "min_severity": "error"}


def test_load_settings_from_pyproject(tmp_path):
    path = tmp_path / "pyproject.toml"
    path.write_text(
        "[tool.japroselint]\ncommaCountThreshold = 3\n\n"
        "[tool.japroselint.filter]\nexcludeUrls = false\n",
        encoding="utf-8",
    )
    settings = load_settings(str(path))
    assert settings.rules.comma_count_threshold == 3
    assert settings.filter.exclude_urls is False


def test_load_settings_without_section(tmp_path):
    path = tmp_path / "pyproject.toml"
    path.write_text("[project]\nname = 'x'\n", encoding="utf-8")
    assert load_settings(str(path)).rules.comma_count_threshold == 4


def test_load_settings_errors(tmp_path):
    with pytest.raises(ConfigError):
        load_settings(str(tmp_path / "missing.toml"))
    broken = tmp_path / "broken.toml"
    broken.write_text("[tool.japroselint\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_settings(str(broken))


@pytest.mark.parametrize("value,expected", [
    (0, Severity.ERROR), ("warn", Severity.WARNING), ("Information", Severity.INFORMATION),
    ("3", Severity.HINT), (9, Severity.WARNING), ("loud", Severity.WARNING), (None, Severity.WARNING),
])
def test_normalize_severity(value, expected):
    assert normalize_severity(value) == expected
