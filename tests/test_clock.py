from datetime import datetime

import pytest

from ironbar.clock import ClockConfig, default_locale, strip_tail
from ironbar.config import ConfigError, TransitionType

MOMENT = datetime(2024, 3, 5, 14, 7, 9)


def test_strip_tail_removes_encoding():
    assert strip_tail("en_GB.UTF-8") == "en_GB"


def test_strip_tail_without_dot():
    assert strip_tail("POSIX") == "POSIX"


def test_strip_tail_only_first_dot():
    assert strip_tail("a.b.c") == "a"


def test_default_locale_prefers_lc_time(monkeypatch):
    monkeypatch.setenv("LC_TIME", "de_DE.UTF-8")
    monkeypatch.setenv("LANG", "en_US.UTF-8")
    assert default_locale() == "de_DE"


def test_default_locale_falls_back_to_lang(monkeypatch):
    monkeypatch.delenv("LC_TIME", raising=False)
    monkeypatch.setenv("LANG", "en_US.UTF-8")
    assert default_locale() == "en_US"


def test_default_locale_posix(monkeypatch):
    monkeypatch.delenv("LC_TIME", raising=False)
    monkeypatch.delenv("LANG", raising=False)
    assert default_locale() == "POSIX"


def test_from_dict_defaults(monkeypatch):
    monkeypatch.delenv("LC_TIME", raising=False)
    monkeypatch.delenv("LANG", raising=False)
    config = ClockConfig.from_dict({})
    assert config.format == "%d/%m/%Y %H:%M"
    assert config.format_popup == "%H:%M:%S"
    assert config.locale == "POSIX"


def test_from_dict_reads_values_and_common():
    config = ClockConfig.from_dict(
        {"format": "%H", "format_popup": "%M", "locale": "POSIX", "transition_type": "crossfade"}
    )
    assert (config.format, config.format_popup, config.locale) == ("%H", "%M", "POSIX")
    assert config.common.transition_type is TransitionType.CROSSFADE


def test_from_dict_rejects_non_string_format():
    with pytest.raises(ConfigError):
        ClockConfig.from_dict({"format": 12})


def test_format_time_default_pattern():
    config = ClockConfig(locale="POSIX")
    assert config.format_time(MOMENT) == "05/03/2024 14:07"


def test_format_popup_time_default_pattern():
    config = ClockConfig(locale="POSIX")
    assert config.format_popup_time(MOMENT) == "14:07:09"


def test_unknown_locale_falls_back():
    known = ClockConfig(format="%A %B", locale="POSIX")
    unknown = ClockConfig(format="%A %B", locale="xx_NOWHERE")
    assert unknown.format_time(MOMENT) == known.format_time(MOMENT)


def test_format_time_now_matches_pattern_length():
    config = ClockConfig(locale="POSIX", format="%Y-%m-%d")
    text = config.format_time()
    assert len(text) == 10
    assert text[4] == "-" and text[7] == "-"