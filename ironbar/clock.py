"""Settings and time formatting for the clock module."""

from __future__ import annotations

import locale
import os
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterator, Mapping, Optional
from contextlib import contextmanager

from ironbar.config import CommonConfig, ConfigError

DEFAULT_FORMAT = "%d/%m/%Y %H:%M"
DEFAULT_POPUP_FORMAT = "%H:%M:%S"
POSIX_LOCALE = "POSIX"

_locale_lock = threading.Lock()


def strip_tail(value: str) -> str:
    """Drop everything from the first ``.`` onwards, e.g. an encoding suffix."""
    head, _, _ = value.partition(".")
    return head


def default_locale() -> str:
    """The time locale from ``$LC_TIME`` or ``$LANG``, else ``POSIX``."""
    value = os.environ.get("LC_TIME")
    if value is None:
        value = os.environ.get("LANG")
    if value is None:
        return POSIX_LOCALE
    return strip_tail(value)


@contextmanager
def _time_locale(name: str) -> Iterator[None]:
    """Temporarily switch the time locale, falling back to POSIX if unavailable."""
    with _locale_lock:
        previous = locale.setlocale(locale.LC_TIME)
        for candidate in (f"{name}.UTF-8", name, POSIX_LOCALE):
            try:
                locale.setlocale(locale.LC_TIME, candidate)
                break
            except locale.Error:
                continue
        try:
            yield
        finally:
            locale.setlocale(locale.LC_TIME, previous)


def _string(data: Mapping[str, Any], key: str, default: str) -> str:
    if key not in data:
        return default
    value = data[key]
    if not isinstance(value, str):
        raise ConfigError(f"invalid type for '{key}': expected a string")
    return value


@dataclass
class ClockConfig:
    """Clock module options: bar and popup formats, and the locale for names."""

    format: str = DEFAULT_FORMAT
    format_popup: str = DEFAULT_POPUP_FORMAT
    locale: str = field(default_factory=default_locale)
    common: Optional[CommonConfig] = field(default_factory=CommonConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ClockConfig":
        """Build the clock options from a module's config map."""
        if not isinstance(data, Mapping):
            raise ConfigError("invalid type for 'clock': expected a map")
        return cls(
            format=_string(data, "format", DEFAULT_FORMAT),
            format_popup=_string(data, "format_popup", DEFAULT_POPUP_FORMAT),
            locale=_string(data, "locale", default_locale()),
            common=CommonConfig.from_dict(data),
        )

    def _format(self, pattern: str, when: Optional[datetime]) -> str:
        moment = when if when is not None else datetime.now().astimezone()
        with _time_locale(self.locale):
            return moment.strftime(pattern)

    def format_time(self, when: Optional[datetime] = None) -> str:
        """The bar label text for ``when`` (default: now, local time)."""
        return self._format(self.format, when)

    def format_popup_time(self, when: Optional[datetime] = None) -> str:
        """The popup clock text for ``when`` (default: now, local time)."""
        return self._format(self.format_popup, when)