"""Bar configuration: positions, margins, module lists and per-monitor bars."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Optional, Union

try:
    import tomllib
except ImportError:  # Python 3.10
    tomllib = None

log = logging.getLogger(__name__)

DEFAULT_BAR_HEIGHT = 42
DEFAULT_POPUP_GAP = 5
DEFAULT_LABEL = "ℹ️ Using default config"

MODULE_TYPES = frozenset(
    {
        "clipboard",
        "clock",
        "custom",
        "focused",
        "label",
        "launcher",
        "music",
        "script",
        "sys_info",
        "tray",
        "upower",
        "workspaces",
    }
)

_I32 = (-(2**31), 2**31 - 1)
_U32 = (0, 2**32 - 1)
_U64 = (0, 2**64 - 1)


class ConfigError(ValueError):
    """Raised when configuration data is invalid."""


class Orientation(Enum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


class RevealerTransitionType(Enum):
    NONE = "none"
    CROSSFADE = "crossfade"
    SLIDE_LEFT = "slide_left"
    SLIDE_RIGHT = "slide_right"
    SLIDE_UP = "slide_up"
    SLIDE_DOWN = "slide_down"


class BarPosition(Enum):
    TOP = "top"
    BOTTOM = "bottom"
    LEFT = "left"
    RIGHT = "right"

    def orientation(self) -> Orientation:
        """The orientation the bar and its widgets use at this position."""
        if self in (BarPosition.TOP, BarPosition.BOTTOM):
            return Orientation.HORIZONTAL
        return Orientation.VERTICAL

    def angle(self) -> float:
        """The angle label text is drawn at for this position."""
        if self is BarPosition.LEFT:
            return 90.0
        if self is BarPosition.RIGHT:
            return 270.0
        return 0.0


class TransitionType(Enum):
    NONE = "none"
    CROSSFADE = "crossfade"
    SLIDE_START = "slide_start"
    SLIDE_END = "slide_end"

    def to_revealer_transition_type(self, orientation: Orientation) -> RevealerTransitionType:
        """The revealer animation for this transition on a bar of the given orientation."""
        horizontal = orientation is Orientation.HORIZONTAL
        if self is TransitionType.SLIDE_START:
            return RevealerTransitionType.SLIDE_LEFT if horizontal else RevealerTransitionType.SLIDE_UP
        if self is TransitionType.SLIDE_END:
            return (
                RevealerTransitionType.SLIDE_RIGHT if horizontal else RevealerTransitionType.SLIDE_DOWN
            )
        if self is TransitionType.CROSSFADE:
            return RevealerTransitionType.CROSSFADE
        return RevealerTransitionType.NONE


class EllipsizeMode(Enum):
    START = "start"
    MIDDLE = "middle"
    END = "end"


def _enum(cls: type[Enum], value: Any, key: str) -> Any:
    try:
        return cls(value)
    except (ValueError, TypeError):
        variants = ", ".join(f"`{member.value}`" for member in cls)
        raise ConfigError(
            f"unknown variant {value!r} for '{key}', expected one of {variants}"
        ) from None


def _int(value: Any, key: str, bounds: tuple[int, int]) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"invalid type for '{key}': expected an integer")
    low, high = bounds
    if not low <= value <= high:
        raise ConfigError(f"invalid value for '{key}': {value} is out of range")
    return value


def _bool(value: Any, key: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"invalid type for '{key}': expected a boolean")
    return value


def _str(value: Any, key: str) -> str:
    if not isinstance(value, str):
        raise ConfigError(f"invalid type for '{key}': expected a string")
    return value


def _mapping(value: Any, key: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ConfigError(f"invalid type for '{key}': expected a map")
    return value


def _script_input(value: Any, key: str) -> Union[str, Mapping[str, Any]]:
    if isinstance(value, (str, Mapping)):
        return value
    raise ConfigError(f"invalid type for '{key}': expected a string or a map")


def _optional(data: Mapping[str, Any], key: str, convert, *extra) -> Any:
    value = data.get(key)
    return None if value is None else convert(value, key, *extra)


def _with_default(data: Mapping[str, Any], key: str, default: Any, convert, *extra) -> Any:
    if key not in data:
        return default
    return convert(data[key], key, *extra)


def parse_orientation(text: str) -> Orientation:
    """Parse ``horizontal``/``h`` or ``vertical``/``v``, ignoring case."""
    lowered = text.lower()
    if lowered in ("horizontal", "h"):
        return Orientation.HORIZONTAL
    if lowered in ("vertical", "v"):
        return Orientation.VERTICAL
    raise ConfigError("Invalid orientation string in config")


@dataclass(frozen=True)
class TruncateMode:
    """How a label is shortened: an ellipsis position and optional lengths."""

    mode: EllipsizeMode
    length: Optional[int] = None
    max_length: Optional[int] = None

    @classmethod
    def from_value(cls, value: Any) -> "TruncateMode":
        """Accept either a bare ellipsize mode or a map with mode and lengths."""
        if isinstance(value, str):
            return cls(_enum(EllipsizeMode, value, "truncate"))
        if isinstance(value, Mapping):
            if "mode" not in value:
                raise ConfigError("missing field 'mode' in 'truncate'")
            return cls(
                mode=_enum(EllipsizeMode, value["mode"], "mode"),
                length=_optional(value, "length", _int, _I32),
                max_length=_optional(value, "max_length", _int, _I32),
            )
        raise ConfigError("data did not match any variant of 'truncate'")


_SCRIPT_KEYS = (
    "on_click_left",
    "on_click_right",
    "on_click_middle",
    "on_scroll_up",
    "on_scroll_down",
    "on_mouse_enter",
    "on_mouse_exit",
)


@dataclass
class CommonConfig:
    """Options every module accepts."""

    class_: Optional[str] = None
    name: Optional[str] = None
    show_if: Optional[Union[str, Mapping[str, Any]]] = None
    transition_type: Optional[TransitionType] = None
    transition_duration: Optional[int] = None
    on_click_left: Optional[Union[str, Mapping[str, Any]]] = None
    on_click_right: Optional[Union[str, Mapping[str, Any]]] = None
    on_click_middle: Optional[Union[str, Mapping[str, Any]]] = None
    on_scroll_up: Optional[Union[str, Mapping[str, Any]]] = None
    on_scroll_down: Optional[Union[str, Mapping[str, Any]]] = None
    on_mouse_enter: Optional[Union[str, Mapping[str, Any]]] = None
    on_mouse_exit: Optional[Union[str, Mapping[str, Any]]] = None
    tooltip: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CommonConfig":
        """Read the common options from a module's map; other keys are ignored."""
        data = _mapping(data, "common")
        scripts = {key: _optional(data, key, _script_input) for key in _SCRIPT_KEYS}
        return cls(
            class_=_optional(data, "class", _str),
            name=_optional(data, "name", _str),
            show_if=_optional(data, "show_if", _script_input),
            transition_type=_optional(data, "transition_type", _enum_field(TransitionType)),
            transition_duration=_optional(data, "transition_duration", _int, _U32),
            tooltip=_optional(data, "tooltip", _str),
            **scripts,
        )


def _enum_field(cls: type[Enum]):
    def convert(value: Any, key: str) -> Any:
        return _enum(cls, value, key)

    return convert


@dataclass(frozen=True)
class MarginConfig:
    """Gaps between the bar and the screen edges, in pixels."""

    bottom: int = 0
    left: int = 0
    right: int = 0
    top: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MarginConfig":
        data = _mapping(data, "margin")
        return cls(
            **{side: _with_default(data, side, 0, _int, _I32) for side in ("bottom", "left", "right", "top")}
        )


def _module(value: Any, key: str) -> dict[str, Any]:
    module = dict(_mapping(value, key))
    if "type" not in module:
        raise ConfigError(f"missing field 'type' in '{key}'")
    if module["type"] not in MODULE_TYPES:
        variants = ", ".join(f"`{name}`" for name in sorted(MODULE_TYPES))
        raise ConfigError(f"unknown variant {module['type']!r}, expected one of {variants}")
    return module


def _module_list(value: Any, key: str) -> list[dict[str, Any]]:
    if not isinstance(value, list):
        raise ConfigError(f"invalid type for '{key}': expected a sequence")
    return [_module(item, key) for item in value]


def _string_map(value: Any, key: str) -> dict[str, str]:
    return {_str(k, key): _str(v, key) for k, v in _mapping(value, key).items()}


def _monitors(value: Any, key: str) -> dict[str, Any]:
    return {_str(name, key): parse_monitor_config(item) for name, item in _mapping(value, key).items()}


@dataclass
class Config:
    """A bar's configuration."""

    position: BarPosition = BarPosition.BOTTOM
    anchor_to_edges: bool = True
    height: int = DEFAULT_BAR_HEIGHT
    margin: MarginConfig = field(default_factory=MarginConfig)
    popup_gap: int = DEFAULT_POPUP_GAP
    name: Optional[str] = None
    start_hidden: Optional[bool] = None
    autohide: Optional[int] = None
    icon_theme: Optional[str] = None
    ironvar_defaults: Optional[dict[str, str]] = None
    start: Optional[list[dict[str, Any]]] = None
    center: Optional[list[dict[str, Any]]] = None
    end: Optional[list[dict[str, Any]]] = None
    monitors: Optional[dict[str, Union["Config", list["Config"]]]] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Config":
        """Build a config from parsed data, applying defaults for missing keys."""
        if not isinstance(data, Mapping):
            raise ConfigError("invalid type: expected a map")
        return cls(
            position=_with_default(data, "position", BarPosition.BOTTOM, _enum_field(BarPosition)),
            anchor_to_edges=_with_default(data, "anchor_to_edges", True, _bool),
            height=_with_default(data, "height", DEFAULT_BAR_HEIGHT, _int, _I32),
            margin=_with_default(
                data, "margin", MarginConfig(), lambda value, _key: MarginConfig.from_dict(value)
            ),
            popup_gap=_with_default(data, "popup_gap", DEFAULT_POPUP_GAP, _int, _I32),
            name=_optional(data, "name", _str),
            start_hidden=_optional(data, "start_hidden", _bool),
            autohide=_optional(data, "autohide", _int, _U64),
            icon_theme=_optional(data, "icon_theme", _str),
            ironvar_defaults=_optional(data, "ironvar_defaults", _string_map),
            start=_optional(data, "start", _module_list),
            center=_optional(data, "center", _module_list),
            end=_optional(data, "end", _module_list),
            monitors=_optional(data, "monitors", _monitors),
        )

    @classmethod
    def default(cls) -> "Config":
        """The config used when none can be loaded."""
        return cls(
            start=[{"type": "label", "label": DEFAULT_LABEL}],
            center=[{"type": "focused"}],
            end=[{"type": "clock"}],
        )

    def shows_default_bar(self) -> bool:
        """Whether a bar is created on monitors with no monitor-specific config."""
        return self.start is not None or self.center is not None or self.end is not None


def parse_monitor_config(data: Any) -> Union[Config, list[Config]]:
    """Parse a monitor entry: either a single bar or a list of bars."""
    try:
        return Config.from_dict(data)
    except ConfigError as outer:
        try:
            if not isinstance(data, list):
                raise ConfigError("invalid type: expected a sequence")
            return [Config.from_dict(item) for item in data]
        except ConfigError as inner:
            raise ConfigError(
                "An invalid config was found. The following errors were encountered:\n"
                f"  0: single-bar (b): {outer}\n"
                f"  1:  multi-bar (c): {inner}\n"
                "Note: Both the single-bar (type b / error 1) and multi-bar (type c / error 2) "
                "config variants were tried. You can likely ignore whichever of these is not "
                "relevant to you."
            ) from inner


def _config_dir() -> Path:
    xdg = os.environ.get("XDG_CONFIG_HOME")
    return Path(xdg) if xdg else Path.home() / ".config"


def _find_config_file() -> Optional[Path]:
    extensions = ["json"] + (["toml"] if tomllib is not None else [])
    base = _config_dir() / "ironbar"
    for extension in extensions:
        candidate = base / f"config.{extension}"
        if candidate.is_file():
            return candidate
    return None


def _read_file(path: Path) -> Any:
    if path.suffix == ".toml":
        if tomllib is None:
            raise ConfigError("TOML configs need Python 3.11 or newer")
        with path.open("rb") as handle:
            return tomllib.load(handle)
    with path.open(encoding="utf-8") as handle:
        return json.load(handle)


def load_config(path: Optional[Union[str, Path]] = None) -> Config:
    """Load the config from ``path``, ``$IRONBAR_CONFIG`` or the user config dir.

    Falls back to the default config if none can be loaded.
    """
    if path is None:
        env_path = os.environ.get("IRONBAR_CONFIG")
        path = Path(env_path) if env_path else _find_config_file()

    try:
        if path is None:
            raise ConfigError("No config file found")
        config = Config.from_dict(_read_file(Path(path)))
    except (OSError, ValueError) as err:
        log.error("Failed to load config: %s", err)
        log.warning("Falling back to the default config")
        log.info(
            "If this is your first time using Ironbar, "
            "you should create a config in ~/.config/ironbar/"
        )
        return Config.default()

    log.debug("Loaded config file")
    return config