# ironbar

The non-graphical core of a customisable status bar for Wayland
desktops. The package covers:

- **Configuration** (`ironbar.config`): the bar config model (`Config`,
  `MarginConfig`, `CommonConfig`, `TruncateMode`, `BarPosition`,
  `TransitionType`), single-bar and multi-bar monitor configs, and the
  built-in default config.
- **Dynamic values** (`ironbar.dynamic_value`): templates that mix static
  text, `{{script}}` blocks and `#variable` references, plus dynamic
  booleans.
- **Variables** (`ironbar.ironvar`): a thread-safe `VariableManager` that
  holds named variables and notifies subscribers whenever a value changes.
- **Desktop files** (`ironbar.desktop_file`): finds the `.desktop` file for
  an application id and reads the application's icon name from it.
- **IPC** (`ironbar.ipc`): the command and response messages used on the
  bar's Unix socket, and a client that sends them.
- **Clock** (`ironbar.clock`): the clock module's settings and its time
  formatting.

## Installation

```
pip install .
```

With the test dependencies:

```
pip install ".[test]"
```

## Usage

### Variables

```python
from ironbar.ironvar import VariableManager, InvalidKeyError

manager = VariableManager()
manager.set("volume", "42")
print(manager.get("volume"))          # "42"

subscription = manager.subscribe("volume")
print(subscription.get_nowait())      # "42": the current value is sent on subscribe

try:
    manager.set("not valid!", "x")
except InvalidKeyError:
    print("keys may only hold letters, digits, '_' and '-'")
```

Subscribing to a variable creates it if needed and sends its current value
to every subscriber of that variable. A `Subscription` keeps at most 32
pending values, dropping the oldest when full. `get(timeout)` waits for the
next value and `get_nowait()` returns one at once; both raise `queue.Empty`
when there is none.

### Dynamic strings

```python
from ironbar.dynamic_value import parse_input, DynamicString, is_truthy

segments, is_static = parse_input("hello {{echo world}} #name")
# [StaticSegment("hello "), ScriptSegment("echo world"),
#  StaticSegment(" "), VariableSegment("name")], False

text = DynamicString("hello #name")
print(text.update(1, "there"))        # "hello there"
print(text.render())                  # "hello there"

print(is_truthy("false"), is_truthy("yes"))   # False True
```

Write `##` in a template to get a literal `#`. `parse_dynamic_bool` reads
`#name` as a variable and anything else as a script command.
`DynamicString.update` raises `IndexError` for an index with no segment.

### Configuration

```python
from ironbar.config import Config, BarPosition, load_config

config = Config.default()
print(config.height, config.popup_gap)        # 42 5
print(BarPosition.LEFT.orientation(), BarPosition.LEFT.angle())

config = load_config("config.json")
```

`load_config` reads the given path. Without one, it reads
`$IRONBAR_CONFIG`, or else `config.json` (or, on Python 3.11 and later,
`config.toml`) in `$XDG_CONFIG_HOME/ironbar` (`~/.config/ironbar` by
default). If the file is missing or invalid, it logs the error and returns
`Config.default()`. `Config.from_dict` raises `ConfigError` on invalid data.

A monitor entry may hold one bar config or a list of them
(`parse_monitor_config`); when neither form fits, the `ConfigError` lists
the errors of both attempts.

### Desktop files

```python
from ironbar.desktop_file import find_desktop_file, get_desktop_icon_name

path = find_desktop_file("firefox", None)
icon = get_desktop_icon_name("firefox", None)
```

With `dirs` set to `None`, the standard application directories are
searched (see `find_application_dirs`); pass a list of directories to
search only those. Files are matched by name first, then by their `Name`,
`StartupWMClass`, `Exec` and `Icon` entries.

### IPC

```python
from ironbar.ipc import Command, IpcClient, socket_path

client = IpcClient(socket_path())
response = client.send(Command("get", key="volume"))
```

The socket lives at `$XDG_RUNTIME_DIR/ironbar-ipc.sock`, or at
`/tmp/ironbar-ipc.sock` when that variable is not set. Commands and
responses are JSON objects tagged by a `type` field; use
`command_to_json`, `command_from_json`, `response_to_json` and
`response_from_json` to convert them. Malformed messages, and a server that
cannot be reached, raise `IpcError`.

### Clock

```python
from datetime import datetime
from ironbar.clock import ClockConfig, strip_tail

clock = ClockConfig.from_dict({"format": "%H:%M"})
print(clock.format_time(datetime(2024, 1, 2, 3, 4)))   # "03:04"
print(strip_tail("en_GB.UTF-8"))      # "en_GB"
```

The locale defaults to `$LC_TIME`, then `$LANG`, then `POSIX`.

## What this package does not do

It draws no bar and has no graphical widgets, runs no scripts, and has no
IPC server: `IpcClient` only talks to a server that is already running.
Script segments and dynamic booleans are parsed, but filling them in is
left to the caller.

## Running the tests

```
pytest
```