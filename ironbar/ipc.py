"""Messages exchanged over the bar's control socket, and a client to send them."""

from __future__ import annotations

import json
import logging
import os
import socket
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

log = logging.getLogger(__name__)

SOCKET_NAME = "ironbar-ipc.sock"
MAX_SOCKET_PATH_LENGTH = 100
READ_BUFFER_SIZE = 1024

# Field names each command carries, in wire order.
_COMMAND_FIELDS: dict[str, tuple[str, ...]] = {
    "ping": (),
    "inspect": (),
    "reload": (),
    "set": ("key", "value"),
    "get": ("key",),
    "load_css": ("path",),
    "set_visible": ("bar_name", "visible"),
    "get_visible": ("bar_name",),
    "toggle_popup": ("bar_name", "name"),
    "open_popup": ("bar_name", "name"),
    "close_popup": ("bar_name",),
}

_OPTIONAL_COMMAND_FIELDS = ("key", "value", "path", "bar_name", "name", "visible")


class IpcError(Exception):
    """Raised when a message is malformed or the server cannot be reached."""


def _encode(payload: dict[str, Any]) -> bytes:
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def _decode(data: Union[bytes, str]) -> dict[str, Any]:
    try:
        payload = json.loads(data)
    except (ValueError, UnicodeDecodeError) as err:
        raise IpcError(f"invalid JSON: {err}") from err
    if not isinstance(payload, dict):
        raise IpcError("invalid type: expected an object")
    if "type" not in payload:
        raise IpcError("missing field `type`")
    return payload


@dataclass(frozen=True)
class Command:
    """A request to the running bar.

    ``type`` selects the command; only the fields that command uses may be set.
    """

    type: str
    key: Optional[str] = None
    value: Optional[str] = None
    path: Optional[Path] = None
    bar_name: Optional[str] = None
    name: Optional[str] = None
    visible: Optional[bool] = None

    def __post_init__(self) -> None:
        fields = _COMMAND_FIELDS.get(self.type)
        if fields is None:
            variants = ", ".join(f"`{name}`" for name in _COMMAND_FIELDS)
            raise IpcError(f"unknown variant `{self.type}`, expected one of {variants}")
        for field_name in _OPTIONAL_COMMAND_FIELDS:
            present = getattr(self, field_name) is not None
            if field_name in fields and not present:
                raise IpcError(f"missing field `{field_name}` for command `{self.type}`")
            if field_name not in fields and present:
                raise IpcError(f"unexpected field `{field_name}` for command `{self.type}`")
        if self.path is not None and not isinstance(self.path, Path):
            object.__setattr__(self, "path", Path(self.path))


@dataclass(frozen=True)
class Response:
    """The bar's reply: ``ok``, ``ok_value`` with a value, or ``err`` with a message."""

    type: str = "ok"
    value: Optional[str] = None
    message: Optional[str] = None

    def __post_init__(self) -> None:
        if self.type not in ("ok", "ok_value", "err"):
            raise IpcError(
                f"unknown variant `{self.type}`, expected one of `ok`, `ok_value`, `err`"
            )
        if self.type == "ok_value" and self.value is None:
            raise IpcError("missing field `value`")
        if self.type != "ok_value" and self.value is not None:
            raise IpcError(f"unexpected field `value` for response `{self.type}`")
        if self.type != "err" and self.message is not None:
            raise IpcError(f"unexpected field `message` for response `{self.type}`")

    @classmethod
    def error(cls, message: str) -> "Response":
        """An ``err`` response carrying the given message."""
        return cls("err", message=message)


def command_to_json(command: Command) -> bytes:
    """Serialise a command to its wire form."""
    payload: dict[str, Any] = {"type": command.type}
    for field_name in _COMMAND_FIELDS[command.type]:
        value = getattr(command, field_name)
        payload[field_name] = str(value) if field_name == "path" else value
    return _encode(payload)


def command_from_json(data: Union[bytes, str]) -> Command:
    """Parse a command from its wire form. Unknown keys are ignored."""
    payload = _decode(data)
    kind = payload["type"]
    if not isinstance(kind, str) or kind not in _COMMAND_FIELDS:
        variants = ", ".join(f"`{name}`" for name in _COMMAND_FIELDS)
        raise IpcError(f"unknown variant `{kind}`, expected one of {variants}")

    values: dict[str, Any] = {}
    for field_name in _COMMAND_FIELDS[kind]:
        if field_name not in payload:
            raise IpcError(f"missing field `{field_name}`")
        value = payload[field_name]
        expected = bool if field_name == "visible" else str
        if not isinstance(value, expected):
            raise IpcError(
                f"invalid type for `{field_name}`: expected {expected.__name__}"
            )
        values[field_name] = Path(value) if field_name == "path" else value
    return Command(kind, **values)


def response_to_json(response: Response) -> bytes:
    """Serialise a response to its wire form."""
    payload: dict[str, Any] = {"type": response.type}
    if response.type == "ok_value":
        payload["value"] = response.value
    elif response.type == "err":
        payload["message"] = response.message
    return _encode(payload)


def response_from_json(data: Union[bytes, str]) -> Response:
    """Parse a response from its wire form."""
    payload = _decode(data)
    kind = payload["type"]
    if kind == "ok":
        return Response("ok")
    if kind == "ok_value":
        if "value" not in payload:
            raise IpcError("missing field `value`")
        value = payload["value"]
        if not isinstance(value, str):
            raise IpcError("invalid type for `value`: expected str")
        return Response("ok_value", value=value)
    if kind == "err":
        message = payload.get("message")
        if message is not None and not isinstance(message, str):
            raise IpcError("invalid type for `message`: expected str")
        return Response("err", message=message)
    raise IpcError(f"unknown variant `{kind}`, expected one of `ok`, `ok_value`, `err`")


def socket_path() -> Path:
    """The control socket's path, in ``$XDG_RUNTIME_DIR`` or else ``/tmp``."""
    runtime_dir = os.environ.get("XDG_RUNTIME_DIR")
    path = Path(runtime_dir if runtime_dir is not None else "/tmp") / SOCKET_NAME
    if len(str(path)) > MAX_SOCKET_PATH_LENGTH:
        log.warning(
            "The IPC socket file's absolute path exceeds 100 bytes, "
            "the socket may fail to create."
        )
    return path


class IpcClient:
    """Sends commands to a running bar over its Unix socket."""

    def __init__(self, path: Optional[Union[str, Path]] = None) -> None:
        self.path = Path(path) if path is not None else socket_path()

    def send(self, command: Command) -> Response:
        """Send a command and return the server's response."""
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.connect(str(self.path))
        except OSError as err:
            sock.close()
            raise IpcError(
                "Failed to connect to Ironbar IPC server. Is Ironbar running?"
            ) from err

        with sock:
            sock.sendall(command_to_json(command))
            data = sock.recv(READ_BUFFER_SIZE)
        return response_from_json(data)