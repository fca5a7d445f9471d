import json
import os
import socket
import tempfile
import threading
from pathlib import Path

import pytest

from ironbar.ipc import (
    Command,
    IpcClient,
    IpcError,
    Response,
    command_from_json,
    command_to_json,
    response_from_json,
    response_to_json,
    socket_path,
)

ALL_COMMANDS = [
    Command("ping"),
    Command("inspect"),
    Command("reload"),
    Command("set", key="foo", value="bar"),
    Command("get", key="foo"),
    Command("load_css", path=Path("/tmp/style.css")),
    Command("set_visible", bar_name="main", visible=True),
    Command("get_visible", bar_name="main"),
    Command("toggle_popup", bar_name="main", name="clock"),
    Command("open_popup", bar_name="main", name="clock"),
    Command("close_popup", bar_name="main"),
]


@pytest.mark.parametrize("command", ALL_COMMANDS)
def test_command_round_trip(command):
    assert command_from_json(command_to_json(command)) == command


def test_ping_wire_form():
    assert command_to_json(Command("ping")) == b'{"type":"ping"}'


def test_set_wire_form_has_type_first():
    data = command_to_json(Command("set", key="foo", value="bar"))
    assert data == b'{"type":"set","key":"foo","value":"bar"}'


def test_load_css_path_serialised_as_string():
    data = json.loads(command_to_json(Command("load_css", path="/tmp/style.css")))
    assert data == {"type": "load_css", "path": "/tmp/style.css"}


def test_command_from_json_ignores_unknown_keys():
    command = command_from_json('{"type":"get","key":"foo","extra":1}')
    assert command == Command("get", key="foo")


def test_command_from_json_unknown_type():
    with pytest.raises(IpcError):
        command_from_json('{"type":"explode"}')


def test_command_from_json_missing_field():
    with pytest.raises(IpcError):
        command_from_json('{"type":"set","key":"foo"}')


def test_command_from_json_wrong_field_type():
    with pytest.raises(IpcError):
        command_from_json('{"type":"set_visible","bar_name":"main","visible":"yes"}')


def test_command_from_json_invalid_json():
    with pytest.raises(IpcError):
        command_from_json(b"not json")


def test_command_from_json_missing_type():
    with pytest.raises(IpcError):
        command_from_json("{}")


def test_command_rejects_missing_field():
    with pytest.raises(IpcError):
        Command("toggle_popup", bar_name="main")


def test_command_rejects_unexpected_field():
    with pytest.raises(IpcError):
        Command("ping", key="foo")


def test_response_error():
    response = Response.error("Variable not found")
    assert response.type == "err"
    assert response.message == "Variable not found"


@pytest.mark.parametrize(
    "response",
    [Response("ok"), Response("ok_value", value="true"), Response.error("bad"), Response("err")],
)
def test_response_round_trip(response):
    assert response_from_json(response_to_json(response)) == response


def test_response_wire_forms():
    assert response_to_json(Response("ok")) == b'{"type":"ok"}'
    assert response_to_json(Response("err")) == b'{"type":"err","message":null}'


def test_response_err_without_message_key():
    assert response_from_json('{"type":"err"}') == Response("err")


def test_response_ok_value_missing_value():
    with pytest.raises(IpcError):
        response_from_json('{"type":"ok_value"}')


def test_response_unknown_type():
    with pytest.raises(IpcError):
        response_from_json('{"type":"maybe"}')


def test_socket_path_uses_runtime_dir(monkeypatch):
    monkeypatch.setenv("XDG_RUNTIME_DIR", "/run/user/1000")
    assert socket_path() == Path("/run/user/1000/ironbar-ipc.sock")


def test_socket_path_falls_back_to_tmp(monkeypatch):
    monkeypatch.delenv("XDG_RUNTIME_DIR", raising=False)
    assert socket_path() == Path("/tmp/ironbar-ipc.sock")


def test_client_defaults_to_socket_path(monkeypatch):
    monkeypatch.setenv("XDG_RUNTIME_DIR", "/run/user/1000")
    assert IpcClient().path == Path("/run/user/1000/ironbar-ipc.sock")


@pytest.fixture
def short_dir():
    with tempfile.TemporaryDirectory(dir="/tmp") as directory:
        yield Path(directory)


def _serve_once(path, reply, received):
    server = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    server.bind(str(path))
    server.listen(1)

    def run():
        connection, _ = server.accept()
        with connection:
            received.append(connection.recv(1024))
            connection.sendall(reply)
        server.close()

    thread = threading.Thread(target=run, daemon=True)
    thread.start()
    return thread


def test_client_send_receives_response(short_dir):
    path = short_dir / "ipc.sock"
    received = []
    thread = _serve_once(path, response_to_json(Response("ok_value", value="42")), received)

    response = IpcClient(path).send(Command("get", key="answer"))
    thread.join(timeout=5)

    assert response == Response("ok_value", value="42")
    assert command_from_json(received[0]) == Command("get", key="answer")


def test_client_send_without_server(short_dir):
    client = IpcClient(short_dir / "missing.sock")
    assert not os.path.exists(client.path)
    with pytest.raises(IpcError):
        client.send(Command("ping"))