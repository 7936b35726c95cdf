import pytest

import main
from termgopher import __version__
from termgopher.config import Config, Mode


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "TERMGOPHER_START",
        "TERMGOPHER_TLS",
        "TERMGOPHER_TOR",
        "TERMGOPHER_WIDE",
        "TERMGOPHER_LOG",
        "LOCAL_GOPHER_ROOT",
        "LOCAL_GOPHER_HOST",
        "LOCAL_GOPHER_PORT",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.mark.parametrize(
    "argv",
    [
        ["--tls", "--tor", "gopher://host/"],
        ["--raw"],
        ["--raw", "--print", "gopher://host/"],
        ["--tls", "--no-tls"],
    ],
)
def test_bad_arguments(argv):
    with pytest.raises(SystemExit) as exc:
        main.main(argv)
    assert exc.value.code == 2


def test_tls_and_tor_from_env_conflict(monkeypatch):
    monkeypatch.setenv("TERMGOPHER_TLS", "1")
    monkeypatch.setenv("TERMGOPHER_TOR", "1")
    with pytest.raises(SystemExit):
        main.main(["gopher://host/"])


def test_version(capsys):
    with pytest.raises(SystemExit) as exc:
        main.main(["--version"])
    assert exc.value.code == 0
    assert f"termgopher {__version__}" in capsys.readouterr().out


def test_command_line_overrides_env():
    parser = main.build_parser()
    args = parser.parse_args(["-w", "--no-tls", "--raw", "gopher://sdf.org/1/"])
    cfg = main.resolve_config(parser, args, Config(tls=True))
    assert cfg.start == "gopher://sdf.org/1/"
    assert not cfg.tls
    assert cfg.wide
    assert cfg.mode == Mode.RAW


def test_print_menu(local_server, capsys):
    assert main.main(["--print", local_server.url]) == 0
    out = capsys.readouterr().out
    assert "   1. blob.bin" in out
    assert "   3. hello.txt" in out
    assert "\x1b[" not in out


def test_print_text(local_server, capsys):
    url = f"gopher://127.0.0.1:{local_server.port}/0/hello.txt"
    assert main.main(["-p", url]) == 0
    out = capsys.readouterr().out
    assert out.startswith("Hello, gopher!\n")
    assert not out.rstrip().endswith("\n.")


def test_raw(local_server, capsys):
    assert main.main(["-r", local_server.url]) == 0
    out = capsys.readouterr().out
    assert "0hello.txt\t/hello.txt" in out
    assert out.endswith("\r\n.\r\n")


def test_unreachable_host_exits_with_error(closed_port, capsys):
    assert main.main(["-p", f"gopher://127.0.0.1:{closed_port}/1/"]) == 1
    assert "error loading" in capsys.readouterr().err


def test_unresolvable_host_exits_with_error(capsys):
    assert main.main(["-r", "gopher://bad..host/1/"]) == 1
    assert "error loading gopher://bad..host/1/" in capsys.readouterr().err


def test_local_server(monkeypatch, gopher_root, capsys):
    monkeypatch.setenv("LOCAL_GOPHER_ROOT", str(gopher_root))
    monkeypatch.setenv("LOCAL_GOPHER_PORT", "0")
    assert main.main(["--local", "--print"]) == 0
    assert "hello.txt" in capsys.readouterr().out


def test_local_server_without_root(monkeypatch, tmp_path):
    monkeypatch.setenv("LOCAL_GOPHER_ROOT", str(tmp_path / "missing"))
    server, url = main._maybe_start_local_gopher()
    assert server is None
    assert url == "gopher://127.0.0.1:7070/1/"


def test_bad_local_port_uses_default(monkeypatch):
    monkeypatch.setenv("LOCAL_GOPHER_PORT", "seventy")
    assert main._local_gopher_port() == 7070


def test_run_needs_a_terminal(capsys):
    assert main.run(Config()) == 1
    assert "terminal size" in capsys.readouterr().err
