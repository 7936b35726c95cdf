#!/usr/bin/env python3
# main.py
"""
termgopher: a terminal Gopher client.

Keys in a menu:
  Up / Down, Ctrl-P / Ctrl-N   select the previous / next link
  PageUp / PageDown, - / Space scroll a page
  1..999                       jump to (or open) a link by number
  letters                      select the first link whose name matches
  Enter                        open the selected link
  Backspace / Left, Right      back / forward in history
  Ctrl-W                       toggle wide mode
  Ctrl-G                       go to a URL
  Ctrl-R                       view the raw source of the page
  Ctrl-Y                       copy the page URL
  Ctrl-C / Ctrl-Q              quit

ENV (optional): see termgopher/config.py, plus
  LOCAL_GOPHER_ROOT  -> directory served by --local (default: server)
  LOCAL_GOPHER_HOST  -> bind address for --local (default: 127.0.0.1)
  LOCAL_GOPHER_PORT  -> port for --local (default: 7070)
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

from gopherlib import GopherClient, GopherError, ItemType, strip_terminator
from localgopher import start_local_gopher
from termgopher import __version__, menu
from termgopher.config import Config, Mode
from termgopher.terminal import Terminal, TerminalError
from termgopher.ui import UI

log = logging.getLogger("termgopher")

LOCAL_GOPHER_PORT = 7070


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="termgopher",
        description="Browse gopherspace from the terminal.",
        epilog=__doc__,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("url", metavar="URL", nargs="?", help="start with this URL")
    parser.add_argument("-v", "--version", action="version", version=f"termgopher {__version__}")

    modes = parser.add_mutually_exclusive_group()
    modes.add_argument("-r", "--raw", action="store_true", help="print the raw response of URL and exit")
    modes.add_argument("-p", "--print", dest="print_", action="store_true", help="print a plain rendering of URL and exit")

    parser.add_argument("-l", "--local", action="store_true", help="serve LOCAL_GOPHER_ROOT and open it")

    tls = parser.add_mutually_exclusive_group()
    tls.add_argument("-s", "--tls", dest="tls", action="store_true", default=None, help="connect with TLS")
    tls.add_argument("-S", "--no-tls", dest="tls", action="store_false", help="don't use TLS")

    tor = parser.add_mutually_exclusive_group()
    tor.add_argument("-o", "--tor", dest="tor", action="store_true", default=None, help="route through Tor")
    tor.add_argument("-O", "--no-tor", dest="tor", action="store_false", help="don't use Tor")

    parser.add_argument("-w", "--wide", action="store_true", default=None, help="start in wide mode")
    parser.add_argument("--log", metavar="FILE", help="write a log to FILE")
    parser.add_argument("--debug", action="store_true", help="log debug messages")
    return parser


def resolve_config(parser: argparse.ArgumentParser, args: argparse.Namespace, cfg: Config) -> Config:
    if args.url:
        cfg.start = args.url
    if args.tls is not None:
        cfg.tls = args.tls
    if args.tor is not None:
        cfg.tor = args.tor
    if args.wide:
        cfg.wide = True
    if args.log:
        cfg.log_file = args.log
    cfg.debug = args.debug

    if cfg.tls and cfg.tor:
        parser.error("can't set both --tor and --tls")
    if args.raw:
        if not args.url and not args.local:
            parser.error("--raw needs gopher-url")
        cfg.mode = Mode.RAW
    elif args.print_ or not sys.stdout.isatty():
        cfg.mode = Mode.PRINT
    return cfg


def _setup_logging(cfg: Config) -> None:
    if cfg.log_file:
        logging.basicConfig(
            filename=cfg.log_file,
            level=logging.DEBUG if cfg.debug else logging.INFO,
            format="%(asctime)s [%(name)s] %(levelname)s %(message)s",
        )
    else:
        logging.basicConfig(level=logging.WARNING, format="[termgopher] %(message)s")


def _local_gopher_port() -> int:
    port_raw = os.getenv("LOCAL_GOPHER_PORT", str(LOCAL_GOPHER_PORT))
    try:
        return int(port_raw)
    except ValueError:
        return LOCAL_GOPHER_PORT


def _maybe_start_local_gopher():
    """Serve LOCAL_GOPHER_ROOT if it exists. Returns (server or None, start URL)."""
    host = os.getenv("LOCAL_GOPHER_HOST", "127.0.0.1")
    port = _local_gopher_port()
    client_host = "localhost" if host == "0.0.0.0" else host
    url = f"gopher://{client_host}:{port}/1/"

    root = os.getenv("LOCAL_GOPHER_ROOT", "server")
    if not os.path.isdir(root):
        # something else may already be serving on that port
        log.info("[localgopher] root path not found: %s", root)
        return None, url
    try:
        server = start_local_gopher(root, host=host, port=port)
    except OSError as exc:
        log.warning("[localgopher] failed to start server: %s", exc)
        return None, url
    return server, server.url


def _client(cfg: Config) -> GopherClient:
    return GopherClient(tls=cfg.tls, tor=cfg.tor, timeout=cfg.timeout, tor_proxy=cfg.tor_proxy)


def print_raw(cfg: Config) -> int:
    try:
        _, body = _client(cfg).fetch_url(cfg.start)
    except GopherError as e:
        sys.stderr.write(f"error loading {cfg.start}: {e}\n")
        return 1
    sys.stdout.write(body)
    return 0


def print_page(cfg: Config) -> int:
    try:
        gurl, body = _client(cfg).fetch_url(cfg.start)
    except GopherError as e:
        sys.stderr.write(f"error loading {cfg.start}: {e}\n")
        return 1
    if gurl.type in (ItemType.MENU, ItemType.SEARCH):
        print(menu.parse(cfg.start, body).render_plain())
    else:
        print(strip_terminator(body))
    return 0


def run(cfg: Config) -> int:
    terminal = Terminal()
    try:
        terminal.size()
    except TerminalError as e:
        sys.stderr.write(f"[termgopher] {e}\n")
        return 1

    ui = UI(_client(cfg), terminal, wide=cfg.wide, download_dir=cfg.download_dir)
    try:
        with terminal.raw_mode():
            ui.open(cfg.start)
            ui.run()
    except TerminalError as e:
        sys.stderr.write(f"[termgopher] {e}\n")
        return 1
    finally:
        ui.close()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    cfg = resolve_config(parser, args, Config.from_env())
    _setup_logging(cfg)

    local_gopher = None
    if args.local:
        local_gopher, cfg.start = _maybe_start_local_gopher()

    try:
        if cfg.mode == Mode.RAW:
            return print_raw(cfg)
        if cfg.mode == Mode.PRINT:
            return print_page(cfg)
        return run(cfg)
    finally:
        if local_gopher:
            local_gopher.shutdown()
            local_gopher.server_close()


if __name__ == "__main__":
    sys.exit(main())
