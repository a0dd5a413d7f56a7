from __future__ import annotations
import argparse
import getpass
import json
import logging
import os
import re
import sys
from pathlib import Path
from typing import List, Optional, Sequence
from urllib.parse import urlparse, unquote

from rich.console import Console
from rich.syntax import Syntax
from rich.text import Text

from textual.app import App, ComposeResult
from textual.containers import Horizontal, VerticalScroll
from textual.logging import TextualHandler
from textual.widgets import (
    Button, Collapsible, Footer, Header, Input, Static, TabbedContent, TabPane,
)
from textual.worker import get_current_worker

from .dump_script import DB_DUMP_SCRIPT, HOWTO
from .errors import RecoveryError
from .recover import DecryptedAccount, KEY_NOT_FOUND, recover_export

logger = logging.getLogger(__name__)


# -------------------- Defaults --------------------

DEFAULT_PASSWORD_ENV = "SUI_WALLET_PASSWORD"


# -------------------- Helpers: path --------------------

def normalize_path(p: str | Path) -> Path:
    s = str(p)
    if s.startswith("file:"):
        u = urlparse(s)
        path = unquote(u.path)
        if os.name == "nt" and re.match(r"^/[A-Za-z]:/", path):
            path = path[1:]
        return Path(path)
    return Path(s)


# -------------------- Formatting helpers --------------------

def raw_dump(accounts: Sequence[DecryptedAccount]) -> str:
    return json.dumps([a.to_dict() for a in accounts], indent=2)


def account_title(index: int, account: DecryptedAccount) -> str:
    return f"Account {index + 1} ({account.account_type.value})"


def format_account(account: DecryptedAccount) -> Text:
    t = Text()
    fields = (
        ("Account ID", account.id),
        ("Private Key", account.private_key or KEY_NOT_FOUND),
        ("Recovery Phrase", account.recovery_phrase or ""),
        ("Type", account.account_type.value),
    )
    for i, (label, value) in enumerate(fields):
        if i:
            t.append("\n")
        t.append(f"{label}\n", style="bold")
        t.append(value)
    return t


# -------------------- Textual App --------------------

class RecoveryTUI(App):
    CSS = """
    Screen {
        background: #0b0f14;
    }
    #form {
        height: auto;
        padding: 1 2;
    }
    #form Input {
        width: 1fr;
    }
    #status {
        padding: 1 2;
        background: #111827;
        border: round #1f2937;
        height: auto;
    }
    #status.error {
        border: round #b91c1c;
    }
    .box {
        border: round #1f2937;
        padding: 1 2;
        background: #0f172a;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("d", "decrypt", "Decrypt"),
        ("c", "copy_script", "Copy DB dump script"),
    ]

    def __init__(self, file: Optional[Path] = None, password: str = "", max_workers: Optional[int] = None):
        super().__init__()
        self.file = file
        self.password = password
        self.max_workers = max_workers
        self.accounts: List[DecryptedAccount] = []
        self._batch = 0

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Horizontal(id="form"):
            yield Input(value=str(self.file or ""), placeholder="keyval-store-dump.json", id="file")
            yield Input(
                value=self.password,
                password=True,
                placeholder="Enter the password used to unlock your wallet",
                id="password",
            )
            yield Button("Decrypt Data", id="decrypt", variant="primary")
        yield Static("Select the JSON dump and enter your password.", id="status")

        with TabbedContent():
            with TabPane("Formatted"):
                yield VerticalScroll(id="formatted")
            with TabPane("Raw Data"):
                with VerticalScroll():
                    yield Static("", id="raw", classes="box")

        yield Footer()

    async def on_mount(self) -> None:
        if self.file and self.password:
            self.action_decrypt()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "decrypt":
            self.action_decrypt()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self.action_decrypt()

    def action_copy_script(self) -> None:
        self.copy_to_clipboard(DB_DUMP_SCRIPT)
        self.notify(HOWTO, title="Copied!", timeout=10)

    def action_decrypt(self) -> None:
        file = self.query_one("#file", Input).value.strip()
        password = self.query_one("#password", Input).value
        self._batch += 1
        batch = self._batch
        self.set_status("🔄 Decrypting…")
        # exclusive=True cancels the batch still running, if any
        self.run_worker(
            lambda: self._worker_decrypt(batch, file, password),
            exclusive=True, name="decrypt", thread=True,
        )

    def _worker_decrypt(self, batch: int, file: str, password: str) -> None:
        worker = get_current_worker()
        try:
            accounts = recover_export(normalize_path(file) if file else None, password, self.max_workers)
        except RecoveryError as e:
            if not worker.is_cancelled:
                self.call_from_thread(self.render_error, batch, str(e))
            return
        except Exception as e:
            logger.exception("Batch %d crashed", batch)
            if not worker.is_cancelled:
                self.call_from_thread(self.render_error, batch, f"Failed to decrypt data: {e}")
            return
        if worker.is_cancelled:
            logger.debug("Batch %d superseded, dropping results", batch)
            return
        self.call_from_thread(self.render_results, batch, accounts)

    def set_status(self, msg: str, error: bool = False) -> None:
        status = self.query_one("#status", Static)
        status.set_class(error, "error")
        status.update(msg)

    async def render_error(self, batch: int, msg: str) -> None:
        if batch != self._batch:
            return
        self.accounts = []
        self.set_status(f"❌ {msg}", error=True)
        await self.query_one("#formatted", VerticalScroll).remove_children()
        self.query_one("#raw", Static).update("")

    async def render_results(self, batch: int, accounts: List[DecryptedAccount]) -> None:
        if batch != self._batch:
            return
        self.accounts = accounts
        self.set_status(f"✅ {len(accounts)} account(s) recovered")

        formatted = self.query_one("#formatted", VerticalScroll)
        await formatted.remove_children()
        await formatted.mount_all(
            Collapsible(Static(format_account(a), classes="box"), title=account_title(i, a))
            for i, a in enumerate(accounts)
        )
        self.query_one("#raw", Static).update(Syntax(raw_dump(accounts), "json", word_wrap=True))


# -------------------- Plain console output --------------------

def print_accounts(accounts: Sequence[DecryptedAccount], console: Console) -> None:
    if not accounts:
        console.print("[yellow]No encrypted accounts found in this export.[/yellow]")
        return
    for i, a in enumerate(accounts):
        console.rule(account_title(i, a))
        console.print(format_account(a))


# -------------------- CLI --------------------

def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Sui Wallet storage dump decryptor")
    ap.add_argument("--file", default="", help="JSON dump of the extension storage (keyval-store-dump.json)")
    ap.add_argument("--password-env", default=DEFAULT_PASSWORD_ENV, help="Name of the env var holding the wallet password")
    ap.add_argument("--workers", type=int, default=None, help="Decryption threads (default: Python's choice)")
    ap.add_argument("--no-tui", action="store_true", help="Print results to the console instead of opening the TUI")
    ap.add_argument("--raw", action="store_true", help="With --no-tui, print the raw JSON dump")
    ap.add_argument("--dump-script", action="store_true", help="Print the browser console script that exports the storage")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return ap.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    level = logging.DEBUG if args.verbose else logging.INFO

    if args.dump_script:
        print(DB_DUMP_SCRIPT)
        print(f"\n// {HOWTO}", file=sys.stderr)
        return

    file = normalize_path(args.file) if args.file else None
    password = os.environ.get(args.password_env, "")

    if not args.no_tui:
        logging.basicConfig(level=level, handlers=[TextualHandler()])
        RecoveryTUI(file=file, password=password, max_workers=args.workers).run()
        return

    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    if not password:
        password = getpass.getpass("Wallet password (not echoed): ")

    try:
        accounts = recover_export(file, password, max_workers=args.workers)
    except RecoveryError as e:
        Console(stderr=True).print(Text.assemble(("Error: ", "red"), str(e)))
        raise SystemExit(1)

    if args.raw:
        print(raw_dump(accounts))
    else:
        print_accounts(accounts, Console())


if __name__ == "__main__":
    main()
