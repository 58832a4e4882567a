# src/cli/console.py
"""
Interactive console front end.

    python -m cli.console --server localhost:25565 --name BOB101

Every line typed is routed as the console sender, except for a few
console-only commands:

    status                         connection / task / behavior table
    connect [address] [name]       (re)start the session
    disconnect                     close the session, stop reconnecting
    servers list|add|remove <addr> saved server addresses
    exit | quit                    shut down
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import re
from pathlib import Path
from typing import List, Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from app.logging_config import configure_logging
from app.runtime import AppRuntime, build_runtime
from env.loader import load_config
from env.schema import OrchestratorConfig
from runtime.error_handling import install_loop_exception_handler


log = logging.getLogger(__name__)

_COLOR_CODE_RE = re.compile("§.")
EXIT_WORDS = {"exit", "quit"}


def strip_color_codes(text: str) -> str:
    return _COLOR_CODE_RE.sub("", text)


class ConsoleFrontEnd:
    """Thin adapter between stdin/stdout and the Orchestrator surface."""

    def __init__(self, runtime: AppRuntime, console: Optional[Console] = None) -> None:
        self.runtime = runtime
        self.console = console or Console(highlight=False)
        runtime.orchestrator.notifier.set_console_output(self.print_notification)

    # --------------------------------------------------------
    # Output
    # --------------------------------------------------------

    def print_notification(self, text: str) -> None:
        self.console.print(f"[cyan]\\[BOT][/cyan] {escape(strip_color_codes(text))}")

    def render_status(self) -> Table:
        status = self.runtime.orchestrator.status()
        table = Table(title="Bot status", show_header=False)
        table.add_column("Key", style="bold")
        table.add_column("Value")
        for key, value in status.items():
            table.add_row(key, "-" if value is None else str(value))
        return table

    # --------------------------------------------------------
    # Input
    # --------------------------------------------------------

    async def handle_line(self, line: str) -> bool:
        """Process one input line. Returns False when the user asked to exit."""
        text = line.strip()
        if not text:
            return True
        words = text.split()
        head = words[0].lower()

        if head in EXIT_WORDS:
            return False
        if head == "status":
            self.console.print(self.render_status())
        elif head == "connect":
            await self._connect(
                words[1] if len(words) > 1 else None,
                words[2] if len(words) > 2 else None,
            )
        elif head == "disconnect":
            await self.runtime.orchestrator.stop_session()
            self.console.print("Disconnected.")
        elif head == "servers":
            self._servers(words[1:])
        else:
            orch = self.runtime.orchestrator
            orch.route_command(text, orch.console_sender())
        return True

    async def _connect(self, address: Optional[str], name: Optional[str]) -> None:
        try:
            params = await self.runtime.start(address, name)
        except ValueError as exc:
            self.console.print(f"[red]{escape(str(exc))}[/red]")
            return
        self.console.print(f"Session target: {params.address} as {params.username}")

    def _servers(self, args: List[str]) -> None:
        store = self.runtime.orchestrator.settings
        saved = store.get().saved_servers
        action = args[0].lower() if args else "list"

        if action == "list":
            if not saved:
                self.console.print("No saved servers.")
            for i, address in enumerate(saved, start=1):
                self.console.print(f"  {i}. {address}")
        elif action == "add" and len(args) > 1:
            address = args[1]
            if address in saved:
                self.console.print(f"{address} is already saved.")
                return
            store.update({"saved_servers": saved + [address]})
            self.console.print(f"Saved server {address}")
        elif action == "remove" and len(args) > 1:
            address = args[1]
            if address not in saved:
                self.console.print(f"{address} is not saved.")
                return
            store.update({"saved_servers": [s for s in saved if s != address]})
            self.console.print(f"Removed server {address}")
        else:
            self.console.print("Usage: servers list|add <address>|remove <address>")

    async def run(self, address: Optional[str] = None, name: Optional[str] = None) -> None:
        install_loop_exception_handler(asyncio.get_running_loop(), bus=self.runtime.bus)
        self.console.print("[bold]Bot console[/bold] - type 'help' for commands, 'exit' to quit")
        await self._connect(address, name)

        try:
            while True:
                try:
                    line = await asyncio.to_thread(input, "> ")
                except EOFError:
                    break
                if not await self.handle_line(line):
                    break
        finally:
            await self.runtime.shutdown()


# ============================================================
# Entry point
# ============================================================

def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the bot with an interactive console.")
    parser.add_argument("--config", type=Path, default=None, help="Path to orchestrator.yaml")
    parser.add_argument("--server", default=None, help="host[:port]; defaults to the stored server")
    parser.add_argument("--name", default=None, help="Bot name; defaults to the stored name")
    parser.add_argument("--log-level", default=None, help="Overrides monitoring.log_level")
    return parser.parse_args(argv)


async def _main_async(config: OrchestratorConfig, args: argparse.Namespace) -> None:
    runtime = build_runtime(config)
    await ConsoleFrontEnd(runtime).run(args.server, args.name)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    config = load_config(args.config)
    configure_logging(args.log_level or config.monitoring.log_level)
    try:
        asyncio.run(_main_async(config, args))
    except KeyboardInterrupt:
        log.info("Interrupted")


if __name__ == "__main__":
    main()
