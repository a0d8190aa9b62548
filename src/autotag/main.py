"""Application entry point — CLI dispatcher and service bootstrap.

Handles three execution modes:
  1. `autotag scan [VAULT]` — one full rewrite pass over every note, then exit.
  2. `autotag tags [VAULT]` — print the tags currently used in the vault.
  3. Default / `autotag watch [VAULT]` — initial scan, then watch the vault
     and rewrite notes as they change until SIGINT/SIGTERM.

`-v` / `--verbose` raises the autotag loggers to DEBUG.
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .service import AutoTagService

_COMMANDS = ("scan", "tags", "watch")

_USAGE = """\
usage: autotag [scan|tags|watch] [VAULT] [-v]

  scan   tag every note once and exit
  tags   list the tags found in the vault
  watch  keep tagging notes as they change (default)
"""


def _parse_args(argv: list[str]) -> tuple[str, Path | None, bool]:
    """Return (command, vault_dir, verbose) from argv (without program name)."""
    verbose = False
    positional: list[str] = []
    for arg in argv:
        if arg in ("-v", "--verbose"):
            verbose = True
        elif arg in ("-h", "--help"):
            print(_USAGE)
            sys.exit(0)
        elif arg.startswith("-"):
            print(f"Error: unknown option {arg}\n")
            print(_USAGE)
            sys.exit(2)
        else:
            positional.append(arg)

    command = "watch"
    if positional and positional[0] in _COMMANDS:
        command = positional.pop(0)
    if len(positional) > 1:
        print(_USAGE)
        sys.exit(2)
    vault = Path(positional[0]) if positional else None
    return command, vault, verbose


async def _run_scan(service: AutoTagService) -> int:
    service.refresh_tags()
    report = await service.scan_all()
    print(
        f"{report.scanned} notes scanned, {report.tagged} tagged, "
        f"{report.failed} failed ({len(service.registry)} tags)"
    )
    return 1 if report.failed else 0


async def _run_watch(service: AutoTagService) -> int:
    logger = logging.getLogger(__name__)
    await service.start(watch=True)

    # Wait until interrupted via signal
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    logger.info("Watching for changes, press Ctrl+C to stop")
    await stop_event.wait()
    await service.stop()
    return 0


def main() -> None:
    """CLI entry point for the autotag command."""
    command, vault, verbose = _parse_args(sys.argv[1:])

    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.WARNING,
    )

    from .service import AutoTagService
    from .settings import load_settings

    try:
        config = load_settings(vault_dir=vault)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}\n")
        print("Check your settings.toml configuration or the VAULT argument.")
        sys.exit(1)

    logging.getLogger("autotag").setLevel(logging.DEBUG if verbose else logging.INFO)

    service = AutoTagService(config)

    if command == "tags":
        for tag in service.refresh_tags():
            print(tag)
        return

    runner = _run_scan if command == "scan" else _run_watch
    try:
        code = asyncio.run(runner(service))
    except KeyboardInterrupt:
        code = 0
    sys.exit(code)


if __name__ == "__main__":
    main()
