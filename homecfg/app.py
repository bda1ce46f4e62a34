"""Command entry point."""

from __future__ import annotations

import sys

from homecfg import instructions
from homecfg.configuration import ConfigurationError, parse
from homecfg.runner import run_cli
from homecfg.tui import run_tui


def main(argv: list[str] | None = None) -> int:
    """Run the configuration manager; returns the process exit status."""
    config = parse(argv)
    config.display()
    try:
        config.assert_correctness()
    except ConfigurationError as exc:
        config.logger.error("invalid arguments: %s", exc)
        return 1

    instructions.init()
    try:
        if config.tui:
            run_tui(config)
        else:
            run_cli(config)
    except KeyboardInterrupt:
        return 1
    except Exception as exc:  # noqa: BLE001 - reported as the exit status
        config.logger.error("program exited with an error: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())