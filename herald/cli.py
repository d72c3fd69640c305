"""Command line for running the Herald webhook server.

Usage:
    herald serve --port 3333 --directory notifier.d
    herald serve --debug            # include subscriber script output

Options override the matching ``HERALD_*`` environment variables.
"""

from __future__ import annotations

import dataclasses
import typing as typ
from pathlib import Path

from cyclopts import App, Parameter

from herald.config import HeraldConfig
from herald.logging import get_logger, log_error

app = App(
    name="herald",
    help="Start a server that listens for webhooks and runs scripts from a directory",
    version="0.1.0",
)

logger = get_logger(__name__)


def resolve_config(
    *,
    port: int | None = None,
    host: str | None = None,
    directory: Path | None = None,
    debug: bool = False,
) -> HeraldConfig:
    """Return the environment configuration with CLI overrides applied."""
    config = HeraldConfig.from_env()
    overrides: dict[str, typ.Any] = {}
    if port is not None:
        overrides["port"] = port
    if host is not None:
        overrides["host"] = host
    if directory is not None:
        overrides["script_directory"] = directory
    if debug:
        overrides["debug"] = True
    return dataclasses.replace(config, **overrides)


@app.command
def serve(
    *,
    port: typ.Annotated[int | None, Parameter(name=["--port", "-p"])] = None,
    host: str | None = None,
    directory: typ.Annotated[
        Path | None, Parameter(name=["--directory", "-d"])
    ] = None,
    debug: bool = False,
) -> int:
    """Serve webhooks and run subscriber scripts.

    Args:
        port: Port number for the HTTP server.
        host: Bind address for the HTTP server.
        directory: Directory containing subscriber modules and scripts.
        debug: Enable verbose logging, including script output.

    Returns:
        Exit code (0 for success, non-zero for failure).

    """
    from herald.runtime import serve as run_server

    try:
        config = resolve_config(
            port=port, host=host, directory=directory, debug=debug
        )
    except ValueError as exc:
        log_error(logger, "Invalid configuration: %s", exc)
        return 1

    if not config.script_directory.is_dir():
        log_error(
            logger, "Subscriber directory %s does not exist", config.script_directory
        )
        return 1

    run_server(config)
    return 0


def main() -> int:
    """Entry point for the ``herald`` console script."""
    return app()


if __name__ == "__main__":
    raise SystemExit(main())
