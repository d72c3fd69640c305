"""Deployment configuration for the Herald webhook service.

``HeraldConfig`` is built once at startup and handed to the components that
need it; nothing in the request path reads the environment directly.

Usage
-----
Create a configuration with defaults:

>>> config = HeraldConfig()
>>> config.max_body_bytes
200000

Setting a secret enables authentication:

>>> HeraldConfig(webhook_secret="s3cret").authentication_enabled
True

At startup the same values are read from ``HERALD_*`` variables with
``HeraldConfig.from_env()``.

"""

from __future__ import annotations

import dataclasses as dc
import os
from pathlib import Path

# A typical push event with one commit is around 15 KB of JSON.
DEFAULT_MAX_BODY_BYTES = 200 * 1000
DEFAULT_PORT = 3333
DEFAULT_SCRIPT_DIRECTORY = Path("notifier.d")

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


@dc.dataclass(frozen=True, slots=True)
class HeraldConfig:
    """Configuration for one Herald process.

    Attributes
    ----------
    webhook_secret
        Shared secret used to authenticate deliveries. Empty disables
        authentication (open mode).
    max_body_bytes
        Ceiling on the request body; larger bodies are rejected with 413.
    accept_form_payloads
        Whether ``application/x-www-form-urlencoded`` deliveries are
        accepted. When ``False`` they are rejected with 415.
    script_directory
        Directory scanned for subscriber modules and their scripts.
    host
        Bind address for the HTTP server.
    port
        Listen port for the HTTP server.
    log_level
        Raw log level name passed to :func:`herald.logging.configure_logging`.
    debug
        Force DEBUG logging, which includes subscriber script output.

    """

    webhook_secret: str = dc.field(default="", repr=False)
    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES
    accept_form_payloads: bool = True
    script_directory: Path = DEFAULT_SCRIPT_DIRECTORY
    host: str = "0.0.0.0"  # noqa: S104 - bind all interfaces by default
    port: int = DEFAULT_PORT
    log_level: str = "INFO"
    debug: bool = False

    @property
    def authentication_enabled(self) -> bool:
        """Return whether deliveries must carry a valid signature."""
        return bool(self.webhook_secret)

    @staticmethod
    def _parse_positive_int(env_var: str, default: int) -> int:
        """Read a positive integer env var, falling back to a default."""
        raw = os.environ.get(env_var, "")
        if not raw.strip():
            return default
        try:
            value = int(raw)
        except ValueError as exc:
            msg = f"{env_var} must be an integer, got: {raw!r}"
            raise ValueError(msg) from exc
        if value < 1:
            msg = f"{env_var} must be positive, got: {value}"
            raise ValueError(msg)
        return value

    @staticmethod
    def _parse_bool(env_var: str, *, default: bool) -> bool:
        """Read a boolean env var such as ``1``/``0`` or ``true``/``false``."""
        raw = os.environ.get(env_var, "").strip().lower()
        if not raw:
            return default
        if raw in _TRUE_VALUES:
            return True
        if raw in _FALSE_VALUES:
            return False
        msg = f"{env_var} must be a boolean, got: {raw!r}"
        raise ValueError(msg)

    @classmethod
    def from_env(cls) -> HeraldConfig:
        """Create configuration from environment variables.

        Reads the following environment variables:

        - ``HERALD_WEBHOOK_SECRET`` (or the legacy ``WEBHOOK_SECRET``):
          shared webhook secret.
        - ``HERALD_MAX_BODY_BYTES``: body size ceiling in bytes.
        - ``HERALD_ACCEPT_FORM_PAYLOADS``: accept form-encoded deliveries.
        - ``HERALD_SCRIPT_DIRECTORY``: subscriber directory.
        - ``HERALD_HOST`` / ``HERALD_PORT``: bind address and port.
        - ``HERALD_LOG_LEVEL``: log level name.
        - ``HERALD_DEBUG``: force DEBUG logging.

        Returns
        -------
        HeraldConfig
            Configuration instance with values from environment or defaults.

        Raises
        ------
        ValueError
            If a numeric or boolean variable cannot be parsed.

        """
        secret = os.environ.get("HERALD_WEBHOOK_SECRET")
        if secret is None:
            secret = os.environ.get("WEBHOOK_SECRET", "")

        raw_directory = os.environ.get("HERALD_SCRIPT_DIRECTORY", "").strip()
        script_directory = (
            Path(raw_directory) if raw_directory else DEFAULT_SCRIPT_DIRECTORY
        )

        return cls(
            webhook_secret=secret,
            max_body_bytes=cls._parse_positive_int(
                "HERALD_MAX_BODY_BYTES", DEFAULT_MAX_BODY_BYTES
            ),
            accept_form_payloads=cls._parse_bool(
                "HERALD_ACCEPT_FORM_PAYLOADS", default=True
            ),
            script_directory=script_directory,
            host=os.environ.get("HERALD_HOST", "0.0.0.0"),  # noqa: S104
            port=cls._parse_positive_int("HERALD_PORT", DEFAULT_PORT),
            log_level=os.environ.get("HERALD_LOG_LEVEL", "INFO"),
            debug=cls._parse_bool("HERALD_DEBUG", default=False),
        )

    def to_env(self) -> dict[str, str]:
        """Return environment variables that reproduce this configuration.

        The Granian factory entrypoint rebuilds configuration from the
        environment inside the worker, so the CLI exports overrides here.
        """
        return {
            "HERALD_WEBHOOK_SECRET": self.webhook_secret,
            "HERALD_MAX_BODY_BYTES": str(self.max_body_bytes),
            "HERALD_ACCEPT_FORM_PAYLOADS": "1" if self.accept_form_payloads else "0",
            "HERALD_SCRIPT_DIRECTORY": str(self.script_directory),
            "HERALD_HOST": self.host,
            "HERALD_PORT": str(self.port),
            "HERALD_LOG_LEVEL": self.log_level,
            "HERALD_DEBUG": "1" if self.debug else "0",
        }
