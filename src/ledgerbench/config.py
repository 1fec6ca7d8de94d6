"""
Configuration for the ledgerbench engine.

Two sources:
- the network configuration file (its ``gateway`` section) describing the
  gateway URL, the tenant/application identity and the contract bindings;
- engine settings from the environment, optionally loaded from a ``.env``
  file, controlling poll timing, HTTP timeout and log level.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import httpx
import jsonschema
from dotenv import load_dotenv

from .errors import ConfigurationError
from .gateway.poller import DEFAULT_INITIAL_DELAY, DEFAULT_POLL_INTERVAL, PollPolicy
from .gateway.transport import DEFAULT_TIMEOUT

CONFIG_DOCS_URL = "https://hyperledger.github.io/caliper/v0.3/ethereum-config/"

GATEWAY_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["url"],
    "properties": {
        "url": {"type": "string", "minLength": 1},
        "chainId": {"type": ["integer", "string", "null"]},
        "fromUser": {"type": ["string", "null"]},
        "fromApplication": {"type": ["string", "null"]},
        "contracts": {
            "type": "object",
            "additionalProperties": {
                "type": "object",
                "required": ["path"],
                "properties": {
                    "id": {"type": ["string", "integer", "null"]},
                    "path": {"type": "string"},
                },
            },
        },
    },
}


@dataclass(frozen=True)
class GatewayConfig:
    url: str
    chain_id: Optional[Union[int, str]] = None
    from_user: str = ""
    from_application: str = ""
    contracts: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "GatewayConfig":
        """
        Build a config from the ``gateway`` section of a network file.

        Raises:
            ConfigurationError: If no URL is given or the section is malformed
        """
        if not isinstance(payload, Mapping) or not payload.get("url"):
            raise ConfigurationError(
                "No URL given to access the gateway SUT. Please check your network "
                f"configuration. Please see {CONFIG_DOCS_URL} for more info."
            )
        validator = jsonschema.Draft202012Validator(GATEWAY_SCHEMA)
        errors = sorted(validator.iter_errors(dict(payload)), key=lambda e: list(e.path))
        if errors:
            details = "; ".join(_format_error(err) for err in errors)
            raise ConfigurationError(f"Invalid gateway configuration: {details}")
        parse_gateway_url(payload["url"])

        return cls(
            url=payload["url"],
            chain_id=payload.get("chainId"),
            from_user=payload.get("fromUser") or "",
            from_application=payload.get("fromApplication") or "",
            contracts=dict(payload.get("contracts") or {}),
        )


def parse_gateway_url(url: str) -> httpx.URL:
    """
    Parse the gateway base URL.

    Raises:
        ConfigurationError: If the URL is malformed or not an absolute http(s) URL
    """
    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, TypeError) as exc:
        raise ConfigurationError(f"Invalid gateway URL {url!r}: {exc}") from exc
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise ConfigurationError(f"Invalid gateway URL {url!r}: expected http(s)://host[:port][/path]")
    return parsed


def _format_error(error: jsonschema.ValidationError) -> str:
    location = "/".join(str(part) for part in error.path) or "<root>"
    return f"{location}: {error.message}"


def load_network_config(path: Path) -> GatewayConfig:
    """Read a network configuration file and return its gateway section."""
    try:
        with Path(path).open("r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise ConfigurationError(f"Network configuration not found: {path}") from None
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Network configuration is not valid JSON: {exc}") from exc

    if not isinstance(data, dict) or "gateway" not in data:
        raise ConfigurationError(f"Network configuration {path} has no 'gateway' section")
    return GatewayConfig.from_dict(data["gateway"])


# ---------------------------------------------------------------------------
# Engine settings
# ---------------------------------------------------------------------------

ENV_PREFIX = "LEDGERBENCH_"


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    raw = os.environ.get(ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(f"{ENV_PREFIX}{name} must be a number, got {raw!r}") from None
    if value < 0:
        raise ConfigurationError(f"{ENV_PREFIX}{name} must not be negative")
    return value


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.environ.get(ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}") from None
    if value < 1:
        raise ConfigurationError(f"{ENV_PREFIX}{name} must be at least 1")
    return value


@dataclass(frozen=True)
class Settings:
    poll_initial_delay: float = DEFAULT_INITIAL_DELAY
    poll_interval: float = DEFAULT_POLL_INTERVAL
    poll_max_attempts: Optional[int] = None
    poll_deadline: Optional[float] = None
    http_timeout: float = DEFAULT_TIMEOUT
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "Settings":
        """
        Read settings from ``LEDGERBENCH_*`` environment variables.

        Args:
            env_file: Optional .env file loaded first (existing variables win)
        """
        if env_file is not None:
            load_dotenv(env_file, override=False)
        else:
            load_dotenv(override=False)

        return cls(
            poll_initial_delay=_env_float("POLL_INITIAL_DELAY", DEFAULT_INITIAL_DELAY),
            poll_interval=_env_float("POLL_INTERVAL", DEFAULT_POLL_INTERVAL),
            poll_max_attempts=_env_int("POLL_MAX_ATTEMPTS", None),
            poll_deadline=_env_float("POLL_DEADLINE", None),
            http_timeout=_env_float("HTTP_TIMEOUT", DEFAULT_TIMEOUT),
            log_level=os.environ.get(ENV_PREFIX + "LOG_LEVEL", "INFO").upper(),
        )

    def poll_policy(self) -> PollPolicy:
        return PollPolicy(
            initial_delay=self.poll_initial_delay,
            interval=self.poll_interval,
            max_attempts=self.poll_max_attempts,
            deadline=self.poll_deadline,
        )
