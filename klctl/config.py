import ipaddress
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv, set_key

from .constants import DEFAULT_HUB_HOST, DEFAULT_HUB_PORT, KL_VERSION, PORT_MAX, PORT_MIN
from .exceptions import ConfigError, UsageError
from .types import ProtocolVersion

CONFIG_FILE = os.path.join(os.path.expanduser("~"), ".klctl")

HOST_KEY = "KL_HUB_HOST"
PORT_KEY = "KL_HUB_PORT"
VERSION_KEY = "KL_PROTOCOL_VERSION"
TIMEOUT_KEY = "KL_READ_TIMEOUT"

logger = logging.getLogger(__name__)


@dataclass
class HubSettings:
    """Where the hub lives and how to talk to it."""

    host: str = DEFAULT_HUB_HOST
    port: int = DEFAULT_HUB_PORT
    version: ProtocolVersion = ProtocolVersion.parse(KL_VERSION)
    read_timeout: Optional[float] = None


def config_path(path: Optional[str] = None) -> str:
    return path or os.environ.get("KLCTL_CONFIG") or CONFIG_FILE


def parse_port(value: str) -> int:
    try:
        port = int(str(value).strip())
    except ValueError:
        raise UsageError(f"Port must be a number, got {value!r}") from None
    if not PORT_MIN <= port <= PORT_MAX:
        raise UsageError(f"Port must be between {PORT_MIN} and {PORT_MAX}, got {port}")
    return port


def parse_host(value: str) -> str:
    try:
        return str(ipaddress.ip_address(value.strip()))
    except ValueError:
        raise UsageError(f"{value!r} is not a valid IP address") from None


def load_settings(path: Optional[str] = None) -> HubSettings:
    """
    Read hub settings from the config file; variables already present in the
    environment take precedence over the file.
    """
    path = config_path(path)
    if os.path.exists(path):
        load_dotenv(path, override=False)
        logger.debug("Loaded settings from %s", path)

    host = os.environ.get(HOST_KEY, DEFAULT_HUB_HOST)
    try:
        port = parse_port(os.environ.get(PORT_KEY, str(DEFAULT_HUB_PORT)))
    except UsageError as exc:
        raise ConfigError(f"{PORT_KEY} in {path}: {exc}") from exc

    try:
        version = ProtocolVersion.parse(os.environ.get(VERSION_KEY, KL_VERSION))
    except ValueError as exc:
        raise ConfigError(f"{VERSION_KEY} in {path}: {exc}") from exc

    read_timeout = None
    raw_timeout = os.environ.get(TIMEOUT_KEY)
    if raw_timeout:
        try:
            read_timeout = float(raw_timeout)
        except ValueError:
            raise ConfigError(f"{TIMEOUT_KEY} in {path} must be a number of seconds, got {raw_timeout!r}") from None
        if read_timeout <= 0:
            read_timeout = None

    return HubSettings(host=host, port=port, version=version, read_timeout=read_timeout)


def save_setting(key: str, value: str, path: Optional[str] = None) -> str:
    """Persist one setting to the config file, creating it when missing."""
    path = config_path(path)
    try:
        Path(path).touch(exist_ok=True)
        set_key(path, key, value, quote_mode="never")
    except OSError as exc:
        raise ConfigError(f"Unable to write {path}: {exc}") from exc
    logger.info("Saved %s=%s to %s", key, value, path)
    return path


def set_hub_ip(value: str, path: Optional[str] = None) -> str:
    host = parse_host(value)
    save_setting(HOST_KEY, host, path)
    return host


def set_hub_port(value: str, path: Optional[str] = None) -> int:
    port = parse_port(value)
    save_setting(PORT_KEY, str(port), path)
    return port
