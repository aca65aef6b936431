import re
import logging
from pathlib import Path
from typing import Any, List, Union

from dynaconf import Dynaconf

from notifier import Channel
from policy import PolicyConfig
from utils import normalize_identifier

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_FILE = "config/settings.toml"
ENVVAR_PREFIX = "DEVICE_NOTIFY"
TRUE_VALUES = ("1", "true", "yes", "on")


class ConfigError(Exception):
    """Raised for settings the daemon cannot start with."""


def load_settings(settings_file: Union[str, Path] = DEFAULT_SETTINGS_FILE) -> Dynaconf:
    """Loads settings from the TOML file, overridden by DEVICE_NOTIFY_* environment variables."""
    return Dynaconf(
        settings_files=[str(settings_file)],
        envvar_prefix=ENVVAR_PREFIX,
        merge_enabled=True,
    )


def _section(settings: Dynaconf, name: str) -> Any:
    return settings.get(name) or {}


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in TRUE_VALUES
    return bool(value)


def _as_int(value: Any, name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be an integer, got {value!r}") from None


def read_seed_file(path: Path) -> List[str]:
    """Reads known identifiers from a file, one per line.

    Only the first field of a line is used, so ``aa:bb:cc:dd:ee:ff, Laptop`` or
    ``aa:bb:cc:dd:ee:ff|Laptop`` both work. Blank lines and ``#`` comments are
    ignored.
    """
    identifiers = []
    with path.open("r", encoding="utf-8") as file:
        for line in file:
            if line.lstrip().startswith("#"):
                continue
            identifier = normalize_identifier(re.split(r"[,|]", line)[0])
            if identifier:
                identifiers.append(identifier)
    return identifiers


def load_seed_identifiers(settings: Dynaconf) -> List[str]:
    """Returns the static allow-list: the known-MACs file if present, else the inline list."""
    general = _section(settings, "general")
    file_path = Path(general.get("known_macs_file", "config/macs.txt"))

    identifiers = None
    if file_path.is_file():
        logger.info(f"Using known MAC addresses from file: {file_path}")
        try:
            identifiers = read_seed_file(file_path)
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Could not read {file_path}: {e}")

    if identifiers is None:
        logger.info("Using known MAC addresses from settings.")
        inline = general.get("known_macs", [])
        if isinstance(inline, str):
            inline = inline.split(",")
        identifiers = [normalize_identifier(str(value)) for value in inline]
        identifiers = [identifier for identifier in identifiers if identifier]

    logger.info(f"Number of known MAC addresses found: {len(identifiers)}")
    return identifiers


def get_notification_channel(settings: Dynaconf) -> Channel:
    service = _section(settings, "notify").get("service", Channel.TELEGRAM.value)
    for channel in Channel:
        if channel.value == service:
            return channel
    names = ", ".join(f"'{channel.value}'" for channel in Channel)
    raise ConfigError(f"Invalid notification service {service!r}. Set notify.service to one of {names}.")


def build_policy(settings: Dynaconf) -> PolicyConfig:
    policy = _section(settings, "policy")
    interval = _as_int(policy.get("check_interval", 60), "policy.check_interval")
    if interval < 1:
        raise ConfigError(f"policy.check_interval must be at least 1 second, got {interval}")

    return PolicyConfig(
        always_notify=_as_bool(policy.get("always_notify", False)),
        always_notify_guest=str(policy.get("always_notify_guest", "") or ""),
        remember_new_devices=_as_bool(policy.get("remember_new_devices", True)),
        teleport_mode=_as_bool(policy.get("teleport_notifications", False)),
        remove_stale_devices=_as_bool(policy.get("remove_old_devices", False)),
        stale_grace_seconds=_as_int(policy.get("remove_delay", 0), "policy.remove_delay"),
        poll_interval_seconds=interval,
    )
