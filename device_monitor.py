import argparse
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from settings import (ConfigError, DEFAULT_SETTINGS_FILE, build_policy, get_notification_channel,
                      load_seed_identifiers, load_settings)
from controllers import get_controller
from data import JsonFileStore
from identifiers import IdentifierStore
from monitor import PollLoop
from notifier import Notifier

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'

logger = logging.getLogger(__name__)


def configure_logging(debug: bool, log_file: Optional[str] = None):
    handlers = [logging.StreamHandler()]
    if log_file:
        # Rotate after ~1MB, keep 3 backups
        handlers.append(RotatingFileHandler(log_file, maxBytes=1_000_000, backupCount=3))
    logging.basicConfig(level=logging.DEBUG if debug else logging.INFO, format=LOG_FORMAT, handlers=handlers)


def list_clients(controller, teleport_mode: bool):
    """Prints the current roster in the known-MACs file format."""
    roster = controller.list_clients_extended() if teleport_mode else controller.list_clients()
    if roster is None:
        logger.error("Failed to retrieve clients from the controller.")
        return 1
    for record in roster:
        print(f"{record.identifier}, {record.display_name or record.hostname or ''}")
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(description="Notify about devices joining the network")
    parser.add_argument("--settings", default=DEFAULT_SETTINGS_FILE, help="Path to the settings TOML file")
    parser.add_argument("--once", action="store_true", help="Run a single poll cycle and exit")
    parser.add_argument("--list-clients", action="store_true", help="Print the connected clients and exit")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    settings = load_settings(args.settings)
    general = settings.get("general") or {}
    configure_logging(args.debug, general.get("log_file"))

    try:
        policy = build_policy(settings)
        channel = get_notification_channel(settings)
        controller = get_controller(settings)
    except (ConfigError, ValueError) as e:
        logger.error(f"Error: {e}")
        return 1

    if args.list_clients:
        return list_clients(controller, policy.teleport_mode)

    seed = load_seed_identifiers(settings)
    identifier_store = IdentifierStore(JsonFileStore(Path(general.get("database_file", "known_devices.json"))))
    notifier = Notifier.from_config(settings.get("notify") or {})
    loop = PollLoop(controller, notifier, channel, identifier_store, seed, policy)

    logger.info(f"Monitoring with {channel.value} notifications every {policy.poll_interval_seconds} seconds")
    if args.once:
        loop.run_once()
        return 0
    loop.run_forever()
    return 0


if __name__ == "__main__":
    sys.exit(main())
