import enum
import logging
import time
from typing import Callable, Iterable, List, Optional, Set

from controllers.base import BaseController
from device import DeviceRecord
from identifiers import IdentifierStore, reap
from notifier import Channel, Notifier
from policy import PolicyConfig, evaluate

logger = logging.getLogger(__name__)

RECONNECT_DELAY_SECONDS = 60


class LoopState(enum.Enum):
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"
    SLEEPING = "sleeping"


class PollLoop:
    """Polls the controller on a fixed interval and notifies about devices.

    One cycle runs to completion before the loop sleeps. A failed fetch
    triggers a reconnect after a fixed delay and the cycle is retried; any
    other error is logged and the loop carries on at the next interval.
    """

    def __init__(self, controller: BaseController, notifier: Notifier, channel: Channel,
                 identifier_store: IdentifierStore, seed: Iterable[str], policy: PolicyConfig,
                 sleep: Callable[[float], None] = time.sleep):
        self.controller = controller
        self.notifier = notifier
        self.channel = channel
        self.identifier_store = identifier_store
        self.seed = list(seed)
        self.policy = policy
        self.sleep = sleep
        self.state = LoopState.CONNECTED
        self.known: Set[str] = self.identifier_store.load(self.seed)

    def fetch_roster(self) -> Optional[List[DeviceRecord]]:
        if self.policy.teleport_mode:
            return self.controller.list_clients_extended()
        return self.controller.list_clients()

    def reconnect(self) -> None:
        self.state = LoopState.RECONNECTING
        logger.error(f"Failed to retrieve clients from the controller. Reconnecting in {RECONNECT_DELAY_SECONDS} seconds...")
        self.sleep(RECONNECT_DELAY_SECONDS)
        self.controller.reestablish_session()
        self.state = LoopState.CONNECTED

    def process_roster(self, roster: List[DeviceRecord]) -> int:
        """Notifies about the roster and updates the known set. Returns the number of notifications sent."""
        sent = 0
        new_device_found = False
        for decision in evaluate(roster, self.known, self.policy):
            if not decision.should_notify:
                continue

            identifier = decision.record.identifier
            if decision.is_new_device:
                new_device_found = True
                logger.info(f"New device found: {identifier}. Sending a notification.")
            elif decision.guest_match:
                logger.info(f"Guest device found: {identifier}. Sending a notification.")

            self.notifier.send(decision.message, self.channel)
            sent += 1

            if decision.is_new_device and self.policy.remember_new_devices:
                self.identifier_store.add(identifier)
                self.known.add(identifier)

        if not new_device_found:
            logger.info("No new devices found on the network.")

        if self.policy.remove_stale_devices:
            reap(self.identifier_store, roster, self.policy.stale_grace_seconds)
            self.known = self.identifier_store.load(self.seed)
        return sent

    def run_once(self) -> None:
        """Runs one poll cycle, reconnecting until the controller answers."""
        try:
            roster = self.fetch_roster()
            while not isinstance(roster, list):
                self.reconnect()
                roster = self.fetch_roster()

            if not roster:
                logger.info("No devices currently connected to the network.")
            else:
                self.process_roster(roster)
        except Exception:  # pylint: disable=broad-except
            logger.exception("An error occurred during the poll cycle")
        self.state = LoopState.SLEEPING

    def run_forever(self) -> None:
        while True:
            self.run_once()
            logger.info(f"Checking again in {self.policy.poll_interval_seconds} seconds...")
            self.sleep(self.policy.poll_interval_seconds)
            self.state = LoopState.CONNECTED
