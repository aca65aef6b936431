from dataclasses import dataclass
from typing import List, Optional, Sequence, Set

from device import DeviceRecord

MISSING_NETWORK = "N/A"


@dataclass(frozen=True)
class PolicyConfig:
    always_notify: bool = False
    always_notify_guest: str = ""
    remember_new_devices: bool = True
    teleport_mode: bool = False
    remove_stale_devices: bool = False
    stale_grace_seconds: int = 0
    poll_interval_seconds: int = 60


@dataclass(frozen=True)
class NotificationDecision:
    record: DeviceRecord
    should_notify: bool
    is_new_device: bool
    guest_match: bool = False
    message: Optional[str] = None


def is_guest_match(record: DeviceRecord, guest_substring: str) -> bool:
    if not guest_substring:
        return False
    return guest_substring in (record.network_label or MISSING_NETWORK)


def render_teleport_message(record: DeviceRecord) -> str:
    return (
        "Teleport device seen on network:\n"
        f"Name: {record.display_name or 'Unknown'}\n"
        f"IP Address: {record.ip_address or ''}\n"
        f"ID: {record.identifier}\n"
    )


def render_device_message(record: DeviceRecord) -> str:
    return (
        "Device seen on network:\n"
        f"Device Name: {record.display_name or 'Unknown'}\n"
        f"IP Address: `{record.ip_address or 'Unassigned'}`\n"
        f"Hostname: {record.hostname or 'N/A'}\n"
        f"MAC Address: `{record.mac or record.identifier}`\n"
        f"Connection Type: {'Wired' if record.is_wired else 'Wireless'}\n"
        f"Network: {record.network_label or MISSING_NETWORK}"
    )


def render_message(record: DeviceRecord, policy: PolicyConfig) -> str:
    if policy.teleport_mode and record.is_teleport:
        return render_teleport_message(record)
    return render_device_message(record)


def evaluate(roster: Sequence[DeviceRecord], known: Set[str], policy: PolicyConfig) -> List[NotificationDecision]:
    """Decides, in roster order, which devices are owed a notification.

    Pure function: no I/O and no mutation of ``known``. Records without an
    identifier are skipped.
    """
    decisions = []
    for record in roster:
        if not record.identifier:
            continue

        is_new_device = record.identifier not in known
        guest_match = is_guest_match(record, policy.always_notify_guest)
        should_notify = policy.always_notify or is_new_device or guest_match

        message = render_message(record, policy) if should_notify else None
        decisions.append(NotificationDecision(record, should_notify, is_new_device, guest_match, message))
    return decisions
