import enum
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from utils import format_mac

logger = logging.getLogger(__name__)


class DeviceClass(enum.Enum):
    STANDARD = "STANDARD"
    TELEPORT = "TELEPORT"  # client connected through a Teleport VPN uplink

    @classmethod
    def from_raw(cls, value: Optional[str]) -> "DeviceClass":
        if value and str(value).upper() == cls.TELEPORT.value:
            return cls.TELEPORT
        return cls.STANDARD


@dataclass(frozen=True)
class DeviceRecord:
    """One connected client as reported by the controller for a single poll."""
    identifier: str  # MAC address, or the controller ID when no MAC is reported
    mac: Optional[str] = None
    display_name: Optional[str] = None
    ip_address: Optional[str] = None
    hostname: Optional[str] = None
    is_wired: bool = False
    network_label: Optional[str] = None
    device_class: DeviceClass = DeviceClass.STANDARD

    @property
    def is_teleport(self) -> bool:
        return self.device_class is DeviceClass.TELEPORT


def _identifier_for(mac: Optional[str], raw: Dict[str, Any]) -> str:
    if mac:
        return mac
    return str(raw.get("id") or raw.get("_id") or "")


def record_from_payload(raw: Dict[str, Any], network_field: str = "network") -> Optional[DeviceRecord]:
    """Builds a DeviceRecord from a controller payload.

    ``network_field`` names the attribute carrying the network/VLAN name, which
    is ``network`` in the standard client list and ``network_name`` in the
    extended one. Returns None for payloads with neither a MAC nor an ID.
    """
    mac = format_mac(raw["mac"]) if raw.get("mac") else None
    identifier = _identifier_for(mac, raw)
    if not identifier:
        logger.debug(f"Skipping client without MAC or ID: {raw}")
        return None

    return DeviceRecord(
        identifier=identifier,
        mac=mac,
        display_name=raw.get("name") or None,
        ip_address=raw.get("ip") or None,
        hostname=raw.get("hostname") or None,
        is_wired=bool(raw.get("is_wired")),
        network_label=raw.get(network_field) or None,
        device_class=DeviceClass.from_raw(raw.get("type")),
    )


def records_from_payloads(payloads: Iterable[Dict[str, Any]], network_field: str = "network") -> List[DeviceRecord]:
    records = []
    for raw in payloads:
        if not isinstance(raw, dict):
            logger.debug(f"Ignoring non-object client entry: {raw!r}")
            continue
        record = record_from_payload(raw, network_field)
        if record:
            records.append(record)
    return records
