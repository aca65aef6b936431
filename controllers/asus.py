import re
import logging
from typing import Any, Callable, Dict, List, Optional, Set

from .base import BaseController
from device import DeviceRecord
from utils import format_mac, is_valid_ipv4, is_valid_mac, SSHClient

logger = logging.getLogger(__name__)

ARP_PATTERN = re.compile(
    r"^(?P<arp_hostname>[^\s\(]+)\s+\((?P<ip>\d+\.\d+\.\d+\.\d+)\)\s+at\s+(?P<mac>[\w:<>]+)"
    r"(?:\s+\[ether\])?(?:\s+on\s+(?P<interface>\w+))?\s*$",
    re.IGNORECASE,
)
ISC_LEASE_PATTERN = re.compile(
    r"lease\s+(\d+\.\d+\.\d+\.\d+).*?hardware\s+ethernet\s+([\w:]+).*?client-hostname\s+\"([^\"]+)\"",
    re.DOTALL,
)
ASSOCLIST_PATTERN = re.compile(r"^assoclist\s+([0-9a-f:]{17})\s*$", re.IGNORECASE)


class AsusRouter(BaseController):
    """Implementation of BaseController for ASUS (Asuswrt/Merlin) routers over SSH.

    Clients are read from the ARP table and merged with the dnsmasq DHCP
    leases. The router has no notion of Teleport clients, so the extended
    list is the standard one.
    """

    def __init__(self, config: Dict[str, Any], ssh_factory: Callable[..., SSHClient] = SSHClient):
        self.config = config
        self.router_ip = config.get("router_ip")
        self.router_user = config.get("router_user")
        self.router_password = config.get("router_password")
        self.ssh_timeout = config.get("ssh_timeout", 10)
        self.arp_cmd = "arp -a"
        self.dhcp_leases_file = config.get("dhcp_leases_file", "/var/lib/misc/dnsmasq.leases")
        self.wireless_interfaces = list(config.get("wireless_interfaces", ["eth1", "eth2"]))
        self.ssh_factory = ssh_factory
        self.ssh_client: Optional[SSHClient] = None

    def _connect(self) -> bool:
        if self.ssh_client and self.ssh_client.connected:
            return True
        self.ssh_client = self.ssh_factory(hostname=self.router_ip, username=self.router_user,
                                           password=self.router_password, timeout=self.ssh_timeout)
        if not self.ssh_client.connect():
            self.ssh_client = None
            return False
        return True

    def reestablish_session(self) -> None:
        if self.ssh_client:
            self.ssh_client.close()
            self.ssh_client = None
        self._connect()

    def list_clients(self) -> Optional[List[DeviceRecord]]:
        if not self._connect():
            return None

        arp_output = self.ssh_client.execute_command(self.arp_cmd)
        dhcp_output = self.ssh_client.execute_command(f"cat {self.dhcp_leases_file}")
        if arp_output is None or dhcp_output is None:
            return None

        arp_entries = self._parse_lines(arp_output.splitlines(), self._parse_arp_line)
        hostnames = self._parse_dhcp_leases(dhcp_output)
        wireless_macs = self._wireless_macs()

        records: Dict[str, DeviceRecord] = {}
        for entry in arp_entries:
            mac = entry["mac"]
            if mac in records:
                continue
            records[mac] = DeviceRecord(
                identifier=mac,
                mac=mac,
                ip_address=entry["ip"],
                hostname=entry["hostname"] or hostnames.get(mac),
                is_wired=mac not in wireless_macs,
                network_label=entry["interface"] or None,
            )
        logger.debug(f"Read {len(records)} clients from router {self.router_ip}")
        return list(records.values())

    def _parse_lines(self, lines: List[str], parser_func: Callable[[str], Optional[Dict]]) -> List[Dict]:
        entries: List[Dict] = []
        for line in lines:
            entry = parser_func(line)
            if entry:
                entries.append(entry)
        return entries

    def _parse_arp_line(self, line: str) -> Optional[Dict]:
        """Parses a single line from the ARP table output; incomplete entries are skipped."""
        match = ARP_PATTERN.match(line.strip())
        if not match or not is_valid_mac(match.group("mac")):
            return None
        if not is_valid_ipv4(match.group("ip")):
            return None

        arp_hostname = match.group("arp_hostname")
        return {
            "ip": match.group("ip"),
            "mac": format_mac(match.group("mac")),
            "hostname": None if arp_hostname == "?" else arp_hostname,
            "interface": match.group("interface") or "",
        }

    def _parse_dhcp_line(self, line: str) -> Optional[Dict]:
        """Parses one dnsmasq lease line: ``<expiry> <mac> <ip> <hostname> <client-id>``."""
        parts = line.split()
        if len(parts) < 4:
            return None
        _, mac, ip, hostname = parts[:4]
        if not is_valid_mac(mac):
            return None
        return {"ip": ip, "mac": format_mac(mac), "hostname": None if hostname == "*" else hostname}

    def _parse_dhcp_leases(self, dhcp_output: str) -> Dict[str, str]:
        """Returns a MAC -> hostname map from dnsmasq or ISC style leases."""
        leases = self._parse_lines(dhcp_output.splitlines(), self._parse_dhcp_line)
        for ip, mac, hostname in ISC_LEASE_PATTERN.findall(dhcp_output):
            leases.append({"ip": ip, "mac": format_mac(mac), "hostname": hostname})
        return {lease["mac"]: lease["hostname"] for lease in leases if lease["hostname"]}

    def _wireless_macs(self) -> Set[str]:
        """MACs associated to any radio, from ``wl assoclist``; everything else counts as wired."""
        macs: Set[str] = set()
        for interface in self.wireless_interfaces:
            output = self.ssh_client.execute_command(f"wl -i {interface} assoclist")
            for line in (output or "").splitlines():
                match = ASSOCLIST_PATTERN.match(line.strip())
                if match:
                    macs.add(format_mac(match.group(1)))
        return macs
