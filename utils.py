import re
import logging
from typing import Optional

import paramiko

logger = logging.getLogger(__name__)

MAC_PATTERN = re.compile(r"^([0-9a-f]{2}[:-]){5}[0-9a-f]{2}$", re.IGNORECASE)


def format_mac(mac: str) -> str:
    """Formats a MAC address to lowercase with colons."""
    return mac.strip().lower().replace("-", ":")


def is_valid_mac(value: str) -> bool:
    return bool(MAC_PATTERN.match(value.strip()))


def normalize_identifier(value: str) -> str:
    """Normalizes a known-device entry: MACs are formatted, other IDs only trimmed."""
    value = value.strip()
    if is_valid_mac(value):
        return format_mac(value)
    return value


def is_valid_ipv4(ip: str) -> bool:
    """Checks if a string is a valid IPv4 address."""
    pattern = r"^(\d{1,3}\.){3}\d{1,3}$"
    if re.match(pattern, ip):
        return all(0 <= int(part) <= 255 for part in ip.split('.'))
    return False


class SSHClient:
    """Thin wrapper around paramiko for running read-only commands on a router.

    The daemon runs unattended, so only password or key/agent authentication
    is attempted; there is no interactive prompt.
    """

    def __init__(self, hostname: str, username: str, password: Optional[str] = None,
                 timeout: int = 10):
        self.hostname = hostname
        self.username = username
        self.password = password
        self.timeout = timeout
        self.client: Optional[paramiko.SSHClient] = None

    @property
    def connected(self) -> bool:
        if not self.client:
            return False
        transport = self.client.get_transport()
        return bool(transport and transport.is_active())

    def connect(self) -> bool:
        """Opens the SSH connection. Returns False instead of raising on failure."""
        self.client = paramiko.SSHClient()
        self.client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        try:
            if self.password:
                self.client.connect(hostname=self.hostname, username=self.username,
                                    password=self.password, timeout=self.timeout)
            else:
                self.client.connect(hostname=self.hostname, username=self.username,
                                    timeout=self.timeout, look_for_keys=True, allow_agent=True)
            return True
        except (paramiko.SSHException, OSError) as e:
            logger.error(f"Error connecting to {self.hostname}: {e}")
            self.client = None
            return False

    def execute_command(self, command: str) -> Optional[str]:
        """Runs a command and returns its stdout, or None when the channel failed."""
        if not self.client:
            raise RuntimeError("SSH client not connected. Call connect() first.")
        try:
            _, stdout, stderr = self.client.exec_command(command, timeout=self.timeout)
            output = stdout.read().decode()
            error = stderr.read().decode().strip()
            if error:
                logger.warning(f"Command '{command}' returned error: {error}")
            return output
        except (paramiko.SSHException, OSError) as e:
            logger.error(f"Error executing command '{command}': {e}")
            return None

    def close(self):
        if self.client:
            self.client.close()
            self.client = None
