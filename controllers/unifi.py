import logging
from typing import Any, Dict, List, Optional

import requests
import urllib3

from .base import BaseController
from device import DeviceRecord, records_from_payloads

logger = logging.getLogger(__name__)

UNIFI_OS_PREFIX = "/proxy/network"


class UnifiController(BaseController):
    """Implementation of BaseController for UniFi Network controllers over HTTPS.

    Handles both classic controllers (``/api/login``) and UniFi OS consoles
    (``/api/auth/login`` with every Network API path under ``/proxy/network``).
    ``unifi_os`` may be left unset to detect the console type at login.
    """

    def __init__(self, config: Dict[str, Any], session_factory=requests.Session):
        self.config = config
        self.url = str(config.get("url", "https://127.0.0.1:8443")).rstrip("/")
        self.username = config.get("username")
        self.password = config.get("password")
        self.site = config.get("site", "default")
        self.verify_ssl = config.get("verify_ssl", False)
        self.timeout = config.get("timeout", 10)
        self.unifi_os: Optional[bool] = config.get("unifi_os")
        self.session_factory = session_factory
        self.session: Optional[requests.Session] = None
        self.logged_in = False

        if not self.verify_ssl:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    def _new_session(self) -> requests.Session:
        session = self.session_factory()
        session.verify = self.verify_ssl
        session.headers.update({"Accept": "application/json"})
        return session

    def _detect_unifi_os(self) -> bool:
        # UniFi OS consoles answer 200 on the base URL, classic controllers redirect.
        try:
            response = self.session.get(self.url, timeout=self.timeout, allow_redirects=False)
        except requests.RequestException as e:
            logger.warning(f"Could not detect controller type at {self.url}: {e}")
            return False
        return response.status_code == 200

    def _api_path(self, path: str) -> str:
        prefix = UNIFI_OS_PREFIX if self.unifi_os else ""
        return f"{self.url}{prefix}{path}"

    def login(self) -> bool:
        if self.session is None:
            self.session = self._new_session()
        if self.unifi_os is None:
            self.unifi_os = self._detect_unifi_os()

        login_path = "/api/auth/login" if self.unifi_os else "/api/login"
        try:
            response = self.session.post(
                f"{self.url}{login_path}",
                json={"username": self.username, "password": self.password},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Error connecting to UniFi controller at {self.url}: {e}")
            return False

        if response.status_code != 200:
            logger.error(f"UniFi controller login failed with HTTP {response.status_code}")
            return False

        csrf_token = response.headers.get("X-CSRF-Token")
        if csrf_token:
            self.session.headers["X-CSRF-Token"] = csrf_token
        self.logged_in = True
        logger.info(f"Logged in to UniFi controller at {self.url} (site '{self.site}')")
        return True

    def logout(self) -> None:
        if self.session is None:
            return
        if self.logged_in:
            logout_path = "/api/auth/logout" if self.unifi_os else "/api/logout"
            try:
                self.session.post(f"{self.url}{logout_path}", timeout=self.timeout)
            except requests.RequestException as e:
                logger.debug(f"Ignoring logout error: {e}")
        self.session.close()
        self.session = None
        self.logged_in = False

    def reestablish_session(self) -> None:
        logger.info("Reconnecting to UniFi controller")
        self.logout()
        self.login()

    def _get_json(self, path: str) -> Optional[Any]:
        if not self.logged_in and not self.login():
            return None
        try:
            response = self.session.get(self._api_path(path), timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Request to {path} failed: {e}")
            return None
        if response.status_code != 200:
            logger.error(f"Request to {path} returned HTTP {response.status_code}")
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Invalid JSON from {path}: {e}")
            return None

    def list_clients(self) -> Optional[List[DeviceRecord]]:
        payload = self._get_json(f"/api/s/{self.site}/stat/sta")
        if not isinstance(payload, dict):
            return None
        if (payload.get("meta") or {}).get("rc") != "ok" or not isinstance(payload.get("data"), list):
            logger.error(f"Unexpected client list response: {payload.get('meta')}")
            return None
        return records_from_payloads(payload["data"], network_field="network")

    def list_clients_extended(self) -> Optional[List[DeviceRecord]]:
        payload = self._get_json(f"/v2/api/site/{self.site}/clients/active")
        if not isinstance(payload, list):
            return None
        return records_from_payloads(payload, network_field="network_name")
