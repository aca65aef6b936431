from dynaconf import Dynaconf

from .base import BaseController
from .asus import AsusRouter
from .unifi import UnifiController


def get_controller(config: Dynaconf) -> BaseController:
    """Controller factory: returns an instance of the configured controller class."""

    controller_type = config.get("general", {}).get("controller_type", "unifi")

    if controller_type == "unifi":
        return UnifiController(config.get("unifi", {}))
    elif controller_type == "asus_router":
        return AsusRouter(config.get("asus_router", {}))
    else:
        raise ValueError(f"Unsupported controller type: {controller_type}")
