"""Driver that registers an already-running host reachable at a URL."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar
from urllib.parse import urlsplit

from machine_server.drivers.base import BaseDriver, DriverConfigError, DriverFlag, FlagKind

if TYPE_CHECKING:
    from machine_server.context import CreationContext
    from machine_server.drivers.flags import DriverOptions

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class NoneDriver(BaseDriver):
    driver_name: ClassVar[str] = "none"

    url: str = ""

    def get_create_flags(self) -> list[DriverFlag]:
        return [
            DriverFlag(
                name="url",
                kind=FlagKind.STRING,
                usage="URL of host when no driver is selected",
            )
        ]

    def set_config_from_flags(self, flags: DriverOptions) -> None:
        url = flags.get_string("url").strip()
        if not url:
            raise DriverConfigError("--url option is required when no driver is selected")

        parsed = urlsplit(url)
        if not parsed.scheme or not parsed.hostname:
            raise DriverConfigError(f"--url must be an absolute URL with a host, got {url!r}")
        self.url = url
        self.ip_address = parsed.hostname

    def create(self, *, context: CreationContext) -> None:
        context.raise_if_done()
        logger.debug("none driver: registering existing host %s at %s", self.machine_name, self.url)
