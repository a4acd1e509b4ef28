"""Host name and swarm discovery validation."""

from __future__ import annotations

import re

HOST_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9\-\.]*$")
SWARM_DISCOVERY_PATTERN = re.compile(r"[^:]*://.*")


def validate_host_name(name: str) -> bool:
    return HOST_NAME_PATTERN.fullmatch(name) is not None


def validate_swarm_discovery(discovery: str) -> None:
    if discovery == "":
        return
    if SWARM_DISCOVERY_PATTERN.match(discovery):
        return
    raise ValueError(f"Swarm Discovery URL was in the wrong format: {discovery}")
