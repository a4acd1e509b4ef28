"""Database layer exports."""

from machine_server.db.base import Base
from machine_server.db.models import MachineHost

__all__ = [
    "Base",
    "MachineHost",
]
