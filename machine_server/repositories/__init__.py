"""Repository layer exports."""

from machine_server.repositories.errors import DuplicateHostError, RepositoryError
from machine_server.repositories.hosts import MachineHostRepository

__all__ = [
    "DuplicateHostError",
    "MachineHostRepository",
    "RepositoryError",
]
