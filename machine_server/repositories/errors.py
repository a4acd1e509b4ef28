"""Repository-level domain errors."""


class RepositoryError(Exception):
    """Base repository exception."""


class DuplicateHostError(RepositoryError):
    """Raised when a host record with the same name already exists."""

    def __init__(self, name: str) -> None:
        super().__init__(f"a host record named {name!r} already exists")
        self.name = name
