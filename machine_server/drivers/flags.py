"""Typed accessor for driver parameters keyed by flag name."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from machine_server.drivers.base import DriverFlag, DriverOptionError, FlagKind

FlagValue = str | int | bool | tuple[str, ...]

_TRUE_STRINGS = frozenset({"1", "true", "yes", "on"})
_FALSE_STRINGS = frozenset({"0", "false", "no", "off"})
_ZERO_VALUES: dict[FlagKind, FlagValue] = {
    FlagKind.STRING: "",
    FlagKind.STRING_SLICE: (),
    FlagKind.INT: 0,
    FlagKind.BOOL: False,
}


@dataclass(frozen=True, slots=True)
class FlagEntry:
    kind: FlagKind
    value: FlagValue


class DriverOptions:
    """Flag values checked against a driver's schema.

    Every supplied key must be declared by the schema; values are coerced to
    the declared kind once, at construction. Declared flags that the caller
    did not supply take the flag default, or the zero value of their kind.
    """

    def __init__(self, entries: Mapping[str, FlagEntry]) -> None:
        self._entries = dict(entries)

    @classmethod
    def from_schema(
        cls,
        schema: Iterable[DriverFlag],
        values: Mapping[str, Any] | None = None,
    ) -> DriverOptions:
        supplied = dict(values or {})
        entries: dict[str, FlagEntry] = {}
        for flag in schema:
            if flag.name in supplied:
                raw = supplied.pop(flag.name)
            elif flag.default is not None:
                raw = flag.default
            else:
                raw = _ZERO_VALUES[flag.kind]
            entries[flag.name] = FlagEntry(kind=flag.kind, value=_coerce(flag, raw))

        if supplied:
            unknown = ", ".join(sorted(supplied))
            raise DriverOptionError(f"unknown driver options: {unknown}")
        return cls(entries)

    def names(self) -> tuple[str, ...]:
        return tuple(self._entries)

    def get_string(self, key: str) -> str:
        value = self._lookup(key, FlagKind.STRING)
        assert isinstance(value, str)
        return value

    def get_string_slice(self, key: str) -> list[str]:
        value = self._lookup(key, FlagKind.STRING_SLICE)
        assert isinstance(value, tuple)
        return list(value)

    def get_int(self, key: str) -> int:
        value = self._lookup(key, FlagKind.INT)
        assert isinstance(value, int)
        return value

    def get_bool(self, key: str) -> bool:
        value = self._lookup(key, FlagKind.BOOL)
        assert isinstance(value, bool)
        return value

    def _lookup(self, key: str, kind: FlagKind) -> FlagValue:
        entry = self._entries.get(key)
        if entry is None:
            raise DriverOptionError(f"driver option {key!r} is not declared by the driver")
        if entry.kind is not kind:
            raise DriverOptionError(
                f"driver option {key!r} is declared as {entry.kind.value}, not {kind.value}"
            )
        return entry.value


def _coerce(flag: DriverFlag, raw: Any) -> FlagValue:
    if flag.kind is FlagKind.STRING:
        if isinstance(raw, str):
            return raw
    elif flag.kind is FlagKind.STRING_SLICE:
        if isinstance(raw, str):
            return (raw,)
        if isinstance(raw, (list, tuple)) and all(isinstance(item, str) for item in raw):
            return tuple(raw)
    elif flag.kind is FlagKind.INT:
        if isinstance(raw, int) and not isinstance(raw, bool):
            return raw
        if isinstance(raw, str):
            try:
                return int(raw.strip())
            except ValueError:
                pass
    elif flag.kind is FlagKind.BOOL:
        if isinstance(raw, bool):
            return raw
        if isinstance(raw, str):
            normalized = raw.strip().lower()
            if normalized in _TRUE_STRINGS:
                return True
            if normalized in _FALSE_STRINGS:
                return False

    raise DriverOptionError(
        f"driver option {flag.name!r} expects a {flag.kind.value} value, got {raw!r}"
    )
