"""Capability grants that restrict what a sandboxed tool may touch."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Union


def _freeze(obj: object, field: str, values: Iterable[str]) -> None:
    object.__setattr__(obj, field, tuple(values))


@dataclass(frozen=True)
class FileRead:
    """Read access to files under the given path prefixes."""

    paths: tuple[str, ...]

    def __post_init__(self) -> None:
        _freeze(self, "paths", self.paths)


@dataclass(frozen=True)
class FileWrite:
    """Write access to files under the given path prefixes."""

    paths: tuple[str, ...]

    def __post_init__(self) -> None:
        _freeze(self, "paths", self.paths)


@dataclass(frozen=True)
class Network:
    """Network access to the given domain suffixes."""

    domains: tuple[str, ...]

    def __post_init__(self) -> None:
        _freeze(self, "domains", self.domains)


@dataclass(frozen=True)
class Environment:
    """Access to the named environment variables."""

    vars: tuple[str, ...]

    def __post_init__(self) -> None:
        _freeze(self, "vars", self.vars)


@dataclass(frozen=True)
class Subprocess:
    """Permission to run the listed commands."""

    allowed_commands: tuple[str, ...]

    def __post_init__(self) -> None:
        _freeze(self, "allowed_commands", self.allowed_commands)


Capability = Union[FileRead, FileWrite, Network, Environment, Subprocess]


class CapabilitySet:
    """An ordered, duplicate-free set of granted capabilities."""

    def __init__(self, capabilities: Iterable[Capability] = ()) -> None:
        self._capabilities: list[Capability] = []
        for cap in capabilities:
            self.grant(cap)

    def grant(self, cap: Capability) -> None:
        if cap not in self._capabilities:
            self._capabilities.append(cap)

    def has(self, cap: Capability) -> bool:
        return cap in self._capabilities

    def can_read_file(self, path: str) -> bool:
        """True if some FileRead grant has a path that prefixes ``path``."""
        return any(
            path.startswith(prefix)
            for cap in self._capabilities
            if isinstance(cap, FileRead)
            for prefix in cap.paths
        )

    def can_access_domain(self, domain: str) -> bool:
        """True if some Network grant has a domain that ends ``domain``."""
        return any(
            domain.endswith(suffix)
            for cap in self._capabilities
            if isinstance(cap, Network)
            for suffix in cap.domains
        )

    def __iter__(self) -> Iterator[Capability]:
        return iter(self._capabilities)

    def __len__(self) -> int:
        return len(self._capabilities)