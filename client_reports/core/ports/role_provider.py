from __future__ import annotations

from typing import Protocol

from client_reports.core.domain.types import Role


class RoleProvider(Protocol):
    """Tells whether this process acts as a leaf SDK or a relay."""

    def role(self) -> Role:
        """Return the current transport role."""


class StaticRoleProvider:
    """Role fixed at construction time."""

    def __init__(self, role: Role = "leaf") -> None:
        if role not in ("leaf", "relay"):
            raise ValueError(f"unknown role: {role!r}")
        self._role: Role = role

    def role(self) -> Role:
        return self._role
