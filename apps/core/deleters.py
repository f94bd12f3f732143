"""
Actors that can soft-delete a row.

An admin deletion is attributed to a staff user; the system deletion is
used by background sweeps such as promotion expiry.
"""

import uuid
from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class AdminDeleter:
    user_id: uuid.UUID

    def as_fields(self) -> dict:
        return {"deleted_by_id": self.user_id, "deleted_by_system": False}

    def __str__(self):
        return f"admin:{self.user_id}"


@dataclass(frozen=True)
class SystemDeleter:
    def as_fields(self) -> dict:
        return {"deleted_by_id": None, "deleted_by_system": True}

    def __str__(self):
        return "system"


SYSTEM = SystemDeleter()

Deleter = Union[AdminDeleter, SystemDeleter]


def deleter_for(user) -> AdminDeleter:
    """Build the deleter for an authenticated staff user."""
    return AdminDeleter(user.pk)
