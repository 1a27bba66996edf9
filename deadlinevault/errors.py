from __future__ import annotations


class DeadlineVaultError(Exception):
    """Base class for everything the vault and session raise on purpose."""


class DeserializationError(DeadlineVaultError):
    """The vault file exists but does not hold a valid record array."""


class PersistenceError(DeadlineVaultError):
    """Writing the vault failed. In-memory records are left as they were."""


class ValidationError(DeadlineVaultError):
    """A command was rejected before touching any state."""
