"""
Error types raised by the catalog and sprint services.

Import validation problems are never raised; they are collected into the
import result's ``errors`` list instead.
"""

from __future__ import annotations


class RequirementAuditError(Exception):
    """Base class for every error raised by this package."""


class NotFoundError(RequirementAuditError):
    """A catalog, sprint, or requirement id does not exist."""

    def __init__(self, kind: str, identifier: object):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} {identifier} not found")


class SprintStateError(RequirementAuditError):
    """A sprint lifecycle rule was violated (closed sprint, reused number...)."""


class StorageError(RequirementAuditError):
    """The key-value backend failed to read or write a key."""


class PartialCatalogUpdateError(RequirementAuditError):
    """
    A multi-catalog operation failed on some catalogs.
    Writes to the catalogs listed in ``updated`` were kept.
    """

    def __init__(self, updated: list[str], failed: dict[str, str]):
        self.updated = updated
        self.failed = failed
        super().__init__(
            f"{len(failed)} catalog(s) failed to update "
            f"({', '.join(sorted(failed))}); {len(updated)} updated"
        )


class IssueTrackerError(RequirementAuditError):
    """Raised when the issue tracker API call fails."""
