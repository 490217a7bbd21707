"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap the in-memory stand-in for a remote finance service later
2. Keep business logic decoupled from storage implementation
3. Share one contract across transactions, payroll runs and employees

Every read returns a copy. Callers never hold a reference into storage,
so mutating a returned object or list never changes stored state.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from typing import Any, Generic, Optional, TypeVar, Union
from uuid import UUID

from pydantic import BaseModel

from property_finance.models.audit import AuditEvent
from property_finance.models.finance import ValidationIssue


EntityT = TypeVar("EntityT", bound=BaseModel)
DraftT = TypeVar("DraftT", bound=BaseModel)
PatchT = TypeVar("PatchT", bound=BaseModel)


class EntityRepositoryInterface(ABC, Generic[EntityT, DraftT, PatchT]):
    """
    Abstract interface for one entity collection.

    Any storage implementation (in-memory, REST service, database)
    must implement these methods.
    """

    @abstractmethod
    async def list_all(self) -> list[EntityT]:
        """
        Return a snapshot of every stored entity.

        Has no side effects. The returned list and its elements are copies.
        """
        pass

    @abstractmethod
    async def get_by_id(self, entity_id: str) -> EntityT:
        """
        Retrieve one entity.

        Raises:
            NotFoundError: If no entity has this id
        """
        pass

    @abstractmethod
    async def create(self, draft: Union[DraftT, Mapping[str, Any]]) -> EntityT:
        """
        Store a new entity built from a draft.

        The repository assigns id, created_at and updated_at.

        Raises:
            ValidationFailure: If the draft is invalid
        """
        pass

    @abstractmethod
    async def update(
        self,
        entity_id: str,
        patch: Union[PatchT, Mapping[str, Any]],
    ) -> EntityT:
        """
        Merge a partial update onto an existing entity.

        Fields not present in the patch are preserved. updated_at is refreshed.

        Raises:
            NotFoundError: If no entity has this id (store is unchanged)
            ValidationFailure: If the patch or merged record is invalid
        """
        pass

    @abstractmethod
    async def replace_all(
        self,
        entities: Iterable[Union[EntityT, Mapping[str, Any]]],
    ) -> None:
        """
        Replace the whole collection.

        All items are validated before the swap; on failure the stored
        collection is left untouched.

        Raises:
            ValidationFailure: If any item is invalid
            StorageUnavailableError: If the backend stays unreachable
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get all events for a correlation ID in chronological order."""
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        """Get all events for a specific entity in chronological order."""
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get the most recent audit events (newest first)."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""

    def __init__(self, entity_type: str, entity_id: str):
        super().__init__(f"{entity_type.capitalize()} not found: {entity_id}")
        self.entity_type = entity_type
        self.entity_id = entity_id


class ValidationFailure(StorageError):
    """Input rejected before it reached storage."""

    def __init__(self, message: str, issues: Optional[list[ValidationIssue]] = None):
        super().__init__(message)
        self.issues = issues or []


class StorageUnavailableError(StorageError):
    """Transient failure reaching the storage backend."""
    pass
