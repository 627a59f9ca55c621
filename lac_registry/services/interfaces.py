# SPDX-License-Identifier: Apache-2.0

"""
Collaborator interfaces for the child lifecycle manager.

The manager depends on these protocols, not on concrete implementations,
so persistence and event delivery can be swapped without touching it.
"""

from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Protocol, runtime_checkable

from ..models.entities import Child, ChildEvent
from ..models.enums import ChildStatus
from .filters import ChildFilters, ChildPage


@dataclass
class PublishResult:
    """Result of publishing an event."""
    success: bool
    correlation_id: str
    exchange: Optional[str] = None
    routing_key: Optional[str] = None
    error: Optional[str] = None
    retry_count: int = 0


@runtime_checkable
class ChildRepository(Protocol):
    """Persistence contract for children."""
    
    def load(self, child_id: str) -> Child:
        """Load a child, raising NotFoundException if absent."""
        ...
    
    def save(self, child: Child) -> Child:
        """
        Persist a child and return it with its revision advanced.
        
        Raises ConflictException if the stored revision differs from
        child.revision or a unique identifier is already taken.
        """
        ...
    
    def find_duplicate(
        self,
        nhs_number: Optional[str],
        local_authority: Optional[str],
        local_authority_id: Optional[str]
    ) -> Optional[Child]:
        """Find a child sharing the NHS number or the local authority reference."""
        ...
    
    def find_by_nhs_number(self, nhs_number: str) -> Optional[Child]:
        """Find the child holding an NHS number, given without spaces."""
        ...
    
    def find_by_local_authority_id(self, local_authority: str, local_authority_id: str) -> Optional[Child]:
        """Find the child holding a local authority reference."""
        ...
    
    def list_by_organization(
        self,
        organization_id: str,
        status: Optional[ChildStatus] = None
    ) -> List[Child]:
        ...
    
    def search(self, organization_id: str, filters: ChildFilters, today: date) -> ChildPage:
        """Filtered, sorted page of an organization's children, ages taken on `today`."""
        ...


@runtime_checkable
class EventSink(Protocol):
    """Delivery contract for lifecycle events."""
    
    def publish(self, event: ChildEvent) -> PublishResult: ...
