# SPDX-License-Identifier: Apache-2.0

"""
In-memory child repository for local development and tests.

Implements the same revision check as the MongoDB repository so callers
see identical conflict behaviour. Seeded children are stored as given,
revision included.
"""

import logging
import threading
from datetime import date
from typing import Callable, Dict, List, Optional

from opentelemetry import trace

from ..errors import ConflictException, NotFoundException
from ..models.entities import Child
from ..models.enums import ChildStatus
from .filters import ChildFilters, ChildPage

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)


class InMemoryChildRepository:
    """Child repository keeping copies of children in a dictionary."""
    
    def __init__(self, children: Optional[List[Child]] = None):
        self._children: Dict[str, Child] = {
            child.id: child.model_copy(deep=True) for child in children or []
        }
        self._lock = threading.Lock()
    
    def load(self, child_id: str) -> Child:
        """
        Load a child by ID.
        
        Args:
            child_id: Child identifier
            
        Returns:
            Copy of the stored child
            
        Raises:
            NotFoundException: If no child has the ID
        """
        with self._lock:
            stored = self._children.get(child_id)
        if stored is None:
            raise NotFoundException(f"Child not found: {child_id}")
        return stored.model_copy(deep=True)
    
    def save(self, child: Child) -> Child:
        """
        Store a child if its revision matches the stored one.
        
        Args:
            child: Child carrying the revision it was loaded at
            
        Returns:
            Stored copy with the revision advanced
            
        Raises:
            ConflictException: On a stale revision or a duplicate identifier
        """
        with tracer.start_as_current_span("memory.children.save") as span:
            span.set_attributes({
                "child.id": child.id,
                "child.revision": child.revision
            })
            
            with self._lock:
                stored = self._children.get(child.id)
                stored_revision = stored.revision if stored else 0
                if stored_revision != child.revision:
                    logger.warning(
                        f"Revision conflict saving child {child.id}",
                        extra={"extra_fields": {
                            "child_id": child.id,
                            "expected_revision": child.revision,
                            "stored_revision": stored_revision
                        }}
                    )
                    raise ConflictException(
                        f"Child {child.id} was modified concurrently "
                        f"(expected revision {child.revision}, found {stored_revision})"
                    )
                
                if child.nhs_number:
                    for other in self._children.values():
                        if other.id != child.id and other.nhs_number == child.nhs_number:
                            raise ConflictException(
                                f"A child with NHS number {child.nhs_number} already exists"
                            )
                
                saved = child.model_copy(update={"revision": child.revision + 1}, deep=True)
                self._children[child.id] = saved
            
            logger.debug(f"Saved child {child.id} at revision {saved.revision}")
            return saved.model_copy(deep=True)
    
    def find_duplicate(
        self,
        nhs_number: Optional[str],
        local_authority: Optional[str],
        local_authority_id: Optional[str]
    ) -> Optional[Child]:
        """Find a child with the same NHS number or local authority reference."""
        with self._lock:
            children = list(self._children.values())
        
        for child in children:
            if nhs_number and child.nhs_number == nhs_number:
                return child.model_copy(deep=True)
            if (local_authority and local_authority_id
                    and child.local_authority == local_authority
                    and child.local_authority_id == local_authority_id):
                return child.model_copy(deep=True)
        return None
    
    def find_by_nhs_number(self, nhs_number: str) -> Optional[Child]:
        return self._find_first(lambda child: child.nhs_number == nhs_number)
    
    def find_by_local_authority_id(self, local_authority: str, local_authority_id: str) -> Optional[Child]:
        return self._find_first(
            lambda child: child.local_authority == local_authority
            and child.local_authority_id == local_authority_id
        )
    
    def _find_first(self, predicate: Callable[[Child], bool]) -> Optional[Child]:
        with self._lock:
            children = list(self._children.values())
        
        for child in children:
            if predicate(child):
                return child.model_copy(deep=True)
        return None
    
    def list_by_organization(
        self,
        organization_id: str,
        status: Optional[ChildStatus] = None
    ) -> List[Child]:
        """List an organization's children, optionally filtered by status."""
        with self._lock:
            children = list(self._children.values())
        
        return [
            child.model_copy(deep=True) for child in children
            if child.organization_id == organization_id
            and (status is None or child.status == status)
        ]
    
    def search(self, organization_id: str, filters: ChildFilters, today: date) -> ChildPage:
        """
        Page through an organization's children matching the filters.
        
        Args:
            organization_id: Organization whose caseload is searched
            filters: Filters, sort order and page
            today: Day ages are calculated on
            
        Returns:
            ChildPage with the total number of matches
        """
        with tracer.start_as_current_span("memory.children.search") as span:
            span.set_attributes({
                "organization.id": organization_id,
                "search.page": filters.page,
                "search.limit": filters.limit
            })
            
            matching = [
                child for child in self.list_by_organization(organization_id)
                if filters.matches(child, today)
            ]
            span.set_attribute("search.total", len(matching))
            return ChildPage(
                children=filters.sort_and_page(matching),
                total=len(matching),
                page=filters.page,
                limit=filters.limit
            )
    
    def count(self) -> int:
        """Number of stored children."""
        with self._lock:
            return len(self._children)
