# SPDX-License-Identifier: Apache-2.0

"""
Caseload search filters and paging.
"""

import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional

from ..errors import ValidationException
from ..models.entities import Child
from ..models.enums import ChildStatus, Jurisdiction, LegalStatus, PlacementType


SORTABLE_FIELDS = frozenset({
    "admission_date",
    "created_at",
    "date_of_birth",
    "last_name",
    "next_lac_review_date",
})

SEARCH_FIELDS = ("first_name", "last_name", "preferred_name", "nhs_number", "local_authority_id")

MAX_PAGE_SIZE = 100

_ENUM_FILTERS = (
    ("status", ChildStatus),
    ("placement_type", PlacementType),
    ("legal_status", LegalStatus),
    ("jurisdiction", Jurisdiction),
)


def _alias(name: str) -> str:
    return Child.model_fields[name].alias or name


def birth_date_bound(today: date, years: int) -> str:
    """
    ISO date a child must be born on or before to be at least `years` old.

    Returned as text; a 29 February bound need not be a real date.
    """
    return f"{today.year - years:04d}-{today.month:02d}-{today.day:02d}"


@dataclass
class ChildFilters:
    """Filters, sorting and paging for caseload searches."""
    status: Optional[ChildStatus] = None
    placement_type: Optional[PlacementType] = None
    legal_status: Optional[LegalStatus] = None
    jurisdiction: Optional[Jurisdiction] = None
    local_authority: Optional[str] = None
    has_child_protection_plan: Optional[bool] = None
    min_age: Optional[int] = None
    max_age: Optional[int] = None
    search: Optional[str] = None
    page: int = 1
    limit: int = 20
    sort_by: str = "admission_date"
    sort_order: str = "desc"

    def __post_init__(self):
        errors = []
        for name, enum_type in _ENUM_FILTERS:
            value = getattr(self, name)
            if value is None:
                continue
            try:
                setattr(self, name, enum_type(value))
            except ValueError:
                errors.append(f"{name}: unknown value {value}")
        if self.page < 1:
            errors.append(f"page: must be at least 1, got {self.page}")
        if not 1 <= self.limit <= MAX_PAGE_SIZE:
            errors.append(f"limit: must be between 1 and {MAX_PAGE_SIZE}, got {self.limit}")
        if self.sort_by not in SORTABLE_FIELDS:
            errors.append(f"sort_by: must be one of {', '.join(sorted(SORTABLE_FIELDS))}")
        if self.sort_order not in ("asc", "desc"):
            errors.append("sort_order: must be asc or desc")
        for name in ("min_age", "max_age"):
            value = getattr(self, name)
            if value is not None and value < 0:
                errors.append(f"{name}: cannot be negative")
        if (self.min_age is not None and self.max_age is not None
                and self.min_age > self.max_age):
            errors.append("min_age: cannot exceed max_age")
        if errors:
            raise ValidationException("Invalid child search filters", errors)

        if self.search is not None:
            self.search = self.search.strip() or None

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def descending(self) -> bool:
        return self.sort_order == "desc"

    def matches(self, child: Child, today: date) -> bool:
        """Check a child against every filter; paging is not applied."""
        equalities = (
            ("status", self.status),
            ("placement_type", self.placement_type),
            ("legal_status", self.legal_status),
            ("jurisdiction", self.jurisdiction),
            ("local_authority", self.local_authority),
            ("has_child_protection_plan", self.has_child_protection_plan),
        )
        for name, expected in equalities:
            if expected is not None and getattr(child, name) != expected:
                return False

        age = child.age_on(today)
        if self.min_age is not None and age < self.min_age:
            return False
        if self.max_age is not None and age > self.max_age:
            return False

        if self.search:
            term = self.search.lower()
            if not any(term in (getattr(child, name) or "").lower() for name in SEARCH_FIELDS):
                return False

        return True

    def to_mongo_query(self, organization_id: str, today: date) -> Dict[str, Any]:
        """Convert filters to a MongoDB query on camelCase child documents."""
        query: Dict[str, Any] = {"organizationId": organization_id}

        for name, _ in _ENUM_FILTERS:
            value = getattr(self, name)
            if value is not None:
                query[_alias(name)] = value.value

        if self.local_authority is not None:
            query["localAuthority"] = self.local_authority

        if self.has_child_protection_plan is not None:
            query["hasChildProtectionPlan"] = self.has_child_protection_plan

        # Dates are stored as ISO strings
        if self.min_age is not None or self.max_age is not None:
            birth_filter = {}
            if self.min_age is not None:
                birth_filter["$lte"] = birth_date_bound(today, self.min_age)
            if self.max_age is not None:
                birth_filter["$gt"] = birth_date_bound(today, self.max_age + 1)
            query["dateOfBirth"] = birth_filter

        if self.search:
            pattern = {"$regex": re.escape(self.search), "$options": "i"}
            query["$or"] = [{_alias(name): pattern} for name in SEARCH_FIELDS]

        return query

    def mongo_sort(self) -> List[tuple]:
        direction = -1 if self.descending else 1
        return [(_alias(self.sort_by), direction), ("_id", 1)]

    def sort_and_page(self, children: List[Child]) -> List[Child]:
        """Order matching children and cut out the requested page."""
        ordered = sorted(children, key=lambda child: child.id)
        ordered.sort(
            key=lambda child: _sort_key(getattr(child, self.sort_by)),
            reverse=self.descending
        )
        return ordered[self.skip:self.skip + self.limit]


def _sort_key(value) -> tuple:
    # Missing values sort first ascending and last descending
    return (value is not None, value)


@dataclass
class ChildPage:
    """One page of a caseload search."""
    children: List[Child]
    total: int
    page: int
    limit: int
    pages: int = field(init=False)

    def __post_init__(self):
        self.pages = (self.total + self.limit - 1) // self.limit

    @property
    def has_next(self) -> bool:
        return self.page < self.pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1
