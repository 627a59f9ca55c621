# SPDX-License-Identifier: Apache-2.0

"""
Caseload reporting.

Pure functions summarising an organization's children for dashboards:
status and placement breakdowns, age groups, overdue statutory reviews
and children requiring urgent attention.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List

from ..models.entities import Child
from ..models.enums import ChildStatus, Jurisdiction, LegalStatus, PlacementType


AGE_GROUPS = (
    ("under_5", 0, 4),
    ("age_5_to_10", 5, 10),
    ("age_11_to_15", 11, 15),
    ("age_16_to_18", 16, 18),
)
ADULT_AGE_GROUP = "age_18_plus"


@dataclass
class OverdueReviews:
    """Active children with overdue statutory reviews, grouped by review kind."""
    health_assessments: List[Child] = field(default_factory=list)
    pep_reviews: List[Child] = field(default_factory=list)
    lac_reviews: List[Child] = field(default_factory=list)


@dataclass
class ChildStatistics:
    """Caseload summary for one organization."""
    total: int
    by_status: Dict[str, int]
    by_placement_type: Dict[str, int]
    by_legal_status: Dict[str, int]
    by_jurisdiction: Dict[str, int]
    by_age_group: Dict[str, int]
    average_age: float
    overdue_health_assessments: int
    overdue_pep_reviews: int
    overdue_lac_reviews: int
    requires_urgent_attention: int
    
    @property
    def active(self) -> int:
        return self.by_status[ChildStatus.ACTIVE.value]
    
    @property
    def discharged(self) -> int:
        return self.by_status[ChildStatus.DISCHARGED.value]
    
    @property
    def missing(self) -> int:
        return self.by_status[ChildStatus.MISSING.value]
    
    def to_dict(self) -> Dict[str, object]:
        """Convert statistics to dictionary."""
        return {
            "total": self.total,
            "by_status": dict(self.by_status),
            "by_placement_type": dict(self.by_placement_type),
            "by_legal_status": dict(self.by_legal_status),
            "by_jurisdiction": dict(self.by_jurisdiction),
            "by_age_group": dict(self.by_age_group),
            "average_age": self.average_age,
            "overdue_health_assessments": self.overdue_health_assessments,
            "overdue_pep_reviews": self.overdue_pep_reviews,
            "overdue_lac_reviews": self.overdue_lac_reviews,
            "requires_urgent_attention": self.requires_urgent_attention,
        }


def age_group(age: int) -> str:
    """Dashboard age group label for an age in years."""
    for label, lower, upper in AGE_GROUPS:
        if lower <= age <= upper:
            return label
    return ADULT_AGE_GROUP


def _zeroed(values: Iterable) -> Dict[str, int]:
    return {value.value: 0 for value in values}


def find_overdue_reviews(children: Iterable[Child], today: date) -> OverdueReviews:
    """
    Find active children whose health assessment, PEP or LAC review is overdue.
    
    Args:
        children: Children to inspect
        today: Reference date; a review due today is not overdue
        
    Returns:
        OverdueReviews grouped by review kind
    """
    overdue = OverdueReviews()
    for child in children:
        if child.status != ChildStatus.ACTIVE:
            continue
        if child.is_health_assessment_overdue(today):
            overdue.health_assessments.append(child)
        if child.is_pep_review_overdue(today):
            overdue.pep_reviews.append(child)
        if child.is_lac_review_overdue(today):
            overdue.lac_reviews.append(child)
    return overdue


def children_requiring_urgent_attention(children: Iterable[Child], today: date) -> List[Child]:
    """Children who are missing, on a protection plan or active with overdue health or LAC reviews."""
    return [child for child in children if child.requires_urgent_attention(today)]


def compute_child_statistics(children: Iterable[Child], today: date) -> ChildStatistics:
    """
    Compute caseload statistics.
    
    Args:
        children: Children of one organization
        today: Reference date for ages and overdue checks
        
    Returns:
        ChildStatistics with zero-filled breakdowns
    """
    children = list(children)
    
    by_status = _zeroed(ChildStatus)
    by_placement_type = _zeroed(PlacementType)
    by_legal_status = _zeroed(LegalStatus)
    by_jurisdiction = _zeroed(Jurisdiction)
    by_age_group = {label: 0 for label, _, _ in AGE_GROUPS}
    by_age_group[ADULT_AGE_GROUP] = 0
    
    ages = []
    for child in children:
        by_status[child.status.value] += 1
        by_placement_type[child.placement_type.value] += 1
        by_legal_status[child.legal_status.value] += 1
        by_jurisdiction[child.jurisdiction.value] += 1
        age = child.age_on(today)
        ages.append(age)
        by_age_group[age_group(age)] += 1
    
    overdue = find_overdue_reviews(children, today)
    urgent = children_requiring_urgent_attention(children, today)
    
    return ChildStatistics(
        total=len(children),
        by_status=by_status,
        by_placement_type=by_placement_type,
        by_legal_status=by_legal_status,
        by_jurisdiction=by_jurisdiction,
        by_age_group=by_age_group,
        average_age=round(sum(ages) / len(ages), 1) if ages else 0.0,
        overdue_health_assessments=len(overdue.health_assessments),
        overdue_pep_reviews=len(overdue.pep_reviews),
        overdue_lac_reviews=len(overdue.lac_reviews),
        requires_urgent_attention=len(urgent),
    )
