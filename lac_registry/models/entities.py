# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Core entity models for the LAC registry.
"""

import re
import uuid
from datetime import date, datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from .base import BaseEntity
from .enums import ChildEventType, ChildStatus, Jurisdiction, LegalStatus, PlacementType


LOOKED_AFTER_STATUSES = frozenset({
    LegalStatus.SECTION_20,
    LegalStatus.SECTION_31,
    LegalStatus.SECTION_38,
})


def normalize_nhs_number(value: Optional[str]) -> Optional[str]:
    """NHS number with whitespace removed, as it is stored."""
    if value is None:
        return None
    return re.sub(r'\s+', '', value)


class Child(BaseEntity):
    """Child or young person in care; the aggregate root of the lifecycle core."""
    
    # Jurisdiction & legal basis
    jurisdiction: Jurisdiction = Field(default=Jurisdiction.ENGLAND, description="Governing jurisdiction")
    legal_status: LegalStatus = Field(..., description="Legal order under which the child is in care")
    legal_status_start_date: Optional[date] = Field(None, description="Date the current legal status took effect")
    legal_status_review_date: Optional[date] = Field(None, description="Court or statutory review date for the legal status")
    court_order_details: Optional[str] = Field(None, max_length=2000, description="Court order reference and notes")
    
    # Personal details
    first_name: str = Field(..., min_length=1, max_length=100, description="First name")
    last_name: str = Field(..., min_length=1, max_length=100, description="Last name")
    preferred_name: Optional[str] = Field(None, max_length=100, description="Preferred name")
    date_of_birth: date = Field(..., description="Date of birth")
    nhs_number: Optional[str] = Field(None, description="NHS or health service number")
    
    # Placement
    placement_type: PlacementType = Field(..., description="Placement type")
    status: ChildStatus = Field(default=ChildStatus.ACTIVE, description="Placement status")
    admission_date: Optional[date] = Field(None, description="Admission date")
    expected_discharge_date: Optional[date] = Field(None, description="Planned discharge date")
    actual_discharge_date: Optional[date] = Field(None, description="Actual discharge date")
    discharge_reason: Optional[str] = Field(None, max_length=1000, description="Reason for discharge")
    local_authority: Optional[str] = Field(None, max_length=255, description="Responsible local authority")
    local_authority_id: Optional[str] = Field(None, max_length=100, description="Local authority reference")
    current_school: Optional[str] = Field(None, max_length=255, description="School currently attended")
    has_child_protection_plan: bool = Field(default=False, description="Child protection plan in place")
    
    # Statutory review schedule
    next_health_assessment: Optional[date] = Field(None, description="Next health assessment due")
    next_lac_review_date: Optional[date] = Field(None, description="Next looked after child review due")
    next_pep_review_date: Optional[date] = Field(None, description="Next personal education plan review due")
    
    # Missing episodes
    missing_episodes_count: int = Field(default=0, ge=0, description="Number of missing episodes")
    last_missing_episode_date: Optional[date] = Field(None, description="Date of last missing episode")
    
    @field_validator('first_name', 'last_name')
    @classmethod
    def validate_name(cls, v):
        """Validate name fields."""
        if not v.strip():
            raise ValueError('Name cannot be empty')
        return v.strip()
    
    @field_validator('nhs_number')
    @classmethod
    def validate_nhs_number(cls, v):
        """Validate NHS number format."""
        if v is None:
            return v
        digits = normalize_nhs_number(v)
        if not re.match(r'^\d{10}$', digits):
            raise ValueError('NHS number must contain 10 digits')
        return digits
    
    @model_validator(mode='after')
    def validate_dates(self):
        """Validate date ordering."""
        if (self.admission_date and self.actual_discharge_date
                and self.actual_discharge_date < self.admission_date):
            raise ValueError('Discharge date cannot be before admission date')
        
        if self.status == ChildStatus.DISCHARGED and not self.actual_discharge_date:
            raise ValueError('actual_discharge_date is required when status is discharged')
        
        return self
    
    @property
    def full_name(self) -> str:
        """Get full name."""
        return f"{self.first_name} {self.last_name}"
    
    @property
    def display_name(self) -> str:
        """Get preferred name or first name."""
        return self.preferred_name or self.first_name
    
    @property
    def is_looked_after_child(self) -> bool:
        """Check if child is looked after under the Children Act 1989."""
        return self.legal_status in LOOKED_AFTER_STATUSES
    
    def age_on(self, day: date) -> int:
        """Age in whole years on the given day."""
        age = day.year - self.date_of_birth.year
        if (day.month, day.day) < (self.date_of_birth.month, self.date_of_birth.day):
            age -= 1
        return age
    
    def is_health_assessment_overdue(self, today: date) -> bool:
        """Check if health assessment is overdue."""
        return self.next_health_assessment is not None and today > self.next_health_assessment
    
    def is_pep_review_overdue(self, today: date) -> bool:
        """Check if PEP review is overdue."""
        return self.next_pep_review_date is not None and today > self.next_pep_review_date
    
    def is_lac_review_overdue(self, today: date) -> bool:
        """Check if LAC review is overdue."""
        return self.next_lac_review_date is not None and today > self.next_lac_review_date
    
    def placement_duration_days(self, today: date) -> int:
        """Placement duration in days, up to discharge or today."""
        if self.admission_date is None:
            return 0
        end = self.actual_discharge_date or today
        return abs((end - self.admission_date).days)
    
    def requires_urgent_attention(self, today: date) -> bool:
        """Check if child requires urgent attention."""
        return (
            self.status == ChildStatus.MISSING or
            self.has_child_protection_plan or
            (self.status == ChildStatus.ACTIVE and (
                self.is_health_assessment_overdue(today) or
                self.is_lac_review_overdue(today)
            ))
        )


class ChildEvent(BaseModel):
    """Domain event describing one successful lifecycle operation."""
    
    event_id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Unique event identifier")
    event_type: ChildEventType = Field(..., description="Event type")
    child_id: str = Field(..., min_length=1, description="Child identifier")
    organization_id: str = Field(..., description="Organization owning the child after the operation")
    actor_id: str = Field(..., min_length=1, description="User who performed the operation")
    occurred_at: datetime = Field(..., description="Operation timestamp")
    correlation_id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Correlation ID for tracing")
    before: Dict[str, Any] = Field(default_factory=dict, description="Changed fields before the operation")
    after: Dict[str, Any] = Field(default_factory=dict, description="Changed fields after the operation")
    snapshot: Dict[str, Any] = Field(default_factory=dict, description="Full child state after the operation")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Operation-specific context")
    schema_version: int = Field(default=1, description="Schema version")
    
    model_config = ConfigDict(
        use_enum_values=True
    )
    
    @property
    def idempotency_key(self) -> str:
        """Key consumers deduplicate redelivered events on."""
        return f"{self.child_id}:{self.event_type}:{self.occurred_at.isoformat()}"
