# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Request models for lifecycle operations.
"""

from datetime import date
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from .enums import Jurisdiction, LegalStatus, PlacementType


class LifecycleRequest(BaseModel):
    """Base model for lifecycle commands."""
    
    model_config = ConfigDict(
        validate_assignment=True,
        extra='forbid'
    )


class CreateChildRequest(LifecycleRequest):
    """Request model for registering a child at intake."""
    
    organization_id: str = Field(..., min_length=1, description="Placing organization")
    jurisdiction: Jurisdiction = Field(..., description="Governing jurisdiction")
    legal_status: LegalStatus = Field(..., description="Legal order at intake")
    first_name: str = Field(..., min_length=1, max_length=100, description="First name")
    last_name: str = Field(..., min_length=1, max_length=100, description="Last name")
    preferred_name: Optional[str] = Field(None, max_length=100, description="Preferred name")
    date_of_birth: date = Field(..., description="Date of birth")
    nhs_number: Optional[str] = Field(None, description="NHS or health service number")
    placement_type: PlacementType = Field(..., description="Placement type")
    admission_date: date = Field(..., description="Admission date")
    expected_discharge_date: Optional[date] = Field(None, description="Planned discharge date")
    local_authority: Optional[str] = Field(None, max_length=255, description="Responsible local authority")
    local_authority_id: Optional[str] = Field(None, max_length=100, description="Local authority reference")
    current_school: Optional[str] = Field(None, max_length=255, description="School currently attended")
    has_child_protection_plan: bool = Field(default=False, description="Child protection plan in place")
    legal_status_start_date: Optional[date] = Field(None, description="Date the legal status took effect")
    court_order_details: Optional[str] = Field(None, max_length=2000, description="Court order reference and notes")
    
    @field_validator('first_name', 'last_name')
    @classmethod
    def validate_name(cls, v):
        """Validate name fields."""
        if not v.strip():
            raise ValueError('Name cannot be empty')
        return v.strip()
    
    @model_validator(mode='after')
    def validate_expected_discharge(self):
        """Validate planned discharge is not before admission."""
        if self.expected_discharge_date and self.expected_discharge_date < self.admission_date:
            raise ValueError('Expected discharge date cannot be before admission date')
        return self


class AdmitChildRequest(LifecycleRequest):
    """Request model for admitting (or re-admitting) a child."""
    
    legal_status: LegalStatus = Field(..., description="Legal order on admission")
    placement_type: PlacementType = Field(..., description="Placement type")
    admission_date: Optional[date] = Field(None, description="Admission date, defaults to today")
    expected_discharge_date: Optional[date] = Field(None, description="Planned discharge date")


class DischargeChildRequest(LifecycleRequest):
    """Request model for discharging a child."""
    
    discharge_date: date = Field(..., description="Discharge date")
    discharge_reason: Optional[str] = Field(None, max_length=1000, description="Reason for discharge")


class TransferChildRequest(LifecycleRequest):
    """Request model for transferring a child to another organization."""
    
    new_organization_id: str = Field(..., min_length=1, description="Receiving organization")
    destination_jurisdiction: Optional[Jurisdiction] = Field(None, description="Jurisdiction of the receiving placement")
    transfer_reason: Optional[str] = Field(None, max_length=1000, description="Reason for transfer")


class UpdateLegalStatusRequest(LifecycleRequest):
    """Request model for changing a child's legal status."""
    
    new_legal_status: LegalStatus = Field(..., description="New legal order")
    jurisdiction: Optional[Jurisdiction] = Field(None, description="Jurisdiction changing alongside the legal status")
    effective_date: Optional[date] = Field(None, description="Date the new status takes effect, defaults to today")
    review_date: Optional[date] = Field(None, description="Legal status review date")
    court_order_details: Optional[str] = Field(None, max_length=2000, description="Court order reference and notes")
    recalculate_reviews: bool = Field(default=False, description="Recompute the next LAC review from the effective date")


class ScheduleReviewRequest(LifecycleRequest):
    """Request model for recomputing a statutory due date from its rule."""
    
    anchor_date: Optional[date] = Field(None, description="Date the timescale runs from")
    review_number: int = Field(default=1, ge=1, description="LAC review index, 1 for the first review")


class UpdateChildProfileRequest(LifecycleRequest):
    """
    Request model for correcting or updating a child's profile.
    
    Only fields that are set are applied; setting an optional field to None
    clears it. Legal status changes go through UpdateLegalStatusRequest.
    """
    
    first_name: Optional[str] = Field(None, min_length=1, max_length=100, description="First name")
    last_name: Optional[str] = Field(None, min_length=1, max_length=100, description="Last name")
    preferred_name: Optional[str] = Field(None, max_length=100, description="Preferred name")
    date_of_birth: Optional[date] = Field(None, description="Date of birth")
    nhs_number: Optional[str] = Field(None, description="NHS or health service number")
    placement_type: Optional[PlacementType] = Field(None, description="Placement type")
    expected_discharge_date: Optional[date] = Field(None, description="Planned discharge date")
    local_authority: Optional[str] = Field(None, max_length=255, description="Responsible local authority")
    local_authority_id: Optional[str] = Field(None, max_length=100, description="Local authority reference")
    current_school: Optional[str] = Field(None, max_length=255, description="School currently attended")
    has_child_protection_plan: Optional[bool] = Field(None, description="Child protection plan in place")
    jurisdiction: Optional[Jurisdiction] = Field(None, description="Governing jurisdiction")
    
    @field_validator('first_name', 'last_name')
    @classmethod
    def validate_name(cls, v):
        """Validate name fields."""
        if v is not None and not v.strip():
            raise ValueError('Name cannot be empty')
        return v.strip() if v is not None else v
    
    @model_validator(mode='after')
    def validate_required_fields(self):
        """Validate that fields the child cannot lack are not cleared."""
        for name in ('first_name', 'last_name', 'date_of_birth', 'placement_type',
                     'has_child_protection_plan', 'jurisdiction'):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f'{name} cannot be cleared')
        return self
    
    def changes(self) -> dict:
        """Fields explicitly set on the request."""
        return self.model_dump(exclude_unset=True)
