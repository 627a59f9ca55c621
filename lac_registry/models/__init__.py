# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Models package - Pydantic schemas and data models for the LAC registry.
"""

# Base models
from .base import BaseEntity, generate_object_id, utc_now

# Enumerations
from .enums import (
    Jurisdiction,
    LegalStatus,
    ChildStatus,
    PlacementType,
    TransitionOutcome,
    UndefinedTransitionPolicy,
    ChildEventType
)

# Core entities
from .entities import Child, ChildEvent, LOOKED_AFTER_STATUSES, normalize_nhs_number

# Request models
from .requests import (
    CreateChildRequest,
    AdmitChildRequest,
    DischargeChildRequest,
    TransferChildRequest,
    UpdateLegalStatusRequest,
    UpdateChildProfileRequest,
    ScheduleReviewRequest
)

__all__ = [
    # Base models
    "BaseEntity",
    "generate_object_id",
    "utc_now",
    
    # Enumerations
    "Jurisdiction",
    "LegalStatus",
    "ChildStatus",
    "PlacementType",
    "TransitionOutcome",
    "UndefinedTransitionPolicy",
    "ChildEventType",
    
    # Core entities
    "Child",
    "ChildEvent",
    "LOOKED_AFTER_STATUSES",
    "normalize_nhs_number",
    
    # Request models
    "CreateChildRequest",
    "AdmitChildRequest",
    "DischargeChildRequest",
    "TransferChildRequest",
    "UpdateLegalStatusRequest",
    "UpdateChildProfileRequest",
    "ScheduleReviewRequest"
]
