# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Tests for Pydantic models and validation.
"""

import pytest
from datetime import date, datetime, timezone
from pydantic import ValidationError

from lac_registry.models import (
    Child,
    ChildEvent,
    ChildEventType,
    ChildStatus,
    CreateChildRequest,
    LegalStatus,
    PlacementType,
    ScheduleReviewRequest,
    UpdateChildProfileRequest,
    Jurisdiction,
)


class TestChild:
    """Test Child model."""
    
    def test_valid_child(self, make_child):
        child = make_child()
        
        assert child.status == ChildStatus.ACTIVE
        assert child.revision == 0
        assert not child.is_persisted()
        assert len(child.id) == 24
    
    def test_nhs_number_normalized(self, make_child):
        assert make_child(nhs_number=" 943 476 5919 ").nhs_number == "9434765919"
    
    @pytest.mark.parametrize("nhs_number", ["12345", "94347659AB", "94347659190"])
    def test_invalid_nhs_number(self, make_child, nhs_number):
        with pytest.raises(ValidationError):
            make_child(nhs_number=nhs_number)
    
    def test_names_stripped(self, make_child):
        child = make_child(first_name="  Amelia ", last_name=" Hughes")
        assert child.full_name == "Amelia Hughes"
    
    def test_blank_name_rejected(self, make_child):
        with pytest.raises(ValidationError):
            make_child(first_name="   ")
    
    def test_discharged_requires_discharge_date(self, make_child):
        with pytest.raises(ValidationError):
            make_child(status=ChildStatus.DISCHARGED)
    
    def test_discharge_before_admission_rejected(self, make_child):
        with pytest.raises(ValidationError):
            make_child(
                status=ChildStatus.DISCHARGED,
                actual_discharge_date=date(2025, 1, 1)
            )
    
    def test_display_name(self, make_child):
        assert make_child().display_name == "Millie"
        assert make_child(preferred_name=None).display_name == "Amelia"
    
    def test_age_on_birthday_boundary(self, make_child):
        child = make_child(date_of_birth=date(2012, 6, 15))
        
        assert child.age_on(date(2025, 6, 14)) == 12
        assert child.age_on(date(2025, 6, 15)) == 13
    
    def test_is_looked_after_child(self, make_child):
        assert make_child(legal_status=LegalStatus.SECTION_31).is_looked_after_child
        assert not make_child(legal_status=LegalStatus.POLICE_PROTECTION).is_looked_after_child
    
    def test_review_due_today_not_overdue(self, make_child):
        child = make_child()
        
        assert not child.is_health_assessment_overdue(date(2025, 3, 12))
        assert child.is_health_assessment_overdue(date(2025, 3, 13))
        assert child.is_pep_review_overdue(date(2025, 3, 13))
        assert child.is_lac_review_overdue(date(2025, 3, 13))
    
    def test_no_due_date_never_overdue(self, make_child):
        child = make_child(next_pep_review_date=None)
        assert not child.is_pep_review_overdue(date(2030, 1, 1))
    
    def test_placement_duration(self, make_child):
        child = make_child()
        assert child.placement_duration_days(date(2025, 3, 3)) == 11
        
        discharged = make_child(
            status=ChildStatus.DISCHARGED,
            actual_discharge_date=date(2025, 2, 25)
        )
        assert discharged.placement_duration_days(date(2025, 12, 1)) == 5
    
    def test_requires_urgent_attention(self, make_child):
        today = date(2025, 3, 3)
        
        assert not make_child().requires_urgent_attention(today)
        assert make_child(status=ChildStatus.MISSING).requires_urgent_attention(today)
        assert make_child(has_child_protection_plan=True).requires_urgent_attention(today)
        assert make_child(next_lac_review_date=date(2025, 3, 1)).requires_urgent_attention(today)
    
    def test_overdue_discharged_child_not_urgent(self, make_child):
        child = make_child(
            status=ChildStatus.DISCHARGED,
            actual_discharge_date=date(2025, 2, 25),
            next_health_assessment=date(2025, 3, 1)
        )
        assert not child.requires_urgent_attention(date(2025, 3, 3))
    
    def test_camel_case_serialization(self, make_child):
        data = make_child().model_dump(by_alias=True, mode="json")
        
        assert data["organizationId"]
        assert data["nextLacReviewDate"] == "2025-03-12"
        assert data["legalStatus"] == "SECTION_20"
        assert data["missingEpisodesCount"] == 0
    
    def test_population_by_alias(self, make_child):
        data = make_child().model_dump(by_alias=True, mode="json")
        child = Child.model_validate(data)
        
        assert child.jurisdiction == Jurisdiction.ENGLAND
        assert child.admission_date == date(2025, 2, 20)


class TestChildEvent:
    """Test ChildEvent model."""
    
    def test_idempotency_key(self):
        occurred_at = datetime(2025, 3, 3, 9, 0, tzinfo=timezone.utc)
        event = ChildEvent(
            event_type=ChildEventType.CHILD_DISCHARGED,
            child_id="child-1",
            organization_id="org-1",
            actor_id="user-1",
            occurred_at=occurred_at
        )
        
        assert event.event_type == "ChildDischarged"
        assert event.idempotency_key == "child-1:ChildDischarged:2025-03-03T09:00:00+00:00"
    
    def test_unique_event_ids(self):
        kwargs = dict(
            event_type=ChildEventType.CHILD_RETURNED,
            child_id="child-1",
            organization_id="org-1",
            actor_id="user-1",
            occurred_at=datetime(2025, 3, 3, tzinfo=timezone.utc)
        )
        assert ChildEvent(**kwargs).event_id != ChildEvent(**kwargs).event_id


class TestRequests:
    """Test lifecycle request models."""
    
    def test_extra_fields_forbidden(self, sample_create_request):
        data = sample_create_request.model_dump()
        data["status"] = "ACTIVE"
        with pytest.raises(ValidationError):
            CreateChildRequest(**data)
    
    def test_expected_discharge_before_admission(self, sample_create_request):
        data = sample_create_request.model_dump()
        data["expected_discharge_date"] = date(2024, 12, 1)
        with pytest.raises(ValidationError):
            CreateChildRequest(**data)
    
    def test_unknown_legal_status(self, sample_create_request):
        data = sample_create_request.model_dump()
        data["legal_status"] = "SECTION_99"
        with pytest.raises(ValidationError):
            CreateChildRequest(**data)
    
    def test_placement_type_from_value(self, sample_create_request):
        data = sample_create_request.model_dump()
        data["placement_type"] = "RESPITE"
        assert CreateChildRequest(**data).placement_type == PlacementType.RESPITE
    
    def test_review_number_must_be_positive(self):
        with pytest.raises(ValidationError):
            ScheduleReviewRequest(review_number=0)
        assert ScheduleReviewRequest().review_number == 1
    
    def test_profile_update_keeps_only_set_fields(self):
        request = UpdateChildProfileRequest(current_school=None, preferred_name="Millie")
        
        assert request.changes() == {"current_school": None, "preferred_name": "Millie"}
    
    def test_profile_update_cannot_clear_required_field(self):
        with pytest.raises(ValidationError):
            UpdateChildProfileRequest(date_of_birth=None)
    
    def test_profile_update_excludes_legal_status(self):
        with pytest.raises(ValidationError):
            UpdateChildProfileRequest(legal_status="SECTION_31")
    
    def test_profile_update_strips_names(self):
        assert UpdateChildProfileRequest(last_name="  Jones ").changes() == {"last_name": "Jones"}
