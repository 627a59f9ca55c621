# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Pytest configuration and fixtures.
"""

import os
import pytest
from datetime import date
from typing import Dict, Any
from bson import ObjectId

from lac_registry.domain.jurisdictions import build_default_rule_table
from lac_registry.models import (
    Child,
    ChildStatus,
    CreateChildRequest,
    Jurisdiction,
    LegalStatus,
    PlacementType,
)
from lac_registry.services.children import ChildLifecycleManager
from lac_registry.services.events import InMemoryEventSink
from lac_registry.services.memory import InMemoryChildRepository
from lac_registry.utils.clock import FixedClock

# Set test environment
os.environ['ENVIRONMENT'] = 'test'
os.environ['OTEL_ENABLED'] = 'false'

TODAY = date(2025, 3, 3)


@pytest.fixture
def today() -> date:
    """Reference date all fixtures are built around."""
    return TODAY


@pytest.fixture
def clock():
    """Clock fixed on the reference date."""
    return FixedClock.on(TODAY)


@pytest.fixture
def rule_table():
    """Fresh default rule table."""
    return build_default_rule_table()


@pytest.fixture
def organization_id() -> str:
    return str(ObjectId())


@pytest.fixture
def actor_id() -> str:
    return str(ObjectId())


@pytest.fixture
def sample_child_data(organization_id, actor_id) -> Dict[str, Any]:
    """Sample data for an active child in England with no overdue reviews."""
    return {
        "organization_id": organization_id,
        "jurisdiction": Jurisdiction.ENGLAND,
        "legal_status": LegalStatus.SECTION_20,
        "first_name": "Amelia",
        "last_name": "Hughes",
        "preferred_name": "Millie",
        "date_of_birth": date(2012, 6, 15),
        "nhs_number": "943 476 5919",
        "placement_type": PlacementType.LONG_TERM,
        "status": ChildStatus.ACTIVE,
        "admission_date": date(2025, 2, 20),
        "local_authority": "Leeds City Council",
        "local_authority_id": "LCC-1001",
        "current_school": "Park View Academy",
        "next_health_assessment": date(2025, 3, 12),
        "next_lac_review_date": date(2025, 3, 12),
        "next_pep_review_date": date(2025, 3, 12),
        "created_by": actor_id,
        "updated_by": actor_id
    }


@pytest.fixture
def make_child(sample_child_data):
    """Factory building a child from the sample data with overrides."""
    def _make(**overrides) -> Child:
        data = {**sample_child_data, **overrides}
        return Child(**data)
    return _make


@pytest.fixture
def sample_create_request(organization_id) -> CreateChildRequest:
    """Intake request for a child in England admitted on 2025-01-01."""
    return CreateChildRequest(
        organization_id=organization_id,
        jurisdiction=Jurisdiction.ENGLAND,
        legal_status=LegalStatus.SECTION_20,
        first_name="Oliver",
        last_name="Bennett",
        date_of_birth=date(2014, 9, 2),
        nhs_number="4857773456",
        placement_type=PlacementType.SHORT_TERM,
        admission_date=date(2025, 1, 1),
        local_authority="Cardiff Council",
        local_authority_id="CC-2002",
        current_school="Ysgol Glantaf"
    )


@pytest.fixture
def repository():
    return InMemoryChildRepository()


@pytest.fixture
def event_sink():
    return InMemoryEventSink()


@pytest.fixture
def manager(repository, event_sink, clock, rule_table):
    """Lifecycle manager on in-memory collaborators."""
    return ChildLifecycleManager(
        repository=repository,
        event_sink=event_sink,
        clock=clock,
        rule_table=rule_table
    )
