# SPDX-License-Identifier: Apache-2.0

"""
Child lifecycle domain logic.

This module contains the pure transition functions of the child lifecycle
state machine. Each function validates a command against a child, returns a
new child with the changes applied together with the event describing them,
and raises a typed exception without touching the input child on failure.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError

from ..errors import (
    InvalidTransitionException,
    UndefinedTransitionException,
    ValidationException,
)
from ..models.entities import Child, ChildEvent
from ..models.enums import (
    ChildEventType,
    ChildStatus,
    TransitionOutcome,
    UndefinedTransitionPolicy,
)
from ..models.requests import (
    AdmitChildRequest,
    CreateChildRequest,
    DischargeChildRequest,
    ScheduleReviewRequest,
    TransferChildRequest,
    UpdateChildProfileRequest,
    UpdateLegalStatusRequest,
)
from .compliance import (
    ensure_cross_border_transfer_allowed,
    ensure_valid_for_jurisdiction,
    validate_transition,
)
from .jurisdictions import JurisdictionRuleTable, get_rule_table
from .scheduling import compute_review_dates, health_assessment_due, pep_due, review_due


# A child can go missing from any placement status, including discharged
# and transferred children still known to the organization.
MISSING_EPISODE_SOURCE_STATUSES = frozenset(ChildStatus)

MAX_AGE_YEARS = 25

AUDIT_FIELDS = frozenset({"updated_at", "updated_by"})


@dataclass
class LifecycleResult:
    """Outcome of a successful lifecycle transition."""
    child: Child
    event: ChildEvent
    warnings: List[str] = None
    
    def __post_init__(self):
        if self.warnings is None:
            self.warnings = []


def _copy_with(child: Child, updates: Dict[str, Any], actor_id: str, now: datetime) -> Child:
    """Validated copy of a child with updates and audit fields applied."""
    data = child.model_dump()
    data.update(updates)
    data["updated_at"] = now
    data["updated_by"] = actor_id
    try:
        return Child.model_validate(data)
    except ValidationError as e:
        raise ValidationException(
            "Child failed validation after update",
            [f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}" for err in e.errors()]
        )


def _changed_fields(before: Child, after: Child, fields: Iterable[str]) -> List[str]:
    return sorted(
        name for name in fields
        if name not in AUDIT_FIELDS and getattr(before, name) != getattr(after, name)
    )


def build_event(
    event_type: ChildEventType,
    before: Optional[Child],
    after: Child,
    actor_id: str,
    now: datetime,
    changed: Optional[List[str]] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> ChildEvent:
    """
    Build the event for a lifecycle operation.
    
    Args:
        event_type: Event type
        before: Child before the operation, None on creation
        after: Child after the operation
        actor_id: User who performed the operation
        now: Operation timestamp
        changed: Names of fields changed by the operation
        metadata: Operation-specific context
        
    Returns:
        ChildEvent carrying changed fields and a full snapshot
    """
    snapshot = after.model_dump(mode="json")
    if before is None:
        before_fields = {}
        after_fields = snapshot
    elif not changed:
        before_fields = {}
        after_fields = {}
    else:
        before_fields = before.model_dump(mode="json", include=set(changed))
        after_fields = after.model_dump(mode="json", include=set(changed))
    
    return ChildEvent(
        event_type=event_type,
        child_id=after.id,
        organization_id=after.organization_id,
        actor_id=actor_id,
        occurred_at=now,
        before=before_fields,
        after=after_fields,
        snapshot=snapshot,
        metadata=metadata or {}
    )


def _transition(
    child: Child,
    updates: Dict[str, Any],
    event_type: ChildEventType,
    actor_id: str,
    now: datetime,
    metadata: Optional[Dict[str, Any]] = None,
    warnings: Optional[List[str]] = None
) -> LifecycleResult:
    updated = _copy_with(child, updates, actor_id, now)
    changed = _changed_fields(child, updated, updates.keys())
    event = build_event(event_type, child, updated, actor_id, now, changed, metadata)
    return LifecycleResult(child=updated, event=event, warnings=warnings)


def _ensure_date_of_birth(child: Child, today: date) -> None:
    if child.date_of_birth > today:
        raise ValidationException(
            "Date of birth cannot be in the future",
            [f"date_of_birth: {child.date_of_birth.isoformat()}"]
        )
    age = child.age_on(today)
    if age > MAX_AGE_YEARS:
        raise ValidationException(
            f"Child must be {MAX_AGE_YEARS} or younger, age is {age}",
            [f"date_of_birth: {child.date_of_birth.isoformat()}"]
        )


def create_child(
    request: CreateChildRequest,
    actor_id: str,
    now: datetime,
    rule_table: Optional[JurisdictionRuleTable] = None
) -> LifecycleResult:
    """
    Register a new child as active.
    
    Args:
        request: Intake details
        actor_id: User registering the child
        now: Operation timestamp
        rule_table: Rule table, defaults to the process-wide table
        
    Returns:
        LifecycleResult with the new child and a ChildAdmitted event
        
    Raises:
        ComplianceViolationException: If the legal status is not valid in the jurisdiction
        ValidationException: If the date of birth is in the future or the child is too old
    """
    table = rule_table or get_rule_table()
    ensure_valid_for_jurisdiction(request.legal_status, request.jurisdiction, table)
    
    dates = compute_review_dates(
        request.jurisdiction, request.admission_date, bool(request.current_school), table
    )
    
    try:
        child = Child(
            organization_id=request.organization_id,
            jurisdiction=request.jurisdiction,
            legal_status=request.legal_status,
            legal_status_start_date=request.legal_status_start_date or request.admission_date,
            court_order_details=request.court_order_details,
            first_name=request.first_name,
            last_name=request.last_name,
            preferred_name=request.preferred_name,
            date_of_birth=request.date_of_birth,
            nhs_number=request.nhs_number,
            placement_type=request.placement_type,
            status=ChildStatus.ACTIVE,
            admission_date=request.admission_date,
            expected_discharge_date=request.expected_discharge_date,
            local_authority=request.local_authority,
            local_authority_id=request.local_authority_id,
            current_school=request.current_school,
            has_child_protection_plan=request.has_child_protection_plan,
            next_health_assessment=dates.next_health_assessment,
            next_lac_review_date=dates.next_lac_review_date,
            next_pep_review_date=dates.next_pep_review_date,
            created_at=now,
            updated_at=now,
            created_by=actor_id,
            updated_by=actor_id
        )
    except ValidationError as e:
        raise ValidationException(
            "Invalid child details",
            [f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}" for err in e.errors()]
        )
    
    _ensure_date_of_birth(child, now.date())
    
    event = build_event(
        ChildEventType.CHILD_ADMITTED, None, child, actor_id, now,
        metadata={"operation": "create"}
    )
    return LifecycleResult(child=child, event=event)


def update_child_profile(
    child: Child,
    request: UpdateChildProfileRequest,
    actor_id: str,
    now: datetime,
    rule_table: Optional[JurisdictionRuleTable] = None
) -> LifecycleResult:
    """
    Apply profile corrections to a child.
    
    A jurisdiction change re-checks the child's legal status against the new
    jurisdiction and carries a warning asking for the cross-border placement
    to be confirmed. Review dates are left as scheduled.
    
    Args:
        child: Child to update
        request: Fields to change
        actor_id: User making the change
        now: Operation timestamp
        rule_table: Rule table, defaults to the process-wide table
        
    Returns:
        LifecycleResult with a ChildProfileUpdated event
        
    Raises:
        ComplianceViolationException: If the legal status is not valid in the new jurisdiction
        ValidationException: If no field is set or the updated child is invalid
    """
    table = rule_table or get_rule_table()
    updates = request.changes()
    if not updates:
        raise ValidationException("No profile changes supplied")
    
    warnings = []
    jurisdiction = updates.get("jurisdiction", child.jurisdiction)
    jurisdiction_changed = jurisdiction != child.jurisdiction
    if jurisdiction_changed:
        ensure_valid_for_jurisdiction(child.legal_status, jurisdiction, table)
        warnings.append(
            f"Jurisdiction changed from {table.display_name(child.jurisdiction)} to "
            f"{table.display_name(jurisdiction)}; confirm this is an authorised "
            f"cross-border placement"
        )
    
    result = _transition(
        child, updates, ChildEventType.CHILD_PROFILE_UPDATED, actor_id, now,
        metadata={
            "updated_fields": sorted(updates),
            "jurisdiction_changed": jurisdiction_changed,
        },
        warnings=warnings
    )
    if "date_of_birth" in updates:
        _ensure_date_of_birth(result.child, now.date())
    if (result.child.expected_discharge_date and result.child.admission_date
            and result.child.expected_discharge_date < result.child.admission_date):
        raise ValidationException("Expected discharge date cannot be before admission date")
    return result


def admit_child(
    child: Child,
    request: AdmitChildRequest,
    actor_id: str,
    now: datetime,
    rule_table: Optional[JurisdictionRuleTable] = None
) -> LifecycleResult:
    """
    Admit or re-admit a child into an active placement.
    
    Raises:
        InvalidTransitionException: If the child is already admitted
        ComplianceViolationException: If the legal status is not valid in the child's jurisdiction
        ValidationException: If the expected discharge precedes admission
    """
    table = rule_table or get_rule_table()
    
    if child.status == ChildStatus.ACTIVE and child.admission_date is not None:
        raise InvalidTransitionException(
            f"Child {child.id} is already admitted since {child.admission_date.isoformat()}"
        )
    
    ensure_valid_for_jurisdiction(request.legal_status, child.jurisdiction, table)
    
    admission_date = request.admission_date or now.date()
    if request.expected_discharge_date and request.expected_discharge_date < admission_date:
        raise ValidationException("Expected discharge date cannot be before admission date")
    
    dates = compute_review_dates(child.jurisdiction, admission_date, bool(child.current_school), table)
    
    updates = {
        "status": ChildStatus.ACTIVE,
        "admission_date": admission_date,
        "placement_type": request.placement_type,
        "legal_status": request.legal_status,
        "expected_discharge_date": request.expected_discharge_date,
        "actual_discharge_date": None,
        "discharge_reason": None,
        "next_health_assessment": dates.next_health_assessment,
        "next_lac_review_date": dates.next_lac_review_date,
    }
    if child.current_school:
        updates["next_pep_review_date"] = dates.next_pep_review_date
    return _transition(
        child, updates, ChildEventType.CHILD_ADMITTED, actor_id, now,
        metadata={"operation": "admit", "previous_status": child.status.value}
    )


def discharge_child(
    child: Child,
    request: DischargeChildRequest,
    actor_id: str,
    now: datetime,
    rule_table: Optional[JurisdictionRuleTable] = None
) -> LifecycleResult:
    """
    Discharge an active child.
    
    Raises:
        InvalidTransitionException: If the child is not active
        ValidationException: If the discharge date precedes admission
    """
    if child.status != ChildStatus.ACTIVE:
        raise InvalidTransitionException(
            f"Only active children can be discharged, child {child.id} is {child.status.value}"
        )
    
    if child.admission_date and request.discharge_date < child.admission_date:
        raise ValidationException(
            "Discharge date cannot be before admission date",
            [f"discharge_date: {request.discharge_date.isoformat()}"]
        )
    
    updates = {
        "status": ChildStatus.DISCHARGED,
        "actual_discharge_date": request.discharge_date,
        "discharge_reason": request.discharge_reason,
    }
    return _transition(
        child, updates, ChildEventType.CHILD_DISCHARGED, actor_id, now,
        metadata={"discharge_reason": request.discharge_reason}
    )


def transfer_child(
    child: Child,
    request: TransferChildRequest,
    actor_id: str,
    now: datetime,
    rule_table: Optional[JurisdictionRuleTable] = None
) -> LifecycleResult:
    """
    Transfer an active child to another organization, possibly across jurisdictions.
    
    A cross-border transfer requires the child's legal status to be valid in
    the destination and recomputes the review dates from today. A scheduled PEP
    review is kept for a child with no school on record.
    
    Raises:
        InvalidTransitionException: If the child is not active
        ComplianceViolationException: If the legal status is not valid in the destination
    """
    table = rule_table or get_rule_table()
    
    if child.status != ChildStatus.ACTIVE:
        raise InvalidTransitionException(
            f"Only active children can be transferred, child {child.id} is {child.status.value}"
        )
    
    updates = {
        "status": ChildStatus.TRANSFERRED,
        "organization_id": request.new_organization_id,
    }
    metadata = {
        "from_organization_id": child.organization_id,
        "to_organization_id": request.new_organization_id,
        "transfer_reason": request.transfer_reason,
        "cross_border": False,
    }
    warnings = []
    
    destination = request.destination_jurisdiction
    if destination is not None and destination != child.jurisdiction:
        result = ensure_cross_border_transfer_allowed(
            child.legal_status, child.jurisdiction, destination, table
        )
        dates = compute_review_dates(destination, now.date(), bool(child.current_school), table)
        updates.update({
            "jurisdiction": destination,
            "next_health_assessment": dates.next_health_assessment,
            "next_lac_review_date": dates.next_lac_review_date,
        })
        if child.current_school:
            updates["next_pep_review_date"] = dates.next_pep_review_date
        metadata.update({
            "cross_border": True,
            "source_jurisdiction": child.jurisdiction.value,
            "destination_jurisdiction": destination.value,
        })
        warnings.extend(result.warnings)
    
    return _transition(
        child, updates, ChildEventType.CHILD_TRANSFERRED, actor_id, now,
        metadata=metadata, warnings=warnings
    )


def update_legal_status(
    child: Child,
    request: UpdateLegalStatusRequest,
    actor_id: str,
    now: datetime,
    rule_table: Optional[JurisdictionRuleTable] = None,
    policy: UndefinedTransitionPolicy = UndefinedTransitionPolicy.REJECT
) -> LifecycleResult:
    """
    Change a child's legal status, optionally together with its jurisdiction.
    
    Args:
        child: Child to update
        request: New legal status details
        actor_id: User making the change
        now: Operation timestamp
        rule_table: Rule table, defaults to the process-wide table
        policy: Handling of changes from a status whose family has no transition rules
        
    Returns:
        LifecycleResult with a LegalStatusChanged event
        
    Raises:
        ComplianceViolationException: If the new status is not valid in the jurisdiction
        InvalidTransitionException: If the transition rules reject the change
        UndefinedTransitionException: If no rule exists and the policy is REJECT
    """
    table = rule_table or get_rule_table()
    jurisdiction = request.jurisdiction or child.jurisdiction
    
    ensure_valid_for_jurisdiction(request.new_legal_status, jurisdiction, table)
    
    transition = validate_transition(child.legal_status, request.new_legal_status, jurisdiction, table)
    warnings = []
    
    if transition.outcome == TransitionOutcome.REJECTED:
        raise InvalidTransitionException(transition.reason)
    
    if transition.outcome == TransitionOutcome.UNDEFINED:
        if policy == UndefinedTransitionPolicy.REJECT:
            raise UndefinedTransitionException(
                f"Cannot change legal status from {transition.current.value} to "
                f"{transition.new.value}: {transition.reason}",
                jurisdiction=jurisdiction.value
            )
        warnings.append(transition.reason)
    
    effective_date = request.effective_date or now.date()
    updates = {
        "legal_status": request.new_legal_status,
        "jurisdiction": jurisdiction,
        "legal_status_start_date": effective_date,
        "legal_status_review_date": request.review_date,
        "court_order_details": request.court_order_details,
    }
    if request.recalculate_reviews:
        updates["next_lac_review_date"] = review_due(jurisdiction, effective_date, 1, table)
    
    metadata = {
        "previous_legal_status": child.legal_status.value,
        "transition_outcome": transition.outcome.value,
        "transition_rule_defined": transition.outcome != TransitionOutcome.UNDEFINED,
        "recalculated_reviews": request.recalculate_reviews,
    }
    return _transition(
        child, updates, ChildEventType.LEGAL_STATUS_CHANGED, actor_id, now,
        metadata=metadata, warnings=warnings
    )


def mark_as_missing(
    child: Child,
    actor_id: str,
    now: datetime,
    rule_table: Optional[JurisdictionRuleTable] = None
) -> LifecycleResult:
    """
    Record a missing episode.
    
    Raises:
        InvalidTransitionException: If the status is outside MISSING_EPISODE_SOURCE_STATUSES
    """
    if child.status not in MISSING_EPISODE_SOURCE_STATUSES:
        raise InvalidTransitionException(
            f"Child {child.id} cannot be marked missing from status {child.status.value}"
        )
    
    today = now.date()
    updates = {
        "status": ChildStatus.MISSING,
        "missing_episodes_count": child.missing_episodes_count + 1,
        "last_missing_episode_date": today,
    }
    return _transition(
        child, updates, ChildEventType.CHILD_MARKED_MISSING, actor_id, now,
        metadata={
            "previous_status": child.status.value,
            "episode_number": child.missing_episodes_count + 1,
        }
    )


def mark_as_returned(
    child: Child,
    actor_id: str,
    now: datetime,
    rule_table: Optional[JurisdictionRuleTable] = None
) -> LifecycleResult:
    """
    Record a missing child's return.
    
    Raises:
        InvalidTransitionException: If the child is not missing
    """
    if child.status != ChildStatus.MISSING:
        raise InvalidTransitionException(
            f"Only missing children can be marked returned, child {child.id} is {child.status.value}"
        )
    
    return _transition(
        child, {"status": ChildStatus.ACTIVE}, ChildEventType.CHILD_RETURNED, actor_id, now,
        metadata={"last_missing_episode_date": _iso(child.last_missing_episode_date)}
    )


def schedule_health_assessment(
    child: Child,
    request: ScheduleReviewRequest,
    actor_id: str,
    now: datetime,
    rule_table: Optional[JurisdictionRuleTable] = None
) -> LifecycleResult:
    """Recompute the next health assessment from the anchor date, today by default."""
    table = rule_table or get_rule_table()
    anchor = request.anchor_date or now.date()
    due = health_assessment_due(child.jurisdiction, anchor, table)
    return _transition(
        child, {"next_health_assessment": due}, ChildEventType.REVIEWS_SCHEDULED, actor_id, now,
        metadata={"review_kind": "health_assessment", "anchor_date": anchor.isoformat()}
    )


def schedule_lac_review(
    child: Child,
    request: ScheduleReviewRequest,
    actor_id: str,
    now: datetime,
    rule_table: Optional[JurisdictionRuleTable] = None
) -> LifecycleResult:
    """
    Recompute the next LAC review from the anchor date, the admission date by default.
    
    Raises:
        ValidationException: If no anchor is given and the child has no admission date
    """
    table = rule_table or get_rule_table()
    anchor = request.anchor_date or child.admission_date
    if anchor is None:
        raise ValidationException(
            f"Child {child.id} has no admission date to schedule reviews from"
        )
    due = review_due(child.jurisdiction, anchor, request.review_number, table)
    return _transition(
        child, {"next_lac_review_date": due}, ChildEventType.REVIEWS_SCHEDULED, actor_id, now,
        metadata={
            "review_kind": "lac_review",
            "review_number": request.review_number,
            "anchor_date": anchor.isoformat(),
        }
    )


def schedule_pep_review(
    child: Child,
    request: ScheduleReviewRequest,
    actor_id: str,
    now: datetime,
    rule_table: Optional[JurisdictionRuleTable] = None
) -> LifecycleResult:
    """Recompute the next PEP review from the anchor date, today by default."""
    table = rule_table or get_rule_table()
    anchor = request.anchor_date or now.date()
    due = pep_due(child.jurisdiction, anchor, table)
    return _transition(
        child, {"next_pep_review_date": due}, ChildEventType.REVIEWS_SCHEDULED, actor_id, now,
        metadata={"review_kind": "pep_review", "anchor_date": anchor.isoformat()}
    )


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None
