# SPDX-License-Identifier: Apache-2.0

"""
Child lifecycle manager.

Orchestrates lifecycle commands: loads the child, applies the pure domain
transition, saves the result through the repository and publishes exactly
one event per successful operation.
"""

import logging
import os
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from ..domain import children as transitions
from ..domain.children import LifecycleResult
from ..domain.jurisdictions import JurisdictionRuleTable, get_rule_table
from ..domain.reporting import (
    ChildStatistics,
    OverdueReviews,
    children_requiring_urgent_attention,
    compute_child_statistics,
    find_overdue_reviews,
)
from ..errors import ConfigException, ConflictException, LacRegistryException, NotFoundException
from ..models.entities import Child, ChildEvent, normalize_nhs_number
from ..models.enums import ChildStatus, UndefinedTransitionPolicy
from ..models.requests import (
    AdmitChildRequest,
    CreateChildRequest,
    DischargeChildRequest,
    ScheduleReviewRequest,
    TransferChildRequest,
    UpdateChildProfileRequest,
    UpdateLegalStatusRequest,
)
from ..utils.clock import Clock, SystemClock
from .filters import ChildFilters, ChildPage
from .interfaces import ChildRepository, EventSink, PublishResult

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)


class ChildLifecycleManager:
    """
    Entry point for child lifecycle operations.

    Each operation either raises a typed exception with nothing saved and no
    event published, or saves the updated child and publishes one event.
    """

    def __init__(
        self,
        repository: ChildRepository,
        event_sink: EventSink,
        clock: Optional[Clock] = None,
        rule_table: Optional[JurisdictionRuleTable] = None,
        undefined_transition_policy: UndefinedTransitionPolicy = UndefinedTransitionPolicy.REJECT
    ):
        self.repository = repository
        self.event_sink = event_sink
        self.clock = clock or SystemClock()
        self.rule_table = rule_table or get_rule_table()
        self.undefined_transition_policy = UndefinedTransitionPolicy(undefined_transition_policy)

    def _execute(
        self,
        operation: str,
        actor_id: str,
        apply: Callable[[Optional[Child], datetime], LifecycleResult],
        child_id: Optional[str] = None,
        attributes: Optional[Dict[str, Any]] = None
    ) -> Child:
        """Load, transition, save and publish within one span."""
        with tracer.start_as_current_span(f"children.{operation}") as span:
            span.set_attributes({
                "child.operation": operation,
                "child.id": child_id or "",
                "actor.id": actor_id,
                **(attributes or {})
            })

            try:
                child = self.repository.load(child_id) if child_id else None
                result = apply(child, self.clock.now())
                saved = self.repository.save(result.child)
            except LacRegistryException as e:
                span.record_exception(e)
                span.set_status(Status(StatusCode.ERROR, e.message))
                logger.warning(
                    f"Child {operation} rejected: {e.message}",
                    extra={"extra_fields": {
                        "operation": operation,
                        "child_id": child_id,
                        "actor_id": actor_id,
                        "error_type": e.error_type
                    }}
                )
                raise

            for warning in result.warnings:
                logger.warning(
                    warning,
                    extra={"extra_fields": {
                        "operation": operation,
                        "child_id": saved.id,
                        "actor_id": actor_id
                    }}
                )

            event = result.event.model_copy(update={"snapshot": saved.model_dump(mode="json")})
            publish_result = self._publish(event)

            span.set_attributes({
                "child.id": saved.id,
                "child.status": saved.status.value,
                "child.revision": saved.revision,
                "event.type": event.event_type,
                "event.published": publish_result.success
            })

            logger.info(
                f"Child {operation} completed for {saved.id}",
                extra={"extra_fields": {
                    "operation": operation,
                    "child_id": saved.id,
                    "organization_id": saved.organization_id,
                    "actor_id": actor_id,
                    "status": saved.status.value,
                    "event_id": event.event_id,
                    "event_type": event.event_type
                }}
            )
            return saved

    def _publish(self, event: ChildEvent) -> PublishResult:
        """Publish an event; failures are logged since the change is already saved."""
        result = self.event_sink.publish(event)
        if not result.success:
            logger.error(
                f"Failed to publish {event.event_type} for child {event.child_id}",
                extra={"extra_fields": {
                    "event_id": event.event_id,
                    "idempotency_key": event.idempotency_key,
                    "error": result.error,
                    "retry_count": result.retry_count
                }}
            )
        return result

    # Lifecycle operations

    def create(self, request: CreateChildRequest, actor_id: str) -> Child:
        """
        Register a new child.

        Args:
            request: Intake details
            actor_id: User registering the child

        Returns:
            Saved child

        Raises:
            ComplianceViolationException: If the legal status is not valid in the jurisdiction
            ValidationException: If the child details are invalid
            ConflictException: If the NHS number or local authority reference is taken
        """
        def apply(_: Optional[Child], now: datetime) -> LifecycleResult:
            duplicate = self.repository.find_duplicate(
                normalize_nhs_number(request.nhs_number),
                request.local_authority,
                request.local_authority_id
            )
            if duplicate is not None:
                raise ConflictException(
                    f"Child already registered as {duplicate.id} with the same "
                    f"NHS number or local authority reference"
                )
            return transitions.create_child(request, actor_id, now, self.rule_table)

        return self._execute(
            "create", actor_id, apply,
            attributes={
                "child.organization_id": request.organization_id,
                "child.jurisdiction": request.jurisdiction.value
            }
        )

    def update_profile(self, child_id: str, request: UpdateChildProfileRequest, actor_id: str) -> Child:
        """
        Correct or update a child's profile.

        Raises:
            ComplianceViolationException: If the legal status is not valid in a new jurisdiction
            ConflictException: If the NHS number or local authority reference belongs to another child
            ValidationException: If no field is set or the updated child is invalid
        """
        changes = request.changes()

        def apply(child: Optional[Child], now: datetime) -> LifecycleResult:
            nhs_number = normalize_nhs_number(changes.get("nhs_number"))
            if nhs_number and nhs_number != child.nhs_number:
                holder = self.repository.find_by_nhs_number(nhs_number)
                if holder is not None and holder.id != child.id:
                    raise ConflictException(f"NHS number {nhs_number} is already in use")

            local_authority = changes.get("local_authority", child.local_authority)
            local_authority_id = changes.get("local_authority_id", child.local_authority_id)
            reference_changed = (local_authority, local_authority_id) != (
                child.local_authority, child.local_authority_id
            )
            if reference_changed and local_authority and local_authority_id:
                holder = self.repository.find_by_local_authority_id(local_authority, local_authority_id)
                if holder is not None and holder.id != child.id:
                    raise ConflictException(
                        f"Local authority reference {local_authority_id} is already in use "
                        f"for {local_authority}"
                    )

            return transitions.update_child_profile(child, request, actor_id, now, self.rule_table)

        return self._execute(
            "update_profile", actor_id, apply,
            child_id=child_id,
            attributes={"profile.updated_fields": ",".join(sorted(changes))}
        )

    def admit(self, child_id: str, request: AdmitChildRequest, actor_id: str) -> Child:
        """Admit or re-admit a child."""
        return self._execute(
            "admit", actor_id,
            lambda child, now: transitions.admit_child(child, request, actor_id, now, self.rule_table),
            child_id=child_id
        )

    def discharge(self, child_id: str, request: DischargeChildRequest, actor_id: str) -> Child:
        """Discharge an active child."""
        return self._execute(
            "discharge", actor_id,
            lambda child, now: transitions.discharge_child(child, request, actor_id, now, self.rule_table),
            child_id=child_id
        )

    def transfer(self, child_id: str, request: TransferChildRequest, actor_id: str) -> Child:
        """Transfer an active child to another organization."""
        attributes = {"transfer.to_organization_id": request.new_organization_id}
        if request.destination_jurisdiction is not None:
            attributes["transfer.destination_jurisdiction"] = request.destination_jurisdiction.value
        return self._execute(
            "transfer", actor_id,
            lambda child, now: transitions.transfer_child(child, request, actor_id, now, self.rule_table),
            child_id=child_id,
            attributes=attributes
        )

    def update_legal_status(self, child_id: str, request: UpdateLegalStatusRequest, actor_id: str) -> Child:
        """Change a child's legal status under the configured undefined transition policy."""
        return self._execute(
            "update_legal_status", actor_id,
            lambda child, now: transitions.update_legal_status(
                child, request, actor_id, now, self.rule_table, self.undefined_transition_policy
            ),
            child_id=child_id,
            attributes={"legal_status.new": request.new_legal_status.value}
        )

    def mark_as_missing(self, child_id: str, actor_id: str) -> Child:
        """Record a missing episode."""
        return self._execute(
            "mark_as_missing", actor_id,
            lambda child, now: transitions.mark_as_missing(child, actor_id, now, self.rule_table),
            child_id=child_id
        )

    def mark_as_returned(self, child_id: str, actor_id: str) -> Child:
        """Record a missing child's return."""
        return self._execute(
            "mark_as_returned", actor_id,
            lambda child, now: transitions.mark_as_returned(child, actor_id, now, self.rule_table),
            child_id=child_id
        )

    def schedule_health_assessment(self, child_id: str, request: ScheduleReviewRequest, actor_id: str) -> Child:
        return self._execute(
            "schedule_health_assessment", actor_id,
            lambda child, now: transitions.schedule_health_assessment(child, request, actor_id, now, self.rule_table),
            child_id=child_id
        )

    def schedule_lac_review(self, child_id: str, request: ScheduleReviewRequest, actor_id: str) -> Child:
        return self._execute(
            "schedule_lac_review", actor_id,
            lambda child, now: transitions.schedule_lac_review(child, request, actor_id, now, self.rule_table),
            child_id=child_id,
            attributes={"review.number": request.review_number}
        )

    def schedule_pep_review(self, child_id: str, request: ScheduleReviewRequest, actor_id: str) -> Child:
        return self._execute(
            "schedule_pep_review", actor_id,
            lambda child, now: transitions.schedule_pep_review(child, request, actor_id, now, self.rule_table),
            child_id=child_id
        )

    # Queries

    def get_child(self, child_id: str) -> Child:
        """Load a child, raising NotFoundException if absent."""
        return self.repository.load(child_id)

    def get_child_by_nhs_number(self, nhs_number: str) -> Child:
        """
        Load the child holding an NHS number, with or without spaces.

        Raises:
            NotFoundException: If no child holds the number
        """
        normalized = normalize_nhs_number(nhs_number)
        child = self.repository.find_by_nhs_number(normalized)
        if child is None:
            raise NotFoundException(f"Child with NHS number {normalized} not found")
        return child

    def get_child_by_local_authority_id(self, local_authority: str, local_authority_id: str) -> Child:
        child = self.repository.find_by_local_authority_id(local_authority, local_authority_id)
        if child is None:
            raise NotFoundException(
                f"Child with local authority reference {local_authority_id} not found for {local_authority}"
            )
        return child

    def list_children(self, organization_id: str, status: Optional[ChildStatus] = None) -> List[Child]:
        return self.repository.list_by_organization(organization_id, status)

    def search_children(self, organization_id: str, filters: Optional[ChildFilters] = None) -> ChildPage:
        """
        Filtered, sorted and paged caseload search.

        Args:
            organization_id: Organization whose caseload is searched
            filters: Filters, sort order and page; the first 20 by admission date by default

        Returns:
            ChildPage with the total number of matches
        """
        with tracer.start_as_current_span("children.search") as span:
            span.set_attribute("organization.id", organization_id)
            page = self.repository.search(organization_id, filters or ChildFilters(), self.clock.today())
            span.set_attribute("search.total", page.total)
            return page

    def get_statistics(self, organization_id: str) -> ChildStatistics:
        """Caseload statistics for an organization."""
        with tracer.start_as_current_span("children.get_statistics") as span:
            span.set_attribute("organization.id", organization_id)
            children = self.repository.list_by_organization(organization_id)
            return compute_child_statistics(children, self.clock.today())

    def get_overdue_reviews(self, organization_id: str) -> OverdueReviews:
        """Active children with overdue reviews, grouped by review kind."""
        children = self.repository.list_by_organization(organization_id, ChildStatus.ACTIVE)
        return find_overdue_reviews(children, self.clock.today())

    def get_children_requiring_urgent_attention(self, organization_id: str) -> List[Child]:
        children = self.repository.list_by_organization(organization_id)
        return children_requiring_urgent_attention(children, self.clock.today())


def _undefined_transition_policy_from_env() -> UndefinedTransitionPolicy:
    value = os.getenv('LAC_UNDEFINED_TRANSITION_POLICY', UndefinedTransitionPolicy.REJECT.value)
    try:
        return UndefinedTransitionPolicy(value.strip().lower())
    except ValueError:
        raise ConfigException(f"Invalid LAC_UNDEFINED_TRANSITION_POLICY: {value}")


def create_child_lifecycle_manager(clock: Optional[Clock] = None) -> ChildLifecycleManager:
    """
    Factory function to create the lifecycle manager with collaborators from environment.

    LAC_REPOSITORY selects mongodb or memory persistence and LAC_EVENT_SINK
    selects amqp or memory event delivery.

    Returns:
        ChildLifecycleManager: Configured manager

    Raises:
        ConfigException: On an unknown backend or policy
    """
    repository_backend = os.getenv('LAC_REPOSITORY', 'memory').lower()
    sink_backend = os.getenv('LAC_EVENT_SINK', 'memory').lower()

    if repository_backend == 'mongodb':
        from .mongodb import MongoChildRepository, get_mongodb_service
        repository = MongoChildRepository(get_mongodb_service())
    elif repository_backend == 'memory':
        from .memory import InMemoryChildRepository
        repository = InMemoryChildRepository()
    else:
        raise ConfigException(f"Unknown LAC_REPOSITORY backend: {repository_backend}")

    if sink_backend == 'amqp':
        from .amqp import AMQPEventSink, create_amqp_service
        event_sink = AMQPEventSink(create_amqp_service())
    elif sink_backend == 'memory':
        from .events import InMemoryEventSink
        event_sink = InMemoryEventSink()
    else:
        raise ConfigException(f"Unknown LAC_EVENT_SINK backend: {sink_backend}")

    policy = _undefined_transition_policy_from_env()

    logger.info(
        "Child lifecycle manager configured",
        extra={"extra_fields": {
            "repository": repository_backend,
            "event_sink": sink_backend,
            "undefined_transition_policy": policy.value
        }}
    )

    return ChildLifecycleManager(
        repository=repository,
        event_sink=event_sink,
        clock=clock,
        undefined_transition_policy=policy
    )
