# SPDX-License-Identifier: Apache-2.0

"""
Legal status compliance logic.

This module contains pure functions that check a legal status against the
jurisdiction rule table: membership in the jurisdiction's status family,
legal status transitions and cross-border transfers.
"""

from dataclasses import dataclass
from typing import List, Optional

from ..errors import ComplianceViolationException, ValidationException
from ..models.enums import Jurisdiction, LegalStatus, TransitionOutcome
from .jurisdictions import JurisdictionRuleTable, get_rule_table


@dataclass
class ValidationResult:
    """Result of a compliance check."""
    is_valid: bool
    errors: List[str]
    warnings: List[str] = None
    
    def __post_init__(self):
        if self.warnings is None:
            self.warnings = []


@dataclass
class TransitionResult:
    """Result of checking a legal status change against the transition rules."""
    outcome: TransitionOutcome
    current: LegalStatus
    new: LegalStatus
    jurisdiction: Jurisdiction
    reason: Optional[str] = None
    
    @property
    def is_allowed(self) -> bool:
        return self.outcome == TransitionOutcome.ALLOWED


def _legal_status(value) -> LegalStatus:
    """
    Coerce a legal status value.
    
    Raises:
        ValidationException: If the value is not a known legal status
    """
    try:
        return LegalStatus(value)
    except ValueError:
        raise ValidationException(
            f"Unknown legal status: {value}",
            [f"legal_status: {value}"]
        )


def is_valid_for_jurisdiction(
    legal_status: LegalStatus,
    jurisdiction: Jurisdiction,
    rule_table: Optional[JurisdictionRuleTable] = None
) -> bool:
    """
    Check whether a legal status belongs to a jurisdiction's status family.
    
    Args:
        legal_status: Legal status to check
        jurisdiction: Jurisdiction governing the child
        rule_table: Rule table, defaults to the process-wide table
        
    Returns:
        True if the status is valid in the jurisdiction; False for unknown values
    """
    table = rule_table or get_rule_table()
    try:
        status = LegalStatus(legal_status)
    except ValueError:
        return False
    return status in table.rules(jurisdiction).valid_legal_statuses


def validate_legal_status(
    legal_status: LegalStatus,
    jurisdiction: Jurisdiction,
    rule_table: Optional[JurisdictionRuleTable] = None
) -> ValidationResult:
    """
    Validate a legal status for a jurisdiction.
    
    Args:
        legal_status: Legal status to check
        jurisdiction: Jurisdiction governing the child
        rule_table: Rule table, defaults to the process-wide table
        
    Returns:
        ValidationResult listing the valid statuses when the check fails
    """
    table = rule_table or get_rule_table()
    errors = []
    
    try:
        status = LegalStatus(legal_status)
    except ValueError:
        return ValidationResult(is_valid=False, errors=[f"Unknown legal status: {legal_status}"])
    
    if not is_valid_for_jurisdiction(status, jurisdiction, table):
        valid = ", ".join(table.valid_legal_statuses(jurisdiction))
        errors.append(
            f"Legal status {status.value} is not valid in "
            f"{table.display_name(jurisdiction)}. Valid statuses: {valid}"
        )
    
    return ValidationResult(is_valid=len(errors) == 0, errors=errors)


def ensure_valid_for_jurisdiction(
    legal_status: LegalStatus,
    jurisdiction: Jurisdiction,
    rule_table: Optional[JurisdictionRuleTable] = None
) -> None:
    """
    Raise if a legal status is not valid in a jurisdiction.
    
    Raises:
        ValidationException: If the value is not a known legal status
        ComplianceViolationException: With the jurisdiction's valid statuses
    """
    table = rule_table or get_rule_table()
    status = _legal_status(legal_status)
    result = validate_legal_status(status, jurisdiction, table)
    if not result.is_valid:
        raise ComplianceViolationException(
            result.errors[0],
            legal_status=status.value,
            jurisdiction=Jurisdiction(jurisdiction).value,
            valid_statuses=table.valid_legal_statuses(jurisdiction)
        )


def validate_transition(
    current: LegalStatus,
    new: LegalStatus,
    jurisdiction: Jurisdiction,
    rule_table: Optional[JurisdictionRuleTable] = None
) -> TransitionResult:
    """
    Check a legal status change against the transition rules of the current
    status's family.
    
    The rules follow the status, not the jurisdiction: a universal status such
    as remand is judged by the England/Wales pathways wherever the child is,
    and a change that also moves the child's jurisdiction is still bound by
    the rules of the status being left. Only statuses whose family has no
    recorded rules yield UNDEFINED; callers decide what to do with it.
    
    Args:
        current: Current legal status
        new: Requested legal status
        jurisdiction: Jurisdiction governing the child after the change
        rule_table: Rule table, defaults to the process-wide table
        
    Returns:
        TransitionResult with ALLOWED, REJECTED or UNDEFINED outcome
        
    Raises:
        ValidationException: If either status is not a known legal status
    """
    table = rule_table or get_rule_table()
    current = _legal_status(current)
    new = _legal_status(new)
    jurisdiction = Jurisdiction(jurisdiction)
    display_name = table.display_name(jurisdiction)
    family_rules = table.transition_rules_for(current)
    
    if family_rules is None:
        return TransitionResult(
            outcome=TransitionOutcome.UNDEFINED,
            current=current,
            new=new,
            jurisdiction=jurisdiction,
            reason=(
                f"No legal status transition rules are defined for {current.value} "
                f"in {display_name}"
            )
        )
    
    allowed_targets = family_rules.get(current)
    if allowed_targets is None:
        return TransitionResult(
            outcome=TransitionOutcome.REJECTED,
            current=current,
            new=new,
            jurisdiction=jurisdiction,
            reason=f"No transitions are permitted from {current.value} in {display_name}"
        )
    
    if new not in allowed_targets:
        allowed = ", ".join(sorted(status.value for status in allowed_targets))
        return TransitionResult(
            outcome=TransitionOutcome.REJECTED,
            current=current,
            new=new,
            jurisdiction=jurisdiction,
            reason=(
                f"Cannot transition from {current.value} to {new.value}. "
                f"Permitted transitions: {allowed}"
            )
        )
    
    return TransitionResult(
        outcome=TransitionOutcome.ALLOWED,
        current=current,
        new=new,
        jurisdiction=jurisdiction
    )


def validate_cross_border_transfer(
    legal_status: LegalStatus,
    source: Jurisdiction,
    destination: Jurisdiction,
    rule_table: Optional[JurisdictionRuleTable] = None
) -> ValidationResult:
    """
    Validate that a child's legal status remains valid after moving jurisdiction.
    
    Args:
        legal_status: Child's current legal status
        source: Jurisdiction the child leaves
        destination: Jurisdiction the child moves to
        rule_table: Rule table, defaults to the process-wide table
        
    Returns:
        ValidationResult; a same-jurisdiction move is always valid
    """
    table = rule_table or get_rule_table()
    legal_status = _legal_status(legal_status)
    source = Jurisdiction(source)
    destination = Jurisdiction(destination)
    
    if source == destination:
        return ValidationResult(is_valid=True, errors=[])
    
    errors = []
    warnings = [
        f"Cross-border transfer from {table.display_name(source)} to "
        f"{table.display_name(destination)} requires court order recognition, "
        f"regulator notification and a placement review"
    ]
    
    if not is_valid_for_jurisdiction(legal_status, destination, table):
        valid = ", ".join(table.valid_legal_statuses(destination))
        errors.append(
            f"Legal status {legal_status.value} is not recognised in "
            f"{table.display_name(destination)}. A new order valid there is required "
            f"before transfer. Valid statuses: {valid}"
        )
    
    return ValidationResult(is_valid=len(errors) == 0, errors=errors, warnings=warnings)


def ensure_cross_border_transfer_allowed(
    legal_status: LegalStatus,
    source: Jurisdiction,
    destination: Jurisdiction,
    rule_table: Optional[JurisdictionRuleTable] = None
) -> ValidationResult:
    """
    Raise if a cross-border transfer would leave the child with an invalid legal status.
    
    Returns:
        The passing ValidationResult, carrying the statutory checklist warnings
        
    Raises:
        ComplianceViolationException: If the status is not valid in the destination
    """
    table = rule_table or get_rule_table()
    result = validate_cross_border_transfer(legal_status, source, destination, table)
    if not result.is_valid:
        raise ComplianceViolationException(
            result.errors[0],
            legal_status=_legal_status(legal_status).value,
            jurisdiction=Jurisdiction(destination).value,
            valid_statuses=table.valid_legal_statuses(destination)
        )
    return result
