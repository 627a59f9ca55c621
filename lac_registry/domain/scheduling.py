# SPDX-License-Identifier: Apache-2.0

"""
Statutory review scheduling.

Pure functions computing health assessment, personal education plan and
looked after child review due dates from a jurisdiction's timescales.
Offsets are calendar days.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional, Tuple

from ..errors import ValidationException
from ..models.enums import Jurisdiction
from .jurisdictions import JurisdictionRuleTable, get_rule_table


@dataclass(frozen=True)
class ReviewDates:
    """Review due dates derived from a single anchor date."""
    next_health_assessment: date
    next_lac_review_date: date
    next_pep_review_date: Optional[date] = None


def health_assessment_due(
    jurisdiction: Jurisdiction,
    anchor: date,
    rule_table: Optional[JurisdictionRuleTable] = None
) -> date:
    """Health assessment due date counted from the anchor date."""
    table = rule_table or get_rule_table()
    return anchor + timedelta(days=table.rules(jurisdiction).health_assessment_days)


def pep_due(
    jurisdiction: Jurisdiction,
    anchor: date,
    rule_table: Optional[JurisdictionRuleTable] = None
) -> date:
    """Personal education plan review due date counted from the anchor date."""
    table = rule_table or get_rule_table()
    return anchor + timedelta(days=table.rules(jurisdiction).pep_days)


def review_due(
    jurisdiction: Jurisdiction,
    anchor: date,
    review_number: int,
    rule_table: Optional[JurisdictionRuleTable] = None
) -> date:
    """
    Due date of the n-th looked after child review.
    
    The first review falls `first` days after the anchor, the second `second`
    days after the first, and every later review `subsequent` days after the
    one before it.
    
    Args:
        jurisdiction: Jurisdiction whose timescales apply
        anchor: Admission date or other anchor
        review_number: 1-based review index
        rule_table: Rule table, defaults to the process-wide table
        
    Returns:
        Due date of the review
        
    Raises:
        ValidationException: If review_number is less than 1
    """
    if review_number < 1:
        raise ValidationException(
            f"Review number must be 1 or greater, got {review_number}",
            [f"review_number: {review_number}"]
        )
    
    table = rule_table or get_rule_table()
    timescales = table.rules(jurisdiction).review_timescales
    
    days = timescales.first
    if review_number >= 2:
        days += timescales.second
    if review_number > 2:
        days += (review_number - 2) * timescales.subsequent
    
    return anchor + timedelta(days=days)


def review_schedule(
    jurisdiction: Jurisdiction,
    anchor: date,
    count: int,
    rule_table: Optional[JurisdictionRuleTable] = None
) -> List[date]:
    """Due dates of the first `count` looked after child reviews."""
    if count < 0:
        raise ValidationException(f"Review count cannot be negative, got {count}")
    table = rule_table or get_rule_table()
    return [review_due(jurisdiction, anchor, n, table) for n in range(1, count + 1)]


def next_review_after(
    jurisdiction: Jurisdiction,
    anchor: date,
    today: date,
    rule_table: Optional[JurisdictionRuleTable] = None
) -> Tuple[int, date]:
    """
    First looked after child review due on or after today.
    
    Args:
        jurisdiction: Jurisdiction whose timescales apply
        anchor: Admission date the schedule is counted from
        today: Reference date
        rule_table: Rule table, defaults to the process-wide table
        
    Returns:
        Tuple of (review number, due date)
    """
    table = rule_table or get_rule_table()
    
    for review_number in (1, 2):
        due = review_due(jurisdiction, anchor, review_number, table)
        if due >= today:
            return review_number, due
    
    subsequent = table.rules(jurisdiction).review_timescales.subsequent
    second_due = review_due(jurisdiction, anchor, 2, table)
    remaining = (today - second_due).days
    review_number = 2 + -(-remaining // subsequent)
    return review_number, review_due(jurisdiction, anchor, review_number, table)


def compute_review_dates(
    jurisdiction: Jurisdiction,
    anchor: date,
    has_school: bool,
    rule_table: Optional[JurisdictionRuleTable] = None
) -> ReviewDates:
    """
    Compute the full set of review dates from an anchor date.
    
    Args:
        jurisdiction: Jurisdiction whose timescales apply
        anchor: Admission date or other anchor
        has_school: Whether the child attends school; PEP reviews apply only then
        rule_table: Rule table, defaults to the process-wide table
        
    Returns:
        ReviewDates with health assessment, first LAC review and optional PEP
    """
    table = rule_table or get_rule_table()
    return ReviewDates(
        next_health_assessment=health_assessment_due(jurisdiction, anchor, table),
        next_lac_review_date=review_due(jurisdiction, anchor, 1, table),
        next_pep_review_date=pep_due(jurisdiction, anchor, table) if has_school else None
    )
