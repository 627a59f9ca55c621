# SPDX-License-Identifier: Apache-2.0

"""
Jurisdiction rule table.

Holds, for each of the eight British Isles jurisdictions, the legal statuses
that are valid there, the statutory review timescales and the legal status
transition rules of its status family. The table is immutable and built once
per process; callers may inject their own table.
"""

from dataclasses import dataclass, field
from functools import lru_cache
from types import MappingProxyType
from typing import Dict, FrozenSet, List, Mapping, Optional, Union

from ..errors import ConfigException
from ..models.enums import Jurisdiction, LegalStatus


UNIVERSAL_LEGAL_STATUSES = frozenset({
    LegalStatus.REMAND,
    LegalStatus.CRIMINAL_JUSTICE,
    LegalStatus.IMMIGRATION_DETENTION,
})

ENGLAND_WALES_LEGAL_STATUSES = frozenset({
    LegalStatus.SECTION_20,
    LegalStatus.SECTION_31,
    LegalStatus.SECTION_38,
    LegalStatus.POLICE_PROTECTION,
    LegalStatus.EMERGENCY_PROTECTION_ORDER,
}) | UNIVERSAL_LEGAL_STATUSES

# Children Act 1989 pathways, including the universal statuses. Only the
# England/Wales family has recorded transition rules; a status outside it has none.
ENGLAND_WALES_TRANSITIONS: Mapping[LegalStatus, FrozenSet[LegalStatus]] = MappingProxyType({
    LegalStatus.SECTION_20: frozenset({
        LegalStatus.SECTION_31,
        LegalStatus.SECTION_38,
        LegalStatus.EMERGENCY_PROTECTION_ORDER,
    }),
    LegalStatus.SECTION_31: frozenset({
        LegalStatus.SECTION_20,
    }),
    LegalStatus.SECTION_38: frozenset({
        LegalStatus.SECTION_31,
        LegalStatus.SECTION_20,
    }),
    LegalStatus.EMERGENCY_PROTECTION_ORDER: frozenset({
        LegalStatus.SECTION_20,
        LegalStatus.SECTION_38,
        LegalStatus.SECTION_31,
    }),
    LegalStatus.POLICE_PROTECTION: frozenset({
        LegalStatus.SECTION_20,
        LegalStatus.EMERGENCY_PROTECTION_ORDER,
    }),
    LegalStatus.REMAND: frozenset({
        LegalStatus.CRIMINAL_JUSTICE,
        LegalStatus.SECTION_20,
    }),
    LegalStatus.CRIMINAL_JUSTICE: frozenset({
        LegalStatus.SECTION_20,
    }),
    LegalStatus.IMMIGRATION_DETENTION: frozenset({
        LegalStatus.SECTION_20,
    }),
})


@dataclass(frozen=True)
class ReviewTimescales:
    """Day offsets for the first, second and each subsequent LAC review."""
    first: int
    second: int
    subsequent: int


@dataclass(frozen=True)
class JurisdictionRules:
    """Statutory rules for a single jurisdiction."""
    jurisdiction: Jurisdiction
    display_name: str
    regulator: str
    valid_legal_statuses: FrozenSet[LegalStatus]
    review_timescales: ReviewTimescales
    health_assessment_days: int
    pep_days: int
    transition_rules: Optional[Mapping[LegalStatus, FrozenSet[LegalStatus]]] = field(default=None)
    
    def __post_init__(self):
        offsets = (
            self.review_timescales.first,
            self.review_timescales.second,
            self.review_timescales.subsequent,
            self.health_assessment_days,
            self.pep_days,
        )
        if any(days <= 0 for days in offsets):
            raise ConfigException(
                f"Timescales for {self.jurisdiction.value} must be positive day counts"
            )
        if not self.valid_legal_statuses:
            raise ConfigException(
                f"No valid legal statuses configured for {self.jurisdiction.value}"
            )
    
    @property
    def has_transition_rules(self) -> bool:
        """Whether the jurisdiction's status family has recorded transition rules."""
        return self.transition_rules is not None


class JurisdictionRuleTable:
    """Read-only lookup from jurisdiction to its statutory rules."""
    
    def __init__(self, rules: Mapping[Jurisdiction, JurisdictionRules]):
        self._rules = MappingProxyType(dict(rules))
    
    def rules(self, jurisdiction: Union[Jurisdiction, str]) -> JurisdictionRules:
        """
        Get rules for a jurisdiction.
        
        Args:
            jurisdiction: Jurisdiction enum member or its value
            
        Returns:
            JurisdictionRules for the jurisdiction
            
        Raises:
            ConfigException: If the jurisdiction has no configured rules
        """
        try:
            key = Jurisdiction(jurisdiction)
            return self._rules[key]
        except (ValueError, KeyError):
            raise ConfigException(f"No rules configured for jurisdiction: {jurisdiction}")
    
    def valid_legal_statuses(self, jurisdiction: Union[Jurisdiction, str]) -> List[str]:
        """Sorted legal status values valid in a jurisdiction, for user-facing messages."""
        return sorted(status.value for status in self.rules(jurisdiction).valid_legal_statuses)
    
    def display_name(self, jurisdiction: Union[Jurisdiction, str]) -> str:
        """Human-readable jurisdiction name."""
        return self.rules(jurisdiction).display_name
    
    def transition_rules_for(
        self,
        legal_status: LegalStatus
    ) -> Optional[Mapping[LegalStatus, FrozenSet[LegalStatus]]]:
        """
        Transition rules of the status family a legal status belongs to.
        
        The family is the one whose jurisdictions record transition rules and
        list the status as valid, so universal statuses resolve to the
        England/Wales rules wherever the child is placed.
        
        Returns:
            The family's adjacency, or None if the status's family has no rules
        """
        status = LegalStatus(legal_status)
        for rules in self._rules.values():
            if rules.has_transition_rules and status in rules.valid_legal_statuses:
                return rules.transition_rules
        return None
    
    def jurisdictions(self) -> List[Jurisdiction]:
        """Jurisdictions present in the table."""
        return list(self._rules.keys())
    
    def verify_complete(self) -> None:
        """Raise ConfigException if any jurisdiction has no rules."""
        missing = [j.value for j in Jurisdiction if j not in self._rules]
        if missing:
            raise ConfigException(f"Jurisdictions without rules: {', '.join(missing)}")


def _standard_timescales(first: int) -> ReviewTimescales:
    return ReviewTimescales(first=first, second=90, subsequent=180)


def build_default_rule_table() -> JurisdictionRuleTable:
    """
    Build the statutory rule table for all eight jurisdictions.
    
    Returns:
        Complete JurisdictionRuleTable
    """
    rules: Dict[Jurisdiction, JurisdictionRules] = {}
    
    rules[Jurisdiction.ENGLAND] = JurisdictionRules(
        jurisdiction=Jurisdiction.ENGLAND,
        display_name="England",
        regulator="Ofsted",
        valid_legal_statuses=ENGLAND_WALES_LEGAL_STATUSES,
        review_timescales=_standard_timescales(20),
        health_assessment_days=20,
        pep_days=20,
        transition_rules=ENGLAND_WALES_TRANSITIONS,
    )
    rules[Jurisdiction.WALES] = JurisdictionRules(
        jurisdiction=Jurisdiction.WALES,
        display_name="Wales",
        regulator="Care Inspectorate Wales",
        valid_legal_statuses=ENGLAND_WALES_LEGAL_STATUSES,
        review_timescales=_standard_timescales(20),
        health_assessment_days=20,
        pep_days=20,
        transition_rules=ENGLAND_WALES_TRANSITIONS,
    )
    rules[Jurisdiction.SCOTLAND] = JurisdictionRules(
        jurisdiction=Jurisdiction.SCOTLAND,
        display_name="Scotland",
        regulator="Care Inspectorate",
        valid_legal_statuses=frozenset({
            LegalStatus.COMPULSORY_SUPERVISION_ORDER,
            LegalStatus.PERMANENCE_ORDER,
            LegalStatus.CHILD_PROTECTION_ORDER,
        }) | UNIVERSAL_LEGAL_STATUSES,
        review_timescales=_standard_timescales(28),
        health_assessment_days=28,
        pep_days=28,
    )
    rules[Jurisdiction.NORTHERN_IRELAND] = JurisdictionRules(
        jurisdiction=Jurisdiction.NORTHERN_IRELAND,
        display_name="Northern Ireland",
        regulator="RQIA",
        valid_legal_statuses=frozenset({
            LegalStatus.CARE_ORDER_NI,
            LegalStatus.RESIDENCE_ORDER_NI,
            LegalStatus.EMERGENCY_PROTECTION_ORDER_NI,
        }) | UNIVERSAL_LEGAL_STATUSES,
        review_timescales=_standard_timescales(14),
        health_assessment_days=28,
        pep_days=28,
    )
    rules[Jurisdiction.IRELAND] = JurisdictionRules(
        jurisdiction=Jurisdiction.IRELAND,
        display_name="Ireland",
        regulator="HIQA",
        valid_legal_statuses=frozenset({
            LegalStatus.CARE_ORDER_IE,
            LegalStatus.INTERIM_CARE_ORDER_IE,
            LegalStatus.EMERGENCY_CARE_ORDER_IE,
            LegalStatus.VOLUNTARY_CARE_IE,
        }) | UNIVERSAL_LEGAL_STATUSES,
        review_timescales=ReviewTimescales(first=30, second=180, subsequent=180),
        health_assessment_days=28,
        pep_days=30,
    )
    rules[Jurisdiction.JERSEY] = JurisdictionRules(
        jurisdiction=Jurisdiction.JERSEY,
        display_name="Jersey",
        regulator="Jersey Care Commission",
        valid_legal_statuses=frozenset({
            LegalStatus.CARE_ORDER_JERSEY,
            LegalStatus.SUPERVISION_ORDER_JERSEY,
        }) | UNIVERSAL_LEGAL_STATUSES,
        review_timescales=_standard_timescales(28),
        health_assessment_days=28,
        pep_days=28,
    )
    rules[Jurisdiction.GUERNSEY] = JurisdictionRules(
        jurisdiction=Jurisdiction.GUERNSEY,
        display_name="Guernsey",
        regulator="Committee for Health & Social Care",
        valid_legal_statuses=frozenset({
            LegalStatus.CARE_ORDER_GUERNSEY,
            LegalStatus.SUPERVISION_ORDER_GUERNSEY,
        }) | UNIVERSAL_LEGAL_STATUSES,
        review_timescales=_standard_timescales(28),
        health_assessment_days=28,
        pep_days=28,
    )
    rules[Jurisdiction.ISLE_OF_MAN] = JurisdictionRules(
        jurisdiction=Jurisdiction.ISLE_OF_MAN,
        display_name="Isle of Man",
        regulator="Registration and Inspection Unit",
        valid_legal_statuses=frozenset({
            LegalStatus.CARE_ORDER_IOM,
            LegalStatus.SUPERVISION_ORDER_IOM,
        }) | UNIVERSAL_LEGAL_STATUSES,
        review_timescales=_standard_timescales(28),
        health_assessment_days=28,
        pep_days=28,
    )
    
    table = JurisdictionRuleTable(rules)
    table.verify_complete()
    return table


@lru_cache(maxsize=1)
def get_rule_table() -> JurisdictionRuleTable:
    """Get the process-wide default rule table."""
    return build_default_rule_table()
