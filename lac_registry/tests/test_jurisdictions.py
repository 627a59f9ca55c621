# SPDX-License-Identifier: Apache-2.0

"""
Unit tests for the jurisdiction rule table.
"""

import pytest

from lac_registry.domain.jurisdictions import (
    JurisdictionRules,
    JurisdictionRuleTable,
    ReviewTimescales,
    UNIVERSAL_LEGAL_STATUSES,
    build_default_rule_table,
    get_rule_table,
)
from lac_registry.errors import ConfigException
from lac_registry.models.enums import Jurisdiction, LegalStatus


class TestRuleTableCompleteness:
    """Every jurisdiction has a complete rule set."""
    
    def test_every_jurisdiction_has_rules(self, rule_table):
        for jurisdiction in Jurisdiction:
            rules = rule_table.rules(jurisdiction)
            assert rules.jurisdiction == jurisdiction
    
    def test_universal_statuses_valid_everywhere(self, rule_table):
        for jurisdiction in Jurisdiction:
            assert UNIVERSAL_LEGAL_STATUSES <= rule_table.rules(jurisdiction).valid_legal_statuses
    
    def test_every_legal_status_belongs_to_some_jurisdiction(self, rule_table):
        covered = set()
        for jurisdiction in Jurisdiction:
            covered |= rule_table.rules(jurisdiction).valid_legal_statuses
        assert covered == set(LegalStatus)
    
    def test_lookup_by_value(self, rule_table):
        assert rule_table.rules("SCOTLAND").jurisdiction == Jurisdiction.SCOTLAND
    
    def test_default_table_is_cached(self):
        assert get_rule_table() is get_rule_table()


class TestTimescales:
    """Statutory timescales per jurisdiction."""
    
    @pytest.mark.parametrize("jurisdiction,first,second,subsequent,health,pep", [
        (Jurisdiction.ENGLAND, 20, 90, 180, 20, 20),
        (Jurisdiction.WALES, 20, 90, 180, 20, 20),
        (Jurisdiction.SCOTLAND, 28, 90, 180, 28, 28),
        (Jurisdiction.NORTHERN_IRELAND, 14, 90, 180, 28, 28),
        (Jurisdiction.IRELAND, 30, 180, 180, 28, 30),
        (Jurisdiction.JERSEY, 28, 90, 180, 28, 28),
        (Jurisdiction.GUERNSEY, 28, 90, 180, 28, 28),
        (Jurisdiction.ISLE_OF_MAN, 28, 90, 180, 28, 28),
    ])
    def test_timescales(self, rule_table, jurisdiction, first, second, subsequent, health, pep):
        rules = rule_table.rules(jurisdiction)
        assert rules.review_timescales == ReviewTimescales(first, second, subsequent)
        assert rules.health_assessment_days == health
        assert rules.pep_days == pep


class TestLegalStatusFamilies:
    """Legal status families scoped per jurisdiction."""
    
    def test_england_and_wales_share_family(self, rule_table):
        england = rule_table.rules(Jurisdiction.ENGLAND).valid_legal_statuses
        wales = rule_table.rules(Jurisdiction.WALES).valid_legal_statuses
        assert england == wales
        assert LegalStatus.SECTION_31 in england
    
    def test_scotland_family(self, rule_table):
        statuses = rule_table.rules(Jurisdiction.SCOTLAND).valid_legal_statuses
        assert LegalStatus.COMPULSORY_SUPERVISION_ORDER in statuses
        assert LegalStatus.SECTION_20 not in statuses
    
    def test_valid_legal_statuses_sorted(self, rule_table):
        statuses = rule_table.valid_legal_statuses(Jurisdiction.JERSEY)
        assert statuses == sorted(statuses)
        assert statuses == [
            "CARE_ORDER_JERSEY",
            "CRIMINAL_JUSTICE",
            "IMMIGRATION_DETENTION",
            "REMAND",
            "SUPERVISION_ORDER_JERSEY",
        ]
    
    def test_only_england_wales_have_transition_rules(self, rule_table):
        with_rules = {
            j for j in Jurisdiction if rule_table.rules(j).has_transition_rules
        }
        assert with_rules == {Jurisdiction.ENGLAND, Jurisdiction.WALES}
    
    def test_display_names(self, rule_table):
        assert rule_table.display_name(Jurisdiction.NORTHERN_IRELAND) == "Northern Ireland"
        assert rule_table.display_name(Jurisdiction.ISLE_OF_MAN) == "Isle of Man"


class TestRuleTableErrors:
    """Configuration errors surface as ConfigException."""
    
    def test_missing_jurisdiction_raises(self):
        table = JurisdictionRuleTable({})
        with pytest.raises(ConfigException) as exc_info:
            table.rules(Jurisdiction.ENGLAND)
        assert exc_info.value.status_code == 500
        assert exc_info.value.error_type == "configuration-error"
    
    def test_unknown_jurisdiction_value_raises(self, rule_table):
        with pytest.raises(ConfigException):
            rule_table.rules("ATLANTIS")
    
    def test_verify_complete_names_missing(self):
        default = build_default_rule_table()
        partial = JurisdictionRuleTable({
            j: default.rules(j) for j in Jurisdiction if j != Jurisdiction.GUERNSEY
        })
        with pytest.raises(ConfigException, match="GUERNSEY"):
            partial.verify_complete()
    
    def test_non_positive_timescale_rejected(self):
        with pytest.raises(ConfigException):
            JurisdictionRules(
                jurisdiction=Jurisdiction.JERSEY,
                display_name="Jersey",
                regulator="Jersey Care Commission",
                valid_legal_statuses=frozenset({LegalStatus.CARE_ORDER_JERSEY}),
                review_timescales=ReviewTimescales(first=0, second=90, subsequent=180),
                health_assessment_days=28,
                pep_days=28
            )
    
    def test_rules_are_immutable(self, rule_table):
        rules = rule_table.rules(Jurisdiction.ENGLAND)
        with pytest.raises(AttributeError):
            rules.pep_days = 1
