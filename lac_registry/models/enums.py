# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Enumeration types for the LAC registry.
"""

from enum import Enum


class Jurisdiction(str, Enum):
    """British Isles jurisdiction determining the regulatory framework."""
    ENGLAND = "ENGLAND"                    # Ofsted
    WALES = "WALES"                        # Care Inspectorate Wales
    SCOTLAND = "SCOTLAND"                  # Care Inspectorate
    NORTHERN_IRELAND = "NORTHERN_IRELAND"  # RQIA
    IRELAND = "IRELAND"                    # HIQA
    JERSEY = "JERSEY"                      # Jersey Care Commission
    GUERNSEY = "GUERNSEY"                  # Committee for Health & Social Care
    ISLE_OF_MAN = "ISLE_OF_MAN"            # Registration and Inspection Unit


class LegalStatus(str, Enum):
    """Court order or statutory basis under which a child is in care."""
    # England & Wales (Children Act 1989)
    SECTION_20 = "SECTION_20"
    SECTION_31 = "SECTION_31"
    SECTION_38 = "SECTION_38"
    POLICE_PROTECTION = "POLICE_PROTECTION"
    EMERGENCY_PROTECTION_ORDER = "EMERGENCY_PROTECTION_ORDER"

    # Scotland (Children's Hearings (Scotland) Act 2011)
    COMPULSORY_SUPERVISION_ORDER = "COMPULSORY_SUPERVISION_ORDER"
    PERMANENCE_ORDER = "PERMANENCE_ORDER"
    CHILD_PROTECTION_ORDER = "CHILD_PROTECTION_ORDER"

    # Northern Ireland (Children (NI) Order 1995)
    CARE_ORDER_NI = "CARE_ORDER_NI"
    RESIDENCE_ORDER_NI = "RESIDENCE_ORDER_NI"
    EMERGENCY_PROTECTION_ORDER_NI = "EMERGENCY_PROTECTION_ORDER_NI"

    # Republic of Ireland (Child Care Act 1991)
    CARE_ORDER_IE = "CARE_ORDER_IE"
    INTERIM_CARE_ORDER_IE = "INTERIM_CARE_ORDER_IE"
    EMERGENCY_CARE_ORDER_IE = "EMERGENCY_CARE_ORDER_IE"
    VOLUNTARY_CARE_IE = "VOLUNTARY_CARE_IE"

    # Jersey (Children (Jersey) Law 2002)
    CARE_ORDER_JERSEY = "CARE_ORDER_JERSEY"
    SUPERVISION_ORDER_JERSEY = "SUPERVISION_ORDER_JERSEY"

    # Guernsey (Children (Guernsey and Alderney) Law 2008)
    CARE_ORDER_GUERNSEY = "CARE_ORDER_GUERNSEY"
    SUPERVISION_ORDER_GUERNSEY = "SUPERVISION_ORDER_GUERNSEY"

    # Isle of Man (Children and Young Persons Act 2001)
    CARE_ORDER_IOM = "CARE_ORDER_IOM"
    SUPERVISION_ORDER_IOM = "SUPERVISION_ORDER_IOM"

    # Universal
    REMAND = "REMAND"
    CRIMINAL_JUSTICE = "CRIMINAL_JUSTICE"
    IMMIGRATION_DETENTION = "IMMIGRATION_DETENTION"


class ChildStatus(str, Enum):
    """Placement status of a child."""
    ACTIVE = "ACTIVE"
    DISCHARGED = "DISCHARGED"
    TRANSFERRED = "TRANSFERRED"
    MISSING = "MISSING"
    HOSPITAL = "HOSPITAL"
    ON_LEAVE = "ON_LEAVE"


class PlacementType(str, Enum):
    """Placement type classification."""
    LONG_TERM = "LONG_TERM"
    SHORT_TERM = "SHORT_TERM"
    EMERGENCY = "EMERGENCY"
    RESPITE = "RESPITE"
    SHORT_BREAK = "SHORT_BREAK"
    SECURE = "SECURE"
    SEMI_INDEPENDENT = "SEMI_INDEPENDENT"
    MOTHER_AND_BABY = "MOTHER_AND_BABY"
    THERAPEUTIC = "THERAPEUTIC"


class TransitionOutcome(str, Enum):
    """Result of checking a legal status change against the transition rules."""
    ALLOWED = "allowed"
    REJECTED = "rejected"
    UNDEFINED = "undefined"


class UndefinedTransitionPolicy(str, Enum):
    """How a legal status change with no transition rule is handled."""
    REJECT = "reject"
    ALLOW = "allow"


class ChildEventType(str, Enum):
    """Domain events emitted by lifecycle operations."""
    CHILD_ADMITTED = "ChildAdmitted"
    CHILD_DISCHARGED = "ChildDischarged"
    CHILD_TRANSFERRED = "ChildTransferred"
    LEGAL_STATUS_CHANGED = "LegalStatusChanged"
    CHILD_MARKED_MISSING = "ChildMarkedMissing"
    CHILD_RETURNED = "ChildReturned"
    REVIEWS_SCHEDULED = "ReviewsScheduled"
    CHILD_PROFILE_UPDATED = "ChildProfileUpdated"
