# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Exception hierarchy for the child lifecycle core.

Every exception carries an HTTP-style status code and an error type
identifier so a transport layer can map it without inspecting messages.
"""

from typing import List, Optional


class LacRegistryException(Exception):
    """Base class for custom application exceptions."""
    
    def __init__(self, message: str, status_code: int = 500, error_type: str = "application-error"):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_type = error_type


class ValidationException(LacRegistryException):
    """Exception for malformed or out-of-range input."""
    
    def __init__(self, message: str, validation_errors: list = None):
        super().__init__(message, 400, "validation-error")
        self.validation_errors = validation_errors or []


class ComplianceViolationException(LacRegistryException):
    """Exception for a legal status that is not valid in a jurisdiction."""
    
    def __init__(
        self,
        message: str,
        legal_status: Optional[str] = None,
        jurisdiction: Optional[str] = None,
        valid_statuses: Optional[List[str]] = None
    ):
        super().__init__(message, 422, "compliance-violation")
        self.legal_status = legal_status
        self.jurisdiction = jurisdiction
        self.valid_statuses = valid_statuses or []


class InvalidTransitionException(LacRegistryException):
    """Exception for a failed state-machine precondition or a rejected legal status change."""
    
    def __init__(self, message: str, error_type: str = "invalid-transition"):
        super().__init__(message, 409, error_type)


class UndefinedTransitionException(InvalidTransitionException):
    """Exception for a legal status change with no transition rule for the jurisdiction."""
    
    def __init__(self, message: str, jurisdiction: Optional[str] = None):
        super().__init__(message, "undefined-transition-rule")
        self.jurisdiction = jurisdiction


class NotFoundException(LacRegistryException):
    """Exception for resource not found errors."""
    
    def __init__(self, message: str):
        super().__init__(message, 404, "resource-not-found")


class ConflictException(LacRegistryException):
    """Exception for resource conflict errors."""
    
    def __init__(self, message: str):
        super().__init__(message, 409, "resource-conflict")


class ConfigException(LacRegistryException):
    """Exception for a jurisdiction with no configured rules."""
    
    def __init__(self, message: str):
        super().__init__(message, 500, "configuration-error")
