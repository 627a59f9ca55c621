# SPDX-License-Identifier: Apache-2.0

"""
Domain logic package for the LAC registry.

This package contains the jurisdiction rule table and pure business logic
functions with no side effects. All domain functions are pure and testable
without external dependencies.
"""
