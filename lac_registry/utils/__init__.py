# SPDX-License-Identifier: Apache-2.0

"""
Utility helpers for the LAC registry.
"""

from .clock import Clock, SystemClock, FixedClock

__all__ = ["Clock", "SystemClock", "FixedClock"]
