# SPDX-License-Identifier: Apache-2.0

"""
LAC Registry - lifecycle management for children in care across the
eight British Isles jurisdictions.
"""

__version__ = "1.0.0"
