"""
LifeOS - Household Source Package

Personal finance and household tracking: recurring bills, maintenance
schedules and the ledger they write to.

DESIGN PRINCIPLES:
1. Date logic is pure and takes "now" as a parameter
2. A single bad record never breaks a list
3. Every user action is auditable
4. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "LifeOS Team"
