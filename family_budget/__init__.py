"""
Family Budget - Source Package

Budget aggregation and reporting for households sharing one ledger.

DESIGN PRINCIPLES:
1. Spend is always derived from transactions, never stored
2. Permission and lock checks happen before any write
3. Every mutation is auditable, but auditing never blocks a mutation
4. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Family Budget Team"
