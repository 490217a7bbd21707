"""
Property Finance - Source Package

Back-office core for tracking property-management finances:
transactions, payroll runs, employees and the summary metrics
derived from them.

DESIGN PRINCIPLES:
1. Every transaction starts PENDING and is approved explicitly
2. Fail early, fail visibly
3. Metrics are pure functions of the stored data
4. Every mutation is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Property Finance Team"
