"""
Merid leave engine.

Leave request lifecycle, approval workflow, delegation and balance
ledger for multi-office organizations.
"""

__version__ = "1.0.0"
