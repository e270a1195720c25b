"""
Data access layer.

Repositories flush without committing; services own the transaction.
"""
