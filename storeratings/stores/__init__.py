"""Data stores for persistence.

Stores handle:
- Relational store: DB engine, sessions, transactions

No business/authorization logic in stores - that belongs in services.
"""
