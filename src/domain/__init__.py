"""
Domain layer for email reconciliation business logic.

This layer contains:
- Data models (type-safe structures)
- Reconciliation engine (normalize, resolve preferred, match login)
- Default policy (caller-side fallback for unresolved preferences)
- Sync pipeline (explicit success/failure handling per SQS message)
"""
