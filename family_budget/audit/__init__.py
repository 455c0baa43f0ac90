"""Audit logging package."""

from family_budget.audit.logger import AuditLogger

__all__ = ["AuditLogger"]
