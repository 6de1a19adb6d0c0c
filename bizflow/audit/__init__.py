"""Audit logging package."""

from bizflow.audit.logger import AuditLogger

__all__ = ["AuditLogger"]
