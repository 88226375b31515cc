"""Audit logging package."""

from lifeos.audit.logger import AuditLogger

__all__ = ["AuditLogger"]
