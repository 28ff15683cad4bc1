"""Utility functions."""

from src.utils.audit import build_audit_records, log_change

__all__ = [
    "build_audit_records",
    "log_change",
]
