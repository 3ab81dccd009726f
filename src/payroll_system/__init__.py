"""Attendance, salary ledger and cashbook reconciliation service."""
