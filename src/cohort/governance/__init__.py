"""Governance module for Cohort.

Provides the tamper-evident audit trail for registration activity.
"""
