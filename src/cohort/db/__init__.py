"""Database layer for Cohort: async engine management and ORM tables."""
