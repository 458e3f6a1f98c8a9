"""Repository layer for Cohort.

``protocols`` defines the storage interface; ``postgres`` holds the
SQLAlchemy implementation. The default in-memory store lives in
``cohort.registration.store``.
"""
