"""
BaseService -- abstract base for session-bound kernel services.

Services receive a SQLAlchemy ``Session`` from their caller and persist via
``session.flush()``.  They never commit or roll back: the tenant-pass
executor (or the test harness, or the CLI's ``session_scope``) owns the
transaction boundary, so every mutation of one rule-module pass lands in a
single commit.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from rental_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for kernel services.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
    """

    def __init__(self, session: Session):
        self.session = session
