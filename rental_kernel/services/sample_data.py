"""
Sample-data taint propagation.

Responsibility:
    Decide, while a record is being created, whether it inherits the
    "sample data" marker from one of its parents.

Architecture position:
    Kernel > Services.  Called only from ``EntityStore.create``; update
    paths never re-infer the flag.

Contract:
    ``SampleLinkRegistry`` is an explicit table from child model to an
    ordered tuple of ``ParentLink(field_name, parent_model)``.  The resolver
    walks that tuple in order, does one direct lookup per non-empty link
    against the parent's own table, and stops at the first sample parent.
    Only direct parents are consulted.

Failure modes:
    Lookup failures (parent missing, database error) are raised as
    ``TransientLookupError`` and swallowed here: the link counts as "not
    sample", a WARNING is logged and ``lookup_failures`` is incremented so
    the miss stays visible.  A failure never aborts the create.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rental_kernel.domain.context import CallerContext
from rental_kernel.exceptions import TransientLookupError
from rental_kernel.logging_config import get_logger

logger = get_logger("services.sample_data")


@dataclass(frozen=True)
class ParentLink:
    """A reference field on a child pointing at one parent model."""

    field_name: str
    parent_model: type

    @property
    def parent_type(self) -> str:
        return self.parent_model.__name__.removesuffix("Model")


class SampleLinkRegistry:
    """Child model -> ordered parent links.

    Contract:
        - ``register()`` raises ValueError on duplicate children, on a
          field the child lacks, or on a parent without ``is_sample_data``.
        - ``links_for()`` returns ``()`` for unregistered children.
    """

    def __init__(self) -> None:
        self._links: dict[type, tuple[ParentLink, ...]] = {}

    def register(self, child_model: type, *links: ParentLink) -> None:
        if child_model in self._links:
            raise ValueError(
                f"Parent links for {child_model.__name__} are already registered"
            )
        for link in links:
            if not hasattr(child_model, link.field_name):
                raise ValueError(
                    f"{child_model.__name__} has no field '{link.field_name}'"
                )
            if not hasattr(link.parent_model, "is_sample_data"):
                raise ValueError(
                    f"{link.parent_model.__name__} cannot carry a sample-data flag"
                )
        self._links[child_model] = tuple(links)

    def links_for(self, child_model: type) -> tuple[ParentLink, ...]:
        return self._links.get(child_model, ())

    def __len__(self) -> int:
        return len(self._links)

    def __contains__(self, child_model: type) -> bool:
        return child_model in self._links


class SampleDataResolver:
    """Infers the sample-data flag of a record about to be created."""

    def __init__(self, session: Session, registry: SampleLinkRegistry):
        self._session = session
        self._registry = registry
        self._lookup_failures = 0

    @property
    def lookup_failures(self) -> int:
        """Parent lookups that failed and were treated as "not sample"."""
        return self._lookup_failures

    def infer_sample_flag(self, ctx: CallerContext, record: Any) -> bool:
        if getattr(record, "is_sample_data", False):
            return True

        for link in self._registry.links_for(type(record)):
            parent_id = getattr(record, link.field_name, None)
            if parent_id is None:
                continue
            try:
                if self._parent_is_sample(ctx, link, parent_id):
                    logger.debug(
                        "sample_flag_inherited",
                        extra={
                            "child_type": type(record).__name__,
                            "parent_type": link.parent_type,
                            "parent_id": str(parent_id),
                        },
                    )
                    return True
            except TransientLookupError as exc:
                self._lookup_failures += 1
                logger.warning(
                    "sample_flag_lookup_failed",
                    extra={
                        "child_type": type(record).__name__,
                        "field_name": link.field_name,
                        "parent_type": exc.parent_type,
                        "parent_id": exc.parent_id,
                        "reason": exc.reason,
                        "lookup_failures": self._lookup_failures,
                    },
                )
        return False

    def _parent_is_sample(
        self, ctx: CallerContext, link: ParentLink, parent_id: Any,
    ) -> bool:
        parent = link.parent_model
        stmt = select(parent.is_sample_data).where(parent.id == parent_id)
        if hasattr(parent, "tenant_id") and ctx.tenant_id is not None:
            stmt = stmt.where(parent.tenant_id == ctx.tenant_id)
        try:
            flag = self._session.execute(stmt).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise TransientLookupError(
                link.parent_type, str(parent_id), type(exc).__name__,
            ) from exc
        if flag is None:
            raise TransientLookupError(
                link.parent_type, str(parent_id), "parent not found",
            )
        return bool(flag)
