"""
Pytest fixtures for the rental back office test suite.

Provides:
- A file-backed SQLite database per test (one connection per session, so
  executor sessions and test sessions are isolated like on PostgreSQL)
- A naive DeterministicClock (SQLite drops tzinfo on round-trip)
- A StoreFactory wired with the default parent-link registry
- Two provisioned tenants and record builders
- Structured log capture
"""

import json
import logging
from datetime import date, datetime, timedelta
from decimal import Decimal
from io import StringIO
from uuid import UUID, uuid4

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from rental_kernel.db.base import Base
from rental_kernel.domain.clock import DeterministicClock
from rental_kernel.domain.context import CallerContext
from rental_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from rental_kernel.services.entity_store import StoreFactory
from rental_kernel.services.policy_service import PolicyService
from rental_modules._orm_registry import import_all_orm_models
from rental_modules.billing.models import InvoiceStatus
from rental_modules.billing.orm import InvoiceModel, PaymentModel
from rental_modules.deposits.orm import InvestmentPoolModel, SecurityDepositModel
from rental_modules.leasing.models import LeaseOfferStatus, LeaseStatus
from rental_modules.leasing.orm import LeaseModel, LeaseOfferModel
from rental_modules.properties.models import UnitStatus
from rental_modules.properties.orm import ContactModel, UnitModel
from rental_modules.prospects.models import (
    ApplicationStatus,
    ProspectStatus,
    TourStatus,
)
from rental_modules.prospects.orm import (
    ProspectModel,
    RentalApplicationModel,
    TourModel,
)
from rental_modules.sample_links import default_sample_links


# Test actor ID for user-initiated operations
TEST_ACTOR_ID = uuid4()

# Saturday 2024-06-15 02:00 local; naive on purpose
TEST_NOW = datetime(2024, 6, 15, 2, 0, 0)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture rental_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, store):
            store.create(ctx, record)
            logs = captured_logs()
            assert any(r["message"] == "record_created" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("rental_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def engine(tmp_path):
    import_all_orm_models()
    eng = create_engine(
        f"sqlite:///{tmp_path / 'rental.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
def session(session_factory):
    s = session_factory()
    yield s
    s.rollback()
    s.close()


@pytest.fixture
def fresh_session(session_factory):
    """Second session for reading what another unit of work committed."""
    opened = []

    def _open():
        s = session_factory()
        opened.append(s)
        return s

    yield _open
    for s in opened:
        s.close()


@pytest.fixture
def clock():
    return DeterministicClock(TEST_NOW)


@pytest.fixture
def stores(clock):
    return StoreFactory(clock=clock, sample_links=default_sample_links())


# =============================================================================
# Tenants
# =============================================================================


@pytest.fixture
def tenant_id() -> UUID:
    return uuid4()


@pytest.fixture
def other_tenant_id() -> UUID:
    return uuid4()


@pytest.fixture
def ctx(tenant_id) -> CallerContext:
    return CallerContext(tenant_id=tenant_id, actor_id=TEST_ACTOR_ID)


@pytest.fixture
def other_ctx(other_tenant_id) -> CallerContext:
    return CallerContext(tenant_id=other_tenant_id, actor_id=TEST_ACTOR_ID)


@pytest.fixture
def system_ctx(tenant_id) -> CallerContext:
    return CallerContext.system(tenant_id)


@pytest.fixture
def provisioned(session, stores, ctx, other_ctx):
    """Both test tenants with default policy rows, committed."""
    service = PolicyService(session, stores)
    service.provision_tenant(ctx, name="Tenant A")
    service.provision_tenant(other_ctx, name="Tenant B")
    session.commit()
    return ctx, other_ctx


# =============================================================================
# Notifications
# =============================================================================


class RecordingNotifier:
    """Notifier that keeps every notification; can be told to fail."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: list[tuple[UUID, object, str, str]] = []

    def notify(self, tenant_id, recipients, title, body):
        if self.fail:
            raise ConnectionError("notification transport down")
        self.sent.append((tenant_id, recipients, title, body))

    @property
    def titles(self) -> list[str]:
        return [title for _, _, title, _ in self.sent]


@pytest.fixture
def notifier():
    return RecordingNotifier()


# =============================================================================
# Record builders
# =============================================================================


class Builder:
    """Creates records through the entity store with sensible defaults."""

    def __init__(self, session, stores):
        self.session = session
        self.stores = stores

    def _create(self, ctx, model, **fields):
        return self.stores.for_model(self.session, model).create(ctx, model(**fields))

    def unit(self, ctx, **kw):
        kw.setdefault("address", "12 Elm Street")
        kw.setdefault("status", UnitStatus.AVAILABLE.value)
        return self._create(ctx, UnitModel, **kw)

    def contact(self, ctx, **kw):
        kw.setdefault("first_name", "Dana")
        kw.setdefault("last_name", "Reyes")
        return self._create(ctx, ContactModel, **kw)

    def lease(self, ctx, unit, **kw):
        kw.setdefault("start_date", date(2023, 7, 1))
        kw.setdefault("end_date", date(2024, 6, 30))
        kw.setdefault("monthly_rent", Decimal("1200.00"))
        kw.setdefault("status", LeaseStatus.ACTIVE.value)
        return self._create(ctx, LeaseModel, unit_id=unit.id, **kw)

    def invoice(self, ctx, lease=None, **kw):
        kw.setdefault("amount", Decimal("1000.00"))
        kw.setdefault("amount_paid", Decimal("0"))
        kw.setdefault("due_on", date(2024, 6, 1))
        kw.setdefault("status", InvoiceStatus.PENDING.value)
        if lease is not None:
            kw.setdefault("lease_id", lease.id)
            kw.setdefault("unit_id", lease.unit_id)
        return self._create(ctx, InvoiceModel, **kw)

    def payment(self, ctx, invoice, **kw):
        kw.setdefault("amount", Decimal("100.00"))
        kw.setdefault("paid_on", TEST_NOW.date())
        return self._create(ctx, PaymentModel, invoice_id=invoice.id, **kw)

    def prospect(self, ctx, **kw):
        kw.setdefault("first_name", "Sam")
        kw.setdefault("last_name", "Okafor")
        kw.setdefault("status", ProspectStatus.LEAD.value)
        return self._create(ctx, ProspectModel, **kw)

    def tour(self, ctx, unit, prospect, **kw):
        kw.setdefault("scheduled_on", TEST_NOW - timedelta(hours=30))
        kw.setdefault("status", TourStatus.SCHEDULED.value)
        return self._create(
            ctx, TourModel, unit_id=unit.id, prospect_id=prospect.id, **kw,
        )

    def application(self, ctx, unit, prospect, **kw):
        kw.setdefault("status", ApplicationStatus.SUBMITTED.value)
        kw.setdefault("applied_on", TEST_NOW - timedelta(days=40))
        kw.setdefault("expires_on", TEST_NOW - timedelta(days=10))
        return self._create(
            ctx, RentalApplicationModel,
            unit_id=unit.id, prospect_id=prospect.id, **kw,
        )

    def offer(self, ctx, unit, application=None, prospect=None, **kw):
        kw.setdefault("status", LeaseOfferStatus.PENDING.value)
        kw.setdefault("offered_on", TEST_NOW - timedelta(days=5))
        kw.setdefault("expires_on", TEST_NOW - timedelta(hours=1))
        return self._create(
            ctx, LeaseOfferModel,
            unit_id=unit.id,
            application_id=application.id if application is not None else None,
            prospect_id=prospect.id if prospect is not None else None,
            **kw,
        )

    def deposit(self, ctx, lease, **kw):
        kw.setdefault("amount", Decimal("1500.00"))
        kw.setdefault("received_on", date(2022, 12, 20))
        kw.setdefault("in_investment_pool", True)
        kw.setdefault("pool_entry_date", date(2023, 1, 1))
        return self._create(
            ctx, SecurityDepositModel,
            lease_id=lease.id, contact_id=lease.contact_id, **kw,
        )

    def pool(self, ctx, year, **kw):
        kw.setdefault("total_earnings", Decimal("0"))
        return self._create(ctx, InvestmentPoolModel, year=year, **kw)


@pytest.fixture
def build(session, stores):
    return Builder(session, stores)
