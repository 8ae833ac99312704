"""
Tests for the rule modules in rental_batch.tasks.

Each module runs directly against a TenantRun built on the test session,
under the system actor, as the executor would call it.  Idempotency is
checked by running a module twice.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from rental_kernel.domain.context import SYSTEM_ACTOR_ID, CallerContext
from rental_kernel.domain.policy import TenantPolicy
from rental_kernel.services.transition_log import TransitionLog
from rental_modules.billing.models import InvoiceStatus
from rental_modules.deposits.models import PoolStatus
from rental_modules.leasing.models import LeaseOfferStatus, LeaseStatus, RenewalStatus
from rental_modules.prospects.models import (
    ApplicationStatus,
    ProspectStatus,
    TourStatus,
)

from rental_batch.tasks.base import RuleModule, TenantRun
from rental_batch.tasks.billing_tasks import InvoiceAgingModule, PaymentReminderModule
from rental_batch.tasks.deposit_tasks import DividendTriggerModule
from rental_batch.tasks.leasing_tasks import (
    LeaseExpiryModule,
    OfferExpiryModule,
    RenewalLadderModule,
    UpcomingExpirationsModule,
)
from rental_batch.tasks.prospect_tasks import ApplicationExpiryModule, TourNoShowModule
from rental_batch.tasks.reporting_tasks import DailyPaymentTotalModule, InspectionsDueModule

from tests.conftest import TEST_NOW, RecordingNotifier

TODAY = TEST_NOW.date()


@pytest.fixture
def make_run(session, stores, notifier, tenant_id):
    def _make(policy: TenantPolicy | None = None, as_of: datetime = TEST_NOW):
        return TenantRun(
            session=session,
            ctx=CallerContext.system(tenant_id),
            policy=policy or TenantPolicy(tenant_id=tenant_id),
            stores=stores,
            notifier=notifier,
            as_of=as_of,
        )

    return _make


# =============================================================================
# Protocol conformance
# =============================================================================


class TestProtocol:
    @pytest.mark.parametrize(
        "module",
        [
            InvoiceAgingModule(),
            PaymentReminderModule(),
            RenewalLadderModule(),
            LeaseExpiryModule(),
            OfferExpiryModule(),
            UpcomingExpirationsModule(),
            ApplicationExpiryModule(),
            TourNoShowModule(),
            DividendTriggerModule(),
            DailyPaymentTotalModule(),
            InspectionsDueModule(),
        ],
        ids=lambda m: m.module_key,
    )
    def test_is_rule_module(self, module):
        assert isinstance(module, RuleModule)
        assert module.description


# =============================================================================
# Invoice aging and late fees
# =============================================================================


class TestInvoiceAging:
    def test_overdue_with_capped_fee(self, make_run, build, ctx):
        invoice = build.invoice(ctx, amount=Decimal("1000.00"), due_on=date(2024, 6, 1))

        outcome = InvoiceAgingModule().run(make_run())

        assert invoice.status == InvoiceStatus.OVERDUE.value
        assert invoice.amount == Decimal("1050.00")
        assert invoice.late_fee_amount == Decimal("50.00")
        assert invoice.late_fee_applied is True
        assert invoice.late_fee_applied_on == TEST_NOW
        assert "Late fee of $50.00 applied on 2024-06-15" in invoice.notes
        assert invoice.updated_by_id == SYSTEM_ACTOR_ID
        assert outcome.details == {"marked_overdue": 1, "late_fees_applied": 1}
        assert outcome.changed == 2

    def test_fee_applied_once(self, make_run, build, ctx):
        invoice = build.invoice(ctx, amount=Decimal("1000.00"), due_on=date(2024, 6, 1))
        module = InvoiceAgingModule()

        module.run(make_run())
        second = module.run(make_run(as_of=TEST_NOW + timedelta(days=1)))

        assert second.changed == 0
        assert invoice.amount == Decimal("1050.00")
        assert invoice.notes.count("Late fee") == 1

    def test_within_grace_marked_overdue_without_fee(self, make_run, build, ctx):
        invoice = build.invoice(ctx, due_on=date(2024, 6, 13))

        outcome = InvoiceAgingModule().run(make_run())

        assert invoice.status == InvoiceStatus.OVERDUE.value
        assert invoice.late_fee_applied is False
        assert invoice.amount == Decimal("1000.00")
        assert outcome.details == {"marked_overdue": 1, "late_fees_applied": 0}

    def test_fee_follows_once_grace_passes(self, make_run, build, ctx):
        invoice = build.invoice(ctx, due_on=date(2024, 6, 13))
        module = InvoiceAgingModule()
        module.run(make_run())

        later = module.run(make_run(as_of=TEST_NOW + timedelta(days=2)))

        assert later.details == {"marked_overdue": 0, "late_fees_applied": 1}
        assert invoice.amount == Decimal("1050.00")

    def test_small_invoice_fee_is_percentage(self, make_run, build, ctx):
        invoice = build.invoice(ctx, amount=Decimal("300.00"), due_on=date(2024, 6, 1))

        InvoiceAgingModule().run(make_run())

        assert invoice.late_fee_amount == Decimal("15.00")
        assert invoice.amount == Decimal("315.00")

    @pytest.mark.parametrize(
        "status",
        [InvoiceStatus.CANCELLED, InvoiceStatus.PAID, InvoiceStatus.PARTIAL],
    )
    def test_other_statuses_untouched(self, make_run, build, ctx, status):
        invoice = build.invoice(ctx, due_on=date(2024, 5, 1), status=status.value)

        outcome = InvoiceAgingModule().run(make_run())

        assert invoice.status == status.value
        assert invoice.amount == Decimal("1000.00")
        assert outcome.changed == 0

    def test_fees_disabled(self, make_run, build, ctx, tenant_id):
        invoice = build.invoice(ctx, due_on=date(2024, 6, 1))
        policy = TenantPolicy(tenant_id=tenant_id, late_fee_enabled=False)

        InvoiceAgingModule().run(make_run(policy))

        assert invoice.status == InvoiceStatus.OVERDUE.value
        assert invoice.late_fee_applied is False

    def test_manual_fee_policy(self, make_run, build, ctx, tenant_id):
        invoice = build.invoice(ctx, due_on=date(2024, 6, 1))
        policy = TenantPolicy(tenant_id=tenant_id, late_fee_auto_apply=False)

        InvoiceAgingModule().run(make_run(policy))

        assert invoice.late_fee_applied is False

    def test_other_tenant_untouched(self, make_run, build, other_ctx):
        invoice = build.invoice(other_ctx, due_on=date(2024, 6, 1))

        InvoiceAgingModule().run(make_run())

        assert invoice.status == InvoiceStatus.PENDING.value

    def test_transitions_recorded(self, make_run, build, session, stores, ctx):
        invoice = build.invoice(ctx, due_on=date(2024, 6, 1))

        InvoiceAgingModule().run(make_run())

        history = TransitionLog(session, stores).history(ctx, "Invoice", invoice.id)
        assert sorted(h.action for h in history) == ["apply_late_fee", "mark_overdue"]
        assert all(h.created_by_id == SYSTEM_ACTOR_ID for h in history)


# =============================================================================
# Payment reminders
# =============================================================================


class TestPaymentReminders:
    def test_reminds_once(self, make_run, build, ctx, notifier, tenant_id):
        invoice = build.invoice(ctx, due_on=date(2024, 6, 17), invoice_number="INV-7")
        module = PaymentReminderModule()

        first = module.run(make_run())
        second = module.run(make_run())

        assert first.changed == 1
        assert second.changed == 0
        assert invoice.reminder_sent is True
        assert invoice.reminder_sent_on == TEST_NOW
        assert notifier.titles == ["Payment Reminder"]
        sent_tenant, recipients, _, body = notifier.sent[0]
        assert sent_tenant == tenant_id
        assert recipients.everyone
        assert "INV-7" in body

    def test_outside_window(self, make_run, build, ctx, notifier):
        build.invoice(ctx, due_on=date(2024, 6, 19))

        assert PaymentReminderModule().run(make_run()).changed == 0
        assert notifier.sent == []

    def test_disabled(self, make_run, build, ctx, tenant_id):
        build.invoice(ctx, due_on=date(2024, 6, 16))
        policy = TenantPolicy(tenant_id=tenant_id, payment_reminder_enabled=False)

        outcome = PaymentReminderModule().run(make_run(policy))

        assert outcome.skipped_reason == "payment reminders disabled"

    def test_failed_delivery_keeps_marker(
        self, session, stores, build, ctx, tenant_id, captured_logs,
    ):
        invoice = build.invoice(ctx, due_on=date(2024, 6, 16))
        run = TenantRun(
            session=session,
            ctx=CallerContext.system(tenant_id),
            policy=TenantPolicy(tenant_id=tenant_id),
            stores=stores,
            notifier=RecordingNotifier(fail=True),
            as_of=TEST_NOW,
        )

        outcome = PaymentReminderModule().run(run)

        assert outcome.changed == 1
        assert invoice.reminder_sent is True
        assert any(r["message"] == "notification_failed" for r in captured_logs())


# =============================================================================
# Renewal ladder
# =============================================================================


class TestRenewalLadder:
    def test_first_notice_at_90_days(self, make_run, build, ctx, notifier):
        unit = build.unit(ctx, address="7 Oak Lane", unit_number="2B")
        lease = build.lease(ctx, unit, end_date=date(2024, 9, 13))

        outcome = RenewalLadderModule().run(make_run())

        assert lease.renewal_notice_sent is True
        assert lease.renewal_notice_sent_on == TEST_NOW
        assert lease.renewal_status == RenewalStatus.PENDING.value
        assert outcome.details == {"first_notice": 1}
        assert notifier.titles == ["90-Day Lease Renewal Notification"]
        assert "7 Oak Lane #2B" in notifier.sent[0][3]

    def test_window_tolerance(self, make_run, build, ctx):
        unit = build.unit(ctx)
        inside = build.lease(ctx, unit, end_date=date(2024, 9, 18))
        outside = build.lease(
            ctx, build.unit(ctx), end_date=date(2024, 9, 19),
        )

        RenewalLadderModule().run(make_run())

        assert inside.renewal_notice_sent is True
        assert outside.renewal_notice_sent is False

    def test_reminder_requires_first_notice(self, make_run, build, ctx, notifier):
        lease = build.lease(ctx, build.unit(ctx), end_date=date(2024, 8, 14))

        outcome = RenewalLadderModule().run(make_run())

        assert lease.renewal_reminder_sent_on is None
        assert outcome.changed == 0
        assert notifier.sent == []

    def test_reminder_at_60_days(self, make_run, build, ctx, notifier):
        lease = build.lease(
            ctx, build.unit(ctx), end_date=date(2024, 8, 14),
            renewal_notice_sent=True,
            renewal_status=RenewalStatus.PENDING.value,
        )

        outcome = RenewalLadderModule().run(make_run())

        assert lease.renewal_reminder_sent_on == TEST_NOW
        assert outcome.details == {"reminder": 1}
        assert notifier.titles == ["60-Day Lease Renewal Reminder"]

    def test_final_notice_only_while_pending(self, make_run, build, ctx, notifier):
        pending = build.lease(
            ctx, build.unit(ctx), end_date=date(2024, 7, 15),
            renewal_notice_sent=True, renewal_reminder_sent_on=TEST_NOW,
            renewal_status=RenewalStatus.PENDING.value,
        )
        accepted = build.lease(
            ctx, build.unit(ctx), end_date=date(2024, 7, 15),
            renewal_notice_sent=True, renewal_reminder_sent_on=TEST_NOW,
            renewal_status=RenewalStatus.ACCEPTED.value,
        )

        outcome = RenewalLadderModule().run(make_run())

        assert pending.renewal_final_notice_sent_on == TEST_NOW
        assert accepted.renewal_final_notice_sent_on is None
        assert outcome.details == {"final_notice": 1}
        assert notifier.titles == ["30-Day Lease Renewal Final Notice"]

    def test_idempotent(self, make_run, build, ctx, notifier):
        build.lease(ctx, build.unit(ctx), end_date=date(2024, 9, 13))
        module = RenewalLadderModule()

        module.run(make_run())
        again = module.run(make_run())

        assert again.changed == 0
        assert len(notifier.sent) == 1

    def test_one_notification_per_window(self, make_run, build, ctx, notifier):
        build.lease(ctx, build.unit(ctx, address="1 A St"), end_date=date(2024, 9, 12))
        build.lease(ctx, build.unit(ctx, address="2 B St"), end_date=date(2024, 9, 14))

        outcome = RenewalLadderModule().run(make_run())

        assert outcome.details == {"first_notice": 2}
        assert len(notifier.sent) == 1
        body = notifier.sent[0][3]
        assert "1 A St" in body and "2 B St" in body

    def test_inactive_lease_ignored(self, make_run, build, ctx):
        lease = build.lease(
            ctx, build.unit(ctx), end_date=date(2024, 9, 13),
            status=LeaseStatus.NOTICE_GIVEN.value,
        )

        RenewalLadderModule().run(make_run())

        assert lease.renewal_notice_sent is False


# =============================================================================
# Lease and offer expiry
# =============================================================================


class TestLeaseExpiry:
    def test_expires_past_end_date(self, make_run, build, ctx):
        active = build.lease(ctx, build.unit(ctx), end_date=date(2024, 6, 14))
        notice = build.lease(
            ctx, build.unit(ctx), end_date=date(2024, 6, 10),
            status=LeaseStatus.NOTICE_GIVEN.value,
        )
        current = build.lease(ctx, build.unit(ctx), end_date=date(2024, 6, 15))
        rolling = build.lease(
            ctx, build.unit(ctx), end_date=date(2024, 5, 1),
            status=LeaseStatus.MONTH_TO_MONTH.value,
        )

        outcome = LeaseExpiryModule().run(make_run())

        assert outcome.changed == 2
        assert active.status == LeaseStatus.EXPIRED.value
        assert notice.status == LeaseStatus.EXPIRED.value
        assert current.status == LeaseStatus.ACTIVE.value
        assert rolling.status == LeaseStatus.MONTH_TO_MONTH.value

    def test_idempotent(self, make_run, build, ctx):
        build.lease(ctx, build.unit(ctx), end_date=date(2024, 6, 14))
        module = LeaseExpiryModule()
        module.run(make_run())
        assert module.run(make_run()).changed == 0


class TestOfferExpiry:
    def test_expires_due_offers(self, make_run, build, ctx):
        unit = build.unit(ctx)
        due = build.offer(ctx, unit)
        future = build.offer(ctx, unit, expires_on=TEST_NOW + timedelta(days=1))

        outcome = OfferExpiryModule().run(make_run())

        assert outcome.details == {"expired": 1, "failed": 0}
        assert due.status == LeaseOfferStatus.EXPIRED.value
        assert future.status == LeaseOfferStatus.PENDING.value


class TestUpcomingExpirations:
    def test_counts_within_horizon(self, make_run, build, ctx):
        for end in (date(2024, 6, 20), date(2024, 7, 15), date(2024, 7, 16), date(2024, 6, 1)):
            build.lease(ctx, build.unit(ctx), end_date=end)

        outcome = UpcomingExpirationsModule().run(make_run())

        assert outcome.details == {"expiring": 2}
        assert outcome.changed == 0


# =============================================================================
# Prospects
# =============================================================================


class TestApplicationExpiry:
    def test_expires_undecided(self, make_run, build, ctx):
        unit = build.unit(ctx)
        submitted = build.application(ctx, unit, build.prospect(ctx))
        screening = build.application(
            ctx, unit, build.prospect(ctx), status=ApplicationStatus.SCREENING.value,
        )
        approved = build.application(
            ctx, unit, build.prospect(ctx), status=ApplicationStatus.APPROVED.value,
        )
        open_ = build.application(
            ctx, unit, build.prospect(ctx), expires_on=TEST_NOW + timedelta(days=3),
        )

        outcome = ApplicationExpiryModule().run(make_run())

        assert outcome.changed == 2
        assert submitted.status == ApplicationStatus.EXPIRED.value
        assert screening.status == ApplicationStatus.EXPIRED.value
        assert approved.status == ApplicationStatus.APPROVED.value
        assert open_.status == ApplicationStatus.SUBMITTED.value


class TestTourNoShow:
    def test_past_grace_reverts_prospect(self, make_run, build, ctx, tenant_id):
        policy = TenantPolicy(tenant_id=tenant_id, tour_no_show_grace_period_hours=4)
        prospect = build.prospect(ctx, status=ProspectStatus.TOUR_SCHEDULED.value)
        tour = build.tour(ctx, build.unit(ctx), prospect, scheduled_on=TEST_NOW - timedelta(hours=5))

        outcome = TourNoShowModule().run(make_run(policy))

        assert tour.status == TourStatus.NO_SHOW.value
        assert tour.outcome_notes == "Tour not completed within grace period"
        assert prospect.status == ProspectStatus.LEAD.value
        assert outcome.details == {"no_shows": 1, "prospects_reverted": 1}

    def test_within_grace_untouched(self, make_run, build, ctx, tenant_id):
        policy = TenantPolicy(tenant_id=tenant_id, tour_no_show_grace_period_hours=4)
        prospect = build.prospect(ctx, status=ProspectStatus.TOUR_SCHEDULED.value)
        tour = build.tour(ctx, build.unit(ctx), prospect, scheduled_on=TEST_NOW - timedelta(hours=3))

        outcome = TourNoShowModule().run(make_run(policy))

        assert tour.status == TourStatus.SCHEDULED.value
        assert outcome.changed == 0

    def test_prospect_with_another_tour_stays(self, make_run, build, ctx, tenant_id):
        policy = TenantPolicy(tenant_id=tenant_id, tour_no_show_grace_period_hours=4)
        unit = build.unit(ctx)
        prospect = build.prospect(ctx, status=ProspectStatus.TOUR_SCHEDULED.value)
        missed = build.tour(ctx, unit, prospect, scheduled_on=TEST_NOW - timedelta(hours=5))
        build.tour(ctx, unit, prospect, scheduled_on=TEST_NOW + timedelta(days=1))

        outcome = TourNoShowModule().run(make_run(policy))

        assert missed.status == TourStatus.NO_SHOW.value
        assert prospect.status == ProspectStatus.TOUR_SCHEDULED.value
        assert outcome.details == {"no_shows": 1, "prospects_reverted": 0}


# =============================================================================
# Deposit dividends
# =============================================================================

JAN_3 = datetime(2024, 1, 3, 0, 0)


class TestDividendTrigger:
    def test_calculates_prior_year_in_window(self, make_run, build, ctx):
        build.deposit(ctx, build.lease(ctx, build.unit(ctx)))
        build.pool(
            ctx, 2023, total_earnings=Decimal("1000"),
            organization_share=Decimal("200"), tenant_share_total=Decimal("800"),
        )

        outcome = DividendTriggerModule().run(make_run(as_of=JAN_3))

        assert outcome.changed == 1
        assert outcome.details == {"year": 2023, "total": "800.00"}

    @pytest.mark.parametrize(
        "as_of", [TEST_NOW, datetime(2024, 1, 8), datetime(2023, 12, 31)],
    )
    def test_outside_window(self, make_run, as_of):
        outcome = DividendTriggerModule().run(make_run(as_of=as_of))
        assert outcome.skipped_reason == "outside dividend window"

    def test_investment_disabled(self, make_run, tenant_id):
        policy = TenantPolicy(tenant_id=tenant_id, security_deposit_investment_enabled=False)
        outcome = DividendTriggerModule().run(make_run(policy, as_of=JAN_3))
        assert outcome.skipped_reason == "deposit investment disabled"

    def test_missing_pool(self, make_run):
        outcome = DividendTriggerModule().run(make_run(as_of=JAN_3))
        assert outcome.skipped_reason == "no investment pool"

    def test_settled_pool(self, make_run, build, ctx):
        build.pool(ctx, 2023, total_earnings=Decimal("10"), status=PoolStatus.CLOSED.value)
        outcome = DividendTriggerModule().run(make_run(as_of=JAN_3))
        assert outcome.skipped_reason == "pool already settled"

    def test_zero_earnings(self, make_run, build, ctx):
        build.pool(ctx, 2023)
        outcome = DividendTriggerModule().run(make_run(as_of=JAN_3))
        assert outcome.skipped_reason == "no earnings recorded"


# =============================================================================
# Reporting
# =============================================================================


class TestDailyPaymentTotal:
    def test_totals_todays_payments(self, make_run, build, ctx, captured_logs):
        invoice = build.invoice(ctx)
        build.payment(ctx, invoice, amount=Decimal("100.00"))
        build.payment(ctx, invoice, amount=Decimal("50.00"))
        build.payment(ctx, invoice, amount=Decimal("75.00"), paid_on=TODAY - timedelta(days=1))

        outcome = DailyPaymentTotalModule().run(make_run())

        assert outcome.details == {"payment_count": 2, "total": "150.00"}
        assert outcome.changed == 0
        line = [r for r in captured_logs() if r["message"] == "daily_payment_total"][0]
        assert line["payment_count"] == 2
        assert line["total"] == "150.00"
        assert line["date"] == "2024-06-15"


# =============================================================================
# Routine inspections digest
# =============================================================================


class TestInspectionsDue:
    def test_counts_overdue_and_due_soon(
        self, make_run, build, ctx, other_ctx, captured_logs,
    ):
        build.unit(ctx, address="1 Overdue Way", next_routine_inspection_due_on=date(2024, 6, 1))
        build.unit(ctx, address="2 Late Lane", next_routine_inspection_due_on=date(2024, 6, 10))
        build.unit(ctx, next_routine_inspection_due_on=TODAY)
        build.unit(ctx, next_routine_inspection_due_on=TODAY + timedelta(days=30))
        build.unit(ctx, next_routine_inspection_due_on=TODAY + timedelta(days=31))
        build.unit(ctx)
        build.unit(other_ctx, next_routine_inspection_due_on=date(2024, 1, 1))

        outcome = InspectionsDueModule().run(make_run())

        assert outcome.details == {"overdue": 2, "due_soon": 2}
        assert outcome.changed == 0
        logs = captured_logs()
        summary = [r for r in logs if r["message"] == "routine_inspections_overdue"]
        assert summary[0]["count"] == 2
        assert summary[0]["level"] == "WARNING"
        details = [r for r in logs if r["message"] == "routine_inspection_overdue"]
        assert [d["address"] for d in details] == ["1 Overdue Way", "2 Late Lane"]
        assert details[0]["days_overdue"] == 14
        assert details[0]["due_on"] == "2024-06-01"
        soon = [r for r in logs if r["message"] == "routine_inspections_due_soon"]
        assert soon[0]["count"] == 2

    def test_detail_lines_capped(self, make_run, build, ctx, captured_logs):
        for offset in range(1, 8):
            build.unit(
                ctx,
                address=f"{offset} Oak Court",
                next_routine_inspection_due_on=TODAY - timedelta(days=offset),
            )

        outcome = InspectionsDueModule().run(make_run())

        assert outcome.details["overdue"] == 7
        details = [
            r for r in captured_logs() if r["message"] == "routine_inspection_overdue"
        ]
        assert len(details) == InspectionsDueModule.DETAIL_LIMIT
        # Earliest due first.
        assert details[0]["address"] == "7 Oak Court"

    def test_custom_horizon(self, make_run, build, ctx):
        build.unit(ctx, next_routine_inspection_due_on=TODAY + timedelta(days=10))
        outcome = InspectionsDueModule(days_ahead=7).run(make_run())
        assert outcome.details == {"overdue": 0, "due_soon": 0}

    def test_nothing_due_is_silent(self, make_run, build, ctx, captured_logs):
        build.unit(ctx)
        outcome = InspectionsDueModule().run(make_run())
        assert outcome.details == {"overdue": 0, "due_soon": 0}
        assert not any("inspection" in r["message"] for r in captured_logs())
