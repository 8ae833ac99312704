"""
Tests for rental_kernel.services.policy_service -- tenant policy rows.
"""

from decimal import Decimal

import pytest

from rental_kernel.exceptions import ValidationFailedError
from rental_kernel.services.policy_service import (
    PolicyReader,
    PolicyService,
    TenantDirectory,
)


class TestProvisioning:
    def test_defaults(self, session, stores, ctx):
        policy = PolicyService(session, stores).provision_tenant(ctx, name="Acme")
        assert policy.tenant_id == ctx.tenant_id
        assert policy.late_fee_grace_period_days == 3
        assert policy.max_late_fee_amount == Decimal("50.00")

    def test_idempotent(self, session, stores, ctx):
        service = PolicyService(session, stores)
        service.provision_tenant(ctx)
        service.provision_tenant(ctx)
        assert TenantDirectory(session).list_tenant_ids() == (ctx.tenant_id,)

    def test_missing_row_reads_defaults(self, session, stores, ctx, captured_logs):
        policy = PolicyService(session, stores).get_policy(ctx)
        assert policy.late_fee_enabled
        assert any(r["message"] == "tenant_policy_missing" for r in captured_logs())

    def test_directory_sorted(self, session, stores, provisioned):
        ctx, other_ctx = provisioned
        assert TenantDirectory(session).list_tenant_ids() == tuple(
            sorted((ctx.tenant_id, other_ctx.tenant_id), key=str)
        )


class TestUpdatePolicy:
    def test_updates_fields(self, session, stores, provisioned):
        ctx, other_ctx = provisioned
        service = PolicyService(session, stores)

        policy = service.update_policy(
            ctx, late_fee_grace_period_days=5, payment_reminder_enabled=False,
        )

        assert policy.late_fee_grace_period_days == 5
        assert not policy.payment_reminder_enabled
        assert PolicyReader(session, stores).get_policy(ctx.tenant_id) == policy
        assert service.get_policy(other_ctx).late_fee_grace_period_days == 3

    def test_unknown_field(self, session, stores, provisioned):
        ctx, _ = provisioned
        with pytest.raises(ValidationFailedError) as exc_info:
            PolicyService(session, stores).update_policy(ctx, late_fee_rate=Decimal("1"))
        assert exc_info.value.code == "VALIDATION"
        assert exc_info.value.errors == ("Unknown policy field: late_fee_rate",)

    def test_tenant_id_not_updatable(self, session, stores, provisioned):
        ctx, other_ctx = provisioned
        with pytest.raises(ValidationFailedError):
            PolicyService(session, stores).update_policy(
                ctx, tenant_id=other_ctx.tenant_id,
            )

    def test_invalid_value_leaves_row_untouched(self, session, stores, provisioned):
        ctx, _ = provisioned
        service = PolicyService(session, stores)

        with pytest.raises(ValidationFailedError, match="between 0 and 1"):
            service.update_policy(ctx, late_fee_percentage=Decimal("1.5"))

        assert service.get_policy(ctx).late_fee_percentage == Decimal("0.05")
