"""
rental_batch -- Recurring workflow scheduling for the rental back office.

Runs the domain rule modules on fixed triggers (nightly, midnight,
hourly), once per tenant, under the reserved system actor.

Architecture:
    rental_batch/ is a top-level package.  Nothing in rental_kernel/ or
    rental_modules/ imports from it.

Invariants:
    - Clock injection (no datetime.now() calls)
    - Schedule evaluation is pure
    - One tenant x module failure never aborts the rest of the pass
    - At most one pass per trigger in flight
    - Graceful shutdown between tenants
"""
