"""
Module ORM Registry (``rental_modules._orm_registry``).

Responsibility
--------------
Ensure every SQLAlchemy ORM model is imported so that ``Base.metadata``
holds all table definitions before ``create_tables()`` runs.

Usage
-----
``rental_kernel.db.engine.create_tables`` and ``tests/conftest.py`` call
``import_all_orm_models()``; repeated calls are harmless.
"""


def import_all_orm_models() -> None:
    """Import kernel models and every ``rental_modules.*.orm`` module."""
    # Kernel tables first (tenant_policies, workflow_transitions)
    import rental_kernel.models  # noqa: F401
    # fmt: off
    import rental_modules.properties.orm  # noqa: F401
    import rental_modules.leasing.orm  # noqa: F401
    import rental_modules.billing.orm  # noqa: F401
    import rental_modules.prospects.orm  # noqa: F401
    import rental_modules.deposits.orm  # noqa: F401
    # fmt: on
