"""
Rental domain modules.

Each subpackage owns one entity family: enums and pure rules in
``models.py``, status machines in ``workflows.py``, ORM tables in ``orm.py``
and a thin service over ``EntityStore`` in ``service.py``.
"""
