"""web_store package initializer

Provisioning, CRUD helpers and the sample run for the ``web_store.products``
collection. Run the sample flow with ``python -m web_store.run_demo``.
"""

__all__ = [
    "connect_db",
    "create_collections",
    "crud",
    "errors",
    "models",
    "run_demo",
    "sample_data",
    "schema",
]
