"""Domain models and rules for the custody ledger.

The asset model, its canonical codec and the ledger operations live here,
together with the ``StateStore`` interface they are written against. Concrete
stores are kept in ``services`` and ``db`` so the rules can be exercised
without a database.
"""

__all__ = [
    "asset",
    "asset_ledger",
    "errors",
    "state",
]
