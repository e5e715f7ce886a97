from __future__ import annotations

import logging
from contextlib import closing, contextmanager
from typing import Iterator

from .asset import Asset, CustodianName, build_asset, decode_asset, encode_asset
from .errors import AlreadyExistsError, AssetLedgerError, NotFoundError
from .state import StateStore

logger = logging.getLogger(__name__)

SEED_ASSETS: tuple[Asset, ...] = tuple(
    Asset(custodian_name=CustodianName(name), custodian_agency=agency, case_number=case, evidence_info=evidence)
    for name, agency, case, evidence in (
        ("Zaki", "RCED", "1", "HP01/HP02"),
        ("Aya", "RBPF", "2", "HP01/HP02/HP03"),
        ("Adi", "KDN", "3", "HP01/HP02/SIM01/SIM02"),
        ("Dan", "CSB", "4", "HP01/HP02/SIM01/"),
        ("Azmi", "RCED", "5", "HP01/HP02/HP03/SIM01/SIM02"),
        ("Mirul", "CSB", "6", "HP01/HP02/HP03/SIM01/SIM02/SIM03"),
    )
)


@contextmanager
def _operation(name: str) -> Iterator[None]:
    try:
        yield
    except AssetLedgerError as exc:
        if exc.operation is None:
            exc.operation = name
        raise


class AssetLedger:
    """Existence-checked CRUD over asset records kept in a ``StateStore``.

    The ledger holds no records between calls; every operation is a full
    read-modify-write against the store. Concurrent writers are the store's
    concern.
    """

    def __init__(self, store: StateStore) -> None:
        self._store = store

    def init_ledger(self) -> list[Asset]:
        """Write the fixed seed records, overwriting any existing ones.

        Not transactional across records: a failure leaves earlier puts in place.
        """
        with _operation("init_ledger"):
            for asset in SEED_ASSETS:
                self._put(asset.custodian_name, asset)
        logger.info("Seeded ledger with %d assets", len(SEED_ASSETS))
        return list(SEED_ASSETS)

    def create_asset(
        self, custodian_name: str, custodian_agency: str, case_number: str, evidence_info: str
    ) -> Asset:
        with _operation("create_asset"):
            if self._exists(custodian_name):
                raise AlreadyExistsError(custodian_name)

            asset = build_asset(
                custodian_name=custodian_name,
                custodian_agency=custodian_agency,
                case_number=case_number,
                evidence_info=evidence_info,
            )
            self._put(custodian_name, asset)
        logger.info("Created asset %s", custodian_name)
        return asset

    def read_asset(self, custodian_name: str) -> Asset:
        with _operation("read_asset"):
            return self._read(custodian_name)

    def update_asset(
        self, custodian_name: str, custodian_agency: str, case_number: str, evidence_info: str
    ) -> Asset:
        with _operation("update_asset"):
            if not self._exists(custodian_name):
                raise NotFoundError(custodian_name)

            # full overwrite, no field of the previous record survives
            asset = build_asset(
                custodian_name=custodian_name,
                custodian_agency=custodian_agency,
                case_number=case_number,
                evidence_info=evidence_info,
            )
            self._put(custodian_name, asset)
        logger.info("Updated asset %s", custodian_name)
        return asset

    def delete_asset(self, custodian_name: str) -> None:
        with _operation("delete_asset"):
            if not self._exists(custodian_name):
                raise NotFoundError(custodian_name)
            self._store.delete(custodian_name)
        logger.info("Deleted asset %s", custodian_name)

    def asset_exists(self, custodian_name: str) -> bool:
        with _operation("asset_exists"):
            return self._exists(custodian_name)

    def transfer_asset(self, case_number: str, new_custodian_name: str, new_custodian_agency: str) -> str:
        """Hand the record stored at ``case_number`` to a new custodian.

        The record is looked up and written back under ``case_number``, not
        under its custodian name. Returns the custodian name it held before.
        """
        with _operation("transfer_asset"):
            asset = self._read(case_number)
            previous_custodian = asset.custodian_name

            transferred = build_asset(
                custodian_name=new_custodian_name,
                custodian_agency=new_custodian_agency,
                case_number=asset.case_number,
                evidence_info=asset.evidence_info,
            )
            self._put(case_number, transferred)
        logger.info("Transferred asset at %s from %s to %s", case_number, previous_custodian, new_custodian_name)
        return previous_custodian

    def get_all_assets(self) -> list[Asset]:
        # Range query with empty bounds scans the whole namespace.
        with _operation("get_all_assets"):
            cursor = self._store.scan("", "")
            with closing(cursor):
                assets = [decode_asset(entry.value, key=entry.key) for entry in cursor]
        logger.debug("Scanned %d assets", len(assets))
        return assets

    def _exists(self, key: str) -> bool:
        return self._store.get(key) is not None

    def _read(self, key: str) -> Asset:
        raw = self._store.get(key)
        if raw is None:
            raise NotFoundError(key)
        logger.debug("Read asset %s (%d bytes)", key, len(raw))
        return decode_asset(raw, key=key)

    def _put(self, key: str, asset: Asset) -> None:
        self._store.put(key, encode_asset(asset))


__all__ = ["AssetLedger", "SEED_ASSETS"]
