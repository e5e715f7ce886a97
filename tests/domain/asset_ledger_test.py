from typing import Callable

import pytest

from domain.asset import Asset, CustodianName
from domain.asset_ledger import SEED_ASSETS, AssetLedger
from domain.errors import AlreadyExistsError, DecodingError, EncodingError, NotFoundError, StoreError
from domain.state import StateStore
from tests.constants import SEEDED_NAMES_IN_KEY_ORDER, ZAKI, ZAKI_BYTES
from tests.helpers.stores import BrokenStateStore, TrackingStateStore


def test_seed_scenario_read_delete_and_not_found(ledger: AssetLedger) -> None:
    ledger.init_ledger()

    assert ledger.asset_exists(ZAKI)
    assert ledger.read_asset(ZAKI) == Asset(
        custodian_name=CustodianName("Zaki"),
        custodian_agency="RCED",
        case_number="1",
        evidence_info="HP01/HP02",
    )

    ledger.delete_asset(ZAKI)

    assert not ledger.asset_exists(ZAKI)
    with pytest.raises(NotFoundError) as exc_info:
        ledger.read_asset(ZAKI)
    assert exc_info.value.key == ZAKI
    assert exc_info.value.operation == "read_asset"


def test_seed_writes_canonical_bytes(state_store: StateStore) -> None:
    AssetLedger(state_store).init_ledger()

    assert state_store.get(ZAKI) == ZAKI_BYTES


def test_seed_overwrites_existing_records(ledger: AssetLedger) -> None:
    ledger.create_asset(ZAKI, "KDN", "99", "SIM09")

    ledger.init_ledger()

    assert ledger.read_asset(ZAKI).case_number == "1"


def test_get_all_assets_after_seed_returns_seed_in_key_order(ledger: AssetLedger) -> None:
    ledger.init_ledger()

    assets = ledger.get_all_assets()

    assert [asset.custodian_name for asset in assets] == SEEDED_NAMES_IN_KEY_ORDER
    assert sorted(assets, key=lambda a: a.custodian_name) == sorted(SEED_ASSETS, key=lambda a: a.custodian_name)


def test_get_all_assets_counts_present_keys(ledger: AssetLedger) -> None:
    assert ledger.get_all_assets() == []

    ledger.init_ledger()
    ledger.delete_asset("Dan")
    ledger.create_asset("Farid", "KDN", "7", "HP07")

    assert len(ledger.get_all_assets()) == 6


def test_create_then_read_round_trips(ledger: AssetLedger) -> None:
    created = ledger.create_asset("Farid", "KDN", "7", "HP07/SIM07")

    assert ledger.read_asset("Farid") == created
    assert created.evidence_items == ["HP07", "SIM07"]


def test_exists_follows_create_and_delete(ledger: AssetLedger) -> None:
    assert not ledger.asset_exists("Farid")

    ledger.create_asset("Farid", "KDN", "7", "HP07")
    assert ledger.asset_exists("Farid")

    ledger.delete_asset("Farid")
    assert not ledger.asset_exists("Farid")


def test_create_existing_asset_fails_without_writing(ledger: AssetLedger) -> None:
    original = ledger.create_asset("Farid", "KDN", "7", "HP07")

    with pytest.raises(AlreadyExistsError) as exc_info:
        ledger.create_asset("Farid", "RBPF", "8", "HP08")

    assert exc_info.value.key == "Farid"
    assert str(exc_info.value) == "create_asset: asset already exists: Farid"
    assert ledger.read_asset("Farid") == original


def test_create_with_empty_custodian_name_fails_to_encode(ledger: AssetLedger) -> None:
    with pytest.raises(EncodingError) as exc_info:
        ledger.create_asset("", "KDN", "7", "HP07")

    assert exc_info.value.operation == "create_asset"
    assert ledger.get_all_assets() == []


def test_update_replaces_every_field(ledger: AssetLedger) -> None:
    ledger.init_ledger()

    updated = ledger.update_asset(ZAKI, "CSB", "42", "SIM42")

    assert ledger.read_asset(ZAKI) == updated
    assert updated.model_dump() == {
        "custodian_name": ZAKI,
        "custodian_agency": "CSB",
        "case_number": "42",
        "evidence_info": "SIM42",
    }


@pytest.mark.parametrize(
    "operation",
    [
        lambda ledger: ledger.update_asset("Ghost", "KDN", "7", "HP07"),
        lambda ledger: ledger.delete_asset("Ghost"),
        lambda ledger: ledger.transfer_asset("Ghost", "Farid", "KDN"),
    ],
    ids=["update", "delete", "transfer"],
)
def test_mutations_on_missing_key_fail_without_writing(operation: Callable[[AssetLedger], object]) -> None:
    store = TrackingStateStore()
    ledger = AssetLedger(store)
    ledger.init_ledger()
    writes_after_seed = store.writes

    with pytest.raises(NotFoundError) as exc_info:
        operation(ledger)

    assert exc_info.value.key == "Ghost"
    assert store.writes == writes_after_seed
    assert ledger.get_all_assets() == sorted(SEED_ASSETS, key=lambda a: a.custodian_name)


def test_transfer_returns_previous_custodian_and_keeps_case_fields(ledger: AssetLedger) -> None:
    ledger.create_asset("7", "RCED", "7", "HP07/SIM07")

    previous = ledger.transfer_asset("7", "Farid", "KDN")

    assert previous == "7"
    transferred = ledger.read_asset("7")
    assert transferred.custodian_name == "Farid"
    assert transferred.custodian_agency == "KDN"
    assert transferred.case_number == "7"
    assert transferred.evidence_info == "HP07/SIM07"
    assert not ledger.asset_exists("Farid")


def test_transfer_looks_up_by_case_number_key(ledger: AssetLedger) -> None:
    ledger.init_ledger()

    # Seeded records are keyed by custodian name, so case number "1" is not a key.
    with pytest.raises(NotFoundError) as exc_info:
        ledger.transfer_asset("1", "Farid", "KDN")

    assert exc_info.value.operation == "transfer_asset"
    assert ledger.read_asset(ZAKI).custodian_name == ZAKI


def test_transfer_with_empty_new_name_fails_to_encode(ledger: AssetLedger) -> None:
    ledger.create_asset("7", "RCED", "7", "HP07")

    with pytest.raises(EncodingError):
        ledger.transfer_asset("7", "", "KDN")

    assert ledger.read_asset("7").custodian_name == "7"


def test_read_malformed_record_fails_to_decode(state_store: StateStore) -> None:
    state_store.put(ZAKI, b'{"custodianName": "Zaki"}')

    with pytest.raises(DecodingError) as exc_info:
        AssetLedger(state_store).read_asset(ZAKI)

    assert exc_info.value.key == ZAKI
    assert exc_info.value.operation == "read_asset"


def test_get_all_assets_aborts_on_malformed_record_and_releases_cursor() -> None:
    store = TrackingStateStore()
    ledger = AssetLedger(store)
    ledger.init_ledger()
    store.put("Bob", b"not json")

    with pytest.raises(DecodingError) as exc_info:
        ledger.get_all_assets()

    assert exc_info.value.key == "Bob"
    assert exc_info.value.operation == "get_all_assets"
    assert len(store.cursors) == 1
    assert store.cursors[0].closed


def test_get_all_assets_releases_cursor_on_success() -> None:
    store = TrackingStateStore()
    ledger = AssetLedger(store)
    ledger.init_ledger()

    ledger.get_all_assets()
    ledger.get_all_assets()

    assert len(store.cursors) == 2
    assert all(cursor.closed for cursor in store.cursors)


def test_seed_stops_at_first_store_failure_without_rollback() -> None:
    store = BrokenStateStore(broken_keys={"Dan"})
    ledger = AssetLedger(store)

    with pytest.raises(StoreError) as exc_info:
        ledger.init_ledger()

    assert exc_info.value.operation == "init_ledger"
    assert exc_info.value.key == "Dan"
    assert [asset.custodian_name for asset in ledger.get_all_assets()] == ["Adi", "Aya", ZAKI]


def test_store_read_failure_surfaces_as_store_error() -> None:
    ledger = AssetLedger(BrokenStateStore(broken_reads=True))

    with pytest.raises(StoreError) as exc_info:
        ledger.asset_exists(ZAKI)

    assert exc_info.value.operation == "asset_exists"
    assert str(exc_info.value) == "asset_exists: backend unavailable: Zaki"


def test_scan_open_failure_surfaces_as_store_error() -> None:
    ledger = AssetLedger(BrokenStateStore(broken_scan=True))

    with pytest.raises(StoreError) as exc_info:
        ledger.get_all_assets()

    assert exc_info.value.operation == "get_all_assets"


def test_read_record_stored_with_attribute_names_fails_to_decode() -> None:
    store = TrackingStateStore()
    store.put(ZAKI, b'{"case_number":"1","custodian_agency":"RCED","custodian_name":"Zaki","evidence_info":"HP01"}')

    with pytest.raises(DecodingError) as exc_info:
        AssetLedger(store).read_asset(ZAKI)

    assert exc_info.value.operation == "read_asset"


@pytest.mark.parametrize(
    ("operation", "name", "key"),
    [
        (lambda ledger: ledger.create_asset("Farid", "KDN", "7", "HP07"), "create_asset", "Farid"),
        (lambda ledger: ledger.update_asset(ZAKI, "CSB", "42", "SIM42"), "update_asset", ZAKI),
        (lambda ledger: ledger.transfer_asset(ZAKI, "Farid", "KDN"), "transfer_asset", ZAKI),
        (lambda ledger: ledger.delete_asset(ZAKI), "delete_asset", ZAKI),
    ],
    ids=["create", "update", "transfer", "delete"],
)
def test_store_write_failure_surfaces_as_store_error(
    operation: Callable[[AssetLedger], object], name: str, key: str
) -> None:
    store = BrokenStateStore()
    ledger = AssetLedger(store)
    ledger.init_ledger()
    before = store.get(ZAKI)
    store.broken_keys = {"Farid", ZAKI}
    store.broken_deletes = {ZAKI}

    with pytest.raises(StoreError) as exc_info:
        operation(ledger)

    assert exc_info.value.operation == name
    assert exc_info.value.key == key
    assert store.get(ZAKI) == before
    assert store.get("Farid") is None


def test_scan_failure_mid_way_surfaces_as_store_error_and_releases_cursor() -> None:
    store = BrokenStateStore(scan_fails_after=2)
    ledger = AssetLedger(store)
    ledger.init_ledger()

    with pytest.raises(StoreError) as exc_info:
        ledger.get_all_assets()

    assert exc_info.value.operation == "get_all_assets"
    assert len(store.cursors) == 1
    assert store.cursors[0].closed
