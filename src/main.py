from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from sqlalchemy.orm import sessionmaker

from config import config
from db.db import create_db_engine
from db.state_store import SqlStateStore
from domain.asset import Asset, encode_asset
from domain.asset_ledger import AssetLedger
from domain.errors import AssetLedgerError

logger = logging.getLogger(__name__)


def print_asset(asset: Asset) -> None:
    print(encode_asset(asset).decode("utf-8"))


def run(args: argparse.Namespace) -> None:
    logger.debug("Opening state database at %s", args.db_file)
    engine = create_db_engine(args.db_file, echo=config().echo_sql, reset=args.reset)
    session = sessionmaker(engine)()
    ledger = AssetLedger(SqlStateStore(session))

    try:
        if args.command == "init":
            for asset in ledger.init_ledger():
                print_asset(asset)
        elif args.command == "create":
            asset = ledger.create_asset(args.custodian_name, args.custodian_agency, args.case_number, args.evidence)
            print_asset(asset)
        elif args.command == "read":
            print_asset(ledger.read_asset(args.custodian_name))
        elif args.command == "update":
            asset = ledger.update_asset(args.custodian_name, args.custodian_agency, args.case_number, args.evidence)
            print_asset(asset)
        elif args.command == "delete":
            ledger.delete_asset(args.custodian_name)
        elif args.command == "exists":
            print("true" if ledger.asset_exists(args.custodian_name) else "false")
        elif args.command == "transfer":
            print(ledger.transfer_asset(args.case_number, args.new_custodian_name, args.new_custodian_agency))
        elif args.command == "list":
            for asset in ledger.get_all_assets():
                print_asset(asset)
    finally:
        session.close()
        engine.dispose()


def build_parser() -> argparse.ArgumentParser:
    settings = config()
    parser = argparse.ArgumentParser(description="Manage custody asset records in the state database.")
    parser.add_argument("--db-file", type=Path, default=settings.db_file)
    parser.add_argument("--reset", action="store_true", help="Delete the state database before running.")
    parser.add_argument("--log-level", default=settings.log_level)

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("init", help="Write the fixed seed records.")
    commands.add_parser("list", help="Print every record in key order.")

    for name in ("create", "update"):
        command = commands.add_parser(name, help=f"{name.capitalize()} a record.")
        command.add_argument("custodian_name")
        command.add_argument("custodian_agency")
        command.add_argument("case_number")
        command.add_argument("evidence", help="Slash-delimited evidence list, e.g. HP01/HP02.")

    for name in ("read", "delete", "exists"):
        command = commands.add_parser(name)
        command.add_argument("custodian_name")

    transfer = commands.add_parser("transfer", help="Hand the record stored at CASE_NUMBER to a new custodian.")
    transfer.add_argument("case_number")
    transfer.add_argument("new_custodian_name")
    transfer.add_argument("new_custodian_agency")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s %(message)s")
    try:
        run(args)
    except AssetLedgerError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
