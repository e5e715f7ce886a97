import logging
from contextlib import asynccontextmanager
from time import perf_counter
from typing import Annotated, AsyncGenerator, Awaitable, Callable

from fastapi import Depends, FastAPI, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import sessionmaker

from api.dependencies import get_asset_ledger
from config import config
from db.db import create_db_engine
from domain.asset import Asset
from domain.asset_ledger import AssetLedger
from domain.errors import (
    AlreadyExistsError,
    AssetLedgerError,
    DecodingError,
    EncodingError,
    NotFoundError,
    StoreError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: dict[type[AssetLedgerError], int] = {
    AlreadyExistsError: 409,
    NotFoundError: 404,
    EncodingError: 422,
    DecodingError: 500,
    StoreError: 503,
}


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class CreateAssetRequest(_CamelModel):
    custodian_name: str = Field(alias="custodianName")
    custodian_agency: str = Field(alias="custodianAgency")
    case_number: str = Field(alias="caseNumber")
    evidence_info: str = Field(alias="evidenceInfo")


class UpdateAssetRequest(_CamelModel):
    custodian_agency: str = Field(alias="custodianAgency")
    case_number: str = Field(alias="caseNumber")
    evidence_info: str = Field(alias="evidenceInfo")


class TransferAssetRequest(_CamelModel):
    new_custodian_name: str = Field(alias="newCustodianName")
    new_custodian_agency: str = Field(alias="newCustodianAgency")


class TransferAssetResponse(_CamelModel):
    previous_custodian_name: str = Field(alias="previousCustodianName")


class ExistsResponse(BaseModel):
    exists: bool


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI) -> AsyncGenerator[None, None]:
    settings = config()
    logger.info("Opening state database at %s", settings.db_file)
    engine = create_db_engine(settings.db_file, echo=settings.echo_sql)
    fastapi_app.state.sessionmaker = sessionmaker(engine)
    yield
    engine.dispose()


app = FastAPI(lifespan=lifespan)

LedgerDep = Annotated[AssetLedger, Depends(get_asset_ledger)]


@app.middleware("http")
async def log_process_time(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
    start_time = perf_counter()
    response = await call_next(request)
    process_time = perf_counter() - start_time
    logger.info("Request time: %s %s: %.4fs", request.method, request.url, process_time)
    return response


@app.exception_handler(AssetLedgerError)
async def handle_ledger_error(request: Request, exc: AssetLedgerError) -> JSONResponse:
    status_code = STATUS_BY_ERROR.get(type(exc), 500)
    if status_code >= 500:
        logger.error("Ledger operation failed: %s", exc)
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.kind, "operation": exc.operation, "key": exc.key, "detail": str(exc)},
    )


@app.post("/ledger/init")
def init_ledger(ledger: LedgerDep) -> list[Asset]:
    return ledger.init_ledger()


@app.get("/assets")
def get_all_assets(ledger: LedgerDep) -> list[Asset]:
    return ledger.get_all_assets()


@app.post("/assets", status_code=201)
def create_asset(body: CreateAssetRequest, ledger: LedgerDep) -> Asset:
    return ledger.create_asset(body.custodian_name, body.custodian_agency, body.case_number, body.evidence_info)


@app.get("/assets/{custodian_name}")
def read_asset(custodian_name: str, ledger: LedgerDep) -> Asset:
    return ledger.read_asset(custodian_name)


@app.get("/assets/{custodian_name}/exists")
def asset_exists(custodian_name: str, ledger: LedgerDep) -> ExistsResponse:
    return ExistsResponse(exists=ledger.asset_exists(custodian_name))


@app.put("/assets/{custodian_name}")
def update_asset(custodian_name: str, body: UpdateAssetRequest, ledger: LedgerDep) -> Asset:
    return ledger.update_asset(custodian_name, body.custodian_agency, body.case_number, body.evidence_info)


@app.delete("/assets/{custodian_name}", status_code=204)
def delete_asset(custodian_name: str, ledger: LedgerDep) -> None:
    ledger.delete_asset(custodian_name)


@app.post("/assets/{case_number}/transfer")
def transfer_asset(case_number: str, body: TransferAssetRequest, ledger: LedgerDep) -> TransferAssetResponse:
    previous = ledger.transfer_asset(case_number, body.new_custodian_name, body.new_custodian_agency)
    return TransferAssetResponse(previous_custodian_name=previous)
