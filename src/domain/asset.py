from __future__ import annotations

import json
from typing import NewType

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from domain.errors import DecodingError, EncodingError

CustodianName = NewType("CustodianName", str)

# Wire order of the encoded record. Independent clients must produce the same
# bytes for the same record, so the encoder follows this tuple and never the
# model's field order.
ASSET_FIELD_ORDER: tuple[str, ...] = ("caseNumber", "custodianAgency", "custodianName", "evidenceInfo")

EVIDENCE_SEPARATOR = "/"


class Asset(BaseModel):
    """One custody entry: who holds the evidence of which case.

    Attribute names are snake_case; the camelCase aliases are the names used on
    the wire and in the store.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    custodian_name: CustodianName = Field(alias="custodianName")
    custodian_agency: str = Field(alias="custodianAgency")
    case_number: str = Field(alias="caseNumber")
    evidence_info: str = Field(alias="evidenceInfo")

    @model_validator(mode="after")
    def _validate_custodian_name(self) -> Asset:
        if not self.custodian_name:
            raise ValueError("custodianName must be non-empty")
        return self

    @property
    def evidence_items(self) -> list[str]:
        return [item for item in self.evidence_info.split(EVIDENCE_SEPARATOR) if item]


def build_asset(
    *,
    custodian_name: str,
    custodian_agency: str,
    case_number: str,
    evidence_info: str,
) -> Asset:
    try:
        return Asset(
            custodian_name=CustodianName(custodian_name),
            custodian_agency=custodian_agency,
            case_number=case_number,
            evidence_info=evidence_info,
        )
    except ValidationError as exc:
        raise EncodingError("invalid asset fields", key=custodian_name, cause=exc) from exc


def encode_asset(asset: Asset) -> bytes:
    """Serialize ``asset`` to its canonical JSON bytes.

    Keys follow ``ASSET_FIELD_ORDER``, separators carry no whitespace and
    non-ASCII text is kept as UTF-8, so equal records always encode to
    byte-identical output.
    """
    payload = asset.model_dump(by_alias=True)
    ordered = {name: payload[name] for name in ASSET_FIELD_ORDER}
    try:
        return json.dumps(ordered, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
    except (TypeError, ValueError) as exc:
        # UnicodeEncodeError (lone surrogates) is a ValueError.
        raise EncodingError("asset could not be serialized", key=asset.custodian_name, cause=exc) from exc


def decode_asset(raw: bytes, *, key: str | None = None) -> Asset:
    # Stored records carry the wire names only; snake_case keys are not canonical.
    try:
        return Asset.model_validate_json(raw, by_alias=True, by_name=False)
    except ValidationError as exc:
        raise DecodingError("stored value is not a well-formed asset", key=key, cause=exc) from exc


__all__ = [
    "ASSET_FIELD_ORDER",
    "Asset",
    "CustodianName",
    "build_asset",
    "decode_asset",
    "encode_asset",
]
