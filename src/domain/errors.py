from __future__ import annotations


class AssetLedgerError(RuntimeError):
    """Base class for every failure surfaced by the asset ledger.

    ``operation`` names the ledger method that failed. It is empty while the
    error travels through a store or the codec and gets filled in once the
    error crosses :class:`domain.asset_ledger.AssetLedger`.
    """

    kind = "ledger_error"

    def __init__(
        self,
        message: str,
        *,
        key: str | None = None,
        operation: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.key = key
        self.operation = operation
        self.cause = cause

    def __str__(self) -> str:
        text = self.message
        if self.key is not None:
            text = f"{text}: {self.key}"
        if self.operation:
            text = f"{self.operation}: {text}"
        if self.cause is not None:
            text = f"{text} ({self.cause})"
        return text


class AlreadyExistsError(AssetLedgerError):
    kind = "already_exists"

    def __init__(self, key: str, *, operation: str | None = None) -> None:
        super().__init__("asset already exists", key=key, operation=operation)


class NotFoundError(AssetLedgerError):
    kind = "not_found"

    def __init__(self, key: str, *, operation: str | None = None) -> None:
        super().__init__("asset does not exist", key=key, operation=operation)


class EncodingError(AssetLedgerError):
    kind = "encoding_error"


class DecodingError(AssetLedgerError):
    kind = "decoding_error"


class StoreError(AssetLedgerError):
    kind = "store_error"
