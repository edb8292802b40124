"""Transaction ingestion domain service.

Raw ledger rows arrive as plain mappings shaped like the backing table. Each
row is normalized on its own: a row that lacks a required field is skipped
and counted, and never stops the rows after it from being ingested.
"""

import logging
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Optional

from dateutil import parser as date_parser

from kturkey.domain.currency import (
    CurrencyNormalizer,
    normalize_currency_code,
    quantize_money,
)
from kturkey.domain.entities import (
    DataQualityWarning,
    EntryType,
    IngestionResult,
    Transaction,
    TransferDirection,
    WarningCode,
)

logger = logging.getLogger(__name__)


class MalformedRecordError(ValueError):
    """A raw record cannot be turned into a canonical transaction."""


def coerce_date(value: Any) -> date:
    """Return a date from a date, datetime or ISO string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return date_parser.isoparse(value.strip()).date()
        except (ValueError, OverflowError) as e:
            raise MalformedRecordError(f"malformed date '{value}': {e}")
    raise MalformedRecordError(f"missing or malformed date {value!r}")


def coerce_datetime(value: Any) -> Optional[datetime]:
    """Return a naive UTC datetime, or None when the value is empty or unparsable.

    Creation timestamps only break same-day ties, so a bad one degrades the
    ordering to input order rather than rejecting the record.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    else:
        try:
            dt = date_parser.isoparse(str(value).strip())
        except (ValueError, OverflowError):
            return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def coerce_amount(value: Any, field_name: str = "amount") -> Decimal:
    """Return a finite, non-negative Decimal amount."""
    if value is None or value == "" or isinstance(value, bool):
        raise MalformedRecordError(f"missing {field_name}")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise MalformedRecordError(f"malformed {field_name} {value!r}")
    if not amount.is_finite():
        raise MalformedRecordError(f"malformed {field_name} {value!r}")
    if amount < 0:
        raise MalformedRecordError(f"negative {field_name} {amount}")
    return amount


def coerce_rate(value: Any) -> Optional[Decimal]:
    """Return the stored rate as a Decimal, or None when absent or unreadable."""
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class TransactionIngestionService:
    """Normalize raw ledger rows into canonical transactions."""

    def __init__(self, reporting_currency: str):
        """Initialize ingestion service.

        Args:
            reporting_currency: Currency code site-wide totals are expressed in
        """
        self.reporting_currency = normalize_currency_code(reporting_currency)

    def ingest(self, records: Iterable[Mapping[str, Any]]) -> IngestionResult:
        """Ingest a full history of raw ledger rows.

        Args:
            records: Raw rows with at least ``id``, ``entry_type``, ``amount``
                and ``entry_date``

        Returns:
            IngestionResult with canonical transactions (in input order, atomic
            transfer rows expanded into two legs), the number of skipped rows
            and data-quality warnings
        """
        normalizer = CurrencyNormalizer(self.reporting_currency)
        transactions: list[Transaction] = []
        warnings: list[DataQualityWarning] = []
        skipped = 0

        for record in records:
            record_id = record.get("id")
            try:
                transactions.extend(self.normalize_record(record, normalizer))
            except (MalformedRecordError, ValueError, TypeError) as e:
                skipped += 1
                message = f"Skipped ledger record {record_id}: {e}"
                logger.warning(message)
                warnings.append(
                    DataQualityWarning(
                        WarningCode.MALFORMED_RECORD,
                        message,
                        record_id if isinstance(record_id, int) else None,
                    )
                )

        warnings.extend(normalizer.warnings)
        logger.debug(
            "Ingested %d transactions, skipped %d records", len(transactions), skipped
        )
        return IngestionResult(
            transactions=tuple(transactions),
            skipped=skipped,
            warnings=tuple(warnings),
        )

    def normalize_record(
        self, record: Mapping[str, Any], normalizer: CurrencyNormalizer
    ) -> list[Transaction]:
        """Turn one raw row into one canonical transaction, or two transfer legs.

        Raises:
            MalformedRecordError: If a required field is missing or malformed
        """
        if record.get("id") is None:
            raise MalformedRecordError("missing id")
        record_id = int(record["id"])

        raw_type = record.get("entry_type")
        try:
            entry_type = EntryType(str(raw_type).strip().lower())
        except ValueError:
            raise MalformedRecordError(f"unknown entry type {raw_type!r}")

        amount = coerce_amount(record.get("amount"))
        entry_date = coerce_date(record.get("entry_date"))
        currency_code = (
            normalize_currency_code(record.get("currency_code")) or self.reporting_currency
        )
        stored_rate = coerce_rate(record.get("exchange_rate"))

        # Converted amounts are stored at cents precision like every ledger amount.
        if normalizer.is_reporting(currency_code):
            exchange_rate = Decimal("1")
            reporting_amount = amount
        else:
            exchange_rate = normalizer.effective_rate(stored_rate, record_id)
            reporting_amount = quantize_money(
                normalizer.to_reporting(amount, currency_code, exchange_rate)
            )

        base = dict(
            id=record_id,
            site_id=_optional_int(record.get("site_id")) or 0,
            entry_type=entry_type,
            amount=amount,
            currency_code=currency_code,
            exchange_rate=exchange_rate,
            amount_reporting=reporting_amount,
            entry_date=entry_date,
            created_at=coerce_datetime(record.get("created_at")),
            fiscal_period_id=_optional_int(record.get("fiscal_period_id")),
            category=_optional_text(record.get("category")),
            description=_optional_text(record.get("description")),
            vendor_name=_optional_text(record.get("vendor_name")),
            account_id=_optional_int(record.get("account_id")),
            unit_id=_optional_int(record.get("unit_id")),
            payment_id=_optional_int(record.get("payment_id")),
        )

        group_id = _optional_text(record.get("transfer_group_id"))
        raw_direction = _optional_text(record.get("transfer_direction"))
        from_account = _optional_int(record.get("from_account_id"))
        to_account = _optional_int(record.get("to_account_id"))

        if (
            entry_type == EntryType.TRANSFER
            and group_id is None
            and from_account is not None
            and to_account is not None
        ):
            # Atomic transfer row: one row moving money between two accounts.
            group_id = f"transfer-{record_id}"
            out_leg = dict(base, account_id=from_account)
            in_leg = dict(base, account_id=to_account)
            return [
                Transaction(
                    **out_leg,
                    transfer_group_id=group_id,
                    transfer_direction=TransferDirection.OUT,
                ),
                Transaction(
                    **in_leg,
                    transfer_group_id=group_id,
                    transfer_direction=TransferDirection.IN,
                ),
            ]

        direction = None
        if raw_direction is not None:
            try:
                direction = TransferDirection(raw_direction.lower())
            except ValueError:
                raise MalformedRecordError(f"unknown transfer direction {raw_direction!r}")
        elif group_id is not None and entry_type == EntryType.EXPENSE:
            direction = TransferDirection.OUT
        elif group_id is not None and entry_type == EntryType.INCOME:
            direction = TransferDirection.IN

        if group_id is None:
            direction = None

        return [
            Transaction(**base, transfer_group_id=group_id, transfer_direction=direction)
        ]
