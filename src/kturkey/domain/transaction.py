"""Transaction domain service.

Validates new and edited ledger entries before they are stored. Nothing that
fails validation here ever reaches ingestion or replay.
"""

import logging
import uuid
from datetime import date
from decimal import Decimal
from typing import Any, Optional

from kturkey.database.base import Database
from kturkey.domain.currency import ONE, quantize_money
from kturkey.domain.entities import (
    Account,
    EntryType,
    Site,
    TransferDirection,
)
from kturkey.domain.errors import (
    DependencyError,
    NotFoundError,
    ValidationError,
    account_inactive,
    account_not_found,
    amount_not_positive,
    period_not_found,
    rate_not_positive,
    site_not_found,
    transaction_not_found,
    unit_not_found,
)
from kturkey.domain.fiscal_period import FiscalPeriodService

logger = logging.getLogger(__name__)

TRANSFER_CATEGORY = "Transfer"
RATE_PLACES = Decimal("0.00000001")


def _positive(value: Decimal, message) -> Decimal:
    value = Decimal(str(value))
    if not value.is_finite() or value <= 0:
        raise ValidationError(message(value))
    return value


class TransactionService:
    """Service for managing ledger entries and transfers."""

    def __init__(self, db: Database):
        """Initialize transaction service.

        Args:
            db: Database instance
        """
        self.db = db
        self.periods = FiscalPeriodService(db)

    def _require_site(self, site_id: int) -> Site:
        site = self.db.get_site(site_id)
        if site is None:
            raise NotFoundError(site_not_found(site_id))
        return site

    def _require_active_account(self, site_id: int, account_id: Optional[int]) -> Account:
        if account_id is None:
            raise ValidationError("Account is required")
        account = self.db.get_account(account_id)
        if account is None or account.site_id != site_id:
            raise NotFoundError(account_not_found(account_id))
        if not account.is_active:
            raise ValidationError(account_inactive(account_id))
        return account

    def _resolve_period(
        self, site_id: int, fiscal_period_id: Optional[int], entry_date: date
    ) -> Optional[int]:
        if fiscal_period_id is not None:
            period = self.db.get_fiscal_period(fiscal_period_id)
            if period is None or period.site_id != site_id:
                raise NotFoundError(period_not_found(fiscal_period_id))
            return period.id
        period = self.periods.find_period_for_date(site_id, entry_date)
        return period.id if period else None

    def _reporting_rate(
        self, site: Site, currency_code: str, exchange_rate: Optional[Decimal]
    ) -> Decimal:
        if currency_code == site.default_currency:
            return ONE
        if exchange_rate is None:
            raise ValidationError(
                f"Exchange rate to {site.default_currency} is required for {currency_code} entries"
            )
        return _positive(exchange_rate, rate_not_positive)

    def create_entry(
        self,
        site_id: int,
        entry_type: EntryType,
        amount: Decimal,
        entry_date: date,
        category: str,
        account_id: int,
        exchange_rate: Optional[Decimal] = None,
        currency_code: Optional[str] = None,
        description: Optional[str] = None,
        vendor_name: Optional[str] = None,
        unit_id: Optional[int] = None,
        fiscal_period_id: Optional[int] = None,
    ) -> int:
        """Create an income or expense entry.

        Args:
            site_id: Site ID
            entry_type: Income or expense
            amount: Positive amount in the account's currency
            entry_date: Entry date
            category: Category label
            account_id: Account the money moves in or out of
            exchange_rate: Native-to-reporting rate, required for foreign accounts
            currency_code: Optional; must match the account currency when given
            description: Optional description
            vendor_name: Optional vendor or payer
            unit_id: Optional linked unit
            fiscal_period_id: Optional period; the period containing the date if None

        Returns:
            Ledger entry ID

        Raises:
            NotFoundError: If site, account, unit or period doesn't exist
            ValidationError: If a required field is missing or invalid
        """
        site = self._require_site(site_id)
        try:
            entry_type = EntryType(entry_type)
        except ValueError:
            raise ValidationError(f"Unknown entry type '{entry_type}'")
        if entry_type == EntryType.TRANSFER:
            raise ValidationError("Use create_transfer to move money between accounts")
        if entry_date is None:
            raise ValidationError("Entry date is required")
        category = (category or "").strip()
        if not category:
            raise ValidationError("Category is required")
        amount = _positive(amount, amount_not_positive)

        account = self._require_active_account(site_id, account_id)
        if currency_code is not None and currency_code.strip().upper() != account.currency_code:
            raise ValidationError(
                f"Entry currency {currency_code.upper()} does not match "
                f"account currency {account.currency_code}"
            )
        currency = account.currency_code
        rate = self._reporting_rate(site, currency, exchange_rate)

        if unit_id is not None:
            unit = self.db.get_unit(unit_id)
            if unit is None or unit.site_id != site_id:
                raise NotFoundError(unit_not_found(unit_id))

        entry_id = self.db.create_ledger_entry(
            site_id=site_id,
            fiscal_period_id=self._resolve_period(site_id, fiscal_period_id, entry_date),
            entry_type=entry_type.value,
            category=category,
            description=description,
            vendor_name=vendor_name,
            amount=amount,
            currency_code=currency,
            exchange_rate=rate,
            amount_reporting=quantize_money(amount * rate),
            entry_date=entry_date,
            account_id=account.id,
            unit_id=unit_id,
        )
        logger.info("Created %s entry %s of %s %s", entry_type.value, entry_id, amount, currency)
        return entry_id

    def create_transfer(
        self,
        site_id: int,
        from_account_id: int,
        to_account_id: int,
        amount: Decimal,
        entry_date: date,
        received_amount: Optional[Decimal] = None,
        exchange_rate: Optional[Decimal] = None,
        reporting_rate: Optional[Decimal] = None,
        description: Optional[str] = None,
        fiscal_period_id: Optional[int] = None,
    ) -> str:
        """Move money between two accounts of a site.

        Both legs are written together and share a transfer group ID. For
        accounts in different currencies the received amount is either given
        or computed as ``amount * exchange_rate``; the incoming leg's reporting
        rate is chosen so both legs carry the same reporting amount.

        Args:
            site_id: Site ID
            from_account_id: Account money leaves
            to_account_id: Account money arrives in
            amount: Amount sent, in the source account's currency
            entry_date: Transfer date
            received_amount: Amount received, in the destination currency
            exchange_rate: Destination units per source unit
            reporting_rate: Source-to-reporting rate, required when the source
                account is not in the reporting currency
            description: Optional description
            fiscal_period_id: Optional period; transfers are period-independent by default

        Returns:
            Transfer group ID

        Raises:
            NotFoundError: If site, account or period doesn't exist
            ValidationError: If accounts are the same or inactive, or amounts are invalid
        """
        site = self._require_site(site_id)
        if from_account_id == to_account_id:
            raise ValidationError("Cannot transfer to the same account")
        if entry_date is None:
            raise ValidationError("Transfer date is required")
        source = self._require_active_account(site_id, from_account_id)
        target = self._require_active_account(site_id, to_account_id)
        amount = _positive(amount, amount_not_positive)

        if source.currency_code == target.currency_code:
            if received_amount is not None and Decimal(str(received_amount)) != amount:
                raise ValidationError(
                    "Received amount must equal the sent amount for same-currency transfers"
                )
            received = amount
        elif received_amount is not None:
            received = _positive(received_amount, amount_not_positive)
        elif exchange_rate is not None:
            received = quantize_money(amount * _positive(exchange_rate, rate_not_positive))
        else:
            raise ValidationError(
                f"Transfer from {source.currency_code} to {target.currency_code} "
                "needs a received amount or an exchange rate"
            )

        out_rate = self._reporting_rate(site, source.currency_code, reporting_rate)
        out_reporting = quantize_money(amount * out_rate)
        if target.currency_code == site.default_currency:
            in_rate = ONE
        else:
            in_rate = (out_reporting / received).quantize(RATE_PLACES)

        period_id = None
        if fiscal_period_id is not None:
            period_id = self._resolve_period(site_id, fiscal_period_id, entry_date)

        group_id = uuid.uuid4().hex
        common: dict[str, Any] = dict(
            site_id=site_id,
            fiscal_period_id=period_id,
            entry_type=EntryType.TRANSFER.value,
            category=TRANSFER_CATEGORY,
            description=description,
            entry_date=entry_date,
            transfer_group_id=group_id,
        )
        out_leg = dict(
            common,
            account_id=source.id,
            amount=amount,
            currency_code=source.currency_code,
            exchange_rate=out_rate,
            amount_reporting=out_reporting,
            transfer_direction=TransferDirection.OUT.value,
        )
        in_leg = dict(
            common,
            account_id=target.id,
            amount=received,
            currency_code=target.currency_code,
            exchange_rate=in_rate,
            amount_reporting=quantize_money(received * in_rate),
            transfer_direction=TransferDirection.IN.value,
        )
        self.db.create_transfer_legs(out_leg, in_leg)
        logger.info(
            "Transferred %s %s from account %s to %s %s in account %s",
            amount,
            source.currency_code,
            source.id,
            received,
            target.currency_code,
            target.id,
        )
        return group_id

    def get_entry(self, entry_id: int) -> Optional[dict[str, Any]]:
        """Get a stored ledger entry by ID."""
        return self.db.get_ledger_record(entry_id)

    def _require_entry(self, entry_id: int) -> dict[str, Any]:
        record = self.db.get_ledger_record(entry_id)
        if record is None:
            raise NotFoundError(transaction_not_found(entry_id))
        return record

    def update_entry(
        self,
        entry_id: int,
        amount: Optional[Decimal] = None,
        category: Optional[str] = None,
        entry_date: Optional[date] = None,
        description: Optional[str] = None,
        vendor_name: Optional[str] = None,
        exchange_rate: Optional[Decimal] = None,
        account_id: Optional[int] = None,
    ) -> None:
        """Edit a ledger entry.

        Transfer legs only accept date and description changes, which are
        applied to the whole transfer so its legs stay together.

        Raises:
            NotFoundError: If the entry or new account doesn't exist
            ValidationError: If a new value is invalid
        """
        record = self._require_entry(entry_id)
        site = self._require_site(record["site_id"])

        if record["transfer_group_id"] is not None or record["entry_type"] == EntryType.TRANSFER.value:
            if any(v is not None for v in (amount, category, vendor_name, exchange_rate, account_id)):
                raise ValidationError(
                    "Only date and description of a transfer can be edited; "
                    "delete and recreate it to change amounts or accounts"
                )
            fields: dict[str, Any] = {}
            if entry_date is not None:
                fields["entry_date"] = entry_date
            if description is not None:
                fields["description"] = description
            if not fields:
                return
            group = record["transfer_group_id"]
            ids = [r["id"] for r in self.db.list_transfer_group(group)] if group else [entry_id]
            for leg_id in ids:
                self.db.update_ledger_entry(leg_id, **fields)
            return

        fields = {}
        currency = record["currency_code"]
        if account_id is not None and account_id != record["account_id"]:
            account = self._require_active_account(site.id, account_id)
            if account.currency_code != currency:
                raise ValidationError(
                    f"Account {account_id} holds {account.currency_code}, entry is in {currency}"
                )
            fields["account_id"] = account.id
        if category is not None:
            category = category.strip()
            if not category:
                raise ValidationError("Category is required")
            fields["category"] = category
        if description is not None:
            fields["description"] = description
        if vendor_name is not None:
            fields["vendor_name"] = vendor_name
        if entry_date is not None:
            fields["entry_date"] = entry_date
            period = None
            if record["fiscal_period_id"] is not None:
                period = self.db.get_fiscal_period(record["fiscal_period_id"])
            if period is None or not period.contains(entry_date):
                fields["fiscal_period_id"] = self._resolve_period(site.id, None, entry_date)

        new_amount = record["amount"]
        if amount is not None:
            new_amount = _positive(amount, amount_not_positive)
            fields["amount"] = new_amount
        new_rate = record["exchange_rate"]
        if exchange_rate is not None:
            new_rate = self._reporting_rate(site, currency, exchange_rate)
            fields["exchange_rate"] = new_rate
        if amount is not None or exchange_rate is not None:
            rate = ONE if currency == site.default_currency else Decimal(str(new_rate))
            fields["amount_reporting"] = quantize_money(Decimal(str(new_amount)) * rate)

        if fields:
            self.db.update_ledger_entry(entry_id, **fields)
            logger.info("Updated entry %s: %s", entry_id, ", ".join(sorted(fields)))

    def delete_entry(self, entry_id: int) -> list[int]:
        """Delete a ledger entry, or every leg of the transfer it belongs to.

        Returns:
            IDs of the deleted entries

        Raises:
            NotFoundError: If the entry doesn't exist
            DependencyError: If the entry records a unit payment
        """
        record = self._require_entry(entry_id)
        if record["payment_id"] is not None:
            raise DependencyError(
                f"Transaction {entry_id} records unit payment {record['payment_id']} "
                "and cannot be deleted on its own"
            )
        ids = [entry_id]
        if record["transfer_group_id"] is not None:
            ids = [r["id"] for r in self.db.list_transfer_group(record["transfer_group_id"])]
        self.db.delete_ledger_entries(ids)
        logger.info("Deleted entries %s", ids)
        return ids
