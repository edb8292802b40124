"""Fiscal period domain service."""

from datetime import date
from typing import Optional

from kturkey.database.base import Database
from kturkey.domain.entities import FiscalPeriod, PeriodStatus
from kturkey.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    period_not_found,
    site_not_found,
)


class FiscalPeriodService:
    """Service for managing fiscal periods."""

    def __init__(self, db: Database):
        """Initialize fiscal period service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_period(
        self,
        site_id: int,
        name: str,
        start_date: date,
        end_date: date,
        status: PeriodStatus = PeriodStatus.DRAFT,
    ) -> int:
        """Create a fiscal period.

        Args:
            site_id: Site the period belongs to
            name: Period name, e.g. "2025"
            start_date: First day of the period
            end_date: Last day of the period
            status: Initial status

        Returns:
            Fiscal period ID

        Raises:
            NotFoundError: If the site doesn't exist
            ValidationError: If the name is empty or end precedes start
            ConflictError: If the site already has a period with this name
        """
        if self.db.get_site(site_id) is None:
            raise NotFoundError(site_not_found(site_id))
        name = (name or "").strip()
        if not name:
            raise ValidationError("Fiscal period name is required")
        if end_date < start_date:
            raise ValidationError(
                f"Fiscal period end date {end_date} is before start date {start_date}"
            )
        for period in self.db.list_fiscal_periods(site_id):
            if period.name == name:
                raise ConflictError(f"Fiscal period '{name}' already exists")

        return self.db.create_fiscal_period(
            site_id=site_id,
            name=name,
            start_date=start_date,
            end_date=end_date,
            status=PeriodStatus(status).value,
        )

    def get_period(self, period_id: int) -> Optional[FiscalPeriod]:
        """Get fiscal period by ID."""
        return self.db.get_fiscal_period(period_id)

    def require_period(self, period_id: int) -> FiscalPeriod:
        """Get fiscal period by ID.

        Raises:
            NotFoundError: If the period doesn't exist
        """
        period = self.db.get_fiscal_period(period_id)
        if period is None:
            raise NotFoundError(period_not_found(period_id))
        return period

    def list_periods(self, site_id: int) -> list[FiscalPeriod]:
        """List fiscal periods of a site, most recent first."""
        return self.db.list_fiscal_periods(site_id)

    def get_active_period(self, site_id: int) -> Optional[FiscalPeriod]:
        """Return the active period, else the one with the latest start date."""
        periods = self.db.list_fiscal_periods(site_id)
        for period in periods:
            if period.status == PeriodStatus.ACTIVE:
                return period
        return periods[0] if periods else None

    def find_period_for_date(self, site_id: int, day: date) -> Optional[FiscalPeriod]:
        """Return the period whose date range contains ``day``."""
        for period in self.db.list_fiscal_periods(site_id):
            if period.contains(day):
                return period
        return None

    def set_status(self, period_id: int, status: PeriodStatus) -> None:
        """Change a period's status.

        Raises:
            NotFoundError: If the period doesn't exist
        """
        self.require_period(period_id)
        self.db.update_fiscal_period_status(period_id, PeriodStatus(status).value)
