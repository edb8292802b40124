"""Site domain service."""

import re
from typing import Optional

from kturkey.config import load_settings
from kturkey.database.base import Database
from kturkey.domain.entities import Site
from kturkey.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    invalid_currency,
    site_not_found,
)

_CURRENCY_RE = re.compile(r"^[A-Z]{3}$")


def validate_currency_code(code: Optional[str]) -> str:
    """Return an uppercased ISO-4217 style code.

    Raises:
        ValidationError: If the code is not three letters
    """
    normalized = (code or "").strip().upper()
    if not _CURRENCY_RE.match(normalized):
        raise ValidationError(invalid_currency(code or ""))
    return normalized


class SiteService:
    """Service for managing sites."""

    def __init__(self, db: Database):
        """Initialize site service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_site(self, name: str, default_currency: Optional[str] = None) -> int:
        """Create a new site.

        Args:
            name: Site name
            default_currency: Reporting currency; KTURKEY_DEFAULT_CURRENCY if None

        Returns:
            Site ID

        Raises:
            ValidationError: If the name is empty or the currency is invalid
            ConflictError: If a site with the same name exists
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Site name is required")
        if default_currency is None:
            default_currency = load_settings().default_currency
        currency = validate_currency_code(default_currency)

        for site in self.db.list_sites():
            if site.name == name:
                raise ConflictError(f"Site with name '{name}' already exists")

        return self.db.create_site(name=name, default_currency=currency)

    def get_site(self, site_id: int) -> Optional[Site]:
        """Get site by ID."""
        return self.db.get_site(site_id)

    def require_site(self, site_id: int) -> Site:
        """Get site by ID.

        Raises:
            NotFoundError: If the site doesn't exist
        """
        site = self.db.get_site(site_id)
        if site is None:
            raise NotFoundError(site_not_found(site_id))
        return site

    def list_sites(self) -> list[Site]:
        """List all sites."""
        return self.db.list_sites()
