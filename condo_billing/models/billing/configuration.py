"""Per-building billing configuration."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from zoneinfo import ZoneInfo

from condo_billing.exceptions import ConfigurationError
from condo_billing.models.billing.enums import PixKeyType
from condo_billing.periods import DEFAULT_TIMEZONE, get_zone

DEFAULT_AMOUNT = Decimal("0.00")
DEFAULT_DUE_DAY = 10


@dataclass
class BillingConfiguration:
    """Billing settings for a building (configuração de pagamento).

    A building that never saved one is billed with ``default()``:
    zero amount, due on the 10th.
    """

    default_amount: Decimal = DEFAULT_AMOUNT  # valor padrão
    due_day: int = DEFAULT_DUE_DAY  # dia de vencimento, 1-31
    pix_key: str | None = None  # payment destination
    pix_key_type: PixKeyType | None = None
    webhook_url: str | None = None
    timezone: str = DEFAULT_TIMEZONE
    updated_at: datetime | None = None

    @classmethod
    def default(cls) -> "BillingConfiguration":
        """Documented fallback for unconfigured buildings."""
        return cls()

    @property
    def zone(self) -> ZoneInfo:
        return get_zone(self.timezone)

    def validate(self) -> None:
        """Check field ranges.

        Raises
        ------
        ConfigurationError
            If the amount is negative, the due day is outside 1-31, or the
            time zone is unknown.
        """
        if self.default_amount < 0:
            raise ConfigurationError(f"Default amount must be non-negative, got {self.default_amount}")
        if not 1 <= self.due_day <= 31:
            raise ConfigurationError(f"Due day must be between 1 and 31, got {self.due_day}")
        if self.pix_key_type is not None and not self.pix_key:
            raise ConfigurationError("PIX key type given without a PIX key")
        try:
            get_zone(self.timezone)
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc
