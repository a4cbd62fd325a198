"""
Currency support.

Amounts are py-moneyed Money values. Codes are validated against ISO 4217
through moneyed and then against the static EUR-based rate table, which
decides what the service can price in.
"""
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Mapping, Optional

from moneyed import Currency, Money, get_currency
from moneyed.classes import CurrencyDoesNotExist

from core.domain.exceptions import InvalidCurrencyError

BASE_CURRENCY = "EUR"

CENT = Decimal("0.01")

# Units of each currency per 1 EUR
DEFAULT_EXCHANGE_RATES: Dict[str, Decimal] = {
    "EUR": Decimal("1.00"),
    "USD": Decimal("1.10"),
    "GBP": Decimal("0.85"),
    "JPY": Decimal("160.50"),
    "AUD": Decimal("1.65"),
    "CAD": Decimal("1.48"),
    "CHF": Decimal("0.95"),
    "CNY": Decimal("7.80"),
    "SEK": Decimal("11.50"),
    "NZD": Decimal("1.80"),
}

MINIMUM_PAYMENT_AMOUNT = Decimal("1.00")


def round_money(money: Money) -> Money:
    """Round to cents, half up, in every currency."""
    return Money(money.amount.quantize(CENT, rounding=ROUND_HALF_UP), money.currency)


class CurrencyConverter:
    """Converts Money between supported currencies."""

    def __init__(self, rates: Optional[Mapping[str, Decimal]] = None):
        self._rates = dict(rates or DEFAULT_EXCHANGE_RATES)

    @property
    def supported_currencies(self) -> frozenset:
        return frozenset(self._rates)

    def currency(self, code: str) -> Currency:
        """
        Return the moneyed Currency for a supported code.

        Args:
            code: ISO 4217 code in any case

        Raises:
            InvalidCurrencyError: If the code is not ISO 4217 or has no rate
        """
        if not code or not isinstance(code, str):
            raise InvalidCurrencyError("Currency is required")
        try:
            currency = get_currency(code.strip().upper())
        except CurrencyDoesNotExist:
            raise InvalidCurrencyError(f"Unsupported currency: {code}") from None
        if currency.code not in self._rates:
            raise InvalidCurrencyError(f"Unsupported currency: {code}")
        return currency

    def is_supported(self, code: str) -> bool:
        try:
            self.currency(code)
        except InvalidCurrencyError:
            return False
        return True

    def normalize(self, code: str) -> str:
        """Return the upper-case ISO code of a supported currency."""
        return self.currency(code).code

    def money(self, amount, code: str) -> Money:
        """Build Money in a supported currency."""
        return Money(Decimal(str(amount)), self.currency(code))

    def convert(self, money: Money, to_currency: str) -> Money:
        """
        Convert Money to another currency.

        The result is not rounded; callers round when presenting prices.

        Raises:
            InvalidCurrencyError: If either currency is not supported
        """
        source = self.currency(money.currency.code)
        target = self.currency(to_currency)
        if source == target:
            return money
        amount = money.amount / self._rates[source.code] * self._rates[target.code]
        return Money(amount, target)
