import hashlib
import hmac
from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from numbers import Real
from typing import Any, Dict, Iterable, Mapping

from src.domain.capabilities import (
    Measurable,
    PasswordCredentials,
    Principal,
    TokenCredentials,
)
from src.domain.exceptions import RejectedError
from src.domain.models import Idea

CENTS = Decimal("0.01")


class MutationStrategy(ABC):
    """
    Behavior applied to a loaded entity inside a use case.

    Implementations mutate the borrowed entity through its own mutators or
    raise RejectedError. They never touch storage.
    """

    @abstractmethod
    def apply(self, idea: Idea, params: Mapping[str, Any]) -> None:
        pass


class RangeRatingStrategy(MutationStrategy):
    """Accepts `params["rating"]` when it lies within [minimum, maximum]."""

    def __init__(self, minimum: float = 1, maximum: float = 5):
        if minimum > maximum:
            raise ValueError(f"Empty rating range [{minimum}, {maximum}].")
        self.minimum = minimum
        self.maximum = maximum

    def _validate(self, value: Any) -> float:
        if isinstance(value, bool) or not isinstance(value, Real):
            raise RejectedError("rating_not_numeric", f"Rating {value!r} is not a number.")
        if not self.minimum <= value <= self.maximum:
            raise RejectedError(
                "rating_out_of_range",
                f"Rating {value} is outside [{self.minimum}, {self.maximum}].",
            )
        return value

    def apply(self, idea: Idea, params: Mapping[str, Any]) -> None:
        if "rating" not in params:
            raise RejectedError("rating_missing", "No rating supplied.")
        idea.add_rating(self._validate(params["rating"]))


class IntegerRatingStrategy(RangeRatingStrategy):
    """Star-style ratings: whole numbers only."""

    def _validate(self, value: Any) -> float:
        value = super()._validate(value)
        if value != int(value):
            raise RejectedError("rating_not_integer", f"Rating {value} is not a whole number.")
        return value


# Discounts

class DiscountStrategy(ABC):
    @abstractmethod
    def apply(self, amount: Decimal) -> Decimal:
        pass

    @staticmethod
    def _check_amount(amount: Decimal) -> Decimal:
        try:
            amount = Decimal(amount)
        except (InvalidOperation, TypeError, ValueError) as e:
            raise RejectedError("amount_not_numeric", f"Amount {amount!r} is not a number.") from e
        if amount < 0:
            raise RejectedError("amount_negative", f"Amount {amount} is negative.")
        return amount


class NoDiscount(DiscountStrategy):
    def apply(self, amount: Decimal) -> Decimal:
        return self._check_amount(amount).quantize(CENTS, rounding=ROUND_HALF_UP)


class PercentageDiscount(DiscountStrategy):
    def __init__(self, percent: Decimal):
        percent = Decimal(percent)
        if not 0 <= percent <= 100:
            raise ValueError(f"Percentage {percent} must be between 0 and 100.")
        self.percent = percent

    def apply(self, amount: Decimal) -> Decimal:
        amount = self._check_amount(amount)
        discounted = amount * (Decimal(100) - self.percent) / Decimal(100)
        return discounted.quantize(CENTS, rounding=ROUND_HALF_UP)


class FixedAmountDiscount(DiscountStrategy):
    def __init__(self, amount: Decimal):
        amount = Decimal(amount)
        if amount < 0:
            raise ValueError(f"Discount {amount} must not be negative.")
        self.amount = amount

    def apply(self, amount: Decimal) -> Decimal:
        amount = self._check_amount(amount)
        if self.amount > amount:
            raise RejectedError(
                "discount_exceeds_amount",
                f"Discount {self.amount} is larger than the amount {amount}.",
            )
        return (amount - self.amount).quantize(CENTS, rounding=ROUND_HALF_UP)


# Authentication

def hash_password(password: str) -> str:
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


class Authenticator(ABC):
    """
    Authentication strategy. The assembler picks the authenticator matching the
    credential type it accepts; callers never branch on the credentials' kind.
    """

    @abstractmethod
    def apply(self, credentials: Any) -> Principal:
        pass


class PasswordAuthenticator(Authenticator):
    def __init__(self, users: Mapping[str, str]):
        # username -> sha256 hex digest
        self._users: Dict[str, str] = dict(users)

    def apply(self, credentials: Any) -> Principal:
        if not isinstance(credentials, PasswordCredentials):
            raise RejectedError("unsupported_credentials", "Password credentials expected.")

        expected = self._users.get(credentials.username)
        if expected is None:
            raise RejectedError("unknown_user", f"Unknown user {credentials.username!r}.")
        if not hmac.compare_digest(expected, hash_password(credentials.password)):
            raise RejectedError("bad_password", "Password does not match.")

        return Principal(username=credentials.username, method="password")


class TokenAuthenticator(Authenticator):
    def __init__(self, tokens: Mapping[str, str]):
        # token -> username
        self._tokens: Dict[str, str] = dict(tokens)

    def apply(self, credentials: Any) -> Principal:
        if not isinstance(credentials, TokenCredentials):
            raise RejectedError("unsupported_credentials", "Token credentials expected.")

        for token, username in self._tokens.items():
            if hmac.compare_digest(token.encode("utf-8"), credentials.token.encode("utf-8")):
                return Principal(username=username, method="token")

        raise RejectedError("bad_token", "Token is not recognised.")


# Progress

class PercentProgress:
    """Progress in percent, computed only through the Measurable capability."""

    def __init__(self, precision: int = 2):
        self.precision = precision

    def _percent(self, current: float, total: float) -> float:
        if total <= 0:
            raise RejectedError("empty_total", "Nothing to measure progress against.")
        return round(current * 100 / total, self.precision)

    def measure(self, item: Measurable) -> float:
        return self._percent(item.current_amount(), item.total_amount())

    def aggregate(self, items: Iterable[Measurable]) -> float:
        """Combined progress, weighted by each item's total."""
        current = total = 0.0
        for item in items:
            current += item.current_amount()
            total += item.total_amount()
        return self._percent(current, total)
