"""
Per-field input validation applied before any write.

Rules operate on the raw submitted strings. Each rule either accepts the value
or produces a human-readable message; `validate_payload` collects every
violation, in rule-table order, so the handler can flash them together.
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Mapping, Sequence

# RFC 5322 "plausible": one @, no whitespace, a dotted domain with a 2+ letter TLD.
EMAIL_REGEX = re.compile(r"^[A-Za-z0-9.!#$%&'*+/=?^_`{|}~-]+@[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?(?:\.[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?)*\.[A-Za-z]{2,}$")


@dataclass(frozen=True)
class Violation:
    field: str
    message: str


class Rule:
    message: str = "Invalid value"

    def check(self, value: str) -> str | None:
        """Return an error message, or None when the value passes."""
        raise NotImplementedError


@dataclass(frozen=True)
class Required(Rule):
    message: str = "This field is required"

    def check(self, value: str) -> str | None:
        return None if value.strip() else self.message


@dataclass(frozen=True)
class IsEmail(Rule):
    message: str = "Enter a valid email"

    def check(self, value: str) -> str | None:
        return None if EMAIL_REGEX.match(value.strip()) else self.message


@dataclass(frozen=True)
class MinLength(Rule):
    min: int
    message: str = ""

    def check(self, value: str) -> str | None:
        if len(value) >= self.min:
            return None
        return self.message or f"Must be at least {self.min} characters long"


def _fmt(bound: float) -> str:
    return str(int(bound)) if float(bound).is_integer() else f"{bound:g}"


@dataclass(frozen=True)
class NumberRange(Rule):
    """
    Numeric value within [min, max]. Blank passes; pair with Required when needed.
    `message` replaces the default text for the declared bounds only; `storage`
    is the range the backing column can hold and always uses the default text.
    """

    min: float | None = None
    max: float | None = None
    integer: bool = False
    message: str = ""
    storage: tuple[float, float] | None = None

    def check(self, value: str) -> str | None:
        raw = value.strip()
        if not raw:
            return None
        try:
            num = int(raw) if self.integer else float(raw)
        except ValueError:
            return "Must be a whole number" if self.integer else "Must be a number"
        if not self.integer and not math.isfinite(num):
            return "Must be a number"
        if self.min is not None and num < self.min:
            return self.message or f"Must be at least {_fmt(self.min)}"
        if self.max is not None and num > self.max:
            return self.message or f"Must be at most {_fmt(self.max)}"
        if self.storage is not None:
            lo, hi = self.storage
            if num < lo:
                return f"Must be at least {_fmt(lo)}"
            if num > hi:
                return f"Must be at most {_fmt(hi)}"
        return None


def validate(field: str, value: str | None, rule: Rule) -> Violation | None:
    msg = rule.check(value or "")
    if msg is None:
        return None
    return Violation(field=field, message=msg)


def validate_payload(payload: Mapping[str, str | None], rules: Sequence[tuple[str, Rule]]) -> list[Violation]:
    """Run every (field, rule) pair against payload; never short-circuits."""
    violations = []
    for field, rule in rules:
        v = validate(field, payload.get(field), rule)
        if v is not None:
            violations.append(v)
    return violations
