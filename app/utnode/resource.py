"""
Resource descriptors: one per entity, consumed by the generic CRUD blueprint.

A descriptor names the collection (model), the URL slug, the editable field
table and the validation rule table. Nothing in here touches the request.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from app.utnode.errors import ConstraintViolation
from app.utnode.models import Base
from app.utnode.validation import NumberRange, Required, Rule

# Range of the Integer columns backing int fields.
INT_MIN = -(2**31)
INT_MAX = 2**31 - 1

_INPUT_TYPES = {
    "str": "text",
    "text": "textarea",
    "email": "email",
    "int": "number",
    "float": "number",
    "password": "password",
}


@dataclass(frozen=True)
class FieldSpec:
    name: str
    label: str
    kind: str = "str"  # str | text | email | int | float | password
    required: bool = False
    unique: bool = False
    default: Any = None
    min: float | None = None
    max: float | None = None
    range_message: str = ""

    @property
    def is_number(self) -> bool:
        return self.kind in ("int", "float")

    @property
    def write_only(self) -> bool:
        return self.kind == "password"

    @property
    def input_type(self) -> str:
        return _INPUT_TYPES[self.kind]

    def rules(self) -> list[tuple[str, Rule]]:
        out: list[tuple[str, Rule]] = []
        if self.required:
            out.append((self.name, Required(message=f"{self.label} is required")))
        if self.kind == "int":
            rule = NumberRange(
                min=self.min, max=self.max, integer=True, message=self.range_message, storage=(INT_MIN, INT_MAX)
            )
            out.append((self.name, rule))
        elif self.kind == "float":
            out.append((self.name, NumberRange(min=self.min, max=self.max, message=self.range_message)))
        return out

    def coerce(self, raw: str | None) -> Any:
        """Convert a validated form string to the column value."""
        if self.write_only:
            return raw or ""
        value = (raw or "").strip()
        if not value:
            return self.default
        if self.kind == "int":
            return int(value)
        if self.kind == "float":
            return float(value)
        if self.kind == "email":
            return value.lower()
        return value


@dataclass(frozen=True)
class Resource:
    slug: str  # URL segment and blueprint name, e.g. "game"
    name: str  # singular display name, e.g. "Game"
    plural: str
    model: type[Base]
    fields: tuple[FieldSpec, ...]
    extra_rules: tuple[tuple[str, Rule], ...] = ()
    label_field: str | None = None
    # Turns coerced form values into column values (e.g. password -> password_hash).
    prepare: Callable[[dict[str, Any]], dict[str, Any]] | None = field(default=None, compare=False)

    @property
    def rules(self) -> list[tuple[str, Rule]]:
        out: list[tuple[str, Rule]] = []
        for f in self.fields:
            out.extend(f.rules())
        out.extend(self.extra_rules)
        return out

    @property
    def display_fields(self) -> tuple[FieldSpec, ...]:
        return tuple(f for f in self.fields if not f.write_only)

    @property
    def duplicate_message(self) -> str:
        labels = [f.label.lower() for f in self.fields if f.unique]
        what = " or ".join(labels) if labels else "those details"
        return f"A {self.name.lower()} with that {what} already exists."

    def store_message(self, e: ConstraintViolation) -> str:
        if e.duplicate:
            return self.duplicate_message
        return f"That {self.name.lower()} could not be saved: a value is out of range."

    def form_payload(self, form: Mapping[str, str]) -> dict[str, str]:
        return {f.name: form.get(f.name, "") for f in self.fields}

    def to_values(self, payload: Mapping[str, str]) -> dict[str, Any]:
        values = {f.name: f.coerce(payload.get(f.name)) for f in self.fields}
        if self.prepare is not None:
            values = self.prepare(values)
        return values

    def label_of(self, record: Any) -> str:
        name = self.label_field or self.display_fields[0].name
        return str(getattr(record, name, "") or f"{self.name} #{record.id}")
