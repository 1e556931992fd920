from __future__ import annotations

from typing import Any

from werkzeug.security import generate_password_hash

from app.utnode.models import User
from app.utnode.resource import FieldSpec, Resource
from app.utnode.validation import IsEmail, MinLength

PASSWORD_MIN_LENGTH = 5


def _hash_password(values: dict[str, Any]) -> dict[str, Any]:
    """Replace the plain password with its salted hash; the plain value is never stored."""
    out = dict(values)
    password = out.pop("password", "")
    out["password_hash"] = generate_password_hash(password)
    return out


resource = Resource(
    slug="users",
    name="User",
    plural="Users",
    model=User,
    fields=(
        FieldSpec("first_name", "First name"),
        FieldSpec("last_name", "Last name"),
        FieldSpec("email", "Email", kind="email", unique=True),
        FieldSpec("zip_code", "Zip code", kind="int", min=10000, max=99999, range_message="Zip code must be 5 digits"),
        FieldSpec("password", "Password", kind="password"),
    ),
    extra_rules=(
        ("email", IsEmail(message="Enter a valid email")),
        ("password", MinLength(PASSWORD_MIN_LENGTH, message=f"Password must be at least {PASSWORD_MIN_LENGTH} characters long")),
    ),
    label_field="email",
    prepare=_hash_password,
)
