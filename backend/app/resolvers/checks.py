"""Ordered checks the resolver runs around every mutation.

A check receives the operation name and the parsed input fields and raises
ValidationError to stop the mutation. An after-hook receives the same two
arguments plus the API record (or delete flag) produced and the caller id.
"""
import logging
import re
from typing import Any, Callable, Mapping, Optional, Sequence

from app.errors import ValidationError

logger = logging.getLogger(__name__)

MutationCheck = Callable[[str, Mapping[str, Any]], None]
AfterHook = Callable[[str, Mapping[str, Any], Any, Optional[int]], None]

REQUIRED_TEXT_FIELDS = ("email", "name", "title")
MAX_LENGTHS = {
    "email": 255,
    "name": 100,
    "title": 255,
    "avatar_url": 500,
    "external_id": 255,
    "emoji": 32,
}
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def reject_blank_text(operation: str, fields: Mapping[str, Any]) -> None:
    for field in REQUIRED_TEXT_FIELDS:
        value = fields.get(field)
        if isinstance(value, str) and not value.strip():
            raise ValidationError(f"{field} must not be blank", field=field)


def check_lengths(operation: str, fields: Mapping[str, Any]) -> None:
    for field, limit in MAX_LENGTHS.items():
        value = fields.get(field)
        if isinstance(value, str) and len(value) > limit:
            raise ValidationError(f"{field} must be at most {limit} characters", field=field)


def check_email_shape(operation: str, fields: Mapping[str, Any]) -> None:
    email = fields.get("email")
    if email is not None and not _EMAIL_RE.match(email):
        raise ValidationError(f"Invalid email address: {email!r}", field="email")


def audit_log(operation: str, fields: Mapping[str, Any], result: Any, caller_id: Optional[int]) -> None:
    record_id = getattr(result, "id", None) or fields.get("id")
    logger.info("audit: %s -> %s (caller=%s)", operation, record_id, caller_id if caller_id is not None else "anonymous")


DEFAULT_CHECKS: Sequence[MutationCheck] = (reject_blank_text, check_lengths, check_email_shape)
DEFAULT_AFTER_HOOKS: Sequence[AfterHook] = (audit_log,)
