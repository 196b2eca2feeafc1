from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from pydantic import ValidationError

from app.schemas.events import PixelEventIn

REQUIRED_FIELDS = ("event_id", "event_name", "client_id")


@dataclass
class ValidationResult:
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def _is_number(v) -> bool:
    # bool is an int subclass but not a number for our purposes
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def parse_event(raw: Any) -> Tuple[Optional[PixelEventIn], ValidationResult]:
    """Turn an untyped inbound record into a PixelEventIn.

    Structural problems (wrong JSON type for a known field, or a body that
    is not an object) come back as ``invalid:<field>`` errors.
    """
    if not isinstance(raw, dict):
        return None, ValidationResult(errors=["invalid:payload"])
    try:
        return PixelEventIn.model_validate(raw), ValidationResult()
    except ValidationError as e:
        # the session warning still applies to records that fail to parse
        warnings = [] if raw.get("session_id") else ["recommend:session_id"]
        codes = []
        for err in e.errors():
            loc = ".".join(str(p) for p in err.get("loc", ()))
            code = f"invalid:{loc or 'payload'}"
            if code not in codes:
                codes.append(code)
        return None, ValidationResult(errors=codes, warnings=warnings)


def validate_event(ev: PixelEventIn) -> ValidationResult:
    """Check required fields and purchase invariants. Pure, no I/O."""
    result = ValidationResult()

    for name in REQUIRED_FIELDS:
        if not getattr(ev, name):
            result.errors.append(f"missing:{name}")
    if not ev.session_id:
        result.warnings.append("recommend:session_id")

    if ev.event_name == "purchase":
        ecommerce = ev.ecommerce if isinstance(ev.ecommerce, dict) else {}
        if not _is_number(ecommerce.get("value")):
            result.errors.append("missing:ecommerce.value")
        if not isinstance(ecommerce.get("currency"), str):
            result.errors.append("missing:ecommerce.currency")

    return result
