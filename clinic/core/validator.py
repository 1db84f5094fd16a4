"""
Field-level validation that collects every problem before reporting.
"""
from typing import Dict

from ..exceptions import FailedValidationException

class Validator:
    """
    Collects validation errors keyed by field name.
    
    Only the first message for a field is kept, so a caller sees one
    actionable problem per field and every failing field in one response.
    """
    def __init__(self):
        self.errors: Dict[str, str] = {}

    @property
    def valid(self) -> bool:
        """True when no check has failed"""
        return not self.errors

    def add_error(self, key: str, message: str) -> None:
        """Record an error unless the field already has one"""
        self.errors.setdefault(key, message)

    def check(self, ok: bool, key: str, message: str) -> None:
        """Record an error when `ok` is false"""
        if not ok:
            self.add_error(key, message)

    def raise_if_invalid(self) -> None:
        """
        Raise the collected errors.
        
        Raises:
            FailedValidationException: If any check failed
        """
        if self.errors:
            raise FailedValidationException(self.errors)

def digit_count(number: int) -> int:
    """Number of decimal digits in an integer, ignoring sign"""
    return len(str(abs(int(number))))

# Largest values the Integer and BigInteger columns can hold
MAX_INT32 = 2**31 - 1
MAX_INT64 = 2**63 - 1

def validate_contact_number(v: Validator, contact: int, min_digits: int) -> None:
    """Check a contact number against its digit minimum and the BigInteger range"""
    v.check(contact > 0, "contact", "must be a positive number")
    v.check(
        digit_count(contact) >= min_digits,
        "contact",
        f"contact number should be at least {min_digits} digits long"
    )
    v.check(contact <= MAX_INT64, "contact", f"must be at most {MAX_INT64}")
