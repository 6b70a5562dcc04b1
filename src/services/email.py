"""
Email address utilities for the reconciliation engine.

This module provides reusable functions for checking address syntax and
reading the loosely-typed fields (address, type tag, preferred flag) that
upstream systems send with each email record.
"""

import re
from typing import Any, Mapping, Optional, Sequence

# local-part@domain, dot-atom local part, at least one dot in the domain
_LOCAL_PART = re.compile(r"^[A-Za-z0-9!#$%&'*+/=?^_`{|}~-]+(?:\.[A-Za-z0-9!#$%&'*+/=?^_`{|}~-]+)*$")
_DOMAIN_LABEL = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?$")

MAX_ADDRESS_LENGTH = 254
MAX_LOCAL_PART_LENGTH = 64
MAX_DOMAIN_LABEL_LENGTH = 63

ADDRESS_KEYS = ('address', 'email')
TYPE_KEYS = ('type', 'emailType')
PREFERRED_KEYS = ('preferredFlag', 'isPreferred', 'preferred')

_TRUE_FLAGS = frozenset({'Y', 'YES', 'TRUE', '1'})


def address_error(address: str) -> Optional[str]:
    """
    Check an address against the email syntax rule.

    Args:
        address: Address to check (already trimmed)

    Returns:
        None if the address is valid, otherwise a short reason

    Example:
        >>> address_error("jane.doe@example.com") is None
        True
        >>> address_error("jane.doe@localhost")
        'domain must contain a dot'
    """
    if not address:
        return 'address is empty'
    if len(address) > MAX_ADDRESS_LENGTH:
        return f'address longer than {MAX_ADDRESS_LENGTH} characters'
    if address.count('@') != 1:
        return "address must contain exactly one '@'"

    local_part, domain = address.split('@')
    if not local_part:
        return 'local part is empty'
    if len(local_part) > MAX_LOCAL_PART_LENGTH:
        return f'local part longer than {MAX_LOCAL_PART_LENGTH} characters'
    if not _LOCAL_PART.match(local_part):
        return 'local part contains invalid characters'

    if not domain:
        return 'domain is empty'
    labels = domain.split('.')
    if len(labels) < 2:
        return 'domain must contain a dot'
    for label in labels:
        if not label or len(label) > MAX_DOMAIN_LABEL_LENGTH or not _DOMAIN_LABEL.match(label):
            return f"invalid domain label '{label}'"

    return None


def is_valid_address(address: Any) -> bool:
    """Check whether a value is a string holding a valid address."""
    return isinstance(address, str) and address_error(address.strip()) is None


def parse_preferred_flag(value: Any) -> bool:
    """
    Interpret a preferred flag sent by an upstream system.

    Booleans are used as-is; "Y", "YES", "TRUE" and "1" (any case) mean
    preferred. Missing or unrecognized values mean not preferred.

    Args:
        value: Raw flag value

    Returns:
        bool: True if the record is flagged preferred
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().upper() in _TRUE_FLAGS
    if isinstance(value, int):
        return value == 1
    return False


def first_present(record: Mapping[str, Any], keys: Sequence[str]) -> Any:
    """Return the first non-None value among the keys (or None)."""
    for key in keys:
        if record.get(key) is not None:
            return record[key]
    return None
