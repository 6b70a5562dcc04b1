"""
Email reconciliation engine - core business logic.

Three pure functions over an in-memory collection:
1. normalize_emails: raw records -> validated EmailCollection (+ diagnostics)
2. resolve_preferred: EmailCollection -> PreferredResolution
3. match_login: candidate address + EmailCollection -> MatchResult

Malformed records and unresolved preferences are reported as values, never
raised. The only exception is a TypeError when the input is not a sequence
(or the login candidate is not a string).
"""

from collections.abc import Mapping, Sequence
from typing import Any, List, Optional

from .models import (
    EmailCollection,
    EmailEntry,
    EmailType,
    MatchResult,
    NormalizationResult,
    PreferredResolution,
    PreferredStatus,
    ReconciliationResult,
    RejectedRecord,
)
from services import email as email_service


def _ensure_sequence(records: Any) -> None:
    if isinstance(records, EmailCollection):
        return
    if isinstance(records, (str, bytes, bytearray, Mapping)) or not isinstance(records, Sequence):
        raise TypeError(
            f"Email records must be a sequence of records, got {type(records).__name__}"
        )


def _to_entry(record: Any) -> EmailEntry:
    """
    Build a validated EmailEntry from one raw record.

    Raises:
        ValueError: If the record cannot produce a valid entry
    """
    if isinstance(record, EmailEntry):
        address = record.address
        entry_type = record.type
        is_preferred = record.is_preferred
    elif isinstance(record, Mapping):
        address = email_service.first_present(record, email_service.ADDRESS_KEYS)
        entry_type = email_service.first_present(record, email_service.TYPE_KEYS)
        is_preferred = email_service.parse_preferred_flag(
            email_service.first_present(record, email_service.PREFERRED_KEYS)
        )
    else:
        raise ValueError(f"record must be a mapping, got {type(record).__name__}")

    if address is None:
        raise ValueError('address is missing')
    if not isinstance(address, str):
        raise ValueError(f"address must be a string, got {type(address).__name__}")

    address = address.strip()
    error = email_service.address_error(address)
    if error:
        raise ValueError(error)

    return EmailEntry(type=EmailType(entry_type), address=address, is_preferred=is_preferred)


def normalize_emails(records: Sequence[Any], deduplicate: bool = False) -> NormalizationResult:
    """
    Normalize raw email records into a validated collection.

    Args:
        records: Sequence of raw mappings ({type, address, preferredFlag?})
            or EmailEntry objects, in source order
        deduplicate: Drop later records repeating an earlier (type, address)
            pair. A dropped duplicate's preferred flag is kept on the
            surviving entry.

    Returns:
        NormalizationResult with surviving entries in input order and the
        rejected/duplicate records

    Raises:
        TypeError: If records is not a sequence

    Example:
        >>> result = normalize_emails([
        ...     {"type": "HOME", "address": "a@x.com", "preferredFlag": "Y"},
        ...     {"type": "WORK", "address": "not-an-email"},
        ... ])
        >>> result.collection.addresses
        ['a@x.com']
        >>> result.rejected[0].reason
        "address must contain exactly one '@'"
    """
    _ensure_sequence(records)

    entries: List[EmailEntry] = []
    rejected: List[RejectedRecord] = []
    duplicates: List[RejectedRecord] = []
    positions = {}

    for index, record in enumerate(records):
        try:
            entry = _to_entry(record)
        except ValueError as e:
            rejected.append(RejectedRecord(index=index, record=record, reason=str(e)))
            continue

        if deduplicate:
            if entry.key in positions:
                duplicates.append(RejectedRecord(index=index, record=record, reason='duplicate (type, address)'))
                kept = positions[entry.key]
                if entry.is_preferred and not entries[kept].is_preferred:
                    entries[kept] = EmailEntry(
                        type=entries[kept].type,
                        address=entries[kept].address,
                        is_preferred=True,
                    )
                continue
            positions[entry.key] = len(entries)

        entries.append(entry)

    return NormalizationResult(
        collection=EmailCollection(tuple(entries)),
        rejected=tuple(rejected),
        duplicates=tuple(duplicates),
    )


def resolve_preferred(collection: EmailCollection) -> PreferredResolution:
    """
    Reduce a validated collection to its preferred address.

    Rules:
    - empty collection -> ABSENT
    - a single entry -> RESOLVED to that entry, whatever its flag says
    - exactly one flagged entry -> RESOLVED to it
    - no flagged entry -> NO_FLAG_SET (the caller's policy decides)
    - several flagged entries -> AMBIGUOUS, with the conflicting entries

    Args:
        collection: Validated EmailCollection

    Returns:
        PreferredResolution
    """
    if not collection:
        return PreferredResolution(status=PreferredStatus.ABSENT, collection=collection)

    if len(collection) == 1:
        only = collection[0]
        return PreferredResolution(
            status=PreferredStatus.RESOLVED,
            collection=collection,
            address=only.address,
            entry=only,
        )

    flagged = collection.preferred_entries
    if len(flagged) == 1:
        return PreferredResolution(
            status=PreferredStatus.RESOLVED,
            collection=collection,
            address=flagged[0].address,
            entry=flagged[0],
        )
    if not flagged:
        return PreferredResolution(status=PreferredStatus.NO_FLAG_SET, collection=collection)

    return PreferredResolution(
        status=PreferredStatus.AMBIGUOUS,
        collection=collection,
        conflicts=tuple(flagged),
    )


def match_login(candidate: Optional[str], collection: EmailCollection) -> MatchResult:
    """
    Match a login identifier against the stored addresses.

    Only surrounding whitespace of the candidate is removed; the comparison
    is otherwise exact (no case folding).

    Args:
        candidate: Address typed at login
        collection: Validated EmailCollection

    Returns:
        MatchResult with the first matching entry

    Raises:
        TypeError: If candidate is neither a string nor None
    """
    if candidate is None:
        return MatchResult(matched=False)
    if not isinstance(candidate, str):
        raise TypeError(f"Login candidate must be a string, got {type(candidate).__name__}")

    wanted = candidate.strip()
    if not wanted:
        return MatchResult(matched=False)

    for entry in collection:
        if entry.address == wanted:
            return MatchResult(matched=True, entry=entry)
    return MatchResult(matched=False)


def reconcile(records: Sequence[Any], deduplicate: bool = False) -> ReconciliationResult:
    """
    Normalize raw records and resolve the preferred address in one step.

    Args:
        records: Raw email records in source order
        deduplicate: See normalize_emails

    Returns:
        ReconciliationResult

    Raises:
        TypeError: If records is not a sequence
    """
    normalized = normalize_emails(records, deduplicate=deduplicate)
    return ReconciliationResult(
        collection=normalized.collection,
        preferred=resolve_preferred(normalized.collection),
        rejected=normalized.rejected,
        duplicates=normalized.duplicates,
    )
