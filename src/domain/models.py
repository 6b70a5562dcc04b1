"""
Data models for the email reconciliation domain.

These type-safe data structures define clear contracts between the
reconciliation engine, the caller-side policy layer and the Lambda adapters.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple


class EmailType(str):
    """
    String-backed email type tag (HOME, BUSINESS, WORK, ...).

    The set of tags is open: upstream systems may send any tag and it is
    accepted as-is after trimming and upper-casing. The class attributes
    below are the tags seen in the portal and HR systems.
    """

    HOME = 'HOME'
    BUSINESS = 'BUSINESS'
    WORK = 'WORK'
    CAMPUS = 'CAMPUS'
    INSEAD_LOGIN = 'INSEAD_LOGIN'
    LINKEDIN = 'LINKEDIN'
    UNKNOWN = 'UNKNOWN'

    def __new__(cls, value: Any = None) -> 'EmailType':
        tag = str(value).strip().upper() if value is not None else ''
        return super().__new__(cls, tag or cls.UNKNOWN)

    def __repr__(self) -> str:
        return f"EmailType({str.__repr__(self)})"


@dataclass(frozen=True)
class EmailEntry:
    """
    One validated email address of a profile.

    Attributes:
        type: Email type tag
        address: Syntactically valid address, surrounding whitespace removed
        is_preferred: Whether the source system flagged it as preferred
    """
    type: EmailType
    address: str
    is_preferred: bool = False

    @property
    def key(self) -> Tuple[str, str]:
        """Identity used for de-duplication."""
        return (str(self.type), self.address)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': str(self.type),
            'address': self.address,
            'isPreferred': self.is_preferred,
        }


@dataclass(frozen=True)
class EmailCollection:
    """
    Immutable ordered sequence of EmailEntry (source order).

    Built fresh from each upstream fetch and never mutated afterwards.
    """
    entries: Tuple[EmailEntry, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'entries', tuple(self.entries))

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[EmailEntry]:
        return iter(self.entries)

    def __getitem__(self, index: int) -> EmailEntry:
        return self.entries[index]

    def __bool__(self) -> bool:
        return bool(self.entries)

    @property
    def preferred_entries(self) -> List[EmailEntry]:
        """Entries whose preferred flag is set, in collection order."""
        return [e for e in self.entries if e.is_preferred]

    @property
    def addresses(self) -> List[str]:
        return [e.address for e in self.entries]

    def to_list(self) -> List[Dict[str, Any]]:
        return [e.to_dict() for e in self.entries]


@dataclass(frozen=True)
class RejectedRecord:
    """
    A raw record dropped during normalization.

    Attributes:
        index: Position of the record in the raw input
        record: The raw record as received
        reason: Human-readable rejection reason
    """
    index: int
    record: Any
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {'index': self.index, 'record': self.record, 'reason': self.reason}


@dataclass(frozen=True)
class NormalizationResult:
    """
    Validated collection plus the diagnostics side channel.

    Attributes:
        collection: Surviving entries in input order
        rejected: Records that failed validation
        duplicates: Records dropped by de-duplication (empty unless enabled)
    """
    collection: EmailCollection
    rejected: Tuple[RejectedRecord, ...] = ()
    duplicates: Tuple[RejectedRecord, ...] = ()

    @property
    def rejected_count(self) -> int:
        return len(self.rejected)


class PreferredStatus(str, Enum):
    """Outcome of preferred-email resolution."""
    RESOLVED = 'resolved'
    ABSENT = 'absent'
    NO_FLAG_SET = 'no-flag-set'
    AMBIGUOUS = 'ambiguous'


@dataclass(frozen=True)
class PreferredResolution:
    """
    Result of resolving the preferred email of a collection.

    This explicit result type keeps the empty, unflagged and conflicting
    cases inspectable instead of hiding them behind a guessed default.

    Attributes:
        status: Resolution outcome
        collection: The collection that was resolved (for policy layers)
        address: Preferred address (only when status is RESOLVED)
        entry: Preferred entry (only when status is RESOLVED)
        conflicts: Entries flagged preferred (only when status is AMBIGUOUS)
    """
    status: PreferredStatus
    collection: EmailCollection
    address: Optional[str] = None
    entry: Optional[EmailEntry] = None
    conflicts: Tuple[EmailEntry, ...] = ()

    @property
    def is_resolved(self) -> bool:
        return self.status is PreferredStatus.RESOLVED

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {'status': self.status.value}
        if self.address is not None:
            result['address'] = self.address
        if self.conflicts:
            result['conflicts'] = [e.to_dict() for e in self.conflicts]
        return result

    def __repr__(self) -> str:
        if self.is_resolved:
            return f"PreferredResolution(status={self.status.value}, address={self.address})"
        return f"PreferredResolution(status={self.status.value}, entries={len(self.collection)})"


@dataclass(frozen=True)
class MatchResult:
    """
    Result of matching a login candidate against a collection.

    Attributes:
        matched: Whether any entry equals the trimmed candidate
        entry: First matching entry (None when not matched)
    """
    matched: bool
    entry: Optional[EmailEntry] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {'matched': self.matched}
        if self.entry is not None:
            result['entry'] = self.entry.to_dict()
        return result


@dataclass(frozen=True)
class ReconciliationResult:
    """
    Normalized collection, resolved preference and diagnostics in one value.
    """
    collection: EmailCollection
    preferred: PreferredResolution
    rejected: Tuple[RejectedRecord, ...] = ()
    duplicates: Tuple[RejectedRecord, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        """
        Render the output boundary as JSON-serializable data.

        Returns:
            Dict with validatedCollection, preferred and diagnostics
        """
        return {
            'validatedCollection': self.collection.to_list(),
            'preferred': self.preferred.to_dict(),
            'diagnostics': {
                'rejected': [r.to_dict() for r in self.rejected],
                'duplicates': [d.to_dict() for d in self.duplicates],
            },
        }


@dataclass(frozen=True)
class PolicyDecision:
    """
    Address chosen by the caller-side default policy.

    Attributes:
        address: Chosen address (None if the policy could not decide)
        entry: Chosen entry
        rule: Which rule produced the decision ("resolved", "type-priority",
            "first-entry" or "none")
    """
    address: Optional[str]
    entry: Optional[EmailEntry]
    rule: str

    @property
    def decided(self) -> bool:
        return self.address is not None


@dataclass
class SyncRequest:
    """
    Profile sync request parsed from an SQS message.

    Attributes:
        message_id: SQS message identifier
        profile_id: Profile whose emails are reconciled
        source: Name of the system the records came from
        records: Inline raw records (None when stored in S3)
        bucket_name: S3 bucket holding the raw records
        object_key: S3 object key holding the raw records
    """
    message_id: str
    profile_id: str
    source: str = 'unknown'
    records: Optional[List[Any]] = None
    bucket_name: Optional[str] = None
    object_key: Optional[str] = None

    @property
    def has_inline_records(self) -> bool:
        return self.records is not None


@dataclass
class ProcessingResult:
    """
    Result of processing one sync message.

    This explicit result type makes success/failure handling clear
    and prevents exceptions from being used for control flow.

    Attributes:
        success: Whether processing succeeded
        message_id: SQS message identifier
        request: Parsed sync request (if parsing succeeded)
        reconciliation: Reconciliation outcome (if processing succeeded)
        decision: Default policy decision (if processing succeeded)
        result_key: S3 key the outcome was written to (if uploaded)
        error_message: Error description (if processing failed)
    """
    success: bool
    message_id: str
    request: Optional[SyncRequest] = None
    reconciliation: Optional[ReconciliationResult] = None
    decision: Optional[PolicyDecision] = None
    result_key: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def should_delete_message(self) -> bool:
        """Always True - delete all messages to prevent infinite retries."""
        return True

    def __repr__(self) -> str:
        """Human-readable representation for logging."""
        if self.success:
            return f"ProcessingResult(success=True, message_id={self.message_id})"
        else:
            return f"ProcessingResult(success=False, message_id={self.message_id}, error={self.error_message})"
