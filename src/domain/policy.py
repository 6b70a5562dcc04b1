"""
Caller-side default policy for unresolved preferred emails.

The reconciliation engine never guesses: a collection without a flagged
entry resolves to NO_FLAG_SET. Callers that need a single address anyway
(e.g. a sync job writing one "preferred" column) apply a DefaultPolicy to
the resolution. Ambiguous resolutions are left undecided unless the policy
explicitly allows breaking ties among the conflicting entries.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from .models import EmailEntry, EmailType, PolicyDecision, PreferredResolution, PreferredStatus


def parse_type_priority(value: Optional[str]) -> Tuple[EmailType, ...]:
    """
    Parse a comma-separated type priority (e.g. "BUSINESS, work,HOME").

    Blank items are ignored.
    """
    if not value:
        return ()
    return tuple(EmailType(item) for item in value.split(',') if item.strip())


@dataclass(frozen=True)
class DefaultPolicy:
    """
    Fallback rules applied in order: type priority, then first entry.

    Attributes:
        type_priority: Email types to prefer, highest priority first
        use_first: Fall back to the first entry when no type matches
        resolve_ambiguous: Also apply the rules to the conflicting entries
            of an AMBIGUOUS resolution
    """
    type_priority: Tuple[EmailType, ...] = ()
    use_first: bool = False
    resolve_ambiguous: bool = False

    @property
    def enabled(self) -> bool:
        return bool(self.type_priority) or self.use_first

    def apply(self, resolution: PreferredResolution) -> PolicyDecision:
        """
        Decide on an address for a resolution.

        Args:
            resolution: Result of resolve_preferred

        Returns:
            PolicyDecision (rule "none" and no address when undecided)
        """
        if resolution.is_resolved:
            return PolicyDecision(address=resolution.address, entry=resolution.entry, rule='resolved')

        if resolution.status is PreferredStatus.NO_FLAG_SET:
            return self._choose(list(resolution.collection))
        if resolution.status is PreferredStatus.AMBIGUOUS and self.resolve_ambiguous:
            return self._choose(list(resolution.conflicts))

        return PolicyDecision(address=None, entry=None, rule='none')

    def _choose(self, candidates: Sequence[EmailEntry]) -> PolicyDecision:
        by_priority = _first_by_type(candidates, self.type_priority)
        if by_priority is not None:
            return PolicyDecision(address=by_priority.address, entry=by_priority, rule='type-priority')
        if self.use_first and candidates:
            return PolicyDecision(address=candidates[0].address, entry=candidates[0], rule='first-entry')
        return PolicyDecision(address=None, entry=None, rule='none')


def _first_by_type(entries: Iterable[EmailEntry], priority: Sequence[EmailType]) -> Optional[EmailEntry]:
    pool: List[EmailEntry] = list(entries)
    for wanted in priority:
        for entry in pool:
            if entry.type == wanted:
                return entry
    return None
