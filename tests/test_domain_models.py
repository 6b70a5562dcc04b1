"""
Tests for domain models (data structures).
"""

import pytest
import sys
import os
from dataclasses import FrozenInstanceError

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../src'))

from domain.models import (
    EmailCollection,
    EmailEntry,
    EmailType,
    MatchResult,
    PreferredResolution,
    PreferredStatus,
    ProcessingResult,
    ReconciliationResult,
    RejectedRecord,
)


class TestEmailType:
    """Test EmailType tag normalization."""

    def test_known_tag(self):
        """Test a known tag compares equal to its constant."""
        assert EmailType('HOME') == EmailType.HOME
        assert EmailType('HOME') == 'HOME'

    def test_tag_is_trimmed_and_upper_cased(self):
        """Test tags are normalized."""
        assert EmailType('  business ') == 'BUSINESS'

    def test_open_set(self):
        """Test unknown tags are accepted without code changes."""
        assert EmailType('alumni') == 'ALUMNI'

    def test_missing_tag(self):
        """Test missing or blank tags default to UNKNOWN."""
        assert EmailType(None) == EmailType.UNKNOWN
        assert EmailType('   ') == EmailType.UNKNOWN

    def test_idempotent(self):
        """Test wrapping a tag twice changes nothing."""
        assert EmailType(EmailType('work')) == 'WORK'


class TestEmailEntry:
    """Test EmailEntry dataclass."""

    def test_email_entry_creation(self):
        """Test creating EmailEntry instance."""
        entry = EmailEntry(type=EmailType('HOME'), address='a@x.com', is_preferred=True)

        assert entry.type == 'HOME'
        assert entry.address == 'a@x.com'
        assert entry.is_preferred is True
        assert entry.key == ('HOME', 'a@x.com')

    def test_email_entry_defaults_not_preferred(self):
        """Test preferred flag defaults to False."""
        entry = EmailEntry(type=EmailType('HOME'), address='a@x.com')
        assert entry.is_preferred is False

    def test_email_entry_is_frozen(self):
        """Test entries cannot be mutated."""
        entry = EmailEntry(type=EmailType('HOME'), address='a@x.com')
        with pytest.raises(FrozenInstanceError):
            entry.address = 'b@x.com'

    def test_to_dict(self):
        """Test output boundary rendering."""
        entry = EmailEntry(type=EmailType('WORK'), address='a@x.com', is_preferred=False)
        assert entry.to_dict() == {'type': 'WORK', 'address': 'a@x.com', 'isPreferred': False}


class TestEmailCollection:
    """Test EmailCollection sequence behaviour."""

    def test_collection_sequence_protocol(self):
        """Test len, iteration and indexing."""
        home = EmailEntry(type=EmailType('HOME'), address='a@x.com')
        work = EmailEntry(type=EmailType('WORK'), address='b@x.com', is_preferred=True)
        collection = EmailCollection((home, work))

        assert len(collection) == 2
        assert list(collection) == [home, work]
        assert collection[1] == work
        assert collection.addresses == ['a@x.com', 'b@x.com']
        assert collection.preferred_entries == [work]

    def test_empty_collection_is_falsy(self):
        """Test empty collection."""
        assert not EmailCollection()
        assert len(EmailCollection()) == 0

    def test_collection_built_from_list(self):
        """Test a list argument is stored as an immutable tuple."""
        home = EmailEntry(type=EmailType('HOME'), address='a@x.com')
        source = [home]
        collection = EmailCollection(source)
        source.append(EmailEntry(type=EmailType('WORK'), address='b@x.com'))

        assert collection.entries == (home,)
        assert collection == EmailCollection((home,))
        assert hash(collection) == hash(EmailCollection((home,)))

    def test_collection_equality(self):
        """Test collections with equal entries compare equal."""
        a = EmailCollection((EmailEntry(type=EmailType('HOME'), address='a@x.com'),))
        b = EmailCollection((EmailEntry(type=EmailType('home'), address='a@x.com'),))
        assert a == b


class TestPreferredResolution:
    """Test PreferredResolution dataclass."""

    def test_resolved_to_dict(self):
        """Test resolved outcome rendering."""
        entry = EmailEntry(type=EmailType('HOME'), address='a@x.com')
        resolution = PreferredResolution(
            status=PreferredStatus.RESOLVED,
            collection=EmailCollection((entry,)),
            address='a@x.com',
            entry=entry
        )

        assert resolution.is_resolved is True
        assert resolution.to_dict() == {'status': 'resolved', 'address': 'a@x.com'}
        assert 'a@x.com' in repr(resolution)

    def test_ambiguous_to_dict(self):
        """Test ambiguous outcome lists the conflicts."""
        a = EmailEntry(type=EmailType('HOME'), address='a@x.com', is_preferred=True)
        b = EmailEntry(type=EmailType('BUSINESS'), address='b@x.com', is_preferred=True)
        resolution = PreferredResolution(
            status=PreferredStatus.AMBIGUOUS,
            collection=EmailCollection((a, b)),
            conflicts=(a, b)
        )

        data = resolution.to_dict()
        assert resolution.is_resolved is False
        assert data['status'] == 'ambiguous'
        assert 'address' not in data
        assert [c['address'] for c in data['conflicts']] == ['a@x.com', 'b@x.com']

    def test_status_values(self):
        """Test status strings of the output boundary."""
        assert PreferredStatus.RESOLVED.value == 'resolved'
        assert PreferredStatus.ABSENT.value == 'absent'
        assert PreferredStatus.NO_FLAG_SET.value == 'no-flag-set'
        assert PreferredStatus.AMBIGUOUS.value == 'ambiguous'


class TestMatchResult:
    """Test MatchResult dataclass."""

    def test_no_match_to_dict(self):
        """Test rendering without an entry."""
        assert MatchResult(matched=False).to_dict() == {'matched': False}

    def test_match_to_dict(self):
        """Test rendering with the matched entry."""
        entry = EmailEntry(type=EmailType('HOME'), address='a@x.com')
        assert MatchResult(matched=True, entry=entry).to_dict() == {
            'matched': True,
            'entry': {'type': 'HOME', 'address': 'a@x.com', 'isPreferred': False}
        }


class TestReconciliationResult:
    """Test ReconciliationResult rendering."""

    def test_to_dict_includes_diagnostics(self):
        """Test output boundary with rejected records."""
        resolution = PreferredResolution(status=PreferredStatus.ABSENT, collection=EmailCollection())
        rejected = RejectedRecord(index=0, record={'address': 'bad'}, reason="address must contain exactly one '@'")
        result = ReconciliationResult(
            collection=EmailCollection(),
            preferred=resolution,
            rejected=(rejected,)
        )

        data = result.to_dict()
        assert data['validatedCollection'] == []
        assert data['preferred'] == {'status': 'absent'}
        assert data['diagnostics']['rejected'] == [
            {'index': 0, 'record': {'address': 'bad'}, 'reason': "address must contain exactly one '@'"}
        ]
        assert data['diagnostics']['duplicates'] == []


class TestProcessingResult:
    """Test ProcessingResult dataclass."""

    def test_processing_result_failure(self):
        """Test failed ProcessingResult."""
        result = ProcessingResult(
            success=False,
            message_id="msg-456",
            error_message="S3 fetch failed"
        )

        assert result.success is False
        assert result.request is None
        assert result.reconciliation is None
        assert result.error_message == "S3 fetch failed"
        assert result.should_delete_message is True  # Policy: always delete

    def test_processing_result_repr_success(self):
        """Test __repr__ for successful result."""
        result = ProcessingResult(success=True, message_id="msg-123")

        repr_str = repr(result)
        assert "success=True" in repr_str
        assert "msg-123" in repr_str

    def test_processing_result_repr_failure(self):
        """Test __repr__ for failed result."""
        result = ProcessingResult(
            success=False,
            message_id="msg-456",
            error_message="Test error"
        )

        repr_str = repr(result)
        assert "success=False" in repr_str
        assert "Test error" in repr_str


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
