"""
Pytest configuration and fixtures for all tests.
"""

import os
import sys
import pytest

# Add src and hooks to Python path before any imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../src'))
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../hooks'))

# Set up test environment variables before importing any modules
os.environ.setdefault('AWS_DEFAULT_REGION', 'us-west-2')
os.environ.setdefault('ENVIRONMENT', 'test')
os.environ.setdefault('LOG_LEVEL', 'INFO')
os.environ.pop('RESULT_BUCKET', None)
os.environ.pop('DEDUPLICATE_EMAILS', None)
os.environ.pop('FALLBACK_TYPE_PRIORITY', None)
os.environ.pop('FALLBACK_TO_FIRST', None)


@pytest.fixture
def raw_records():
    """Raw email records as sent by the HR system."""
    return [
        {'type': 'HOME', 'address': 'jane.doe@example.com', 'preferredFlag': 'N'},
        {'type': 'BUSINESS', 'address': 'jane.doe@corp.example.org', 'preferredFlag': 'Y'},
        {'type': 'INSEAD_LOGIN', 'address': 'jane.doe@login.example.edu'},
    ]
