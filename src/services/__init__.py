"""
Utility functions for Lambda handler operations.

This package contains reusable service functions for email address checks
and S3 interactions.
"""

__all__ = ['email', 's3']
