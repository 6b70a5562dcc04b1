"""
S3 operations utilities for Lambda handlers.

This module reads raw email records exported by upstream systems and writes
reconciliation outcomes back to Amazon S3.
"""

import json
import logging
from typing import Any, Dict, List

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

# Configure S3 client with timeouts to prevent infinite hangs
s3_config = Config(
    retries={
        'max_attempts': 1,  # 1 attempt total (no retries)
        'mode': 'standard'
    },
    connect_timeout=10,  # 10 seconds to establish connection
    read_timeout=30      # 30 seconds max for reading response
)

# Initialize S3 client at module level (thread-safe, reused across invocations)
s3_client = boto3.client('s3', config=s3_config)
logger.info("S3 client initialized with timeouts: connect=10s, read=30s, max_attempts=1")


def fetch_email_records(bucket: str, key: str) -> List[Any]:
    """
    Fetch a JSON array of raw email records from S3.

    Args:
        bucket: S3 bucket name
        key: S3 object key of the exported records

    Returns:
        list: Raw email records in source order

    Raises:
        ValueError: If the object is missing, is not valid JSON or does not
            hold a JSON array

    Example:
        >>> records = fetch_email_records(
        ...     bucket="profile-exports",
        ...     key="hr/2025/11/12/profile-42.json"
        ... )
        >>> records[0]
        {'type': 'HOME', 'address': 'jane@example.com', 'preferredFlag': 'Y'}
    """
    try:
        response = s3_client.get_object(Bucket=bucket, Key=key)
        body = response['Body'].read()
    except ClientError as e:
        error_code = e.response.get('Error', {}).get('Code', '')
        if error_code == 'NoSuchKey':
            logger.error(f"S3 object not found: s3://{bucket}/{key}")
            raise ValueError(f"Email records not found in S3: {key}")
        elif error_code == 'NoSuchBucket':
            logger.error(f"S3 bucket not found: {bucket}")
            raise ValueError(f"S3 bucket not found: {bucket}")
        else:
            logger.error(f"Failed to fetch from S3 s3://{bucket}/{key}: {e}")
            raise

    try:
        records = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.error(f"Invalid JSON in s3://{bucket}/{key}: {e}")
        raise ValueError(f"Email records in S3 are not valid JSON: {key}")

    if not isinstance(records, list):
        raise ValueError(
            f"Email records in S3 must be a JSON array, got {type(records).__name__}: {key}"
        )

    logger.info(f"Fetched {len(records)} email record(s) from s3://{bucket}/{key}")
    return records


def upload_reconciliation_result(bucket: str, key: str, result: Dict[str, Any]) -> None:
    """
    Upload a reconciliation outcome to S3 as JSON.

    Args:
        bucket: S3 bucket name
        key: S3 object key (path where to upload the file)
        result: JSON-serializable outcome

    Raises:
        ClientError: If S3 operation fails
        ValueError: If parameters are invalid
    """
    if not bucket:
        raise ValueError("S3 bucket name cannot be empty")
    if not key:
        raise ValueError("S3 object key cannot be empty")
    if result is None:
        raise ValueError("Result cannot be None")

    content = json.dumps(result, default=str)

    try:
        logger.info(
            f"Uploading reconciliation result to S3: bucket={bucket}, key={key}, "
            f"size={len(content)} bytes"
        )

        s3_client.put_object(
            Bucket=bucket,
            Key=key,
            Body=content.encode('utf-8'),
            ContentType='application/json'
        )

        logger.info(f"Successfully uploaded result to S3: bucket={bucket}, key={key}")

    except ClientError as e:
        error_code = e.response.get('Error', {}).get('Code', 'Unknown')
        error_message = e.response.get('Error', {}).get('Message', str(e))

        logger.error(
            f"Failed to upload result to S3: "
            f"bucket={bucket}, key={key}, "
            f"error_code={error_code}, error_message={error_message}"
        )

        raise
