"""
AWS Lambda handler for reconciling profile emails from SQS sync messages.

Thin orchestration layer that delegates to SyncProcessor.
Policy: Always delete messages (no retries). Errors logged to CloudWatch.
"""

import logging
import os
from typing import Dict, Any

from domain.sync_processor import SyncProcessor

# Configure logging
logger = logging.getLogger()
logger.setLevel(os.environ.get('LOG_LEVEL', 'INFO'))

# Add console handler for local testing (AWS Lambda provides handlers automatically)
if not logger.handlers:
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    formatter = logging.Formatter('%(levelname)s - %(message)s')
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

# Initialize processor once at module level (reused across invocations)
sync_processor = SyncProcessor()


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Reconcile profile emails for a batch of SQS sync messages.

    Args:
        event: Lambda event with SQS records
        context: Lambda context

    Returns:
        Dict with batchItemFailures (always empty - no retries)
    """
    logger.info("=" * 70)
    logger.info("Email Reconciliation Sync - Started")
    logger.info("=" * 70)

    records = event.get('Records', [])
    logger.info(f"Processing batch of {len(records)} message(s)")

    results = []
    for record in records:
        result = sync_processor.process_sync_record(record)
        results.append(result)

        if result.success:
            status = result.reconciliation.preferred.status.value
            logger.info(f"✓ Reconciled message {result.message_id} (preferred: {status})")
        else:
            logger.warning(
                f"⚠ Processed message {result.message_id} with ERRORS: "
                f"{result.error_message}"
            )

    # Log summary
    logger.info("=" * 70)
    logger.info(f"Batch processing complete: {len(results)} message(s)")
    success_count = sum(1 for r in results if r.success)
    error_count = len(results) - success_count
    unresolved_count = sum(
        1 for r in results if r.success and not r.reconciliation.preferred.is_resolved
    )
    logger.info(f"  Success: {success_count}")
    logger.info(f"  Unresolved preferred: {unresolved_count}")
    logger.info(f"  Errors: {error_count}")
    logger.info("=" * 70)

    return {"batchItemFailures": []}
