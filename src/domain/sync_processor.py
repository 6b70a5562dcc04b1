"""
Profile email sync pipeline.

This module handles the end-to-end processing of one profile sync message:
1. Parse the sync request from the SQS record
2. Load the raw email records (inline or from S3)
3. Reconcile them (normalize, validate, resolve preferred)
4. Apply the configured default policy to unresolved outcomes
5. Optionally write the outcome to S3
6. Return result (success or failure)

All errors are caught and returned as ProcessingResult with success=False.
No exceptions propagate out of the public methods.
"""

import json
import logging
import os
from typing import Any, Dict, List, Optional

from .models import PolicyDecision, ProcessingResult, ReconciliationResult, SyncRequest
from .policy import DefaultPolicy, parse_type_priority
from .reconciliation import reconcile
from services import s3 as s3_service

logger = logging.getLogger(__name__)


TRUE_VALUES = ('true', '1', 'yes', 'y')
FALSE_VALUES = ('false', '0', 'no', 'n', '')


def env_flag(name: str, default: bool = False) -> bool:
    """Read a boolean environment variable ("true", "1", "yes", "y")."""
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in TRUE_VALUES


def parse_flag(value: Any) -> bool:
    """
    Interpret a boolean sent in an event payload.

    Accepts real booleans and the strings env_flag understands, plus their
    negative forms ("false", "0", "no", "n").

    Raises:
        ValueError: If the value is neither a boolean nor a known flag string
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in TRUE_VALUES:
            return True
        if normalized in FALSE_VALUES:
            return False
    raise ValueError(f"Invalid boolean flag: {value!r}")


class SyncProcessor:
    """
    Reconciles the email records of one profile per SQS message.

    Configuration is read from the environment when not given explicitly
    (DEDUPLICATE_EMAILS, FALLBACK_TYPE_PRIORITY, FALLBACK_TO_FIRST,
    RESULT_BUCKET, RESULT_KEY_PREFIX).
    """

    def __init__(
        self,
        deduplicate: Optional[bool] = None,
        policy: Optional[DefaultPolicy] = None,
        result_bucket: Optional[str] = None,
        result_key_prefix: Optional[str] = None
    ):
        """Initialize sync processor."""
        self.deduplicate = env_flag('DEDUPLICATE_EMAILS') if deduplicate is None else deduplicate
        self.policy = policy or DefaultPolicy(
            type_priority=parse_type_priority(os.environ.get('FALLBACK_TYPE_PRIORITY')),
            use_first=env_flag('FALLBACK_TO_FIRST')
        )
        self.result_bucket = (
            result_bucket if result_bucket is not None
            else os.environ.get('RESULT_BUCKET')
        )
        self.result_key_prefix = (
            result_key_prefix if result_key_prefix is not None
            else os.environ.get('RESULT_KEY_PREFIX', 'reconciliation/')
        )

    def process_sync_record(self, record: Dict[str, Any]) -> ProcessingResult:
        """
        Process a single SQS record containing a profile sync request.

        Args:
            record: SQS record dict

        Returns:
            ProcessingResult with success=True or success=False (errors logged)
        """
        message_id = record.get('messageId', 'UNKNOWN')
        logger.info(f"Processing SQS message: {message_id}")

        try:
            request = self._parse_sync_request(record)
            logger.info(f"Parsed: profile={request.profile_id}, source={request.source}")

            raw_records = self._load_records(request)
            logger.info(f"Loaded {len(raw_records)} raw email record(s)")

            reconciliation = reconcile(raw_records, deduplicate=self.deduplicate)
            self._log_diagnostics(request, reconciliation)

            decision = self.policy.apply(reconciliation.preferred)
            if not reconciliation.preferred.is_resolved:
                logger.info(
                    f"Preferred email unresolved ({reconciliation.preferred.status.value}), "
                    f"policy rule={decision.rule}, address={decision.address}"
                )

            result_key = self._store_result(request, reconciliation, decision)

            self._log_processing_success(request, reconciliation, decision)

            return ProcessingResult(
                success=True,
                message_id=message_id,
                request=request,
                reconciliation=reconciliation,
                decision=decision,
                result_key=result_key
            )

        except Exception as e:
            logger.error(f"Failed to process {message_id}: {e}", exc_info=True)

            return ProcessingResult(
                success=False,
                message_id=message_id,
                error_message=str(e)
            )

    def _parse_sync_request(self, record: Dict[str, Any]) -> SyncRequest:
        """
        Parse SQS record and extract the sync request.

        Handles both direct SQS messages and SNS-wrapped notifications.

        Args:
            record: SQS record dict

        Returns:
            SyncRequest: Structured sync request

        Raises:
            ValueError: If message structure is invalid
            json.JSONDecodeError: If JSON parsing fails
        """
        message_id = record.get('messageId', 'UNKNOWN')

        body = json.loads(record['body'])

        # Check if wrapped in SNS (optional setup: SNS -> SQS)
        if isinstance(body, dict) and body.get('Type') == 'Notification' and 'Message' in body:
            logger.info("Unwrapping SNS message (SNS -> SQS)")
            body = json.loads(body['Message'])

        if not isinstance(body, dict):
            raise ValueError("Sync message body must be a JSON object")

        profile_id = body.get('profileId')
        if not profile_id:
            raise ValueError("Sync message missing 'profileId'")

        records = body.get('emails')
        location = body.get('recordsLocation') or {}

        if records is None:
            bucket_name = location.get('bucket')
            object_key = location.get('key')
            if not bucket_name or not object_key:
                raise ValueError("Sync message has neither 'emails' nor an S3 'recordsLocation'")
            return SyncRequest(
                message_id=message_id,
                profile_id=str(profile_id),
                source=body.get('source', 'unknown'),
                bucket_name=bucket_name,
                object_key=object_key
            )

        if not isinstance(records, list):
            raise ValueError(f"'emails' must be a list, got {type(records).__name__}")

        return SyncRequest(
            message_id=message_id,
            profile_id=str(profile_id),
            source=body.get('source', 'unknown'),
            records=records
        )

    def _load_records(self, request: SyncRequest) -> List[Any]:
        """
        Return inline records or fetch them from S3.

        Raises:
            ValueError: If S3 fetch fails or the object is malformed
        """
        if request.has_inline_records:
            return request.records

        logger.info(f"Fetching email records from: s3://{request.bucket_name}/{request.object_key}")
        return s3_service.fetch_email_records(request.bucket_name, request.object_key)

    def _store_result(
        self,
        request: SyncRequest,
        reconciliation: ReconciliationResult,
        decision: PolicyDecision
    ) -> Optional[str]:
        """
        Upload the outcome to RESULT_BUCKET (skipped when not configured).

        Returns:
            str: S3 key written, or None when upload is disabled
        """
        if not self.result_bucket:
            logger.info("Result upload not configured, skipping")
            return None

        key = f"{self.result_key_prefix}{request.profile_id}.json"
        payload = reconciliation.to_dict()
        payload['profileId'] = request.profile_id
        payload['source'] = request.source
        payload['policy'] = {'rule': decision.rule, 'address': decision.address}

        s3_service.upload_reconciliation_result(self.result_bucket, key, payload)
        return key

    def _log_diagnostics(self, request: SyncRequest, reconciliation: ReconciliationResult) -> None:
        """Log records dropped during normalization."""
        for rejected in reconciliation.rejected:
            logger.warning(
                f"Rejected email record #{rejected.index} for profile {request.profile_id}: "
                f"{rejected.reason}"
            )
        if reconciliation.duplicates:
            logger.info(
                f"Dropped {len(reconciliation.duplicates)} duplicate email record(s) "
                f"for profile {request.profile_id}"
            )
        if reconciliation.preferred.conflicts:
            addresses = ', '.join(e.address for e in reconciliation.preferred.conflicts)
            logger.warning(
                f"Conflicting preferred emails for profile {request.profile_id}: {addresses}"
            )

    def _log_processing_success(
        self,
        request: SyncRequest,
        reconciliation: ReconciliationResult,
        decision: PolicyDecision
    ) -> None:
        """Log successful processing summary."""
        logger.info("=" * 50)
        logger.info("PROFILE EMAILS RECONCILED")
        logger.info(f"Profile: {request.profile_id} (source={request.source})")
        logger.info(
            f"Valid: {len(reconciliation.collection)}, "
            f"rejected: {len(reconciliation.rejected)}, "
            f"duplicates: {len(reconciliation.duplicates)}"
        )
        logger.info(f"Preferred: {reconciliation.preferred.status.value} -> {decision.address}")
        logger.info("=" * 50)
