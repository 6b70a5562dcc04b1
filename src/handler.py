import json
import os
import logging
from typing import Dict, Any

from domain.reconciliation import match_login, reconcile
from domain.sync_processor import env_flag, parse_flag

# Configure logging
logger = logging.getLogger()
logger.setLevel(os.environ.get('LOG_LEVEL', 'INFO'))

# Environment variables
ENVIRONMENT = os.environ.get('ENVIRONMENT', 'dev')

ACTIONS = ('reconcile', 'match')


def _response(status_code: int, body: Dict[str, Any]) -> Dict[str, Any]:
    return {
        'statusCode': status_code,
        'headers': {
            'Content-Type': 'application/json',
            'Access-Control-Allow-Origin': '*'
        },
        'body': json.dumps(body, default=str)
    }


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler to reconcile a profile's emails or match a login address.

    Expected event format:
    {
        "action": "reconcile" | "match",
        "emails": [{"type": "HOME", "address": "a@x.com", "preferredFlag": "Y"}],
        "candidate": "a@x.com",     (match only)
        "deduplicate": false        (optional, defaults to DEDUPLICATE_EMAILS)
    }
    """
    logger.info(f"Environment: {ENVIRONMENT}")

    try:
        action = event.get('action', 'reconcile')
        logger.info(f"Received action: {action}")
        if action not in ACTIONS:
            raise ValueError(f"Unknown action '{action}', expected one of {', '.join(ACTIONS)}")

        if 'emails' not in event:
            return _response(400, {'error': 'emails is required'})

        deduplicate = event.get('deduplicate')
        if deduplicate is None:
            deduplicate = env_flag('DEDUPLICATE_EMAILS')
        else:
            deduplicate = parse_flag(deduplicate)

        result = reconcile(event['emails'], deduplicate=deduplicate)
        if result.rejected:
            logger.warning(f"Rejected {len(result.rejected)} email record(s)")

        body = result.to_dict()

        if action == 'match':
            if 'candidate' not in event:
                return _response(400, {'error': 'candidate is required for match'})
            match = match_login(event['candidate'], result.collection)
            body['match'] = match.to_dict()
            logger.info(f"Login match: {match.matched}")

        logger.info(f"Preferred status: {result.preferred.status.value}")

        return _response(200, body)

    except (ValueError, TypeError) as ve:
        logger.error(f"Validation error: {str(ve)}")
        return _response(400, {'error': str(ve)})

    except Exception as e:
        logger.error(f"Error reconciling emails: {str(e)}", exc_info=True)
        return _response(500, {
            'error': 'Internal server error',
            'message': str(e)
        })


def health_check(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Simple health check endpoint for monitoring.
    """
    return _response(200, {
        'status': 'healthy',
        'environment': ENVIRONMENT,
        'deduplicate': env_flag('DEDUPLICATE_EMAILS'),
        'resultBucketConfigured': bool(os.environ.get('RESULT_BUCKET'))
    })
