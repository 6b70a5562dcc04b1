import json
import boto3
import os
import logging

logger = logging.getLogger()
logger.setLevel(logging.INFO)

codedeploy = boto3.client('codedeploy')
lambda_client = boto3.client('lambda')

# Two records, one flagged preferred: must resolve and match
SMOKE_TEST_EVENT = {
    'action': 'match',
    'emails': [
        {'type': 'HOME', 'address': 'smoke.test@example.com', 'preferredFlag': 'N'},
        {'type': 'BUSINESS', 'address': 'smoke.test@example.org', 'preferredFlag': 'Y'},
    ],
    'candidate': ' smoke.test@example.org '
}


def validate_smoke_response(response_payload):
    """
    Check the reconciliation response of the new version.

    Raises:
        Exception: If the response does not match the expected outcome
    """
    if response_payload.get('statusCode') != 200:
        raise Exception(f"Invalid response status: {response_payload.get('statusCode')}")

    body = json.loads(response_payload.get('body', '{}'))
    preferred = body.get('preferred', {})
    if preferred.get('status') != 'resolved' or preferred.get('address') != 'smoke.test@example.org':
        raise Exception(f"Unexpected preferred email: {preferred}")

    if not body.get('match', {}).get('matched'):
        raise Exception(f"Login candidate did not match: {body.get('match')}")


def lambda_handler(event, context):
    """
    Pre-traffic hook for CodeDeploy.
    Runs a reconciliation smoke test before shifting traffic to new version.
    """
    logger.info(f"Pre-traffic hook triggered: {json.dumps(event)}")

    deployment_id = event['DeploymentId']
    lifecycle_event_hook_execution_id = event['LifecycleEventHookExecutionId']

    try:
        target_function = os.environ.get('TARGET_FUNCTION')
        if not target_function:
            raise Exception("TARGET_FUNCTION environment variable is not set")

        logger.info(f"Running smoke test on {target_function}")

        response = lambda_client.invoke(
            FunctionName=target_function,
            InvocationType='RequestResponse',
            Payload=json.dumps(SMOKE_TEST_EVENT)
        )

        response_payload = json.loads(response['Payload'].read())
        logger.info(f"Test response: {json.dumps(response_payload)}")

        if response.get('FunctionError'):
            raise Exception(f"Function returned error: {response_payload}")

        if response.get('StatusCode') != 200:
            raise Exception(f"Unexpected status code: {response.get('StatusCode')}")

        validate_smoke_response(response_payload)

        logger.info("Pre-traffic validation passed")

        codedeploy.put_lifecycle_event_hook_execution_status(
            deploymentId=deployment_id,
            lifecycleEventHookExecutionId=lifecycle_event_hook_execution_id,
            status='Succeeded'
        )

        return {
            'statusCode': 200,
            'body': json.dumps('Pre-traffic validation succeeded')
        }

    except Exception as e:
        logger.error(f"Pre-traffic validation failed: {str(e)}", exc_info=True)

        # Report failure - this will prevent deployment
        codedeploy.put_lifecycle_event_hook_execution_status(
            deploymentId=deployment_id,
            lifecycleEventHookExecutionId=lifecycle_event_hook_execution_id,
            status='Failed'
        )

        return {
            'statusCode': 500,
            'body': json.dumps(f'Pre-traffic validation failed: {str(e)}')
        }
