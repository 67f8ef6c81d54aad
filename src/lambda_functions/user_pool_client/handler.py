"""
Custom resource handler for the Cognito user pool client
Describes the app client and returns a JSON summary as the `Response` attribute
"""
import json
import logging
from typing import Dict, Any

import boto3
from botocore.exceptions import ClientError

# Configure logging
logger = logging.getLogger()
logger.setLevel(logging.INFO)

# Never returned to CloudFormation; attributes show up in stack events
SECRET_FIELDS = ("ClientSecret",)

SUMMARY_FIELDS = (
    "UserPoolId",
    "ClientId",
    "ClientName",
    "RefreshTokenValidity",
    "AccessTokenValidity",
    "IdTokenValidity",
    "ExplicitAuthFlows",
    "SupportedIdentityProviders",
    "CallbackURLs",
    "LogoutURLs",
    "AllowedOAuthFlows",
    "AllowedOAuthScopes",
)


def describe_client(user_pool_id: str, client_id: str, cognito_client=None) -> Dict[str, Any]:
    """
    Describe a user pool client, dropping secrets

    Args:
        user_pool_id: Cognito user pool id
        client_id: App client id
        cognito_client: Optional boto3 cognito-idp client

    Returns:
        Summary of the app client configuration
    """
    cognito_client = cognito_client or boto3.client('cognito-idp')
    response = cognito_client.describe_user_pool_client(
        UserPoolId=user_pool_id,
        ClientId=client_id
    )
    client = response['UserPoolClient']

    return {
        field: client[field]
        for field in SUMMARY_FIELDS
        if field in client and field not in SECRET_FIELDS
    }


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    onEvent handler for the custom resource provider

    Args:
        event: CloudFormation custom resource event
        context: Lambda context

    Returns:
        PhysicalResourceId and Data for the provider framework
    """
    request_type = event.get('RequestType', 'unknown')
    properties = event.get('ResourceProperties', {})
    client_id = properties.get('clientId')
    user_pool_id = properties.get('userpoolId')

    logger.info(f"User pool client custom resource {request_type} for client: {client_id}")

    if request_type == 'Delete':
        return {'PhysicalResourceId': event.get('PhysicalResourceId', client_id)}

    if not client_id or not user_pool_id:
        logger.error(f"Missing properties: clientId={client_id}, userpoolId={user_pool_id}")
        raise ValueError("clientId and userpoolId are required")

    try:
        summary = describe_client(user_pool_id, client_id)
    except ClientError as e:
        logger.error(f"DescribeUserPoolClient failed: {e.response['Error']['Code']}")
        # Re-raise so the provider reports FAILED to CloudFormation
        raise

    return {
        'PhysicalResourceId': client_id,
        'Data': {
            'Response': json.dumps(summary, default=str)
        }
    }
