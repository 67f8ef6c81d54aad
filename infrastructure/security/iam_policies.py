"""
IAM Policy Generator for the example Cognito / DynamoDB / AppSync stacks
Generates the permission documents attached to each role
"""

from typing import Dict, List, Any, Optional


DYNAMODB_ITEM_ACTIONS = [
    "dynamodb:GetItem",
    "dynamodb:PutItem",
    "dynamodb:DeleteItem",
    "dynamodb:UpdateItem",
    "dynamodb:Query",
    "dynamodb:Scan",
    "dynamodb:BatchGetItem",
    "dynamodb:BatchWriteItem",
]

LOG_ACTIONS = [
    "logs:CreateLogGroup",
    "logs:CreateLogStream",
    "logs:PutLogEvents",
]


class IAMPolicyGenerator:
    """Generates IAM policies for the stacks of one namespace."""

    def __init__(self, account_id: str, region: str):
        self.account_id = account_id
        self.region = region

    def generate_identity_pool_role_policy(self, authenticated: bool) -> Dict[str, Any]:
        """Generate the permission set of an identity pool role."""
        actions = [
            "mobileanalytics:PutEvents",
            "cognito-sync:*",
        ]
        if authenticated:
            actions.append("cognito-identity:*")

        return {
            "Version": "2012-10-17",
            "Statement": [
                {
                    "Effect": "Allow",
                    "Action": actions,
                    "Resource": "*"
                }
            ]
        }

    def generate_lambda_log_policy(self, function_name: str) -> Dict[str, Any]:
        """Generate CloudWatch Logs policy scoped to one function's log group."""
        return {
            "Version": "2012-10-17",
            "Statement": [
                {
                    "Effect": "Allow",
                    "Action": LOG_ACTIONS,
                    "Resource": f"arn:aws:logs:{self.region}:{self.account_id}:log-group:/aws/lambda/{function_name}:log-stream:*"
                }
            ]
        }

    def generate_describe_user_pool_client_policy(self, user_pool_arn: str) -> Dict[str, Any]:
        """Generate policy letting the custom resource describe the app client."""
        return {
            "Version": "2012-10-17",
            "Statement": [
                {
                    "Effect": "Allow",
                    "Action": [
                        "cognito-idp:DescribeUserPoolClient"
                    ],
                    "Resource": user_pool_arn
                }
            ]
        }

    def generate_appsync_logs_policy(self) -> Dict[str, Any]:
        """Generate policy allowing AppSync to write its logs."""
        return {
            "Version": "2012-10-17",
            "Statement": [
                {
                    "Effect": "Allow",
                    "Action": LOG_ACTIONS,
                    "Resource": "*"
                }
            ]
        }

    def generate_dynamodb_access_policy(self, table_arn: str, actions: Optional[List[str]] = None) -> Dict[str, Any]:
        """Generate item-level DynamoDB access for the table and its indexes."""
        if actions is None:
            actions = DYNAMODB_ITEM_ACTIONS

        return {
            "Version": "2012-10-17",
            "Statement": [
                {
                    "Effect": "Allow",
                    "Action": list(actions),
                    "Resource": [
                        table_arn,
                        f"{table_arn}/*"
                    ]
                }
            ]
        }


def policy_statements(policy: Dict[str, Any]):
    """Convert a generated document into CDK ``PolicyStatement`` objects."""
    from aws_cdk import aws_iam as iam

    statements = policy["Statement"]
    if not isinstance(statements, list):
        statements = [statements]
    return [iam.PolicyStatement.from_json(statement) for statement in statements]
