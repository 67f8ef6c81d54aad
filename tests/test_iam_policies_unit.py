"""
Unit tests for iam_policies module
Tests the permission documents attached to each role
"""
import pytest

from security.iam_policies import IAMPolicyGenerator, DYNAMODB_ITEM_ACTIONS

TABLE_ARN = "arn:aws:dynamodb:us-east-1:123456789012:table/example-dev-ddb-table"
USER_POOL_ARN = "arn:aws:cognito-idp:us-east-1:123456789012:userpool/us-east-1_abc"


@pytest.fixture
def generator():
    return IAMPolicyGenerator("123456789012", "us-east-1")


@pytest.mark.unit
class TestIAMPolicyGenerator:
    """Test generated policies"""

    def test_identity_pool_role_permissions(self, generator):
        """Test authenticated and unauthenticated permission sets"""
        authenticated = generator.generate_identity_pool_role_policy(authenticated=True)
        unauthenticated = generator.generate_identity_pool_role_policy(authenticated=False)

        assert authenticated["Statement"][0]["Action"] == [
            "mobileanalytics:PutEvents", "cognito-sync:*", "cognito-identity:*"
        ]
        assert unauthenticated["Statement"][0]["Action"] == [
            "mobileanalytics:PutEvents", "cognito-sync:*"
        ]

    def test_lambda_log_policy_scoped_to_function(self, generator):
        """Test log permissions name the function's log group"""
        policy = generator.generate_lambda_log_policy("example-dev-user-pool-client-lambda")

        assert policy["Statement"][0]["Resource"] == (
            "arn:aws:logs:us-east-1:123456789012:log-group:"
            "/aws/lambda/example-dev-user-pool-client-lambda:log-stream:*"
        )

    def test_dynamodb_policy_covers_table_and_indexes(self, generator):
        """Test item actions on the table and its sub-resources"""
        statement = generator.generate_dynamodb_access_policy(TABLE_ARN)["Statement"][0]

        assert statement["Action"] == DYNAMODB_ITEM_ACTIONS
        assert statement["Resource"] == [TABLE_ARN, f"{TABLE_ARN}/*"]

    def test_describe_user_pool_client_policy(self, generator):
        """Test the custom resource may only describe clients of its pool"""
        statement = generator.generate_describe_user_pool_client_policy(USER_POOL_ARN)["Statement"][0]

        assert statement["Action"] == ["cognito-idp:DescribeUserPoolClient"]
        assert statement["Resource"] == USER_POOL_ARN

    def test_appsync_logs_policy(self, generator):
        """Test AppSync may write its logs"""
        statement = generator.generate_appsync_logs_policy()["Statement"][0]

        assert statement["Effect"] == "Allow"
        assert statement["Action"] == ["logs:CreateLogGroup", "logs:CreateLogStream", "logs:PutLogEvents"]
