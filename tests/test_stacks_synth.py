"""
CDK synthesis tests for the DDB, Cognito and AppSync stacks
Skipped when Node.js (needed by the jsii runtime) is not installed
"""
import json
from pathlib import Path
import pytest

pytestmark = pytest.mark.cdk

CONTEXT = {
    "application": "example",
    "environment": "dev",
    "account": "123456789012",
    "region": "us-east-1",
}


@pytest.fixture(scope="module")
def synthesized(node_available):
    """Build the app once and return its stacks by unit"""
    import aws_cdk as cdk
    from app import build_app

    app = build_app(cdk.App(context=CONTEXT))
    return {
        "ddb": app.node.find_child("example-dev-ddb-stack"),
        "cognito": app.node.find_child("example-dev-cognito-stack"),
        "appsync": app.node.find_child("example-dev-appsync-stack"),
    }


def _template(stack):
    from aws_cdk.assertions import Template

    return Template.from_stack(stack)


def _export_names(template):
    return sorted(
        output["Export"]["Name"]
        for output in template.to_json().get("Outputs", {}).values()
        if "Export" in output
    )


def test_ddb_table(synthesized):
    """Test the single table definition and its exports"""
    template = _template(synthesized["ddb"])

    template.has_resource_properties("AWS::DynamoDB::Table", {
        "TableName": "example-dev-ddb-table",
        "BillingMode": "PAY_PER_REQUEST",
        "StreamSpecification": {"StreamViewType": "NEW_AND_OLD_IMAGES"},
        "KeySchema": [
            {"AttributeName": "pk", "KeyType": "HASH"},
            {"AttributeName": "sk", "KeyType": "RANGE"},
        ],
    })
    assert _export_names(template) == ["example-dev-ddb-arn", "example-dev-ddb-stream-arn"]


def test_cognito_resources(synthesized):
    """Test pool, clients and identity pool"""
    template = _template(synthesized["cognito"])

    template.has_resource_properties("AWS::Cognito::UserPool", {
        "UserPoolName": "example-dev-user-pool",
        "AutoVerifiedAttributes": ["email"],
        "UsernameConfiguration": {"CaseSensitive": False},
    })
    template.resource_count_is("AWS::Cognito::UserPoolClient", 2)
    template.has_resource_properties("AWS::Cognito::UserPoolClient", {
        "ClientName": "example-dev-user-pool-clientweb",
    })
    template.has_resource_properties("AWS::Cognito::UserPoolClient", {
        "ClientName": "example-dev-user-pool-client",
    })
    template.has_resource_properties("AWS::Cognito::IdentityPool", {
        "IdentityPoolName": "example-dev-identity-pool",
        "AllowUnauthenticatedIdentities": False,
    })
    template.resource_count_is("AWS::Cognito::IdentityPoolRoleAttachment", 1)


def test_cognito_trust_policies(synthesized):
    """Test both federated roles carry the same conditions bar the amr literal"""
    from aws_cdk.assertions import Match

    template = _template(synthesized["cognito"])

    for state in ("authenticated", "unauthenticated"):
        template.has_resource_properties("AWS::IAM::Role", {
            "AssumeRolePolicyDocument": {
                "Statement": [
                    Match.object_like({
                        "Action": "sts:AssumeRoleWithWebIdentity",
                        "Principal": {"Federated": "cognito-identity.amazonaws.com"},
                        "Condition": {
                            "StringEquals": {"cognito-identity.amazonaws.com:aud": Match.any_value()},
                            "ForAnyValue:StringLike": {"cognito-identity.amazonaws.com:amr": state},
                        },
                    })
                ]
            }
        })


def test_cognito_custom_resource_lambda(synthesized):
    """Test the describe-client function and its exports"""
    template = _template(synthesized["cognito"])

    template.has_resource_properties("AWS::Lambda::Function", {
        "FunctionName": "example-dev-user-pool-client-lambda",
        "Runtime": "python3.12",
        "Handler": "handler.lambda_handler",
        "Timeout": 300,
    })
    template.has_resource_properties("AWS::IAM::Role", {
        "RoleName": "example-dev-user-pool-client-lambda-role",
    })
    template.has_resource_properties("AWS::IAM::Policy", {
        "PolicyName": "example-dev-user-pool-client-lambda-log-policy",
    })
    template.resource_count_is("AWS::CloudFormation::CustomResource", 1)
    assert _export_names(template) == [
        "example-dev-cognito-client-id",
        "example-dev-cognito-identity-pool-id",
        "example-dev-cognito-ui-url",
        "example-dev-cognito-user-pool-id",
    ]


def test_appsync_api(synthesized):
    """Test the API, data source and resolvers"""
    template = _template(synthesized["appsync"])

    template.has_resource_properties("AWS::AppSync::GraphQLApi", {
        "Name": "example-dev-appsync-api",
        "AuthenticationType": "AMAZON_COGNITO_USER_POOLS",
        "XrayEnabled": True,
    })
    template.has_resource_properties("AWS::AppSync::DataSource", {"Type": "AMAZON_DYNAMODB"})
    template.resource_count_is("AWS::AppSync::Resolver", 2)
    template.has_resource_properties("AWS::AppSync::Resolver", {
        "TypeName": "Query",
        "FieldName": "getUserInfo",
    })
    template.has_resource_properties("AWS::AppSync::Resolver", {
        "TypeName": "Mutation",
        "FieldName": "createInitialUser",
    })
    template.has_resource_properties("AWS::IAM::Role", {"RoleName": "example-dev-ddb-role"})
    template.has_resource_properties("AWS::IAM::Role", {"RoleName": "example-dev-appsync-logs-role"})


def test_appsync_imports(synthesized):
    """Test the API imports the table ARN and user pool id by key"""
    body = json.dumps(_template(synthesized["appsync"]).to_json())

    assert '{"Fn::ImportValue": "example-dev-ddb-arn"}' in body
    assert '{"Fn::ImportValue": "example-dev-cognito-user-pool-id"}' in body


def test_stack_dependencies(synthesized):
    """Test the API stack depends on both producers"""
    dependencies = {stack.stack_name for stack in synthesized["appsync"].dependencies}

    assert dependencies == {"example-dev-ddb-stack", "example-dev-cognito-stack"}
    assert not synthesized["ddb"].dependencies


def test_environment_variables_name_the_stacks(node_available, monkeypatch):
    """Test APPLICATION/ENVIRONMENT apply when cdk.json carries no namespace"""
    import aws_cdk as cdk
    from app import build_app

    cdk_json = Path(__file__).parent.parent / "infrastructure" / "cdk.json"
    context = dict(json.loads(cdk_json.read_text()).get("context", {}))
    context.update(account="123456789012", region="us-east-1")
    monkeypatch.setenv("APPLICATION", "shop")
    monkeypatch.setenv("ENVIRONMENT", "prod")

    app = build_app(cdk.App(context=context))
    stack_ids = sorted(child.node.id for child in app.node.children if isinstance(child, cdk.Stack))

    assert stack_ids == ["shop-prod-appsync-stack", "shop-prod-cognito-stack", "shop-prod-ddb-stack"]
