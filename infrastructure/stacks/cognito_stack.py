"""
Cognito Stack
User pool, app clients, identity pool with its federated roles, and a
custom resource that describes the user pool client
"""
from pathlib import Path

from aws_cdk import (
    Stack,
    aws_cognito as cognito,
    aws_lambda as _lambda,
    aws_iam as iam,
    CustomResource,
    custom_resources as cr,
    Duration,
    CfnOutput
)
from constructs import Construct

from security.iam_policies import IAMPolicyGenerator, policy_statements
from stack_wiring.config import DEFAULT_REDIRECT_URI
from stack_wiring.deployment_graph import Unit
from stack_wiring.naming import (
    COGNITO_USER_POOL_ID,
    COGNITO_CLIENT_ID,
    COGNITO_IDENTITY_POOL_ID,
    COGNITO_UI_URL,
)
from stack_wiring.trust_policy import FederatedTrustPolicyBuilder

USER_POOL_CLIENT_LAMBDA_ASSET = str(
    Path(__file__).resolve().parents[2] / "src" / "lambda_functions" / "user_pool_client"
)


class CognitoStack(Stack):
    """
    Authentication infrastructure stack containing Cognito resources.
    Exports the pool and client ids consumed by the API stack.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        unit: Unit,
        login_redirect_uri: str = DEFAULT_REDIRECT_URI,
        **kwargs
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        self.unit = unit
        self.iam_generator = IAMPolicyGenerator(self.account, self.region)

        self.user_pool = cognito.UserPool(
            self,
            "UserPool",
            user_pool_name=unit.resource_name("user-pool"),
            auto_verify=cognito.AutoVerifiedAttrs(email=True),
            standard_attributes=cognito.StandardAttributes(
                email=cognito.StandardAttribute(required=True, mutable=False)
            ),
            sign_in_case_sensitive=False,
            self_sign_up_enabled=True
        )

        self.user_pool_client_web = cognito.UserPoolClient(
            self,
            "UserPoolClientWeb",
            user_pool_client_name=unit.resource_name("user-pool-clientweb"),
            user_pool=self.user_pool,
            refresh_token_validity=Duration.days(30)
        )

        self.user_pool_client = cognito.UserPoolClient(
            self,
            "UserPoolClient",
            user_pool_client_name=unit.resource_name("user-pool-client"),
            user_pool=self.user_pool,
            refresh_token_validity=Duration.days(30)
        )

        self.identity_pool = self._create_identity_pool()
        self.authenticated_role, self.unauthenticated_role = self._create_identity_pool_roles()

        cognito.CfnIdentityPoolRoleAttachment(
            self,
            "DefaultValid",
            identity_pool_id=self.identity_pool.ref,
            roles={
                "unauthenticated": self.unauthenticated_role.role_arn,
                "authenticated": self.authenticated_role.role_arn
            }
        )

        self.user_pool_client_lambda = self._create_user_pool_client_lambda()
        self.response = self._create_user_pool_client_custom_resource()

        self._create_outputs(login_redirect_uri)

    def _create_identity_pool(self) -> cognito.CfnIdentityPool:
        """Identity pool federating both app clients"""
        return cognito.CfnIdentityPool(
            self,
            "MyCognitoIdentityPool",
            identity_pool_name=self.unit.resource_name("identity-pool"),
            allow_unauthenticated_identities=False,
            cognito_identity_providers=[
                cognito.CfnIdentityPool.CognitoIdentityProviderProperty(
                    client_id=client.user_pool_client_id,
                    provider_name=self.user_pool.user_pool_provider_name
                )
                for client in (self.user_pool_client, self.user_pool_client_web)
            ]
        )

    def _create_identity_pool_roles(self):
        """Authenticated and unauthenticated roles from the same trust template"""
        builder = FederatedTrustPolicyBuilder()
        roles = []

        for construct_id, authenticated in (
            ("CognitoDefaultAuthenticatedRole", True),
            ("CognitoDefaultUnauthenticatedRole", False),
        ):
            if authenticated:
                trust = builder.authenticated(self.identity_pool.ref)
            else:
                trust = builder.unauthenticated(self.identity_pool.ref)

            role = iam.Role(self, construct_id, assumed_by=trust.to_principal())
            for statement in policy_statements(
                self.iam_generator.generate_identity_pool_role_policy(authenticated)
            ):
                role.add_to_policy(statement)
            roles.append(role)

        return roles[0], roles[1]

    def _create_user_pool_client_lambda(self) -> _lambda.Function:
        function_name = self.unit.resource_name("user-pool-client-lambda")

        self.user_pool_client_lambda_role = iam.Role(
            self,
            "UserPoolClientLambdaRole",
            role_name=self.unit.resource_name("user-pool-client-lambda-role"),
            assumed_by=iam.ServicePrincipal("lambda.amazonaws.com")
        )

        iam.Policy(
            self,
            "userPoolClientLambdaPolicy",
            policy_name=self.unit.resource_name("user-pool-client-lambda-policy"),
            roles=[self.user_pool_client_lambda_role],
            statements=policy_statements(
                self.iam_generator.generate_describe_user_pool_client_policy(
                    self.user_pool.user_pool_arn
                )
            )
        )

        # The custom resource must wait for this one, or its first log write fails
        self.user_pool_client_lambda_log_policy = iam.Policy(
            self,
            "userPoolClientLambdaLogPolicy",
            policy_name=self.unit.resource_name("user-pool-client-lambda-log-policy"),
            roles=[self.user_pool_client_lambda_role],
            statements=policy_statements(
                self.iam_generator.generate_lambda_log_policy(function_name)
            )
        )

        return _lambda.Function(
            self,
            "UserPoolClientLambda",
            function_name=function_name,
            runtime=_lambda.Runtime.PYTHON_3_12,
            handler="handler.lambda_handler",
            code=_lambda.Code.from_asset(USER_POOL_CLIENT_LAMBDA_ASSET),
            timeout=Duration.seconds(300),
            role=self.user_pool_client_lambda_role,
            description="Describes the Cognito user pool client for CloudFormation"
        )

    def _create_user_pool_client_custom_resource(self) -> str:
        provider = cr.Provider(
            self,
            "UserPoolClientProvider",
            on_event_handler=self.user_pool_client_lambda
        )

        custom_resource = CustomResource(
            self,
            "userPoolClientInputsCustomResource",
            service_token=provider.service_token,
            properties={
                "clientId": self.user_pool_client.user_pool_client_id,
                "userpoolId": self.user_pool.user_pool_id
            }
        )

        custom_resource.node.add_dependency(self.user_pool_client_lambda)
        custom_resource.node.add_dependency(self.user_pool_client)
        custom_resource.node.add_dependency(self.user_pool)
        custom_resource.node.add_dependency(self.user_pool_client_lambda_log_policy)

        return custom_resource.get_att_string("Response")

    def _create_outputs(self, login_redirect_uri: str) -> None:
        """CloudFormation Outputs"""
        CfnOutput(
            self,
            "cognitoUserPoolId",
            value=self.user_pool.user_pool_id,
            description="Cognito User Pool ID",
            export_name=self.unit.export_name(COGNITO_USER_POOL_ID)
        )

        CfnOutput(
            self,
            "cognitoClientId",
            value=self.user_pool_client.user_pool_client_id,
            description="Cognito User Pool Client ID",
            export_name=self.unit.export_name(COGNITO_CLIENT_ID)
        )

        CfnOutput(
            self,
            "IdentityPoolId",
            value=self.identity_pool.ref,
            description="Cognito Identity Pool ID",
            export_name=self.unit.export_name(COGNITO_IDENTITY_POOL_ID)
        )

        CfnOutput(
            self,
            "cognitoUIURL",
            value=self.unit.namespace.login_url(
                self.region,
                self.user_pool_client.user_pool_client_id,
                login_redirect_uri
            ),
            description="Hosted UI login URL",
            export_name=self.unit.export_name(COGNITO_UI_URL)
        )
