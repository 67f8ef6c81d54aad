"""
AppSync Stack
GraphQL API over the imported single table, authorised by the imported user pool
"""
from pathlib import Path

from aws_cdk import (
    Stack,
    aws_appsync as appsync,
    aws_cognito as cognito,
    aws_dynamodb as dynamodb,
    aws_iam as iam,
    CfnOutput,
    Fn
)
from constructs import Construct

from security.iam_policies import IAMPolicyGenerator, policy_statements
from stack_wiring.deployment_graph import Unit
from stack_wiring.mapping_templates import (
    GET_USER_INFO_REQUEST,
    CREATE_INITIAL_USER_REQUEST,
    RESULT_RESPONSE,
)
from stack_wiring.naming import DDB_ARN, COGNITO_USER_POOL_ID

SCHEMA_PATH = str(Path(__file__).resolve().parents[1] / "graphql" / "schema.graphql")


class AppSyncStack(Stack):
    """
    API stack. Deploys after the DDB and Cognito stacks, whose exports it imports.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        unit: Unit,
        **kwargs
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        self.unit = unit
        self.iam_generator = IAMPolicyGenerator(self.account, self.region)

        # Cross-stack imports
        self.table_arn = Fn.import_value(unit.import_name(DDB_ARN))
        self.table = dynamodb.Table.from_table_arn(self, "DDBTable", self.table_arn)

        user_pool_id = Fn.import_value(unit.import_name(COGNITO_USER_POOL_ID))
        self.user_pool = cognito.UserPool.from_user_pool_id(self, "UserPool", user_pool_id)

        self.api_logs_role = self._create_service_role(
            "ApiLogs",
            unit.resource_name("appsync-logs-role"),
            "Managed policy to allow AWS AppSync to write the logs of this API.",
            self.iam_generator.generate_appsync_logs_policy()
        )

        self.api = appsync.GraphqlApi(
            self,
            "Api",
            name=unit.resource_name("appsync-api"),
            definition=appsync.Definition.from_file(SCHEMA_PATH),
            authorization_config=appsync.AuthorizationConfig(
                default_authorization=appsync.AuthorizationMode(
                    authorization_type=appsync.AuthorizationType.USER_POOL,
                    user_pool_config=appsync.UserPoolConfig(
                        user_pool=self.user_pool,
                        default_action=appsync.UserPoolDefaultAction.ALLOW
                    )
                )
            ),
            log_config=appsync.LogConfig(
                exclude_verbose_content=False,
                field_log_level=appsync.FieldLogLevel.ALL,
                role=self.api_logs_role
            ),
            xray_enabled=True
        )

        CfnOutput(
            self,
            "GraphQLAPIURL",
            value=self.api.graphql_url,
            description="AppSync GraphQL endpoint"
        )

        self.ddb_role = self._create_service_role(
            "DDB",
            unit.resource_name("ddb-role"),
            "Managed policy to allow AWS AppSync to access the single table.",
            self.iam_generator.generate_dynamodb_access_policy(self.table_arn)
        )

        self.data_source = appsync.DynamoDbDataSource(
            self,
            "DDBDataSource",
            api=self.api,
            table=self.table,
            description="single table ddb table",
            service_role=self.ddb_role
        )

        self._create_resolvers()

    def _create_service_role(self, prefix: str, role_name: str, description: str, policy) -> iam.Role:
        """Role assumable by AppSync, carrying one managed policy"""
        managed_policy = iam.ManagedPolicy(
            self,
            f"{prefix}ManagedPolicy",
            description=description,
            path="/appsync/",
            statements=policy_statements(policy)
        )

        return iam.Role(
            self,
            f"{prefix}Role",
            role_name=role_name,
            managed_policies=[managed_policy],
            assumed_by=iam.ServicePrincipal("appsync.amazonaws.com")
        )

    def _create_resolvers(self) -> None:
        # Both resolvers key the item on the caller's sub claim
        appsync.Resolver(
            self,
            "GetUserInfo",
            api=self.api,
            type_name="Query",
            field_name="getUserInfo",
            data_source=self.data_source,
            request_mapping_template=appsync.MappingTemplate.from_string(GET_USER_INFO_REQUEST),
            response_mapping_template=appsync.MappingTemplate.from_string(RESULT_RESPONSE)
        )

        appsync.Resolver(
            self,
            "CreateInitialUser",
            api=self.api,
            type_name="Mutation",
            field_name="createInitialUser",
            data_source=self.data_source,
            request_mapping_template=appsync.MappingTemplate.from_string(CREATE_INITIAL_USER_REQUEST),
            response_mapping_template=appsync.MappingTemplate.from_string(RESULT_RESPONSE)
        )
