"""
Declarations of the three deployable units

The CDK stacks take their resource names, export keys and import keys from
here, and the deploy script orders stacks from the same graph, so the two
never disagree about who produces what.
"""
from .deployment_graph import DeploymentGraph
from .naming import (
    Namespace,
    DDB_STREAM_ARN,
    DDB_ARN,
    COGNITO_USER_POOL_ID,
    COGNITO_CLIENT_ID,
    COGNITO_IDENTITY_POOL_ID,
    COGNITO_UI_URL,
)

DDB_UNIT = "ddb"
COGNITO_UNIT = "cognito"
APPSYNC_UNIT = "appsync"


def declare_units(namespace: Namespace) -> DeploymentGraph:
    """Build the unit graph for one namespace"""
    graph = DeploymentGraph()

    table = graph.add_unit(DDB_UNIT, namespace)
    table.declare_resource("ddb-table")
    table.export(DDB_STREAM_ARN)
    table.export(DDB_ARN)

    auth = graph.add_unit(COGNITO_UNIT, namespace)
    for suffix in (
        "user-pool",
        "user-pool-clientweb",
        "user-pool-client",
        "identity-pool",
        "user-pool-client-lambda-role",
        "user-pool-client-lambda-policy",
        "user-pool-client-lambda-log-policy",
        "user-pool-client-lambda",
    ):
        auth.declare_resource(suffix)
    auth.export(COGNITO_USER_POOL_ID)
    auth.export(COGNITO_CLIENT_ID)
    auth.export(COGNITO_IDENTITY_POOL_ID)
    auth.export(COGNITO_UI_URL)

    api = graph.add_unit(APPSYNC_UNIT, namespace)
    for suffix in ("appsync-logs-role", "appsync-api", "ddb-role"):
        api.declare_resource(suffix)
    api.import_value(DDB_ARN)
    api.import_value(COGNITO_USER_POOL_ID)

    return graph
