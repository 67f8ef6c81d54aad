#!/usr/bin/env python3
"""
AWS CDK App for the example DynamoDB / Cognito / AppSync stacks

Usage:
    cdk synth -c application=example -c environment=dev
"""
import logging
import os
import sys

import aws_cdk as cdk

# Make the wiring package importable without installing it
sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "src"))

from stacks.ddb_stack import DDBStack
from stacks.cognito_stack import CognitoStack
from stacks.appsync_stack import AppSyncStack
from stack_wiring.config import get_config
from stack_wiring.naming import resolve_namespace
from stack_wiring.units import declare_units, DDB_UNIT, COGNITO_UNIT, APPSYNC_UNIT


def build_app(app: cdk.App = None) -> cdk.App:
    """Declare every stack and wire the deploy order; raises on invalid wiring"""
    app = app or cdk.App()

    config = get_config().with_context(app.node)
    logging.basicConfig(level=config.log_level)

    namespace = resolve_namespace(config.application, config.environment)
    graph = declare_units(namespace)

    # Fails synth on collisions, cycles or imports nobody exports
    graph.validate()

    # For development, use account/region from the cdk cli
    env_config = cdk.Environment(account=config.account, region=config.region)

    stacks = {
        DDB_UNIT: DDBStack(
            app,
            graph[DDB_UNIT].stack_id,
            unit=graph[DDB_UNIT],
            env=env_config,
            description=f"Single table for {namespace.prefix}"
        ),
        COGNITO_UNIT: CognitoStack(
            app,
            graph[COGNITO_UNIT].stack_id,
            unit=graph[COGNITO_UNIT],
            login_redirect_uri=config.login_redirect_uri,
            env=env_config,
            description=f"Authentication for {namespace.prefix}"
        ),
        APPSYNC_UNIT: AppSyncStack(
            app,
            graph[APPSYNC_UNIT].stack_id,
            unit=graph[APPSYNC_UNIT],
            env=env_config,
            description=f"GraphQL API for {namespace.prefix}"
        ),
    }

    # Add dependencies to ensure proper deployment order
    for producer, consumer in graph.edges():
        stacks[consumer].add_dependency(stacks[producer])

    return app


if __name__ == "__main__":
    build_app().synth()
