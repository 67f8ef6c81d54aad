"""
DDB Stack
Single-table-design DynamoDB table shared with the API stack through exports
"""
from aws_cdk import (
    Stack,
    aws_dynamodb as dynamodb,
    CfnOutput
)
from constructs import Construct

from stack_wiring.deployment_graph import Unit
from stack_wiring.naming import DDB_STREAM_ARN, DDB_ARN


class DDBStack(Stack):
    """
    Data stack containing the single table.
    Nothing here imports; the API stack consumes its ARN.
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

        self.table = dynamodb.Table(
            self,
            "SingleTableDesign",
            table_name=unit.resource_name("ddb-table"),
            billing_mode=dynamodb.BillingMode.PAY_PER_REQUEST,
            stream=dynamodb.StreamViewType.NEW_AND_OLD_IMAGES,
            partition_key=dynamodb.Attribute(
                name="pk",
                type=dynamodb.AttributeType.STRING
            ),
            sort_key=dynamodb.Attribute(
                name="sk",
                type=dynamodb.AttributeType.STRING
            )
        )

        # CloudFormation Outputs
        CfnOutput(
            self,
            "singleTableDesignStreamArn",
            value=self.table.table_stream_arn,
            description="Stream ARN of the single table",
            export_name=unit.export_name(DDB_STREAM_ARN)
        )

        CfnOutput(
            self,
            "singleTableDesignArn",
            value=self.table.table_arn,
            description="ARN of the single table",
            export_name=unit.export_name(DDB_ARN)
        )
