# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

from aws_cdk import Aspects, Stack
from cdk_nag import AwsSolutionsChecks
from cdk_nag import NagSuppressions
from constructs import IConstruct


STACK_SUPPRESSIONS = [
    {"id": "AwsSolutions-IAM4", "reason": "Basic execution role of the IoT endpoint lookup function is an AWS managed policy"},
    {"id": "AwsSolutions-IAM5", "reason": "iot:DescribeEndpoint does not support resource level permissions"},
    {"id": "AwsSolutions-L1", "reason": "Runtime of the IoT endpoint lookup function is managed by the CDK"},
    {"id": "CdkNagValidationFailure", "reason": "VPC CIDR block is only known after the context lookup"},
]


def apply_nag_checks(scope: IConstruct, stack: Stack) -> None:
    """Run the AWS Solutions rules over ``scope`` and suppress the known findings on ``stack``."""
    Aspects.of(scope).add(AwsSolutionsChecks())
    NagSuppressions.add_stack_suppressions(stack, suppressions=STACK_SUPPRESSIONS)
