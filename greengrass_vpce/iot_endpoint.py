# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

import logging

import boto3
from constructs import Construct
from aws_cdk import (
    Stack,
    custom_resources as cr,
)

from greengrass_vpce.config import LOOKUP_AT_DEPLOY, LOOKUP_AT_SYNTH

logger = logging.getLogger(__name__)

IOT_DATA_ATS = "iot:Data-ATS"
IOT_CREDENTIAL_PROVIDER = "iot:CredentialProvider"
ENDPOINT_TYPES = (IOT_DATA_ATS, IOT_CREDENTIAL_PROVIDER)


def _check_endpoint_type(endpoint_type: str) -> None:
    if endpoint_type not in ENDPOINT_TYPES:
        raise ValueError("unsupported IoT endpoint type: {}".format(endpoint_type))


def deploy_time_endpoint_address(scope: Construct, endpoint_type: str) -> str:
    """Resolve the account specific IoT endpoint address during deployment.

    Same as ``aws iot describe-endpoint --endpoint-type <endpoint_type>``, run by
    a custom resource. The returned value is a token.
    """
    _check_endpoint_type(endpoint_type)
    sdk_call = cr.AwsSdkCall(
        service="Iot",
        action="describeEndpoint",
        parameters={"endpointType": endpoint_type},
        physical_resource_id=cr.PhysicalResourceId.from_response("endpointAddress"),
    )
    lookup = cr.AwsCustomResource(
        scope,
        "IoTEndpoint-{}".format(endpoint_type),
        on_create=sdk_call,
        on_update=sdk_call,
        policy=cr.AwsCustomResourcePolicy.from_sdk_calls(
            resources=cr.AwsCustomResourcePolicy.ANY_RESOURCE
        ),
        install_latest_aws_sdk=False,
    )
    return lookup.get_response_field("endpointAddress")


def synth_time_endpoint_address(region: str, endpoint_type: str) -> str:
    """Resolve the IoT endpoint address with the caller's credentials while synthesizing."""
    _check_endpoint_type(endpoint_type)
    iot_client = boto3.client("iot", region)
    response = iot_client.describe_endpoint(endpointType=endpoint_type)
    address = response["endpointAddress"]
    logger.info("%s endpoint: %s", endpoint_type, address)
    return address


def endpoint_address(scope: Construct, endpoint_type: str, lookup: str = LOOKUP_AT_DEPLOY) -> str:
    if lookup == LOOKUP_AT_DEPLOY:
        return deploy_time_endpoint_address(scope, endpoint_type)
    if lookup == LOOKUP_AT_SYNTH:
        return synth_time_endpoint_address(Stack.of(scope).region, endpoint_type)
    raise ValueError("unsupported endpoint lookup mode: {}".format(lookup))
