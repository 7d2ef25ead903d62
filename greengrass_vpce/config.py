# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

import os
from typing import List, NamedTuple

import aws_cdk as cdk
from constructs import Node


LOOKUP_AT_DEPLOY = "deploy"
LOOKUP_AT_SYNTH = "synth"
LOOKUP_MODES = (LOOKUP_AT_DEPLOY, LOOKUP_AT_SYNTH)


class ConfigurationError(ValueError):
    """Raised when the stack context is missing or malformed."""


class StackConfig(NamedTuple):
    vpc_id: str
    subnet_ids: List[str]
    endpoint_lookup: str = LOOKUP_AT_DEPLOY

    @classmethod
    def from_context(cls, node: Node) -> "StackConfig":
        """Build the stack configuration from ``vpcId``, ``subnetIds`` and
        ``endpointLookup`` context values.

        ``subnetIds`` may be a list (cdk.json) or a comma separated string
        (``-c subnetIds=subnet-a,subnet-b``).
        """
        vpc_id = node.try_get_context("vpcId")
        if not isinstance(vpc_id, str) or not vpc_id.strip():
            raise ConfigurationError("context value 'vpcId' is required")
        vpc_id = vpc_id.strip()
        if not vpc_id.startswith("vpc-"):
            raise ConfigurationError(
                "context value 'vpcId' must be a VPC id, got {!r}".format(vpc_id)
            )

        subnet_ids = _split_subnet_ids(node.try_get_context("subnetIds"))
        if not subnet_ids:
            raise ConfigurationError(
                "context value 'subnetIds' must name at least one subnet"
            )
        for subnet_id in subnet_ids:
            if not subnet_id.startswith("subnet-"):
                raise ConfigurationError(
                    "context value 'subnetIds' contains {!r}, which is not a subnet id".format(
                        subnet_id
                    )
                )

        endpoint_lookup = node.try_get_context("endpointLookup") or LOOKUP_AT_DEPLOY
        if endpoint_lookup not in LOOKUP_MODES:
            raise ConfigurationError(
                "context value 'endpointLookup' must be one of {}, got {!r}".format(
                    ", ".join(LOOKUP_MODES), endpoint_lookup
                )
            )

        return cls(vpc_id, subnet_ids, endpoint_lookup)


def _split_subnet_ids(raw) -> List[str]:
    if raw is None:
        return []
    if isinstance(raw, str):
        raw = raw.split(",")
    elif not isinstance(raw, (list, tuple)):
        raise ConfigurationError(
            "context value 'subnetIds' must be a list or a comma separated string"
        )

    subnet_ids = []
    for item in raw:
        subnet_id = str(item).strip()
        if subnet_id and subnet_id not in subnet_ids:
            subnet_ids.append(subnet_id)
    return subnet_ids


def deployment_environment() -> cdk.Environment:
    # Vpc.from_lookup needs a concrete account and region
    return cdk.Environment(
        account=os.environ.get("CDK_DEFAULT_ACCOUNT"),
        region=os.environ.get("CDK_DEFAULT_REGION"),
    )
