#!/usr/bin/env python3

# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

import logging

import aws_cdk as cdk

from greengrass_vpce.config import StackConfig, deployment_environment
from greengrass_vpce.greengrass_vpce_stack import GreengrassVpceStack
from greengrass_vpce.nag_checks import apply_nag_checks

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("greengrass_vpce")


app = cdk.App()
config = StackConfig.from_context(app.node)
logger.info(
    "Endpoints for %s in subnets %s (endpoint lookup at %s time)",
    config.vpc_id,
    ", ".join(config.subnet_ids),
    config.endpoint_lookup,
)

# Cannot look up the VPC if account/region are not specified
stack = GreengrassVpceStack(
    app,
    "GreengrassVpceStack",
    vpc_id=config.vpc_id,
    subnet_ids=config.subnet_ids,
    endpoint_lookup=config.endpoint_lookup,
    env=deployment_environment(),
)
apply_nag_checks(app, stack)

app.synth()
