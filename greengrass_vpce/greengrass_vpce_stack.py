# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0


from typing import List

from constructs import Construct
import aws_cdk as cdk
from aws_cdk import (
    aws_ec2 as ec2,
    Stack,
    aws_route53 as route53,
    aws_route53_targets as targets,
)

from greengrass_vpce.config import LOOKUP_AT_DEPLOY
from greengrass_vpce.iot_endpoint import (
    IOT_CREDENTIAL_PROVIDER,
    IOT_DATA_ATS,
    endpoint_address,
)


class GreengrassVpceStack(Stack):
    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        vpc_id: str,
        subnet_ids: List[str],
        endpoint_lookup: str = LOOKUP_AT_DEPLOY,
        **kwargs
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        vpc = ec2.Vpc.from_lookup(self, "Vpc", vpc_id=vpc_id)

        subnets = [
            ec2.Subnet.from_subnet_id(self, subnet_id, subnet_id)
            for subnet_id in subnet_ids
        ]
        endpoint_subnets = ec2.SubnetSelection(subnets=subnets)

        # all traffic from inside the vpc, narrow the ports if devices allow it
        self.endpoints_sg = ec2.SecurityGroup(
            self,
            "SecurityGroup",
            vpc=vpc,
            description="Securing the endpoints used by Greengrass devices in the VPC",
            allow_all_outbound=True,
        )
        self.endpoints_sg.add_ingress_rule(
            ec2.Peer.ipv4(vpc.vpc_cidr_block),
            ec2.Port.all_traffic(),
            "Allow all traffic from within the VPC",
        )

        # endpoint services: https://docs.aws.amazon.com/vpc/latest/privatelink/integrated-services-vpce-list.html

        # private DNS is not supported for the IoT data and credentials endpoints,
        # the hosted zone below takes care of name resolution for both
        self.iot_data_endpoint = self._add_interface_endpoint(
            vpc,
            "VpcEndpointForIoTData",
            ec2.InterfaceVpcEndpointAwsService.IOT_CORE,
            "iot-data-endpoint",
            endpoint_subnets,
            private_dns_enabled=False,
        )
        self.iot_credentials_endpoint = self._add_interface_endpoint(
            vpc,
            "VpcEndpointForIoTCredentials",
            ec2.InterfaceVpcEndpointAwsService("iot.credentials"),
            "iot-credentials-endpoint",
            endpoint_subnets,
            private_dns_enabled=False,
        )
        self._add_interface_endpoint(
            vpc,
            "VpcEndpointForGreengrass",
            ec2.InterfaceVpcEndpointAwsService.IOT_GREENGRASS,
            "greengrass-endpoint",
            endpoint_subnets,
        )
        s3_endpoint = self._add_interface_endpoint(
            vpc,
            "VpcEndpointForS3",
            ec2.InterfaceVpcEndpointAwsService.S3,
            "s3-endpoint",
            endpoint_subnets,
        )

        s3_gateway_endpoint = vpc.add_gateway_endpoint(
            "VpcEndpointForS3Gateway",
            service=ec2.GatewayVpcEndpointAwsService.S3,
        )
        # private DNS on the S3 interface endpoint needs the gateway endpoint first
        s3_endpoint.node.add_dependency(s3_gateway_endpoint)

        iot_data_address = endpoint_address(self, IOT_DATA_ATS, endpoint_lookup)
        iot_credentials_address = endpoint_address(
            self, IOT_CREDENTIAL_PROVIDER, endpoint_lookup
        )

        self.hosted_zone = route53.PrivateHostedZone(
            self,
            "PrivateHostedZone",
            vpc=vpc,
            zone_name="iot.{}.amazonaws.com".format(Stack.of(self).region),
        )

        route53.ARecord(
            self,
            "IoTDataARecord",
            zone=self.hosted_zone,
            record_name=iot_data_address + ".",
            target=route53.RecordTarget.from_alias(
                targets.InterfaceVpcEndpointTarget(self.iot_data_endpoint)
            ),
        )

        route53.ARecord(
            self,
            "IoTCredARecord",
            zone=self.hosted_zone,
            record_name=iot_credentials_address + ".",
            target=route53.RecordTarget.from_alias(
                targets.InterfaceVpcEndpointTarget(self.iot_credentials_endpoint)
            ),
        )

        # Session Manager access to the devices
        self._add_interface_endpoint(
            vpc,
            "VpcEndpointForSSM",
            ec2.InterfaceVpcEndpointAwsService.SSM,
            "ssm-endpoint",
            endpoint_subnets,
        )
        self._add_interface_endpoint(
            vpc,
            "VpcEndpointForSSMMessages",
            ec2.InterfaceVpcEndpointAwsService.SSM_MESSAGES,
            "ssm-messages-endpoint",
            endpoint_subnets,
        )
        self._add_interface_endpoint(
            vpc,
            "VpcEndpointForEC2Messages",
            ec2.InterfaceVpcEndpointAwsService.EC2_MESSAGES,
            "ec2-messages-endpoint",
            endpoint_subnets,
        )

        cdk.CfnOutput(self, "EndpointsSecurityGroupId", value=self.endpoints_sg.security_group_id)
        cdk.CfnOutput(self, "IoTHostedZoneId", value=self.hosted_zone.hosted_zone_id)
        cdk.CfnOutput(
            self, "IoTDataEndpointId", value=self.iot_data_endpoint.vpc_endpoint_id
        )
        cdk.CfnOutput(
            self,
            "IoTCredentialsEndpointId",
            value=self.iot_credentials_endpoint.vpc_endpoint_id,
        )

    def _add_interface_endpoint(
        self,
        vpc: ec2.IVpc,
        endpoint_id: str,
        service: ec2.IInterfaceVpcEndpointService,
        name: str,
        subnets: ec2.SubnetSelection,
        private_dns_enabled: bool = True,
    ) -> ec2.InterfaceVpcEndpoint:
        endpoint = vpc.add_interface_endpoint(
            endpoint_id,
            service=service,
            private_dns_enabled=private_dns_enabled,
            security_groups=[self.endpoints_sg],
            subnets=subnets,
            open=False,
        )
        cdk.Tags.of(endpoint).add("Name", name)
        return endpoint
