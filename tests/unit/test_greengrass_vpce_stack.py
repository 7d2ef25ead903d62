from unittest import mock

import aws_cdk as cdk
import aws_cdk.assertions as assertions
import pytest

from greengrass_vpce.greengrass_vpce_stack import GreengrassVpceStack

ENV = cdk.Environment(account="123456789012", region="us-east-1")
SUBNET_IDS = ["subnet-0aaaaaaaaaaaaaaaa", "subnet-0bbbbbbbbbbbbbbbb"]
# CIDR block of the placeholder VPC returned before the context lookup runs
DUMMY_VPC_CIDR = "1.2.3.4/5"


def synth(endpoint_lookup="deploy"):
    app = cdk.App()
    stack = GreengrassVpceStack(
        app,
        "greengrass-vpce",
        vpc_id="vpc-0123456789abcdef0",
        subnet_ids=SUBNET_IDS,
        endpoint_lookup=endpoint_lookup,
        env=ENV,
    )
    return assertions.Template.from_stack(stack)


@pytest.fixture(scope="module")
def template():
    return synth()


def interface_endpoint(template, service):
    endpoints = template.find_resources(
        "AWS::EC2::VPCEndpoint",
        {
            "Properties": {
                "ServiceName": "com.amazonaws.us-east-1.{}".format(service),
                "VpcEndpointType": "Interface",
            }
        },
    )
    assert len(endpoints) == 1
    return next(iter(endpoints.items()))


def test_resource_graph_matches_fixed_layout(template):
    template.resource_count_is("AWS::EC2::SecurityGroup", 1)
    template.resource_count_is("AWS::EC2::VPCEndpoint", 8)
    template.resource_count_is("AWS::Route53::HostedZone", 1)
    template.resource_count_is("AWS::Route53::RecordSet", 2)
    template.resource_count_is("Custom::AWS", 2)


def test_security_group_allows_all_traffic_from_vpc(template):
    template.has_resource_properties(
        "AWS::EC2::SecurityGroup",
        {
            "SecurityGroupIngress": [
                assertions.Match.object_like(
                    {
                        "CidrIp": DUMMY_VPC_CIDR,
                        "IpProtocol": "-1",
                        "Description": "Allow all traffic from within the VPC",
                    }
                )
            ],
            "SecurityGroupEgress": [
                assertions.Match.object_like(
                    {"CidrIp": "0.0.0.0/0", "IpProtocol": "-1"}
                )
            ],
        },
    )


@pytest.mark.parametrize(
    "service,private_dns,name",
    [
        ("iot.data", False, "iot-data-endpoint"),
        ("iot.credentials", False, "iot-credentials-endpoint"),
        ("greengrass", True, "greengrass-endpoint"),
        ("s3", True, "s3-endpoint"),
        ("ssm", True, "ssm-endpoint"),
        ("ssmmessages", True, "ssm-messages-endpoint"),
        ("ec2messages", True, "ec2-messages-endpoint"),
    ],
)
def test_interface_endpoints(template, service, private_dns, name):
    _, endpoint = interface_endpoint(template, service)
    properties = endpoint["Properties"]
    assert {"Key": "Name", "Value": name} in properties["Tags"]
    assert properties["PrivateDnsEnabled"] is private_dns
    assert properties["SubnetIds"] == SUBNET_IDS

    security_groups = template.find_resources("AWS::EC2::SecurityGroup")
    sg_logical_id = next(iter(security_groups))
    assert properties["SecurityGroupIds"] == [
        {"Fn::GetAtt": [sg_logical_id, "GroupId"]}
    ]


def test_s3_gateway_endpoint_is_created_before_interface_endpoint(template):
    gateways = template.find_resources(
        "AWS::EC2::VPCEndpoint", {"Properties": {"VpcEndpointType": "Gateway"}}
    )
    assert len(gateways) == 1
    gateway_logical_id = next(iter(gateways))

    _, s3_endpoint = interface_endpoint(template, "s3")
    assert gateway_logical_id in s3_endpoint["DependsOn"]


def test_private_hosted_zone_is_scoped_to_vpc(template):
    template.has_resource_properties(
        "AWS::Route53::HostedZone",
        {
            "Name": "iot.us-east-1.amazonaws.com.",
            "VPCs": [assertions.Match.object_like({"VPCRegion": "us-east-1"})],
        },
    )


def test_iot_endpoint_lookups_run_at_deploy_time(template):
    for endpoint_type in ("iot:Data-ATS", "iot:CredentialProvider"):
        template.has_resource_properties(
            "Custom::AWS",
            {
                "Create": assertions.Match.serialized_json(
                    assertions.Match.object_like(
                        {
                            "service": "Iot",
                            "action": "describeEndpoint",
                            "parameters": {"endpointType": endpoint_type},
                        }
                    )
                )
            },
        )


@pytest.mark.parametrize(
    "service,lookup_type",
    [("iot.data", "iot:Data-ATS"), ("iot.credentials", "iot:CredentialProvider")],
)
def test_alias_records_point_at_iot_endpoints(template, service, lookup_type):
    endpoint_logical_id, _ = interface_endpoint(template, service)
    lookups = template.find_resources(
        "Custom::AWS",
        {
            "Properties": {
                "Create": assertions.Match.serialized_json(
                    assertions.Match.object_like(
                        {"parameters": {"endpointType": lookup_type}}
                    )
                )
            }
        },
    )
    assert len(lookups) == 1
    lookup_logical_id = next(iter(lookups))

    records = template.find_resources(
        "AWS::Route53::RecordSet",
        {
            "Properties": {
                "Name": {
                    "Fn::Join": [
                        "",
                        [{"Fn::GetAtt": [lookup_logical_id, "endpointAddress"]}, "."],
                    ]
                }
            }
        },
    )
    assert len(records) == 1
    record = next(iter(records.values()))["Properties"]
    assert record["Type"] == "A"
    assert endpoint_logical_id in str(record["AliasTarget"])


def test_outputs(template):
    outputs = template.find_outputs("*")
    for name in (
        "EndpointsSecurityGroupId",
        "IoTHostedZoneId",
        "IoTDataEndpointId",
        "IoTCredentialsEndpointId",
    ):
        assert name in outputs


def test_synth_time_lookup_uses_literal_record_names():
    addresses = {
        "iot:Data-ATS": "a1b2c3d4e5f6g7-ats.iot.us-east-1.amazonaws.com",
        "iot:CredentialProvider": "c1d2e3f4g5h6i7.credentials.iot.us-east-1.amazonaws.com",
    }
    with mock.patch("greengrass_vpce.iot_endpoint.boto3") as boto3:
        boto3.client.return_value.describe_endpoint.side_effect = lambda endpointType: {
            "endpointAddress": addresses[endpointType]
        }
        template = synth(endpoint_lookup="synth")

    boto3.client.assert_called_with("iot", "us-east-1")
    template.resource_count_is("Custom::AWS", 0)
    template.resource_count_is("AWS::Route53::RecordSet", 2)
    for address in addresses.values():
        template.has_resource_properties(
            "AWS::Route53::RecordSet", {"Name": address + ".", "Type": "A"}
        )
