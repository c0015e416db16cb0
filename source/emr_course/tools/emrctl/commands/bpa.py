# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

import click
from emr_course.tools.emrctl.commands.common import print_output
from emr_course.utils.aws.boto3_wrapper import get_boto
from emr_course.utils.aws.emr_helper import EmrBlockPublicAccessClient
from emr_course.utils.datamodels.custom_resource import AccessPolicy


def bpa_client(region: str) -> EmrBlockPublicAccessClient:
    _client = get_boto(service_name="emr", region_name=region)
    if not _client.get("success"):
        print_output(_client.message, error=True)
    return EmrBlockPublicAccessClient(client=_client.message)


@click.group()
def bpa():
    pass


@bpa.command()
@click.option("--region", default=None, help="AWS region, default to the current session region")
@click.option(
    "--output",
    default="text",
    type=click.Choice(["text", "json", "yaml"]),
    help="Output result as: text, json, yaml",
)
def show(region, output):
    _configuration = bpa_client(region=region).get_block_public_access_configuration()
    if not _configuration.get("success"):
        print_output(_configuration.message, error=True)

    _policy: AccessPolicy = _configuration.message["policy"]
    _result = {
        "block_public_security_group_rules": _policy.block_public_security_group_rules,
        "permitted_public_port_ranges": [
            f"{_r.min_range}-{_r.max_range}"
            for _r in _policy.permitted_public_security_group_rule_ranges
        ],
        "created_by_arn": _configuration.message["created_by_arn"],
        "creation_date_time": str(_configuration.message["creation_date_time"]),
    }
    print_output(_result, output=output)


@bpa.command()
@click.option("--region", default=None, help="AWS region, default to the current session region")
@click.confirmation_option(
    prompt="This overwrites the EMR Block Public Access configuration of the account/region. Continue?"
)
def apply(region):
    _policy = AccessPolicy.default()
    _apply = bpa_client(region=region).put_block_public_access_configuration(policy=_policy)
    if not _apply.get("success"):
        print_output(_apply.message, error=True)
    print_output(
        f"Block Public Access enabled, permitted ports: {', '.join(str(_r.min_range) for _r in _policy.permitted_public_security_group_rule_ranges)}"
    )
