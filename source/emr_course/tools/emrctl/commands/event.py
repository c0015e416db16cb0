# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

import json
import click
from emr_course.config import Config
from emr_course.custom_resources.block_public_access import AccessGuardReconciler
from emr_course.tools.emrctl.commands.common import print_output
from emr_course.utils.aws.boto3_wrapper import get_boto
from emr_course.utils.http_client import EmrHttpClient
from emr_course.utils.response import EmrResponse


class LocalContext:
    """Stand-in for the Lambda context when the handler runs outside Lambda."""

    log_stream_name = "emrctl-local-invoke"

    def get_remaining_time_in_millis(self) -> int:
        return Config.LAMBDA_TIMEOUT * 1000


class EchoHttpClient:
    """Print the response document instead of sending it to the ResponseURL."""

    def __init__(self, endpoint: str, timeout: float = None):
        self._endpoint = endpoint.split("?")[0]

    def put_json(self, data: dict) -> EmrResponse:
        print_output({"ResponseURL": self._endpoint, "Body": data}, output="json")
        return EmrResponse(success=True, message="dry-callback", status_code=200)


@click.group()
def event():
    pass


@event.command()
@click.option(
    "-f",
    "--file",
    "event_file",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="JSON file with the custom resource request",
)
@click.option("--region", default=None, help="AWS region, default to the current session region")
@click.option(
    "--dry-callback",
    is_flag=True,
    default=False,
    help="Print the response instead of sending it to the ResponseURL",
)
def invoke(event_file, region, dry_callback):
    with open(event_file, "r") as f:
        _event = json.load(f)

    reconciler = AccessGuardReconciler(
        emr_client=get_boto(service_name="emr", region_name=region),
        http_client_cls=EchoHttpClient if dry_callback else EmrHttpClient,
    )
    try:
        _result = reconciler.handle(event=_event, context=LocalContext())
    except Exception as err:
        print_output(f"Handler raised {type(err).__name__}: {err}", error=True)

    print_output(_result.as_dict(), output="json")
