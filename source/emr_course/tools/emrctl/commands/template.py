# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

import click
import yaml
from pydantic import ValidationError
from emr_course import cloudformation_builder
from emr_course.tools.emrctl.commands.common import print_output, parse_key_values
from emr_course.utils.datamodels.stack_parameters import StackParameters


def load_parameters_file(path: str) -> dict:
    # Accept both {"Key": "Value"} and the CloudFormation [{"ParameterKey", "ParameterValue"}] format
    with open(path, "r") as f:
        _content = yaml.safe_load(f) or {}

    if isinstance(_content, list):
        return {_p["ParameterKey"]: _p["ParameterValue"] for _p in _content}
    elif isinstance(_content, dict):
        return _content
    else:
        raise click.BadParameter(f"{path} must contain a mapping or a list of parameters")


@click.group()
def template():
    pass


@template.command()
@click.option(
    "--output",
    default="yaml",
    type=click.Choice(["json", "yaml"]),
    help="Template format",
)
@click.option(
    "--out",
    "out_file",
    default=None,
    type=click.Path(dir_okay=False, writable=True),
    help="Write the template to this file instead of stdout",
)
@click.option(
    "-d",
    "--default",
    "defaults",
    multiple=True,
    help="Override a parameter default, e.g. -d BootstrapProxyScript=https://example.com/proxy.sh",
)
@click.pass_context
def render(ctx, output, out_file, defaults):
    logger = ctx.obj["logger"]
    _render = cloudformation_builder.main(output=output, **parse_key_values(defaults))
    if not _render.get("success"):
        print_output(_render.message, error=True)

    if out_file:
        with open(out_file, "w") as f:
            f.write(_render.message)
        logger.info(f"Template written to {out_file}")
        print_output(f"Template written to {out_file}")
    else:
        print_output(_render.message)


@template.command(name="validate-parameters")
@click.option(
    "-f",
    "--file",
    "parameters_file",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="JSON or YAML file with the stack parameters",
)
def validate_parameters(parameters_file):
    try:
        _parameters = StackParameters(**load_parameters_file(parameters_file))
    except ValidationError as err:
        print_output(f"Invalid parameters file: {err}", error=True)

    _validate = _parameters.validate_parameters()
    if _validate.get("success"):
        print_output("Parameters are valid")
    else:
        print_output(_validate.message, error=True)
