# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

import json
import yaml
import click
import sys


def print_output(message, output: str = "text", error: bool = False) -> None:
    if output == "json":
        click.echo(json.dumps(message, indent=4, default=str))
    elif output == "text":
        click.echo(message)
    elif output == "yaml":
        click.echo(yaml.dump(message, default_flow_style=False))
    else:
        click.echo(
            "Unrecognized output format. Supported values are text, json or yaml"
        )
        sys.exit(1)

    if error:
        sys.exit(1)


def parse_key_values(values: tuple) -> dict:
    # ("Key=Value", ...) -> {"Key": "Value"}
    _result = {}
    for item in values:
        if "=" not in item:
            raise click.BadParameter(f"{item} must use the KEY=VALUE format")
        _key, _value = item.split("=", 1)
        _result[_key.strip()] = _value
    return _result
