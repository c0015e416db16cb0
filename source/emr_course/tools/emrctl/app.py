# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

import click
from emr_course.config import Config
from emr_course.tools.emrctl.commands.bpa import bpa
from emr_course.tools.emrctl.commands.event import event
from emr_course.tools.emrctl.commands.template import template
from emr_course.utils.logger import EmrLogger


@click.group()
@click.pass_context
def cli(ctx):
    # Log file is located in the user's home directory
    logger = EmrLogger().rotating_file_handler(file_path=Config.EMRCTL_LOG_FILE)
    ctx.obj = {}
    ctx.obj["logger"] = logger


cli.add_command(template)
cli.add_command(bpa)
cli.add_command(event)

if __name__ == "__main__":
    cli(obj={})
