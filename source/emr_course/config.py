# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

import os


class Config(object):
    # AWS
    BOTO3_USER_AGENT_EXTRA = "EmrCourseCluster/1.0"
    DEFAULT_REGION = os.environ.get("AWS_REGION", os.environ.get("AWS_DEFAULT_REGION"))

    # Custom resource callback
    CALLBACK_TIMEOUT_SECONDS = int(os.environ.get("EMR_COURSE_CALLBACK_TIMEOUT", 30))
    # Time kept aside before the Lambda deadline so the callback can still be sent
    DEADLINE_MARGIN_MS = int(os.environ.get("EMR_COURSE_DEADLINE_MARGIN_MS", 2000))
    CALLBACK_EXPECTED_RETURN_CODES = [200]

    # EMR Block Public Access. Port 22 is required by EMR, 80/443 are used by the Livy proxy
    PERMITTED_PUBLIC_PORTS = (22, 80, 443)

    # Keys redacted before an event is logged
    SANITIZE_LOG_KEYS = ["password", "passwd", "password2", "token", "secret", "auth"]

    # Stack template
    TEMPLATE_DESCRIPTION = (
        "CloudFormation template to create Amazon EMR cluster for student and coursework. "
        "The script can configure a reverse proxy with basic authentication enabled on the master node "
        "to enforce authenticated access to Livy for remote spark sessions. "
        "An additional bootstrap script can also be executed.\n\n"
        "IMPORTANT: This template is NOT intended for production environments or for use with real world data. "
        "This template will modify the EMR Block Public Access Configuration to allow public access to port 80 "
        "and 443 of the master node. It will overwrite any existing configuration."
    )
    RELEASE_LABELS = ["emr-6.3.1", "emr-6.3.0"]
    DEFAULT_RELEASE_LABEL = "emr-6.3.0"
    INSTANCE_TYPES = ["c5a.xlarge", "c5.xlarge", "m5a.xlarge", "m5.xlarge"]
    DEFAULT_INSTANCE_TYPE = "c5a.xlarge"
    CORE_INSTANCE_COUNT = 4
    DEFAULT_KEY_PAIR = "vockey"
    DEFAULT_PROXY_USERNAME = "cis545-livy"
    DEFAULT_LAMBDA_HELPER_ROLE = "LabRole"
    DEFAULT_PROXY_BOOTSTRAP_SCRIPT = "https://raw.githubusercontent.com/upenn/aws-emr-course-bootstrap/master/bootstrap-nginx.sh"
    CREDENTIALS_PATTERN = r"^[a-zA-Z0-9_-]+$"
    EMR_APPLICATIONS = ["Hadoop", "Spark", "Livy", "Zeppelin", "JupyterEnterpriseGateway"]
    EMR_JOB_FLOW_ROLE = "EMR_EC2_DefaultRole"
    EMR_SERVICE_ROLE = "EMR_DefaultRole"
    LIVY_SESSION_TIMEOUT = "5h"

    # Lambda packaging for the Block Public Access custom resource
    LAMBDA_RUNTIME = "python3.12"
    LAMBDA_HANDLER = "EMRBlockPublicAccessLambda.lambda_handler"
    LAMBDA_TIMEOUT = 300
    LAMBDA_MEMORY_SIZE = 512

    # CLI
    EMRCTL_LOG_FILE = f"{os.path.expanduser('~')}/.emr_course/emrctl.log"
