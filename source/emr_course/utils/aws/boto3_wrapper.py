# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

import boto3
import botocore.config
import logging
from typing import Optional
from emr_course.config import Config
from emr_course.utils.error import EmrError
from emr_course.utils.response import EmrResponse

logger = logging.getLogger("emr_course_logger")


def get_boto(
    service_name: str,
    region_name: Optional[str] = None,
    extra_config: Optional[bool] = True,
    endpoint_url: Optional[str] = None,
) -> EmrResponse:
    """
    Build a boto3 client. Never raises: the client (or the reason it could not be built)
    is returned as an EmrResponse so callers can defer the failure to the first request.
    """
    if extra_config:
        _config = botocore.config.Config(user_agent_extra=Config.BOTO3_USER_AGENT_EXTRA)
    else:
        _config = None

    _boto3_params = {
        "service_name": service_name,
        "region_name": region_name or Config.DEFAULT_REGION,
        "endpoint_url": endpoint_url,
        "config": _config,
    }

    logger.debug(f"Building boto3 {service_name} with params {_boto3_params}")

    try:
        return EmrResponse(success=True, message=boto3.client(**_boto3_params))
    except Exception as err:
        return EmrError.CLIENT_INITIALIZATION_ERROR(
            service_name=service_name,
            helper=f"Unable to create boto3 client for {service_name} because of {err}",
        )
