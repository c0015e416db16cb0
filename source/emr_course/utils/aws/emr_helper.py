# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

import logging
from botocore.exceptions import ClientError
from emr_course.utils.datamodels.custom_resource import AccessPolicy
from emr_course.utils.error import EmrError
from emr_course.utils.response import EmrResponse

logger = logging.getLogger("emr_course_logger")


class EmrBlockPublicAccessClient:
    """
    Read/write the account and region wide EMR Block Public Access configuration.

    Every method returns an EmrResponse. AWS errors are not raised, they are returned
    as AWS_API_ERROR with the original ClientError attached to `request` so callers
    can decide whether to propagate it.
    """

    def __init__(self, client):
        self._client = client

    def _call_emr(self, action: str, **kwargs) -> EmrResponse:
        try:
            method = getattr(self._client, action)
            response = method(**kwargs)
            return EmrResponse(success=True, message=response)
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            error_message = e.response.get("Error", {}).get("Message", str(e))
            _error = EmrError.AWS_API_ERROR(
                service_name="emr",
                helper=f"{error_code} during '{action}': {error_message}",
            )
            _error.request = e
            return _error

    def put_block_public_access_configuration(self, policy: AccessPolicy) -> EmrResponse:
        logger.info(f"Applying EMR Block Public Access configuration: {policy}")
        _result = self._call_emr(
            action="put_block_public_access_configuration",
            BlockPublicAccessConfiguration=policy.as_api_payload(),
        )
        if _result.get("success"):
            logger.info("Block Public Access for EMR Configured")
        return _result

    def get_block_public_access_configuration(self) -> EmrResponse:
        _result = self._call_emr(action="get_block_public_access_configuration")
        if not _result.get("success"):
            return _result

        _configuration = _result.message.get("BlockPublicAccessConfiguration", {})
        _metadata = _result.message.get("BlockPublicAccessConfigurationMetadata", {})
        return EmrResponse(
            success=True,
            message={
                "policy": AccessPolicy.from_api_payload(_configuration),
                "created_by_arn": _metadata.get("CreatedByArn"),
                "creation_date_time": _metadata.get("CreationDateTime"),
            },
        )
