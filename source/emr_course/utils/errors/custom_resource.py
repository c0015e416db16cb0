# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

from typing import Optional
import inspect
from emr_course.utils.error import EmrError


def UNKNOWN_REQUEST_TYPE(
    request_type: str,
    helper: Optional[str] = None,
    status_code: Optional[int] = 400,
    error_doc_url: Optional[str] = None,
):
    return EmrError.return_error(
        error_id=inspect.currentframe().f_code.co_name,
        error_message=f"Unknown operation: {request_type}. Expected one of Create, Update, Delete.",
        error_doc_url=error_doc_url,
        helper=helper,
        status_code=status_code,
    )


def INVALID_LIFECYCLE_EVENT(
    helper: Optional[str] = None,
    status_code: Optional[int] = 400,
    error_doc_url: Optional[str] = None,
):
    return EmrError.return_error(
        error_id=inspect.currentframe().f_code.co_name,
        error_message="Invalid custom resource request.",
        error_doc_url=error_doc_url,
        helper=helper,
        status_code=status_code,
    )


def UNEXPECTED_FAULT(
    helper: Optional[str] = None,
    status_code: Optional[int] = 500,
    error_doc_url: Optional[str] = None,
):
    return EmrError.return_error(
        error_id=inspect.currentframe().f_code.co_name,
        error_message="Unexpected error while processing custom resource request.",
        error_doc_url=error_doc_url,
        helper=helper,
        status_code=status_code,
    )


def CALLBACK_DELIVERY_ERROR(
    response_url: str,
    helper: Optional[str] = None,
    status_code: Optional[int] = 500,
    error_doc_url: Optional[str] = None,
):
    # Pre-signed URL query string carries credentials, only log the host/path
    return EmrError.return_error(
        error_id=inspect.currentframe().f_code.co_name,
        error_message=f"Unable to send response to {response_url.split('?')[0]}.",
        error_doc_url=error_doc_url,
        helper=helper,
        status_code=status_code,
    )
