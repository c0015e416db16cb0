# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

from typing import Optional
import inspect
from emr_course.utils.error import EmrError


def INVALID_STACK_PARAMETERS(
    errors: list,
    helper: Optional[str] = None,
    status_code: Optional[int] = 400,
    error_doc_url: Optional[str] = None,
):
    return EmrError.return_error(
        error_id=inspect.currentframe().f_code.co_name,
        error_message=f"Invalid stack parameters: {'; '.join(errors)}.",
        error_doc_url=error_doc_url,
        helper=helper,
        status_code=status_code,
    )
