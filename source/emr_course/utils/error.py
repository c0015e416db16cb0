# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

import importlib
import inspect
import uuid
from typing import Any, Optional
import logging
from emr_course.utils.response import EmrResponse

logger = logging.getLogger("emr_course_logger")


# Errors are defined in these modules within emr_course/utils/errors folder
modules = [
    "aws_api",
    "custom_resource",
    "parameters",
]


class EmrError:
    @staticmethod
    def return_error(
        error_id: str,
        error_message: Any,
        error_doc_url: Optional[str] = None,
        helper: Optional[str] = None,
        status_code: Optional[int] = 500,
    ) -> EmrResponse:
        _error_message = " ".join(
            _part for _part in [str(error_message), helper or ""] if _part
        ).strip()

        # Get the caller's frame
        _inspect_trace = []
        frame = inspect.currentframe().f_back
        while frame:
            frame_info = inspect.getframeinfo(frame)
            # keep trace pointing back to actual filename only
            if not frame_info.filename.startswith("<"):
                _inspect_trace.append(
                    f">> File: {frame_info.filename}, Line: {frame_info.lineno}, Function: {frame_info.function}"
                )
            frame = frame.f_back

        _trace_log = "\n".join(_inspect_trace)

        _request_uuid = uuid.uuid4()
        logger.error(
            f"Error ID: {error_id} | Error Message: {_error_message} | Status Code: {status_code} | Error RequestId {_request_uuid} | Error Trace: \n{_trace_log}"
        )

        # These returns are surfaced to the stack events or the CLI
        # We omit technical details such as system trace only available on the log stream
        if error_doc_url is not None:
            message = f"{_error_message}. For troubleshooting, please visit: {error_doc_url}. (Request ID: {_request_uuid})"
        else:
            message = f"{_error_message} (Request ID: {_request_uuid})"

        return EmrResponse(
            success=False,
            message=message,
            status_code=status_code,
            trace=_trace_log,
            error_id=error_id,
        )

    @staticmethod
    def GENERIC_ERROR(
        helper: Optional[str] = None,
        status_code: Optional[int] = 500,
        error_doc_url: Optional[str] = None,
    ):
        return EmrError.return_error(
            error_id=inspect.currentframe().f_code.co_name,
            error_message="",
            error_doc_url=error_doc_url,
            helper=helper,
            status_code=status_code,
        )


_all_errors = {}
for module_name in modules:
    _all_errors[module_name] = []
    module = importlib.import_module(f"emr_course.utils.errors.{module_name}")
    for name, obj in inspect.getmembers(module, inspect.isfunction):
        if obj.__module__ != module.__name__:
            continue
        _all_errors[module_name].append(name)
        # Check if the function doesn't already exist in EmrError
        if not hasattr(EmrError, name):
            setattr(EmrError, name, staticmethod(obj))
        else:
            raise RuntimeError(
                f"Function {name} already exists in EmrError. You cannot have the same error declared twice, pick a different name: {_all_errors}"
            )
