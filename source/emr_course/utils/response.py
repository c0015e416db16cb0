# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

from typing import Any, Optional
import logging

logger = logging.getLogger("emr_course_logger")


class EmrResponse:
    """
    Attributes:
        success (bool): Indicates whether the operation was successful or not.
        message (Any): Message providing additional information about the response.
        status_code (int): Status code associated with the response. If not set, default to 200 if request is successful, 500 otherwise
        request (Any or None): Details of the request that was made.
        trace (str or None): Trace information for debugging purposes.
        error_id (str or None): Identifier of the EmrError that produced this response, if any.
    """

    DEFAULT_SUCCESS_STATUS_CODE = 200
    DEFAULT_ERROR_STATUS_CODE = 500

    def __init__(
        self,
        success: bool,
        message: Any,
        status_code: Optional[int] = None,
        request: Optional[Any] = None,
        trace: Optional[str] = None,
        error_id: Optional[str] = None,
    ):
        self.success = success
        self.message = message
        self.status_code = status_code
        self.request = request
        self.trace = trace
        self.error_id = error_id

        if not isinstance(success, bool):
            self.message = f"success must be a bool in EmrResponse, detected {success}"
            self.success = False
        else:
            self.success = success

        if status_code is None:
            if self.success:
                self.status_code = EmrResponse.DEFAULT_SUCCESS_STATUS_CODE
            else:
                self.status_code = EmrResponse.DEFAULT_ERROR_STATUS_CODE
        else:
            if not isinstance(status_code, int):
                self.message = f"status_code must be an int in EmrResponse, detected {status_code}"
                self.success = False
            elif not (100 <= status_code <= 599):
                self.message = f"status_code must be between 100 and 599 in EmrResponse, detected {status_code}"
                self.success = False
            else:
                self.status_code = status_code

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}: {self.__dict__}>"

    def __str__(self) -> str:
        return self.__repr__()

    def get(self, attribute):
        return getattr(self, attribute)
