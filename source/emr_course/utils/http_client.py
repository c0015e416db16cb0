# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

from typing import Optional
import json
import logging
from requests import put
from requests.exceptions import RequestException
from emr_course.config import Config
from emr_course.utils.error import EmrError
from emr_course.utils.response import EmrResponse


logger = logging.getLogger("emr_course_logger")


class EmrHttpClient:
    def __init__(
        self,
        endpoint: str,
        headers: Optional[dict] = None,
        timeout: Optional[float] = None,
        expected_return_codes: Optional[
            list
        ] = None,  # list of status code to consider the request as successful
    ):
        if expected_return_codes is None:
            expected_return_codes = Config.CALLBACK_EXPECTED_RETURN_CODES

        self._url_endpoint = endpoint
        self._expected_return_codes = expected_return_codes
        self._headers = headers if headers is not None else {}
        self._timeout = timeout if timeout is not None else Config.CALLBACK_TIMEOUT_SECONDS

    def put_json(self, data: dict) -> EmrResponse:
        """
        PUT a JSON document to the endpoint.
        Pre-signed S3 URLs reject any Content-Type that was not part of the signature, hence the empty header.
        """
        _body = json.dumps(data, default=str)
        _headers = {"content-type": "", "content-length": str(len(_body))}
        _headers.update(self._headers)
        # Query string of a pre-signed URL carries credentials
        _url_to_log = self._url_endpoint.split("?")[0]
        logger.debug(f"Sending put request {_url_to_log} with body: {_body}")

        try:
            _req = put(
                self._url_endpoint,
                data=_body,
                headers=_headers,
                timeout=self._timeout,
            )
        except RequestException as err:
            return EmrError.CALLBACK_DELIVERY_ERROR(
                response_url=self._url_endpoint,
                helper=f"Request failed because of {err}",
            )

        if _req.status_code in self._expected_return_codes:
            logger.debug(
                f"Success: True as request status code {_req.status_code} is in the expected return codes {self._expected_return_codes}"
            )
            return EmrResponse(
                success=True,
                message=_req.text,
                status_code=_req.status_code,
                request=_req,
            )

        logger.debug(
            f"Success: False as request status code {_req.status_code} is not in the expected return codes {self._expected_return_codes}"
        )
        _error = EmrError.CALLBACK_DELIVERY_ERROR(
            response_url=self._url_endpoint,
            helper=f"Endpoint returned HTTP {_req.status_code}: {_req.text}",
        )
        _error.request = _req
        return _error
