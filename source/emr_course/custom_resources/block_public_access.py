# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

"""
CloudFormation custom resource enabling EMR Block Public Access (BPA).

The EMR cluster of the course stack attaches a security group opening 80/443 to 0.0.0.0/0.
With BPA enabled and no exception for these ports, cluster creation is rejected, so Create/Update
(re)apply a fixed configuration: BPA on, ports 22, 80 and 443 permitted.
Delete leaves the configuration in place, it is account/region wide and not owned by the stack.

CloudFormation waits for a response on the pre-signed ResponseURL, so a response is sent on every path.
"""

import copy
import logging
import uuid
from typing import Callable, Optional, Type
from emr_course.config import Config
from emr_course.utils.aws.emr_helper import EmrBlockPublicAccessClient
from emr_course.utils.datamodels.custom_resource import (
    AccessPolicy,
    CreateEvent,
    DeleteEvent,
    LifecycleEvent,
    ReconciliationResult,
    ReconciliationStatus,
    UpdateEvent,
    parse_lifecycle_event,
)
from emr_course.utils.error import EmrError
from emr_course.utils.http_client import EmrHttpClient
from emr_course.utils.response import EmrResponse

logger = logging.getLogger("emr_course_logger")


class OperationError(Exception):
    """EMR rejected the Block Public Access configuration."""

    def __init__(self, response: EmrResponse, physical_resource_id: Optional[str] = None):
        super().__init__(response.message)
        self.response = response
        self.physical_resource_id = physical_resource_id


def sanitize_event(event) -> dict:
    if not isinstance(event, dict):
        return event
    _event = copy.deepcopy(event)
    if isinstance(_event.get("ResponseURL"), str):
        _event["ResponseURL"] = _event["ResponseURL"].split("?")[0]
    for _key in ["ResourceProperties", "OldResourceProperties"]:
        _properties = _event.get(_key)
        if isinstance(_properties, dict):
            for k in _properties.keys():
                if k.lower() in Config.SANITIZE_LOG_KEYS:
                    _properties[k] = "<REDACTED>"
    return _event


class AccessGuardReconciler:
    def __init__(
        self,
        emr_client: EmrResponse,
        http_client_cls: Type[EmrHttpClient] = EmrHttpClient,
        policy_factory: Callable[[], AccessPolicy] = AccessPolicy.default,
    ):
        """
        emr_client: EmrResponse returned by boto3_wrapper.get_boto. When it is not successful,
        every request is answered FAILED with the initialization error and EMR is never called.
        """
        self._emr_client = emr_client
        self._http_client_cls = http_client_cls
        self._policy_factory = policy_factory
        if emr_client.get("success"):
            self._bpa_client = EmrBlockPublicAccessClient(client=emr_client.message)
        else:
            self._bpa_client = None

    def handle(self, event: dict, context) -> ReconciliationResult:
        logger.debug(f"Received event: {sanitize_event(event)}")
        _result = ReconciliationResult(
            status=ReconciliationStatus.FAILED,
            reason="Custom resource handler exited before completing the request",
        )
        try:
            _result = self._reconcile(event)
        except OperationError as err:
            _result = ReconciliationResult(
                status=ReconciliationStatus.FAILED,
                reason=err.response.message,
                physical_resource_id=err.physical_resource_id,
            )
            raise
        except Exception as err:
            logger.exception(f"Exception: {err}")
            _fault = EmrError.UNEXPECTED_FAULT(helper=f"{type(err).__name__}: {err}")
            _result = ReconciliationResult(
                status=ReconciliationStatus.FAILED, reason=_fault.message
            )
            raise
        finally:
            _result.callback_delivered = self.send_response(event, context, _result)

        if not isinstance(event, dict) or not event.get("ResponseURL"):
            raise ValueError(
                "Custom resource request has no ResponseURL, CloudFormation was not notified"
            )
        return _result

    def _reconcile(self, event: dict) -> ReconciliationResult:
        if self._bpa_client is None:
            logger.error(
                f"EMR client is not available, rejecting request: {self._emr_client.message}"
            )
            return ReconciliationResult(
                status=ReconciliationStatus.FAILED,
                reason=f"Unable to create EMR Client: {self._emr_client.message}",
            )

        _parsed = parse_lifecycle_event(event)
        if not _parsed.get("success"):
            return ReconciliationResult(
                status=ReconciliationStatus.FAILED, reason=_parsed.message
            )

        _event: LifecycleEvent = _parsed.message
        logger.info(
            f"Got {_event.request_type} for {_event.logical_resource_id} ({_event.request_id})"
        )
        if isinstance(_event, CreateEvent):
            return self.create(_event)
        elif isinstance(_event, UpdateEvent):
            return self.update(_event)
        else:
            return self.delete(_event)

    def _apply_policy(self, physical_resource_id: str) -> ReconciliationResult:
        # Single attempt: CloudFormation re-sends the request with a new event if needed
        _apply = self._bpa_client.put_block_public_access_configuration(
            policy=self._policy_factory()
        )
        if not _apply.get("success"):
            raise OperationError(
                response=_apply, physical_resource_id=physical_resource_id
            ) from (_apply.request if isinstance(_apply.request, Exception) else None)

        return ReconciliationResult(
            status=ReconciliationStatus.SUCCESS,
            physical_resource_id=physical_resource_id,
        )

    def create(self, event: CreateEvent) -> ReconciliationResult:
        _physical_resource_id = uuid.uuid4().hex
        # Nothing exists yet if the update is rejected, let the response fall back on the log stream name
        try:
            return self._apply_policy(physical_resource_id=_physical_resource_id)
        except OperationError as err:
            err.physical_resource_id = None
            raise

    def update(self, event: UpdateEvent) -> ReconciliationResult:
        # Same fixed policy as Create, no diff of Old/New ResourceProperties.
        # PhysicalResourceId is kept, a new one would make CloudFormation issue a Delete for the old one
        return self._apply_policy(physical_resource_id=event.physical_resource_id)

    def delete(self, event: DeleteEvent) -> ReconciliationResult:
        logger.info(
            "Block Public Access configuration is account wide and is left in place"
        )
        return ReconciliationResult(
            status=ReconciliationStatus.SUCCESS,
            physical_resource_id=event.physical_resource_id,
        )

    @staticmethod
    def _callback_timeout(context) -> float:
        _timeout = float(Config.CALLBACK_TIMEOUT_SECONDS)
        _get_remaining_time = getattr(context, "get_remaining_time_in_millis", None)
        if callable(_get_remaining_time):
            _remaining = (_get_remaining_time() - Config.DEADLINE_MARGIN_MS) / 1000
            _timeout = min(_timeout, _remaining)
        return max(_timeout, 1.0)

    def send_response(self, event, context, result: ReconciliationResult) -> bool:
        _response_url = event.get("ResponseURL") if isinstance(event, dict) else None
        if not _response_url:
            logger.error(
                f"No ResponseURL in request, unable to send {result.status.value} response"
            )
            return False

        _log_stream_name = getattr(context, "log_stream_name", None) or "unknown"
        _body = result.as_callback_body(
            event=event, log_stream_name=_log_stream_name
        )
        logger.info(
            f"Sending {_body['Status']} response for {_body['LogicalResourceId']} with PhysicalResourceId {_body['PhysicalResourceId']}"
        )
        _send = self._http_client_cls(
            endpoint=_response_url, timeout=self._callback_timeout(context)
        ).put_json(data=_body)
        if _send.get("success"):
            logger.info(f"CloudFormation response status: {_send.status_code}")
            return True
        return False
