# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from emr_course.config import Config
from emr_course.utils.error import EmrError
from emr_course.utils.response import EmrResponse
import logging

logger = logging.getLogger("emr_course_logger")


class RequestType(str, Enum):
    CREATE = "Create"
    UPDATE = "Update"
    DELETE = "Delete"


class ReconciliationStatus(str, Enum):
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class _LifecycleEventBase(BaseModel):
    # CloudFormation sends PascalCase keys; ServiceToken, OldResourceProperties ... are ignored
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    stack_id: str = Field(alias="StackId", min_length=1)
    request_id: str = Field(alias="RequestId", min_length=1)
    response_url: str = Field(alias="ResponseURL", min_length=1)
    logical_resource_id: str = Field(default="", alias="LogicalResourceId")
    resource_type: Optional[str] = Field(default=None, alias="ResourceType")
    resource_properties: Dict[str, Any] = Field(
        default_factory=dict, alias="ResourceProperties"
    )


class CreateEvent(_LifecycleEventBase):
    request_type: Literal["Create"] = Field(alias="RequestType")


class UpdateEvent(_LifecycleEventBase):
    request_type: Literal["Update"] = Field(alias="RequestType")
    physical_resource_id: str = Field(alias="PhysicalResourceId", min_length=1)


class DeleteEvent(_LifecycleEventBase):
    request_type: Literal["Delete"] = Field(alias="RequestType")
    physical_resource_id: str = Field(alias="PhysicalResourceId", min_length=1)


LifecycleEvent = Union[CreateEvent, UpdateEvent, DeleteEvent]

_EVENT_MODELS = {
    RequestType.CREATE.value: CreateEvent,
    RequestType.UPDATE.value: UpdateEvent,
    RequestType.DELETE.value: DeleteEvent,
}


def parse_lifecycle_event(event: dict) -> EmrResponse:
    """
    Validate a raw custom resource request and return the matching LifecycleEvent variant.
    Unknown RequestType and malformed envelopes are returned as errors, never raised.
    """
    if not isinstance(event, dict):
        return EmrError.INVALID_LIFECYCLE_EVENT(
            helper=f"Event must be a JSON object, received {type(event).__name__}"
        )

    _request_type = event.get("RequestType")
    _model = _EVENT_MODELS.get(_request_type)
    if _model is None:
        return EmrError.UNKNOWN_REQUEST_TYPE(request_type=str(_request_type))

    try:
        return EmrResponse(success=True, message=_model.model_validate(event))
    except ValidationError as err:
        _errors = [
            f"{'.'.join(str(_loc) for _loc in _e['loc'])}: {_e['msg']}"
            for _e in err.errors()
        ]
        return EmrError.INVALID_LIFECYCLE_EVENT(helper=", ".join(_errors))


class PortRange(BaseModel):
    model_config = ConfigDict(frozen=True)

    min_range: int = Field(ge=0, le=65535)
    max_range: int = Field(ge=0, le=65535)

    @model_validator(mode="after")
    def _check_bounds(self) -> "PortRange":
        if self.min_range > self.max_range:
            raise ValueError(
                f"min_range ({self.min_range}) must be lower or equal to max_range ({self.max_range})"
            )
        return self

    def as_api_payload(self) -> dict:
        return {"MinRange": self.min_range, "MaxRange": self.max_range}


class AccessPolicy(BaseModel):
    model_config = ConfigDict(frozen=True)

    block_public_security_group_rules: bool = True
    permitted_public_security_group_rule_ranges: List[PortRange] = Field(
        default_factory=list
    )

    @classmethod
    def default(cls) -> "AccessPolicy":
        # Always built fresh, never derived from the event
        return cls(
            block_public_security_group_rules=True,
            permitted_public_security_group_rule_ranges=[
                PortRange(min_range=_port, max_range=_port)
                for _port in Config.PERMITTED_PUBLIC_PORTS
            ],
        )

    @classmethod
    def from_api_payload(cls, payload: dict) -> "AccessPolicy":
        return cls(
            block_public_security_group_rules=payload.get(
                "BlockPublicSecurityGroupRules", False
            ),
            permitted_public_security_group_rule_ranges=[
                PortRange(min_range=_r["MinRange"], max_range=_r["MaxRange"])
                for _r in payload.get("PermittedPublicSecurityGroupRuleRanges", [])
            ],
        )

    def as_api_payload(self) -> dict:
        return {
            "BlockPublicSecurityGroupRules": self.block_public_security_group_rules,
            "PermittedPublicSecurityGroupRuleRanges": [
                _range.as_api_payload()
                for _range in self.permitted_public_security_group_rule_ranges
            ],
        }


class ReconciliationResult(BaseModel):
    status: ReconciliationStatus = ReconciliationStatus.FAILED
    reason: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)
    physical_resource_id: Optional[str] = None
    callback_delivered: bool = False

    def as_callback_body(self, event: dict, log_stream_name: str) -> dict:
        """
        Build the response document expected by CloudFormation.
        `event` is the raw request, it may not have passed validation.
        """
        _physical_resource_id = (
            self.physical_resource_id
            or event.get("PhysicalResourceId")
            or log_stream_name
        )
        return {
            "Status": self.status.value,
            "Reason": self.reason
            or f"See the details in CloudWatch Log Stream: {log_stream_name}",
            "PhysicalResourceId": _physical_resource_id,
            "StackId": event.get("StackId", ""),
            "RequestId": event.get("RequestId", ""),
            "LogicalResourceId": event.get("LogicalResourceId", ""),
            "NoEcho": False,
            "Data": self.data,
        }

    def as_dict(self) -> dict:
        return self.model_dump(mode="json")
