# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

import re
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from emr_course.config import Config
from emr_course.utils.error import EmrError
from emr_course.utils.response import EmrResponse
import logging

logger = logging.getLogger("emr_course_logger")


class StackParameters(BaseModel):
    """
    Client-side mirror of the template parameters and rules, used before creating the stack.
    CloudFormation enforces the same constraints, this only reports them earlier and all at once.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    ec2_key_pair: str = Field(default=Config.DEFAULT_KEY_PAIR, alias="EC2KeyPair")
    release_label: str = Field(default=Config.DEFAULT_RELEASE_LABEL, alias="ReleaseLabel")
    vpc_id: str = Field(default="", alias="VpcId")
    vpc_public_subnet: str = Field(default="", alias="VPCPublicSubnet")
    instance_type: str = Field(default=Config.DEFAULT_INSTANCE_TYPE, alias="InstanceType")
    username: str = Field(default=Config.DEFAULT_PROXY_USERNAME, alias="Username")
    password: str = Field(default="", alias="Password", repr=False)
    password2: str = Field(default="", alias="Password2", repr=False)
    lambda_helper_role: str = Field(
        default=Config.DEFAULT_LAMBDA_HELPER_ROLE, alias="LambdaHelperRole"
    )
    lambda_code_s3_bucket: str = Field(default="", alias="LambdaCodeS3Bucket")
    lambda_code_s3_key: Optional[str] = Field(default=None, alias="LambdaCodeS3Key")
    bootstrap_proxy_script: str = Field(
        default=Config.DEFAULT_PROXY_BOOTSTRAP_SCRIPT, alias="BootstrapProxyScript"
    )
    bootstrap_master_additions_script: str = Field(
        default="", alias="BootstrapMasterAdditionsScript"
    )
    bootstrap_other_additions_script: str = Field(
        default="", alias="BootstrapOtherAdditionsScript"
    )

    def validate_parameters(self) -> EmrResponse:
        errors = []

        if not self.ec2_key_pair:
            errors.append("An EC2 Key Pair must be selected")

        if self.release_label not in Config.RELEASE_LABELS:
            errors.append(
                f"ReleaseLabel must be one of {', '.join(Config.RELEASE_LABELS)}"
            )

        if self.instance_type not in Config.INSTANCE_TYPES:
            errors.append(
                f"InstanceType must be one of {', '.join(Config.INSTANCE_TYPES)}"
            )

        if not re.match(r"^vpc-[0-9a-f]+$", self.vpc_id):
            errors.append("VpcId must be an existing VPC id (vpc-xxxx)")

        if not re.match(r"^subnet-[0-9a-f]+$", self.vpc_public_subnet):
            errors.append("VPCPublicSubnet must be an existing subnet id (subnet-xxxx)")

        if not re.match(Config.CREDENTIALS_PATTERN, self.username):
            errors.append(
                "Username cannot be empty and must use letters, numbers, dashes, and underscores only"
            )

        if not re.match(Config.CREDENTIALS_PATTERN, self.password):
            errors.append(
                "Password cannot be empty and must use letters, numbers, dashes, and underscores only"
            )
        elif self.password != self.password2:
            errors.append("Passwords must match")

        if not self.lambda_code_s3_bucket:
            errors.append("LambdaCodeS3Bucket must be provided")

        if not re.match(r"^https?://", self.bootstrap_proxy_script):
            errors.append("BootstrapProxyScript must be an http(s) URL")

        for _name, _url in [
            ("BootstrapMasterAdditionsScript", self.bootstrap_master_additions_script),
            ("BootstrapOtherAdditionsScript", self.bootstrap_other_additions_script),
        ]:
            # Empty disables the bootstrap action
            if _url and not re.match(r"^https?://", _url):
                errors.append(f"{_name} must be empty or an http(s) URL")

        if errors:
            return EmrError.INVALID_STACK_PARAMETERS(errors=errors)
        else:
            return EmrResponse(success=True, message=None)

    def as_cfn_parameters(self) -> list:
        return [
            {"ParameterKey": _key, "ParameterValue": _value}
            for _key, _value in self.model_dump(by_alias=True, exclude_none=True).items()
        ]
