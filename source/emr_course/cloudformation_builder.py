# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Render the EMR course stack:
  - EMR cluster (1 master + core nodes) with Hadoop, Spark, Livy, Zeppelin and Jupyter Enterprise Gateway
  - Livy reverse proxy with basic authentication, installed by an EMR step once EMR is done configuring Nginx
  - Custom::EMRConfigureBlockPublicAccess, required as the master node is reachable on 80/443 from 0.0.0.0/0

IMPORTANT: This stack is NOT intended for production environments or for use with real world data.
"""

import logging
from typing import Literal

from troposphere import (
    AWS_REGION,
    Equals,
    GetAtt,
    If,
    Not,
    NoValue,
    Output,
    Parameter,
    Ref,
    Sub,
    Template,
)
from troposphere.awslambda import Code, Function
from troposphere.cloudformation import AWSCustomObject
from troposphere.emr import (
    Application,
    BootstrapActionConfig,
    Cluster,
    Configuration,
    HadoopJarStepConfig,
    InstanceGroupConfigProperty,
    JobFlowInstancesConfig,
    ScriptBootstrapActionConfig,
    Step,
)
from troposphere.iam import Policy, Role
from troposphere.s3 import Bucket
from troposphere.secretsmanager import ResourcePolicy, Secret
import troposphere.ec2 as ec2

from emr_course.config import Config
from emr_course.utils.error import EmrError
from emr_course.utils.response import EmrResponse

logger = logging.getLogger("emr_course_logger")

PARAMETER_GROUPS = [
    {
        "Label": {"default": "Amazon EMR Cluster Configuration"},
        "Parameters": [
            "ReleaseLabel",
            "InstanceType",
            "VpcId",
            "VPCPublicSubnet",
            "EC2KeyPair",
            "BootstrapProxyScript",
            "BootstrapMasterAdditionsScript",
            "BootstrapOtherAdditionsScript",
            "LambdaHelperRole",
            "LambdaCodeS3Bucket",
            "LambdaCodeS3Key",
        ],
    },
    {
        "Label": {"default": "Livy Proxy Credentials"},
        "Parameters": ["Username", "Password", "Password2"],
    },
]

PARAMETER_LABELS = {
    "ReleaseLabel": {"default": "EMR Release Label"},
    "VPCPublicSubnet": {"default": "VPC Public Subnet"},
    "EC2KeyPair": {"default": "EC2 Key Pair"},
    "BootstrapProxyScript": {"default": "Proxy Bootstrap Script"},
    "BootstrapMasterAdditionsScript": {"default": "Master Bootstrap Script"},
    "BootstrapOtherAdditionsScript": {"default": "Non-master Bootstrap Script"},
    "LambdaHelperRole": {"default": "Lambda Helper Role Name"},
    "LambdaCodeS3Bucket": {"default": "Lambda Code S3 Bucket"},
    "LambdaCodeS3Key": {"default": "Lambda Code S3 Key"},
}

# Public ports of the master node, served by the Livy proxy
HTTP_INGRESS_PORTS = (80, 443)


class CustomResourceEMRConfigureBlockPublicAccess(AWSCustomObject):
    resource_type = "Custom::EMRConfigureBlockPublicAccess"
    props = {
        "ServiceToken": (str, True),
        "Region": (str, True),
    }


def stack_parameters(**defaults) -> list:
    """
    Returns the template parameters. `defaults` overrides the Default of existing parameters,
    e.g. BootstrapProxyScript="https://example.com/proxy.sh"
    """
    _parameters = [
        Parameter(
            "EC2KeyPair",
            Description="Amazon EC2 Key Pair that can be used to SSH to the EMR cluster.",
            Default=Config.DEFAULT_KEY_PAIR,
            Type="AWS::EC2::KeyPair::KeyName",
            AllowedPattern=".+",
            ConstraintDescription="An EC2 Key Pair must be selected.",
        ),
        Parameter(
            "ReleaseLabel",
            Type="String",
            Default=Config.DEFAULT_RELEASE_LABEL,
            AllowedValues=Config.RELEASE_LABELS,
            Description="The Amazon EMR version (release) to use.",
        ),
        Parameter(
            "VpcId",
            Type="AWS::EC2::VPC::Id",
            Description="VpcId of your existing Virtual Private Cloud (VPC)",
            ConstraintDescription="You must select an existing VPC.",
        ),
        Parameter(
            "VPCPublicSubnet",
            Type="AWS::EC2::Subnet::Id",
            Description="The public Subnet to be used for Amazon EMR cluster. This subnet must have a route to an Internet Gateway (IGW)",
            AllowedPattern=".+",
            ConstraintDescription="An existing subnet must be selected",
        ),
        Parameter(
            "InstanceType",
            Type="String",
            Default=Config.DEFAULT_INSTANCE_TYPE,
            AllowedValues=Config.INSTANCE_TYPES,
            Description="The instance type to use for the cluster.",
        ),
        Parameter(
            "Username",
            Type="String",
            Default=Config.DEFAULT_PROXY_USERNAME,
            Description="Enter a username to be used for the livy proxy. This username will be used when authenticating requests to Livy.",
            ConstraintDescription="Username cannot be empty and must use letters, numbers, dashes, and underscores only",
            AllowedPattern=Config.CREDENTIALS_PATTERN,
        ),
        Parameter(
            "Password",
            Type="String",
            NoEcho=True,
            Description="Enter a password. Do not use a personal password.",
            ConstraintDescription="Password cannot be empty and must use letters, numbers, dashes, and underscores only",
            AllowedPattern=Config.CREDENTIALS_PATTERN,
        ),
        Parameter(
            "Password2",
            Type="String",
            NoEcho=True,
            Description="Enter a password again",
            ConstraintDescription="Password cannot be empty and must use letters, numbers, dashes, and underscores only",
        ),
        Parameter(
            "LambdaHelperRole",
            Type="String",
            Default=Config.DEFAULT_LAMBDA_HELPER_ROLE,
            Description='(Optional) The name of a role that will be used by a helper Lambda to configure BlockPublicAccess settings. In AWS Academy Learner labs, a role named "LabRole" may be used.',
        ),
        Parameter(
            "LambdaCodeS3Bucket",
            Type="String",
            Description="S3 bucket hosting the packaged Block Public Access Lambda (zip).",
            AllowedPattern=".+",
            ConstraintDescription="The S3 bucket of the Lambda package must be provided",
        ),
        Parameter(
            "LambdaCodeS3Key",
            Type="String",
            Default="emr-course-cluster/EMRBlockPublicAccessLambda.zip",
            Description="S3 key of the packaged Block Public Access Lambda (zip).",
        ),
        Parameter(
            "BootstrapProxyScript",
            Type="String",
            Description="URL to the bootstrap script that will be used to install a proxy on the master node. IMPORTANT: Make sure this is a URL and script you trust.",
            Default=Config.DEFAULT_PROXY_BOOTSTRAP_SCRIPT,
        ),
        Parameter(
            "BootstrapMasterAdditionsScript",
            Type="String",
            Description="(Optional) URL to an additional bootstrap script that can be used for running commands on master nodes.",
            Default="",
        ),
        Parameter(
            "BootstrapOtherAdditionsScript",
            Type="String",
            Description="(Optional) URL to an additional bootstrap script that can be used for running commands on non-master nodes.",
            Default="",
        ),
    ]

    _by_name = {_p.title: _p for _p in _parameters}
    for _key, _value in defaults.items():
        if _key not in _by_name:
            raise ValueError(
                f"{_key} is not a parameter of this template. Valid parameters: {', '.join(_by_name)}"
            )
        _by_name[_key].Default = _value

    return _parameters


def bootstrap_action(name: str, is_master: bool, script_parameter: str) -> BootstrapActionConfig:
    # run-if only executes the script on the selected node types
    return BootstrapActionConfig(
        Name=name,
        ScriptBootstrapAction=ScriptBootstrapActionConfig(
            Path="s3://elasticmapreduce/bootstrap-actions/run-if",
            Args=[
                f"instance.isMaster={'true' if is_master else 'false'}",
                Sub(f'/bin/bash -c "$(curl -fsSL ${{{script_parameter}}})"'),
            ],
        ),
    )


def build_template(**defaults) -> Template:
    t = Template()
    t.set_version("2010-09-09")
    t.set_description(Config.TEMPLATE_DESCRIPTION)
    t.set_metadata(
        {
            "AWS::CloudFormation::Interface": {
                "ParameterGroups": PARAMETER_GROUPS,
                "ParameterLabels": PARAMETER_LABELS,
            }
        }
    )

    for _parameter in stack_parameters(**defaults):
        t.add_parameter(_parameter)

    t.add_rule(
        "SubnetsInVPC",
        {
            "Assertions": [
                {
                    "Assert": Equals(
                        {"Fn::ValueOf": ["VPCPublicSubnet", "VpcId"]}, Ref("VpcId")
                    ),
                    "AssertDescription": "All subnets must in the selected VPC.",
                },
                {
                    "Assert": Equals(Ref("Password"), Ref("Password2")),
                    "AssertDescription": "Passwords must match.",
                },
            ]
        },
    )

    t.add_condition(
        "BootstrapMasterAdditions",
        Not(Equals(Ref("BootstrapMasterAdditionsScript"), "")),
    )
    t.add_condition(
        "BootstrapOtherAdditions",
        Not(Equals(Ref("BootstrapOtherAdditionsScript"), "")),
    )
    t.add_condition("LambdaHelperRoleNotSet", Equals(Ref("LambdaHelperRole"), ""))

    # Proxy credentials are stored in Secrets Manager to avoid logging or hardcoding them in plaintext.
    # The proxy bootstrap script receives the secret name, never the value
    credentials = t.add_resource(
        Secret(
            "LivyProxyCredentials",
            Name=Sub("${AWS::StackName}-LivyCredentials"),
            Description="Livy proxy basic authentication credentials",
            SecretString=Sub('{"username":"${Username}","password":"${Password}"}'),
        )
    )
    t.add_resource(
        ResourcePolicy(
            "LivyProxyCredentialsResourcePolicy",
            BlockPublicPolicy=True,
            SecretId=Ref(credentials),
            ResourcePolicy={
                "Version": "2012-10-17",
                "Statement": [
                    {
                        "Resource": "*",
                        "Action": "secretsmanager:GetSecretValue",
                        "Effect": "Allow",
                        "Principal": {
                            "AWS": Sub(
                                f"arn:aws:iam::${{AWS::AccountId}}:role/{Config.EMR_JOB_FLOW_ROLE}"
                            )
                        },
                    }
                ],
            },
        )
    )

    # Retained on stack deletion, must be cleaned up manually
    t.add_resource(
        Bucket("EMRLogsBucket", DeletionPolicy="Retain", UpdateReplacePolicy="Retain")
    )

    http_ingress = t.add_resource(
        ec2.SecurityGroup(
            "HTTPIngressSecurityGroup",
            GroupDescription="Allow http to client host",
            VpcId=Ref("VpcId"),
            SecurityGroupIngress=[
                ec2.SecurityGroupRule(
                    IpProtocol="tcp", FromPort=_port, ToPort=_port, CidrIp="0.0.0.0/0"
                )
                for _port in HTTP_INGRESS_PORTS
            ],
            SecurityGroupEgress=[
                ec2.SecurityGroupRule(
                    IpProtocol="tcp", FromPort=_port, ToPort=_port, CidrIp="0.0.0.0/0"
                )
                for _port in HTTP_INGRESS_PORTS
            ],
        )
    )

    # Only created when no existing role name is provided. AWS Academy lab users can't create roles and use LabRole instead
    lambda_role = t.add_resource(
        Role(
            "LambdaEMRBPARole",
            Condition="LambdaHelperRoleNotSet",
            RoleName=Sub("${AWS::StackName}-role-lambda-emr-bpa"),
            AssumeRolePolicyDocument={
                "Version": "2012-10-17",
                "Statement": {
                    "Sid": "LambdaAccess",
                    "Effect": "Allow",
                    "Principal": {"Service": ["lambda.amazonaws.com"]},
                    "Action": "sts:AssumeRole",
                },
            },
            ManagedPolicyArns=[
                "arn:aws:iam::aws:policy/service-role/AWSLambdaBasicExecutionRole"
            ],
            Policies=[
                Policy(
                    PolicyName="policy-emr-bpa",
                    PolicyDocument={
                        "Version": "2012-10-17",
                        "Statement": [
                            {
                                "Effect": "Allow",
                                "Action": [
                                    "elasticmapreduce:PutBlockPublicAccessConfiguration"
                                ],
                                "Resource": "*",
                            }
                        ],
                    },
                )
            ],
        )
    )

    bpa_function = t.add_resource(
        Function(
            "EMRBlockPublicAccessConfigurationFunction",
            FunctionName=Sub("${AWS::StackName}-customresource-emr-bpa-configuration"),
            Runtime=Config.LAMBDA_RUNTIME,
            Handler=Config.LAMBDA_HANDLER,
            Description="Configures EMR Block Public Access",
            MemorySize=Config.LAMBDA_MEMORY_SIZE,
            Timeout=Config.LAMBDA_TIMEOUT,
            Role=If(
                "LambdaHelperRoleNotSet",
                GetAtt(lambda_role, "Arn"),
                Sub("arn:${AWS::Partition}:iam::${AWS::AccountId}:role/${LambdaHelperRole}"),
            ),
            Code=Code(S3Bucket=Ref("LambdaCodeS3Bucket"), S3Key=Ref("LambdaCodeS3Key")),
        )
    )

    block_public_access = t.add_resource(
        CustomResourceEMRConfigureBlockPublicAccess(
            "EMRConfigureBlockPublicAccess",
            ServiceToken=GetAtt(bpa_function, "Arn"),
            Region=Ref(AWS_REGION),
        )
    )

    cluster = t.add_resource(
        Cluster(
            "EMRCluster",
            DependsOn=[block_public_access.title],
            Name="course-emr-cluster",
            Instances=JobFlowInstancesConfig(
                MasterInstanceGroup=InstanceGroupConfigProperty(
                    InstanceCount=1,
                    InstanceType=Ref("InstanceType"),
                    Market="ON_DEMAND",
                    Name="cfnMaster",
                ),
                CoreInstanceGroup=InstanceGroupConfigProperty(
                    InstanceCount=Config.CORE_INSTANCE_COUNT,
                    InstanceType=Ref("InstanceType"),
                    Market="ON_DEMAND",
                    Name="cfnCore",
                ),
                Ec2SubnetId=Ref("VPCPublicSubnet"),
                Ec2KeyName=Ref("EC2KeyPair"),
                AdditionalMasterSecurityGroups=[Ref(http_ingress)],
            ),
            BootstrapActions=[
                If(
                    "BootstrapMasterAdditions",
                    bootstrap_action(
                        name="BootstrapMasterAdditions",
                        is_master=True,
                        script_parameter="BootstrapMasterAdditionsScript",
                    ),
                    NoValue,
                ),
                If(
                    "BootstrapOtherAdditions",
                    bootstrap_action(
                        name="BootstrapOtherAdditions",
                        is_master=False,
                        script_parameter="BootstrapOtherAdditionsScript",
                    ),
                    NoValue,
                ),
            ],
            Configurations=[
                Configuration(
                    Classification="spark",
                    ConfigurationProperties={"maximizeResourceAllocation": "true"},
                ),
                Configuration(
                    Classification="livy-conf",
                    ConfigurationProperties={
                        "livy.server.session.timeout": Config.LIVY_SESSION_TIMEOUT
                    },
                ),
            ],
            Applications=[Application(Name=_app) for _app in Config.EMR_APPLICATIONS],
            JobFlowRole=Config.EMR_JOB_FLOW_ROLE,
            ServiceRole=Config.EMR_SERVICE_ROLE,
            ReleaseLabel=Ref("ReleaseLabel"),
            VisibleToAllUsers=True,
            LogUri=Sub("s3://${EMRLogsBucket}/elasticmapreduce/"),
        )
    )

    # Must run as a step: EMR installs and configures Nginx after bootstrap actions,
    # a proxy configured during bootstrap would be overwritten
    t.add_resource(
        Step(
            "EMRCopyNotebooksStep",
            ActionOnFailure="CONTINUE",
            HadoopJarStep=HadoopJarStepConfig(
                Args=[
                    "/bin/bash",
                    "-c",
                    Sub(
                        "curl -fsSL ${BootstrapProxyScript} | bash -s ${AWS::StackName}-LivyCredentials"
                    ),
                ],
                Jar="command-runner.jar",
                MainClass="",
            ),
            Name="BootstrapLivyProxy",
            JobFlowId=Ref(cluster),
        )
    )

    t.add_output(
        Output(
            "EMRMasterNodeDNS",
            Description="EMR Cluster Master Node DNS",
            Value=Sub("http://${EMRCluster.MasterPublicDNS}"),
        )
    )

    logger.debug(f"Built template with resources {list(t.resources)}")
    return t


def main(output: Literal["json", "yaml"] = "yaml", **defaults) -> EmrResponse:
    try:
        t = build_template(**defaults)
        if output == "json":
            template_output = t.to_json()
        elif output == "yaml":
            template_output = t.to_yaml()
        else:
            raise ValueError(f"Unsupported output {output}, must be json or yaml")
        return EmrResponse(success=True, message=template_output)
    except Exception as err:
        return EmrError.GENERIC_ERROR(helper=f"Unable to build template: {err}")
