"""Tests for the troposphere template of the EMR course stack."""

from __future__ import annotations

import json

import pytest

from emr_course import cloudformation_builder
from emr_course.cloudformation_builder import build_template
from emr_course.config import Config


@pytest.fixture(scope="module")
def template() -> dict:
    return build_template().to_dict()


class TestBuildTemplate:
    """Tests for build_template."""

    def test_resources(self, template: dict) -> None:
        """Test that every resource of the stack is declared."""
        assert {_name: _r["Type"] for _name, _r in template["Resources"].items()} == {
            "LivyProxyCredentials": "AWS::SecretsManager::Secret",
            "LivyProxyCredentialsResourcePolicy": "AWS::SecretsManager::ResourcePolicy",
            "EMRLogsBucket": "AWS::S3::Bucket",
            "HTTPIngressSecurityGroup": "AWS::EC2::SecurityGroup",
            "LambdaEMRBPARole": "AWS::IAM::Role",
            "EMRBlockPublicAccessConfigurationFunction": "AWS::Lambda::Function",
            "EMRConfigureBlockPublicAccess": "Custom::EMRConfigureBlockPublicAccess",
            "EMRCluster": "AWS::EMR::Cluster",
            "EMRCopyNotebooksStep": "AWS::EMR::Step",
        }

    def test_cluster_waits_for_block_public_access(self, template: dict) -> None:
        """Test that the cluster is created after Block Public Access is configured."""
        assert template["Resources"]["EMRCluster"]["DependsOn"] == ["EMRConfigureBlockPublicAccess"]

    def test_custom_resource_properties(self, template: dict) -> None:
        """Test that the custom resource targets the helper Lambda in the stack region."""
        properties = template["Resources"]["EMRConfigureBlockPublicAccess"]["Properties"]

        assert properties == {
            "ServiceToken": {"Fn::GetAtt": ["EMRBlockPublicAccessConfigurationFunction", "Arn"]},
            "Region": {"Ref": "AWS::Region"},
        }

    def test_http_ingress_ports(self, template: dict) -> None:
        """Test that only 80 and 443 are opened to the internet."""
        ingress = template["Resources"]["HTTPIngressSecurityGroup"]["Properties"]["SecurityGroupIngress"]

        assert [(_r["FromPort"], _r["ToPort"], _r["CidrIp"]) for _r in ingress] == [
            (80, 80, "0.0.0.0/0"),
            (443, 443, "0.0.0.0/0"),
        ]

    def test_lambda_function(self, template: dict) -> None:
        """Test the Block Public Access Lambda configuration."""
        properties = template["Resources"]["EMRBlockPublicAccessConfigurationFunction"]["Properties"]

        assert properties["Runtime"] == Config.LAMBDA_RUNTIME
        assert properties["Handler"] == Config.LAMBDA_HANDLER
        assert properties["Timeout"] == Config.LAMBDA_TIMEOUT
        assert properties["Code"] == {
            "S3Bucket": {"Ref": "LambdaCodeS3Bucket"},
            "S3Key": {"Ref": "LambdaCodeS3Key"},
        }
        assert properties["Role"]["Fn::If"][0] == "LambdaHelperRoleNotSet"

    def test_lambda_role_is_conditional(self, template: dict) -> None:
        """Test that the role is only created when no helper role is provided."""
        role = template["Resources"]["LambdaEMRBPARole"]

        assert role["Condition"] == "LambdaHelperRoleNotSet"
        statement = role["Properties"]["Policies"][0]["PolicyDocument"]["Statement"][0]
        assert statement["Action"] == ["elasticmapreduce:PutBlockPublicAccessConfiguration"]

    def test_conditions(self, template: dict) -> None:
        """Test the conditions used by the optional resources."""
        assert set(template["Conditions"]) == {
            "BootstrapMasterAdditions",
            "BootstrapOtherAdditions",
            "LambdaHelperRoleNotSet",
        }

    def test_optional_bootstrap_actions(self, template: dict) -> None:
        """Test that additional bootstrap actions are skipped when their script is empty."""
        actions = template["Resources"]["EMRCluster"]["Properties"]["BootstrapActions"]

        assert [_a["Fn::If"][0] for _a in actions] == ["BootstrapMasterAdditions", "BootstrapOtherAdditions"]
        assert all(_a["Fn::If"][2] == {"Ref": "AWS::NoValue"} for _a in actions)
        assert actions[0]["Fn::If"][1]["ScriptBootstrapAction"]["Args"][0] == "instance.isMaster=true"
        assert actions[1]["Fn::If"][1]["ScriptBootstrapAction"]["Args"][0] == "instance.isMaster=false"

    def test_rules(self, template: dict) -> None:
        """Test the subnet and password rules."""
        assertions = template["Rules"]["SubnetsInVPC"]["Assertions"]

        assert [_a["AssertDescription"] for _a in assertions] == [
            "All subnets must in the selected VPC.",
            "Passwords must match.",
        ]

    def test_parameters(self, template: dict) -> None:
        """Test parameter defaults and the NoEcho passwords."""
        parameters = template["Parameters"]

        assert parameters["ReleaseLabel"]["Default"] == Config.DEFAULT_RELEASE_LABEL
        assert parameters["InstanceType"]["AllowedValues"] == Config.INSTANCE_TYPES
        assert parameters["Password"]["NoEcho"] is True
        assert parameters["Password2"]["NoEcho"] is True
        assert parameters["BootstrapMasterAdditionsScript"]["Default"] == ""

    def test_parameter_groups_reference_existing_parameters(self, template: dict) -> None:
        """Test that the console metadata only lists declared parameters."""
        grouped = [
            _p
            for _group in template["Metadata"]["AWS::CloudFormation::Interface"]["ParameterGroups"]
            for _p in _group["Parameters"]
        ]

        assert sorted(grouped) == sorted(template["Parameters"])

    def test_output(self, template: dict) -> None:
        """Test the master node DNS output."""
        assert template["Outputs"]["EMRMasterNodeDNS"]["Value"] == {
            "Fn::Sub": "http://${EMRCluster.MasterPublicDNS}"
        }

    def test_override_default(self) -> None:
        """Test that a parameter default can be overridden."""
        template = build_template(BootstrapProxyScript="https://example.com/proxy.sh").to_dict()

        assert template["Parameters"]["BootstrapProxyScript"]["Default"] == "https://example.com/proxy.sh"

    def test_override_unknown_parameter(self) -> None:
        """Test that overriding an unknown parameter is rejected."""
        with pytest.raises(ValueError, match="KeyName is not a parameter"):
            build_template(KeyName="vockey")


class TestMain:
    """Tests for the template rendering entrypoint."""

    def test_json(self) -> None:
        """Test rendering as JSON."""
        response = cloudformation_builder.main(output="json")

        assert response.success is True
        assert "EMRCluster" in json.loads(response.message)["Resources"]

    def test_yaml(self) -> None:
        """Test rendering as YAML."""
        response = cloudformation_builder.main(output="yaml")

        assert response.success is True
        assert "AWSTemplateFormatVersion" in response.message
        assert "EMRConfigureBlockPublicAccess:" in response.message

    def test_invalid_output(self) -> None:
        """Test that an unsupported format is returned as an error."""
        response = cloudformation_builder.main(output="xml")

        assert response.success is False
        assert "Unsupported output xml" in response.message

    def test_unknown_default_is_returned_as_error(self) -> None:
        """Test that build errors are returned, not raised."""
        response = cloudformation_builder.main(output="json", KeyName="vockey")

        assert response.success is False
        assert "KeyName is not a parameter" in response.message
