"""Tests for the emrctl command line."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from unittest.mock import Mock, patch

import pytest
import yaml
from click.testing import CliRunner

from emr_course.config import Config
from emr_course.tools.emrctl.app import cli
from emr_course.utils.error import EmrError
from emr_course.utils.response import EmrResponse
from tests.fixtures.custom_resource import EXPECTED_API_PAYLOAD, create_emr_client, create_event


@pytest.fixture(autouse=True)
def log_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    path = tmp_path / "logs" / "emrctl.log"
    monkeypatch.setattr(Config, "EMRCTL_LOG_FILE", str(path))
    return path


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


class TestTemplateCommands:
    """Tests for emrctl template."""

    def test_render_json(self, runner: CliRunner) -> None:
        """Test rendering the template to stdout."""
        result = runner.invoke(cli, ["template", "render", "--output", "json"])

        assert result.exit_code == 0, result.output
        assert "EMRConfigureBlockPublicAccess" in json.loads(result.output)["Resources"]

    def test_render_with_default_to_file(self, runner: CliRunner, tmp_path: Path) -> None:
        """Test overriding a default and writing the template to a file."""
        out = tmp_path / "stack.yaml"

        result = runner.invoke(
            cli,
            ["template", "render", "--out", str(out), "-d", "InstanceType=m5.xlarge"],
        )

        assert result.exit_code == 0, result.output
        assert f"Template written to {out}" in result.output
        assert "Default: m5.xlarge" in out.read_text()

    def test_render_unknown_default(self, runner: CliRunner) -> None:
        """Test that an unknown parameter override fails."""
        result = runner.invoke(cli, ["template", "render", "-d", "KeyName=vockey"])

        assert result.exit_code == 1
        assert "KeyName is not a parameter" in result.output

    def test_render_malformed_default(self, runner: CliRunner) -> None:
        """Test that -d requires KEY=VALUE."""
        result = runner.invoke(cli, ["template", "render", "-d", "InstanceType"])

        assert result.exit_code != 0
        assert "KEY=VALUE" in result.output

    def test_validate_parameters(self, runner: CliRunner, tmp_path: Path) -> None:
        """Test validating a CloudFormation parameters file."""
        parameters_file = tmp_path / "parameters.json"
        parameters_file.write_text(
            json.dumps(
                [
                    {"ParameterKey": "VpcId", "ParameterValue": "vpc-0a1b2c3d"},
                    {"ParameterKey": "VPCPublicSubnet", "ParameterValue": "subnet-0a1b2c3d"},
                    {"ParameterKey": "Password", "ParameterValue": "s3cr3t"},
                    {"ParameterKey": "Password2", "ParameterValue": "s3cr3t"},
                    {"ParameterKey": "LambdaCodeS3Bucket", "ParameterValue": "my-artifacts"},
                ]
            )
        )

        result = runner.invoke(cli, ["template", "validate-parameters", "-f", str(parameters_file)])

        assert result.exit_code == 0, result.output
        assert "Parameters are valid" in result.output

    def test_validate_invalid_parameters(self, runner: CliRunner, tmp_path: Path) -> None:
        """Test that invalid values are reported."""
        parameters_file = tmp_path / "parameters.yaml"
        parameters_file.write_text(yaml.dump({"VpcId": "vpc-0a1b2c3d", "Password": "a", "Password2": "b"}))

        result = runner.invoke(cli, ["template", "validate-parameters", "-f", str(parameters_file)])

        assert result.exit_code == 1
        assert "Passwords must match" in result.output

    def test_validate_unknown_parameter(self, runner: CliRunner, tmp_path: Path) -> None:
        """Test that unknown keys are reported."""
        parameters_file = tmp_path / "parameters.yaml"
        parameters_file.write_text(yaml.dump({"KeyName": "vockey"}))

        result = runner.invoke(cli, ["template", "validate-parameters", "-f", str(parameters_file)])

        assert result.exit_code == 1
        assert "Invalid parameters file" in result.output


class TestBpaCommands:
    """Tests for emrctl bpa."""

    @patch("emr_course.tools.emrctl.commands.bpa.get_boto")
    def test_show(self, mock_get_boto: Mock, runner: CliRunner) -> None:
        """Test displaying the current configuration."""
        client = Mock()
        client.get_block_public_access_configuration.return_value = {
            "BlockPublicAccessConfiguration": EXPECTED_API_PAYLOAD,
            "BlockPublicAccessConfigurationMetadata": {
                "CreationDateTime": datetime(2024, 5, 1),
                "CreatedByArn": "arn:aws:iam::123456789012:role/LabRole",
            },
        }
        mock_get_boto.return_value = EmrResponse(success=True, message=client)

        result = runner.invoke(cli, ["bpa", "show", "--region", "us-east-1", "--output", "json"])

        assert result.exit_code == 0, result.output
        output = json.loads(result.output)
        assert output["block_public_security_group_rules"] is True
        assert output["permitted_public_port_ranges"] == ["22-22", "80-80", "443-443"]
        mock_get_boto.assert_called_once_with(service_name="emr", region_name="us-east-1")

    @patch("emr_course.tools.emrctl.commands.bpa.get_boto")
    def test_show_client_error(self, mock_get_boto: Mock, runner: CliRunner) -> None:
        """Test that client initialization errors are reported."""
        mock_get_boto.return_value = EmrError.CLIENT_INITIALIZATION_ERROR(service_name="emr")

        result = runner.invoke(cli, ["bpa", "show"])

        assert result.exit_code == 1
        assert "Unable to create emr client." in result.output

    @patch("emr_course.tools.emrctl.commands.bpa.get_boto")
    def test_apply(self, mock_get_boto: Mock, runner: CliRunner) -> None:
        """Test applying the default policy."""
        client = create_emr_client()
        mock_get_boto.return_value = EmrResponse(success=True, message=client)

        result = runner.invoke(cli, ["bpa", "apply", "--yes"])

        assert result.exit_code == 0, result.output
        assert "permitted ports: 22, 80, 443" in result.output
        client.put_block_public_access_configuration.assert_called_once_with(
            BlockPublicAccessConfiguration=EXPECTED_API_PAYLOAD
        )

    @patch("emr_course.tools.emrctl.commands.bpa.get_boto")
    def test_apply_requires_confirmation(self, mock_get_boto: Mock, runner: CliRunner) -> None:
        """Test that nothing is applied when the prompt is declined."""
        client = create_emr_client()
        mock_get_boto.return_value = EmrResponse(success=True, message=client)

        result = runner.invoke(cli, ["bpa", "apply"], input="n\n")

        assert result.exit_code != 0
        client.put_block_public_access_configuration.assert_not_called()

    @patch("emr_course.tools.emrctl.commands.bpa.get_boto")
    def test_apply_access_denied(self, mock_get_boto: Mock, runner: CliRunner) -> None:
        """Test that AWS errors are reported."""
        client = create_emr_client(error_code="AccessDeniedException", error_message="not authorized")
        mock_get_boto.return_value = EmrResponse(success=True, message=client)

        result = runner.invoke(cli, ["bpa", "apply", "--yes"])

        assert result.exit_code == 1
        assert "AccessDeniedException" in result.output


class TestEventCommands:
    """Tests for emrctl event."""

    @patch("emr_course.tools.emrctl.commands.event.get_boto")
    def test_invoke_dry_callback(self, mock_get_boto: Mock, runner: CliRunner, tmp_path: Path) -> None:
        """Test running a request locally and printing the response document."""
        client = create_emr_client()
        mock_get_boto.return_value = EmrResponse(success=True, message=client)
        event_file = tmp_path / "event.json"
        event_file.write_text(json.dumps(create_event("Create")))

        result = runner.invoke(cli, ["event", "invoke", "-f", str(event_file), "--dry-callback"])

        assert result.exit_code == 0, result.output
        assert '"Status": "SUCCESS"' in result.output
        assert '"callback_delivered": true' in result.output
        assert "X-Amz-Signature" not in result.output
        client.put_block_public_access_configuration.assert_called_once()

    @patch("emr_course.tools.emrctl.commands.event.get_boto")
    def test_invoke_failure(self, mock_get_boto: Mock, runner: CliRunner, tmp_path: Path) -> None:
        """Test that a rejected configuration exits with an error."""
        client = create_emr_client(error_code="InvalidRequestException", error_message="rejected")
        mock_get_boto.return_value = EmrResponse(success=True, message=client)
        event_file = tmp_path / "event.json"
        event_file.write_text(json.dumps(create_event("Create")))

        result = runner.invoke(cli, ["event", "invoke", "-f", str(event_file), "--dry-callback"])

        assert result.exit_code == 1
        assert '"Status": "FAILED"' in result.output
        assert "Handler raised OperationError" in result.output
