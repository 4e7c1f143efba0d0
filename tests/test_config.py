"""
Unit tests for the context-driven configuration and the site parameter names.
"""

import aws_cdk as cdk
import pytest

from stacks.config import (
    DEFAULT_CONFIGURATION,
    get_configuration,
    validate_configuration,
)
from stacks.site_parameters import SiteParameters


class TestGetConfiguration:
    """Tests for resolving configuration from CDK context."""

    def test_defaults_without_context(self):
        """Test that every key falls back to its default."""
        config = get_configuration(cdk.App().node)

        assert config == DEFAULT_CONFIGURATION
        assert config["instance_type"] == "p3.2xlarge"
        assert config["container_command"] == ["bash", "utils/start-jupyter.sh"]

    def test_context_overrides_defaults(self):
        """Test that typed values from cdk.json are used as given."""
        app = cdk.App(context={"desired_capacity": 2, "instance_type": "g4dn.xlarge"})

        config = get_configuration(app.node)

        assert config["desired_capacity"] == 2
        assert config["instance_type"] == "g4dn.xlarge"
        assert config["max_azs"] == DEFAULT_CONFIGURATION["max_azs"]

    def test_command_line_strings_are_coerced(self):
        """Test that string values passed with -c are converted."""
        app = cdk.App(context={
            "max_azs": "3",
            "gpu_count": "2",
            "container_command": '["bash", "-c", "jupyter lab"]',
            "enable_cdk_nag": "false",
        })

        config = get_configuration(app.node)

        assert config["max_azs"] == 3
        assert config["gpu_count"] == 2
        assert config["container_command"] == ["bash", "-c", "jupyter lab"]
        assert config["enable_cdk_nag"] is False

    def test_plain_command_string_is_split(self):
        app = cdk.App(context={"container_command": "bash utils/start-jupyter.sh"})

        assert get_configuration(app.node)["container_command"] == ["bash", "utils/start-jupyter.sh"]

    def test_non_numeric_string_raises(self):
        """Test that a non-numeric value for an integer key is rejected."""
        app = cdk.App(context={"memory_limit_mib": "lots"})

        with pytest.raises(ValueError, match="memory_limit_mib"):
            get_configuration(app.node)


class TestValidateConfiguration:
    """Tests for configuration validation."""

    def test_defaults_are_valid(self):
        validate_configuration(dict(DEFAULT_CONFIGURATION))

    @pytest.mark.parametrize("key", ["max_azs", "desired_capacity", "gpu_count", "memory_limit_mib"])
    def test_values_below_one_raise(self, key):
        """Test that counts and limits must be positive."""
        config = dict(DEFAULT_CONFIGURATION, **{key: 0})

        with pytest.raises(ValueError, match=key):
            validate_configuration(config)

    def test_empty_command_raises(self):
        config = dict(DEFAULT_CONFIGURATION, container_command=[])

        with pytest.raises(ValueError, match="container_command"):
            validate_configuration(config)

    @pytest.mark.parametrize("command", [[1], ["bash", 2], "bash utils/start-jupyter.sh"])
    def test_command_must_be_list_of_strings(self, command):
        config = dict(DEFAULT_CONFIGURATION, container_command=command)

        with pytest.raises(ValueError, match="container_command"):
            validate_configuration(config)

    def test_json_command_with_non_strings_raises(self):
        """Test that a JSON command from -c is checked element by element."""
        app = cdk.App(context={"container_command": "[1]"})

        with pytest.raises(ValueError, match="container_command"):
            validate_configuration(get_configuration(app.node))

    @pytest.mark.parametrize("days", [120, 150, 400, 545, 731, 1827, 3653])
    def test_every_cloudwatch_retention_is_accepted(self, days):
        validate_configuration(dict(DEFAULT_CONFIGURATION, log_retention_days=days))

    def test_unsupported_retention_raises(self):
        """Test that retention must be a value CloudWatch Logs accepts."""
        config = dict(DEFAULT_CONFIGURATION, log_retention_days=8)

        with pytest.raises(ValueError, match="log_retention_days"):
            validate_configuration(config)


class TestSiteParameterNames:
    """Tests for the SSM parameter naming scheme."""

    def test_names_under_prefix(self):
        names = SiteParameters.parameter_names("/rapids")

        assert names == {
            "hostname": "/rapids/hostname",
            "hosted_zone_id": "/rapids/hosted-zone-id",
            "certificate_arn": "/rapids/certificate-arn",
            "user_pool_arn": "/rapids/user-pool-arn",
            "user_pool_client_id": "/rapids/user-pool-client-id",
            "user_pool_domain": "/rapids/user-pool-domain",
        }

    def test_trailing_slash_is_ignored(self):
        assert SiteParameters.parameter_names("/team/rapids/")["hostname"] == "/team/rapids/hostname"

    def test_every_field_has_a_name(self):
        assert set(SiteParameters.parameter_names("/rapids")) == set(SiteParameters._fields)
