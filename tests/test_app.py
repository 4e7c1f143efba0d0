"""
Tests for the application entry point.
"""

import logging

from aws_cdk import assertions

import app as notebook_app

ACCOUNT_CONTEXT = {"account": "123456789012", "region": "us-east-1"}


class TestMain:
    """Tests for main()."""

    def test_synthesizes_basic_stack_without_account(self, monkeypatch, caplog):
        """Test that only the basic stack is built when no account is known."""
        monkeypatch.delenv("CDK_DEFAULT_ACCOUNT", raising=False)

        with caplog.at_level(logging.INFO):
            notebook_app.main()

        assert "skipping EcsNvidiaRapidsSecureStack" in caplog.text
        assert "Stacks: EcsNvidiaRapidsDemoStack" in caplog.text

    def test_synthesizes_both_stacks_with_account(self, monkeypatch, caplog):
        """Test that the secure stack is added once an account is known."""
        monkeypatch.setenv("CDK_DEFAULT_ACCOUNT", "123456789012")
        monkeypatch.setenv("CDK_DEFAULT_REGION", "us-east-1")

        with caplog.at_level(logging.INFO):
            notebook_app.main()

        assert "EcsNvidiaRapidsDemoStack, EcsNvidiaRapidsSecureStack" in caplog.text


class TestCdkNag:
    """Tests for the cdk-nag AwsSolutions checks."""

    def test_checks_can_be_disabled(self, caplog):
        with caplog.at_level(logging.INFO):
            app = notebook_app.create_app(dict(ACCOUNT_CONTEXT, enable_cdk_nag="false"))

        assert "cdk-nag checks disabled" in caplog.text
        stack = app.node.find_child("EcsNvidiaRapidsDemoStack")
        assert "cdk_nag" not in assertions.Template.from_stack(stack).to_json().get("Metadata", {})

    def test_suppressions_leave_no_errors(self, caplog):
        """Test that every stack synthesizes without cdk-nag errors."""
        with caplog.at_level(logging.INFO):
            app = notebook_app.create_app(dict(ACCOUNT_CONTEXT))

        assert "cdk-nag checks disabled" not in caplog.text

        for stack_name in ("EcsNvidiaRapidsDemoStack", "EcsNvidiaRapidsSecureStack"):
            stack = app.node.find_child(stack_name)

            metadata = assertions.Template.from_stack(stack).to_json()["Metadata"]
            suppressed = {rule["id"] for rule in metadata["cdk_nag"]["rules_to_suppress"]}
            assert "AwsSolutions-EC23" in suppressed

            errors = assertions.Annotations.from_stack(stack).find_error("*", assertions.Match.any_value())
            assert list(errors) == [], f"{stack_name}: {[e.entry.data for e in errors]}"
