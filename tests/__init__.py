"""Tests for the RAPIDS notebook CDK application."""
