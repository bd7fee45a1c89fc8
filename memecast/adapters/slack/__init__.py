"""Slack adapter package."""
