"""Adapters — platform, service and storage implementations of the ports."""
