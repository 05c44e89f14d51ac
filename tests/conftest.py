"""Test configuration and fixtures."""

import os

# Settings fail fast without these; set before any app module is imported
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("IDENTITY__URL", "https://identity.test")
os.environ.setdefault("IDENTITY__SERVICE_ROLE_KEY", "test-service-role-key")
os.environ.setdefault("AUTH__JWT_SECRET", "test-secret-key-with-enough-length-for-hs256")
os.environ.setdefault("APP_URL", "https://board.test")
os.environ.setdefault("INVITATIONS__DELETION_POLL_INTERVAL", "0.01")
os.environ.setdefault("INVITATIONS__DELETION_POLL_TIMEOUT", "0.2")

import logfire  # noqa: E402

logfire.configure(send_to_logfire=False, console=False)
