"""
ConfigBootstrapper - seed the service config only when none exists.

The config holds per-deployment secrets and endpoints edited by the operator
after install, so it is the one remote file the pipeline never overwrites.
"""

import json
from typing import Any, Dict

from doordeploy.core import Logger

from .base import ConfigStatus, RemoteSession
from .exceptions import RemoteOperationError
from .remote import RunCommand, SSHTransport

# Shape shared with the deployed service
DEFAULT_CONFIG: Dict[str, Any] = {
    "door_url": "http://your-door-sensor.local/status",
    "poll_interval_seconds": 30,
    "open_threshold_seconds": 300,
    "sms": {
        "account_sid": "your_twilio_account_sid",
        "auth_token": "your_twilio_auth_token",
        "from_number": "+1234567890",
        "to_number": "+0987654321",
    },
}

# $1 is the target path; the guard re-checks so a file created after our
# existence test still survives
_WRITE_IF_ABSENT = 'test -e "$1" || cat > "$1"'


def render_config(document: Dict[str, Any]) -> str:
    return json.dumps(document, indent=2) + "\n"


class ConfigBootstrapper:
    """Write-once-if-absent creation of the remote JSON config."""

    def __init__(self, transport: SSHTransport, logger: Logger):
        self.transport = transport
        self.log = logger

    def bootstrap_config(self, session: RemoteSession, path: str, default_document: Dict[str, Any]) -> ConfigStatus:
        """
        Create path with default_document unless it already exists.

        Returns:
            ConfigStatus.CREATED or ConfigStatus.ALREADY_PRESENT

        Raises:
            RemoteOperationError: Existence test or write failed
        """
        exists = self.transport.execute(session, RunCommand.of("test", "-e", path))
        if exists.returncode == 0:
            self.log.info(f"  {path} already exists, leaving it untouched")
            return ConfigStatus.ALREADY_PRESENT
        if exists.returncode != 1:
            raise RemoteOperationError(
                f"Failed to check for {path} on {session.address} (exit {exists.returncode})",
                returncode=exists.returncode,
                stderr=exists.stderr,
            )

        self.log.info(f"  Creating example config {path}")
        self.transport.run_checked(
            session,
            RunCommand.of("sh", "-c", _WRITE_IF_ABSENT, "sh", path, stdin=render_config(default_document)),
            "write example config",
        )
        return ConfigStatus.CREATED
