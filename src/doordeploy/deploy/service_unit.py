"""
ServiceUnitSynthesizer - write the systemd unit and register it.

The unit is pipeline-owned: it is rendered fresh on every deploy and
overwrites whatever is on the device. It is enabled for boot but never
started; starting is left to the operator after editing the config.
"""

import posixpath

from doordeploy.core import Logger

from .base import RemoteSession, UnitReport
from .remote import RunCommand, SSHTransport

SYSTEMD_UNIT_DIR = "/etc/systemd/system"
RESTART_SEC = 10

UNIT_TEMPLATE = """\
[Unit]
Description={description}
After=network.target
Wants=network.target

[Service]
Type=simple
User={user}
WorkingDirectory={working_directory}
ExecStart={exec_start}
Restart=always
RestartSec={restart_sec}

[Install]
WantedBy=multi-user.target
"""


def unit_path(service_name: str) -> str:
    return posixpath.join(SYSTEMD_UNIT_DIR, f"{service_name}.service")


def render_unit(user: str, remote_path: str, description: str = "Door Monitor Service") -> str:
    """Render the unit descriptor for user running the binary at remote_path."""
    return UNIT_TEMPLATE.format(
        description=description,
        user=user,
        working_directory=posixpath.dirname(remote_path) or "/",
        exec_start=remote_path,
        restart_sec=RESTART_SEC,
    )


class ServiceUnitSynthesizer:
    """Materializes the unit on the remote host and enables it."""

    def __init__(self, transport: SSHTransport, logger: Logger, service_name: str = "door-monitor"):
        self.transport = transport
        self.log = logger
        self.service_name = service_name

    def synthesize(self, session: RemoteSession, user: str, remote_path: str) -> UnitReport:
        """
        Write the unit (unconditional overwrite), daemon-reload, enable.

        Raises:
            RemoteOperationError: Any of the three privileged commands failed
        """
        content = render_unit(user, remote_path)
        path = unit_path(self.service_name)

        self.log.info(f"  Writing {path}")
        # tee echoes stdin back; the transport captures and discards it
        self.transport.run_checked(
            session,
            RunCommand.of("tee", path, privileged=True, stdin=content),
            "write service unit",
        )

        self.log.info("  Reloading systemd and enabling service")
        self.transport.run_checked(
            session,
            RunCommand.of("systemctl", "daemon-reload", privileged=True),
            "reload systemd",
        )
        self.transport.run_checked(
            session,
            RunCommand.of("systemctl", "enable", self.service_name, privileged=True),
            f"enable {self.service_name}",
        )

        return UnitReport(unit_path=path, content=content, enabled=True)
