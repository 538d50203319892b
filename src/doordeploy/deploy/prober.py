"""
ConnectivityProber - hard gate before any destructive remote action.

Only a Reachable ProbeResult carries a RemoteSession, and every later remote
component requires one.
"""

from doordeploy.core import Logger

from .base import ProbeResult, RemoteSession, RemoteTarget
from .remote import CheckReachability, SSHTransport

DEFAULT_PROBE_TIMEOUT = 10


def unreachable_guidance(target: RemoteTarget, timed_out: bool = False) -> str:
    """Operator-facing explanation of a failed probe."""
    port_flag = f"-p {target.port} " if target.port != 22 else ""
    reason = "Connection timed out" if timed_out else "Connection failed"
    return (
        f"Cannot connect to {target.address} ({reason})\n\n"
        f"Please ensure:\n"
        f"  1. The Pi is powered on and connected to the network\n"
        f"     ping {target.host}\n"
        f"  2. SSH is enabled on the Pi\n"
        f"     (raspi-config > Interface Options > SSH)\n"
        f"  3. Your SSH key is set up for non-interactive login\n"
        f"     ssh-copy-id {port_flag}{target.address}\n\n"
        f"Test it worked (should NOT ask for a password):\n"
        f"  ssh {port_flag}-o BatchMode=yes {target.address} \"echo OK\"\n\n"
        f"Then re-run the deployment."
    )


class ConnectivityProber:
    """Verifies non-interactive reachability of a remote host."""

    def __init__(self, transport: SSHTransport, logger: Logger):
        self.transport = transport
        self.log = logger

    def probe(self, target: RemoteTarget, timeout_seconds: int = DEFAULT_PROBE_TIMEOUT) -> ProbeResult:
        """
        Perform one batch-mode ssh round-trip.

        Args:
            target: Unverified endpoint
            timeout_seconds: Connect timeout (the local process bound is slightly longer)

        Returns:
            ProbeResult(reachable=True, session=...) or
            ProbeResult(reachable=False, guidance=...)
        """
        result = self.transport.check_reachability(
            target, CheckReachability(timeout_seconds=timeout_seconds)
        )

        if result.returncode == 0 and not result.timed_out:
            return ProbeResult(reachable=True, session=RemoteSession(target=target))

        if result.stderr:
            self.log.debug(f"ssh: {result.stderr.strip()}")
        return ProbeResult(
            reachable=False,
            guidance=unreachable_guidance(target, timed_out=result.timed_out),
        )
