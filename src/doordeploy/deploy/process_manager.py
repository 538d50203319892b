"""
RemoteProcessManager - stop a previously running service instance.

State machine:
    Check -> (NoneRunning | Found) -> GracefulStop -> (Confirmed | StillRunning)
          -> ForcedStop -> Confirmed

The forced kill is best-effort: its own exit status is tolerated because an
already-dead process is an acceptable end state. What is not tolerated is a
matching process that survives the forced kill.
"""

from doordeploy.core import Logger, TimeProvider

from .base import Outcome, RemoteSession, StopReport, StopStatus
from .exceptions import RemoteOperationError
from .remote import RunCommand, SSHTransport

DEFAULT_GRACE_PERIOD = 2.0


def process_pattern(process_name: str) -> str:
    """
    pgrep/pkill -f pattern that cannot match the command running it.

    "door-monitor" -> "[d]oor-monitor": the regex still matches the service,
    but the literal text of the pattern (in the remote shell or the sudo
    wrapper's command line) does not.
    """
    if not process_name:
        raise ValueError("process name must not be empty")
    return f"[{process_name[0]}]{process_name[1:]}"


class RemoteProcessManager:
    """Detects and stops the service process on the remote host."""

    def __init__(
        self,
        transport: SSHTransport,
        time_provider: TimeProvider,
        logger: Logger,
        grace_period: float = DEFAULT_GRACE_PERIOD
    ):
        self.transport = transport
        self.time = time_provider
        self.log = logger
        self.grace_period = grace_period

    def is_running(self, session: RemoteSession, process_name: str) -> bool:
        """
        Query the remote process table.

        Raises:
            RemoteOperationError: pgrep itself failed (exit >= 2, or ssh 255)
        """
        result = self.transport.execute(
            session, RunCommand.of("pgrep", "-f", process_pattern(process_name))
        )
        if result.returncode == 0:
            return True
        if result.returncode == 1:
            return False
        raise RemoteOperationError(
            f"Failed to query processes on {session.address} (exit {result.returncode})",
            returncode=result.returncode,
            stderr=result.stderr,
        )

    def _signal(self, session: RemoteSession, signal: str, process_name: str):
        return self.transport.execute(
            session,
            RunCommand.of("pkill", f"-{signal}", "-f", process_pattern(process_name), privileged=True),
        )

    def stop_existing(self, session: RemoteSession, process_name: str) -> StopReport:
        """
        Ensure no instance of process_name remains on the remote host.

        Returns:
            StopReport with status NONE_RUNNING (nothing to stop, no signal
            sent) or STOPPED. outcome is TOLERATED when the forced kill
            command failed but the process is gone anyway.

        Raises:
            RemoteOperationError: Process table query failed, or a matching
                process survived the forced kill
        """
        # Check
        if not self.is_running(session, process_name):
            self.log.info("  No running processes found (this is normal)")
            return StopReport(status=StopStatus.NONE_RUNNING)

        # GracefulStop
        self.log.info(f"  Found running '{process_name}', sending SIGTERM...")
        term = self._signal(session, "TERM", process_name)
        if term.returncode == 0:
            self.time.sleep(self.grace_period)
            if not self.is_running(session, process_name):
                self.log.info("  Stopped gracefully")
                return StopReport(status=StopStatus.STOPPED)
            self.log.warning(f"'{process_name}' still running after {self.grace_period:g}s grace period")
        else:
            self.log.warning(f"Graceful stop failed (exit {term.returncode}), trying force kill...")

        # ForcedStop
        report = StopReport(status=StopStatus.STOPPED, forced=True)
        kill = self._signal(session, "KILL", process_name)
        if kill.returncode != 0:
            note = f"force kill exited {kill.returncode} (tolerated)"
            self.log.warning(note)
            report.outcome = Outcome.TOLERATED
            report.notes.append(note)

        # Confirmed
        if self.is_running(session, process_name):
            raise RemoteOperationError(
                f"'{process_name}' is still running on {session.address} after SIGKILL\n\n"
                f"Inspect it manually:\n"
                f"  ssh {session.address} \"pgrep -af {process_pattern(process_name)}\""
            )

        self.log.info("  Stopped (forced)")
        return report
