"""
Typed remote operations and the SSH transport that executes them.

Remote work is limited to a closed set of request types:
    RunCommand         argv run through ssh, optionally under sudo
    CopyFile           local file -> remote path via scp
    CheckReachability  non-interactive ssh round-trip with a timeout

Quoting happens in exactly one place (SSHTransport.remote_command_string),
so no call site ever builds a shell string by hand.
"""

import shlex
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, Union

from doordeploy.core import Logger, ProcessExecutor, ProcessResult

from .base import RemoteSession, RemoteTarget
from .exceptions import RemoteOperationError


@dataclass(frozen=True)
class RunCommand:
    """Run argv on the remote host.

    Attributes:
        argv: Command and arguments (quoted by the transport)
        privileged: Run through the elevated-privilege channel (sudo -n)
        stdin: Text fed to the command's standard input
    """
    argv: Tuple[str, ...]
    privileged: bool = False
    stdin: Optional[str] = None

    @classmethod
    def of(cls, *argv: str, privileged: bool = False, stdin: Optional[str] = None) -> 'RunCommand':
        return cls(argv=tuple(argv), privileged=privileged, stdin=stdin)


@dataclass(frozen=True)
class CopyFile:
    """Copy a local file to a remote path, overwriting it."""
    local_path: str
    remote_path: str


@dataclass(frozen=True)
class CheckReachability:
    """Batch-mode round-trip; never falls back to a password prompt."""
    timeout_seconds: int = 10


RemoteOperation = Union[RunCommand, CopyFile, CheckReachability]


class SSHTransport:
    """
    Executes RemoteOperations with the system ssh/scp clients.

    Every connection uses BatchMode=yes: once the probe has confirmed key
    authentication works, no later step may block on a password prompt.
    """

    def __init__(self, process_executor: ProcessExecutor, logger: Logger):
        self.process = process_executor
        self.log = logger

    def _ssh_options(self, connect_timeout: Optional[int] = None) -> list[str]:
        opts = ["-o", "BatchMode=yes"]
        if connect_timeout is not None:
            opts += ["-o", f"ConnectTimeout={connect_timeout}"]
        return opts

    def remote_command_string(self, op: RunCommand) -> str:
        """Quote argv for the remote login shell."""
        argv: Sequence[str] = op.argv
        if op.privileged:
            # -n: fail instead of prompting for a password
            argv = ("sudo", "-n", *argv)
        return shlex.join(argv)

    def ssh_cmd(self, target: RemoteTarget, command: str, connect_timeout: Optional[int] = None) -> list[str]:
        """Build SSH command with custom port."""
        return [
            "ssh",
            "-p", str(target.port),
            *self._ssh_options(connect_timeout),
            target.address,
            command
        ]

    def scp_cmd(self, target: RemoteTarget, local_path: str, remote_path: str) -> list[str]:
        return [
            "scp",
            "-P", str(target.port),
            *self._ssh_options(),
            local_path,
            f"{target.address}:{remote_path}"
        ]

    def check_reachability(self, target: RemoteTarget, op: CheckReachability) -> ProcessResult:
        """Run the probe round-trip. Works on an unverified RemoteTarget."""
        cmd = self.ssh_cmd(target, "echo ok", connect_timeout=op.timeout_seconds)
        self.log.debug(f"$ {shlex.join(cmd)}")
        # Local bound in case the TCP connect succeeds but the session stalls
        return self.process.run(cmd, timeout=op.timeout_seconds + 5)

    def execute(self, session: RemoteSession, op: RemoteOperation) -> ProcessResult:
        """
        Execute one operation against a confirmed session.

        Returns the raw ProcessResult; see run_checked() for the raising form.

        Raises:
            TypeError: session is not a RemoteSession (host never probed)
        """
        if not isinstance(session, RemoteSession):
            raise TypeError("remote operations require a RemoteSession from ConnectivityProber")

        if isinstance(op, CheckReachability):
            return self.check_reachability(session.target, op)

        if isinstance(op, CopyFile):
            cmd = self.scp_cmd(session.target, op.local_path, op.remote_path)
            self.log.debug(f"$ {shlex.join(cmd)}")
            return self.process.run(cmd)

        if isinstance(op, RunCommand):
            cmd = self.ssh_cmd(session.target, self.remote_command_string(op))
            self.log.debug(f"$ {shlex.join(cmd)}")
            return self.process.run(cmd, input=op.stdin)

        raise TypeError(f"Unknown remote operation: {op!r}")

    def run_checked(self, session: RemoteSession, op: RemoteOperation, what: str) -> ProcessResult:
        """Execute op and raise RemoteOperationError on a non-zero result."""
        result = self.execute(session, op)
        if result.returncode != 0:
            hint = ""
            if isinstance(op, RunCommand) and op.privileged and "password" in result.stderr.lower():
                hint = (
                    f"\n\nsudo on {session.address} asks for a password.\n"
                    f"Passwordless sudo is required for deployment "
                    f"(Raspberry Pi OS enables it for the default user)."
                )
            raise RemoteOperationError(
                f"Failed to {what} on {session.address} (exit {result.returncode}){hint}",
                returncode=result.returncode,
                stderr=result.stderr,
            )
        return result
