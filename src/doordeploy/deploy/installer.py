"""ArtifactInstaller - copy the built binary to the Pi and make it executable."""

from doordeploy.core import Logger

from .base import BuildArtifact, InstallReport, RemoteSession
from .remote import CopyFile, RunCommand, SSHTransport


class ArtifactInstaller:
    """Transfer + chmod, reported as one unit of work."""

    def __init__(self, transport: SSHTransport, logger: Logger):
        self.transport = transport
        self.log = logger

    def install(self, artifact: BuildArtifact, session: RemoteSession, remote_path: str) -> InstallReport:
        """
        Copy artifact to remote_path (overwriting any prior binary) and set +x.

        Only returns once both steps succeeded; either failure raises, so a
        copied-but-not-executable binary is never reported as installed.

        Raises:
            RemoteOperationError: scp or chmod failed
        """
        self.log.info(f"  Copying {artifact.path} -> {session.address}:{remote_path}")
        self.transport.run_checked(
            session,
            CopyFile(local_path=str(artifact.path), remote_path=remote_path),
            "copy binary",
        )

        self.log.info("  Making binary executable")
        self.transport.run_checked(
            session,
            RunCommand.of("chmod", "+x", remote_path),
            "mark binary executable",
        )

        return InstallReport(remote_path=remote_path, executable=True)
