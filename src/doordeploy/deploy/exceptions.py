"""
Deployment exceptions.

Custom exceptions for build and deployment failures with actionable error messages.
Every pipeline stage failure is eventually wrapped in a PipelineError that names
the stage, so the CLI can report where the run stopped.
"""


class DeploymentError(Exception):
    """
    Base class for every failure raised by the deploy pipeline.

    Examples:
        - Unknown target architecture
        - Cross-compilation failed
        - SSH connection failed
        - Remote command returned non-zero
    """
    pass


class ValidationError(DeploymentError):
    """Bad or missing CLI/settings input. Raised before any side effect."""
    pass


class UnsupportedTargetError(ValidationError):
    """Requested architecture identifier is not in the known target set."""

    def __init__(self, target: str, valid: list):
        self.target = target
        self.valid = list(valid)
        super().__init__(
            f"Unsupported target: {target}\n"
            f"Supported targets: {', '.join(self.valid)}"
        )


class MissingHostError(ValidationError):
    """Deployment requested without a remote host."""

    def __init__(self):
        super().__init__(
            "Pi hostname/IP required for deployment.\n"
            "Use --host HOST, or --build-only to only build."
        )


class ToolchainError(DeploymentError):
    """
    Cross-compilation support is missing or the compiler failed.

    A missing rustup target is installed automatically first; this is raised
    only when that self-heal fails or the build itself fails.
    """
    pass


class ArtifactMissingError(DeploymentError):
    """Build reported success but the expected binary is not on disk."""

    def __init__(self, path):
        self.path = path
        super().__init__(f"Build finished but binary not found at {path}")


class UnreachableError(DeploymentError):
    """Connectivity probe failed. The operator must fix access and re-run."""
    pass


class RemoteOperationError(DeploymentError):
    """A remote command returned a non-zero result."""

    def __init__(self, message: str, returncode: int = None, stderr: str = ""):
        self.returncode = returncode
        self.stderr = stderr
        detail = f"\nRemote stderr: {stderr.strip()}" if stderr and stderr.strip() else ""
        super().__init__(f"{message}{detail}")


class PipelineError(DeploymentError):
    """
    A pipeline stage failed. Carries the stage identity and the underlying cause.

    Attributes:
        stage: Stage that failed (doordeploy.deploy.base.Stage)
        cause: The original DeploymentError
        summary: Stages completed before the failure (may be None)
    """

    def __init__(self, stage, cause: Exception, summary=None):
        self.stage = stage
        self.cause = cause
        self.summary = summary
        stage_name = getattr(stage, 'value', stage)
        super().__init__(f"Stage '{stage_name}' failed: {cause}")
