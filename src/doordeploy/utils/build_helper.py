"""Cross-compilation helpers for the door-monitor binary"""
from pathlib import Path
from typing import Iterable, Optional

from doordeploy.core import FileSystemService, Logger, ProcessExecutor, ToolLocator
from doordeploy.deploy.base import BatchBuildResult, BuildArtifact, BuildMode, TargetSpec
from doordeploy.deploy.exceptions import ArtifactMissingError, DeploymentError, ToolchainError
from doordeploy.deploy.targets import TARGETS


def artifact_path(project_dir: str, target: TargetSpec, mode: BuildMode, binary_name: str) -> Path:
    """Where cargo/cross leave the binary: target/<triple>/<mode>/<binary>."""
    return Path(project_dir) / "target" / target.triple / mode.value / binary_name


def build_command(target: TargetSpec, mode: BuildMode) -> list[str]:
    """
    Compiler invocation for a target/mode pair.

    Release goes through `cross`, which builds inside a container with the
    target's C library and yields a statically linked binary. Debug builds
    use cargo directly.
    """
    if mode == BuildMode.RELEASE:
        return ['cross', 'build', '--target', target.triple, '--release']
    return ['cargo', 'build', '--target', target.triple]


def _tail(text: str, limit: int = 1000) -> str:
    return text[-limit:] if text else ""


class BuildInvoker:
    """Drives the Rust cross-compilation toolchain.

    Single builds are fail-fast (raise). build_all() is best-effort and
    records per-target failures instead.
    """

    def __init__(
        self,
        process_executor: ProcessExecutor,
        filesystem: FileSystemService,
        tool_locator: ToolLocator,
        logger: Logger,
        project_dir: str = ".",
        binary_name: str = "door-monitor",
        verbose: bool = False
    ):
        self.process = process_executor
        self.fs = filesystem
        self.tools = tool_locator
        self.log = logger
        self.project_dir = project_dir
        self.binary_name = binary_name
        self.verbose = verbose

    def check_tools(self, mode: BuildMode) -> None:
        """
        Raises:
            ToolchainError: cargo (or cross, for release) is not on PATH
        """
        if not self.tools.has_tool('cargo'):
            raise ToolchainError(
                "Cargo not found. Please install Rust:\n"
                "  curl --proto '=https' --tlsv1.2 -sSf https://sh.rustup.rs | sh"
            )
        if mode == BuildMode.RELEASE and not self.tools.has_tool('cross'):
            raise ToolchainError(
                "cross not found (needed for release builds). Install it with:\n"
                "  cargo install cross --git https://github.com/cross-rs/cross"
            )

    def ensure_target(self, target: TargetSpec) -> None:
        """
        Install the rustup target for target.triple if it is missing.

        Raises:
            ToolchainError: Listing or installing the target failed
        """
        result = self.process.run(['rustup', 'target', 'list', '--installed'])
        if result.returncode != 0:
            raise ToolchainError(
                f"Could not list installed rustup targets\n{_tail(result.stderr)}"
            )

        installed = {line.strip() for line in result.stdout.splitlines()}
        if target.triple in installed:
            return

        self.log.warning(f"Target {target.triple} not installed. Installing...")
        result = self.process.run(
            ['rustup', 'target', 'add', target.triple],
            capture_output=not self.verbose
        )
        if result.returncode != 0:
            raise ToolchainError(
                f"Failed to install rustup target {target.triple}\n"
                f"{_tail(result.stderr)}\n\n"
                f"Try manually:\n"
                f"  rustup target add {target.triple}"
            )
        self.log.info(f"  ✓ Installed target {target.triple}")

    def build(self, target: TargetSpec, mode: BuildMode) -> BuildArtifact:
        """
        Build the binary for one target.

        Returns:
            BuildArtifact whose path is confirmed to exist

        Raises:
            ToolchainError: Tools missing, target install failed, or compiler failed
            ArtifactMissingError: Compiler exited 0 but the binary is absent
        """
        self.check_tools(mode)
        self.ensure_target(target)

        cmd = build_command(target, mode)
        self.log.info(f"  $ {' '.join(cmd)}")
        result = self.process.run(cmd, capture_output=not self.verbose, cwd=self.project_dir)

        if result.returncode != 0:
            output = result.stderr or result.stdout
            raise ToolchainError(
                f"Build failed for {target.triple} ({mode.value})\n\n"
                f"Last lines of build output:\n{_tail(output)}\n\n"
                f"Debug:\n"
                f"  cd {self.project_dir} && {' '.join(cmd)} -v"
            )

        path = artifact_path(self.project_dir, target, mode, self.binary_name)
        if not self.fs.is_file(path):
            raise ArtifactMissingError(path)

        return BuildArtifact(path=path, target=target, mode=mode)

    def build_all(self, mode: BuildMode, targets: Optional[Iterable[TargetSpec]] = None) -> BatchBuildResult:
        """
        Build every known target, one after another.

        A failing target is recorded in the result and the remaining
        targets still build.
        """
        targets = list(targets) if targets is not None else list(TARGETS.values())
        results = BatchBuildResult()

        for target in targets:
            self.log.info(f"Building for {target.description}...")
            try:
                artifact = self.build(target, mode)
            except DeploymentError as e:
                self.log.error(f"{target.identifier}: {e}")
                results.failures[target.identifier] = str(e)
                continue

            results.artifacts[target.identifier] = artifact.path
            self.log.info(f"  ✓ {artifact.path}")

        return results
