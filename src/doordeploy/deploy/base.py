"""
Deploy data model - request, artifacts, sessions and per-stage results.

Everything here is a plain value. The pipeline builds one DeployRequest from
CLI input and passes it through every stage; stages return result values
instead of mutating shared state.
"""

import posixpath
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional


class Stage(str, Enum):
    """Pipeline stages, in execution order."""
    VALIDATE = "validate"
    BUILD = "build"
    PROBE = "probe"
    STOP_EXISTING = "stop-existing"
    INSTALL = "install"
    SYNTHESIZE = "synthesize"
    BOOTSTRAP_CONFIG = "bootstrap-config"


class BuildMode(str, Enum):
    DEBUG = "debug"
    RELEASE = "release"


class Outcome(str, Enum):
    """
    How a stage (or sub-step) ended.

    TOLERATED marks a best-effort sub-step that failed without breaking the
    stage's invariant, e.g. a forced kill against an already-dead process.
    """
    OK = "ok"
    TOLERATED = "tolerated"
    FATAL = "fatal"


@dataclass(frozen=True)
class TargetSpec:
    """A supported hardware target.

    Attributes:
        identifier: Architecture identifier accepted on the CLI
        description: Human-readable device family
        triple: Toolchain target triple passed to cargo/cross/rustup
    """
    identifier: str
    description: str
    triple: str


@dataclass(frozen=True)
class DeployRequest:
    """Immutable configuration for one invocation.

    Constructed once by doordeploy.deploy.targets.resolve(); never mutated.
    """
    target: TargetSpec
    mode: BuildMode
    host: Optional[str]
    user: str
    remote_path: str
    build_only: bool = False
    binary_name: str = "door-monitor"
    service_name: str = "door-monitor"
    project_dir: str = "."
    probe_timeout_seconds: int = 10
    grace_period_seconds: float = 2.0
    ssh_port: int = 22
    verbose: bool = False

    @property
    def remote_dir(self) -> str:
        """Directory holding the binary (also the service working directory)."""
        return posixpath.dirname(self.remote_path) or "/"

    @property
    def config_path(self) -> str:
        """Remote path of the operator-owned JSON config."""
        return posixpath.join(self.remote_dir, f"{self.binary_name}-config.json")

    @property
    def remote_target(self) -> 'RemoteTarget':
        return RemoteTarget(user=self.user, host=self.host, port=self.ssh_port)


@dataclass(frozen=True)
class BuildArtifact:
    """A binary confirmed on disk after a build."""
    path: Path
    target: TargetSpec
    mode: BuildMode


@dataclass
class BatchBuildResult:
    """Best-effort result of building every known target.

    Attributes:
        artifacts: identifier -> artifact path, for targets that built
        failures: identifier -> reason, for targets that did not
    """
    artifacts: Dict[str, Path] = field(default_factory=dict)
    failures: Dict[str, str] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return not self.failures


@dataclass(frozen=True)
class RemoteTarget:
    """An unverified remote endpoint (user@host)."""
    user: str
    host: str
    port: int = 22

    @property
    def address(self) -> str:
        return f"{self.user}@{self.host}"


@dataclass(frozen=True)
class RemoteSession:
    """
    A remote endpoint confirmed reachable by the ConnectivityProber.

    Remote components only accept a RemoteSession, so nothing destructive can
    run against a host that was never probed. Only the prober creates these.
    """
    target: RemoteTarget

    @property
    def address(self) -> str:
        return self.target.address


@dataclass
class ProbeResult:
    """Reachable (session set) or Unreachable (guidance set)."""
    reachable: bool
    session: Optional[RemoteSession] = None
    guidance: str = ""


class StopStatus(str, Enum):
    STOPPED = "stopped"
    NONE_RUNNING = "none-running"


@dataclass
class StopReport:
    status: StopStatus
    forced: bool = False
    outcome: Outcome = Outcome.OK
    notes: List[str] = field(default_factory=list)


@dataclass
class InstallReport:
    remote_path: str
    executable: bool = True


@dataclass
class UnitReport:
    unit_path: str
    content: str
    enabled: bool = True


class ConfigStatus(str, Enum):
    CREATED = "created"
    ALREADY_PRESENT = "already-present"


@dataclass
class StageResult:
    stage: Stage
    outcome: Outcome
    detail: str = ""
    notes: List[str] = field(default_factory=list)


@dataclass
class Summary:
    """Final report of a pipeline run."""
    request: DeployRequest
    stages: List[StageResult] = field(default_factory=list)
    artifact: Optional[BuildArtifact] = None
    batch: Optional[BatchBuildResult] = None
    next_steps: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        if any(s.outcome == Outcome.FATAL for s in self.stages):
            return False
        if self.batch is not None:
            return self.batch.success
        return True
