"""
Door-monitor deployment subsystem.

Builds the service for a Raspberry Pi target and installs it over SSH:
    resolve -> build -> probe -> stop existing -> install -> systemd unit -> config

Public API:
    - DeployRequest, TargetSpec, Stage, Outcome: Data model
    - resolve, validate, TARGETS: Target resolution
    - SSHTransport + RunCommand/CopyFile/CheckReachability: Typed remote operations
    - ConnectivityProber, RemoteProcessManager, ArtifactInstaller,
      ServiceUnitSynthesizer, ConfigBootstrapper: Pipeline components
    - DeploymentError and subclasses: Exceptions

The orchestrator lives in doordeploy.deploy.pipeline (it depends on
doordeploy.utils.build_helper, which imports this package).
"""

from .base import (
    BatchBuildResult,
    BuildArtifact,
    BuildMode,
    ConfigStatus,
    DeployRequest,
    Outcome,
    RemoteSession,
    RemoteTarget,
    Stage,
    StageResult,
    StopStatus,
    Summary,
    TargetSpec,
)
from .exceptions import (
    ArtifactMissingError,
    DeploymentError,
    MissingHostError,
    PipelineError,
    RemoteOperationError,
    ToolchainError,
    UnreachableError,
    UnsupportedTargetError,
    ValidationError,
)
from .targets import TARGETS, DeployOptions, resolve, validate
from .remote import CheckReachability, CopyFile, RunCommand, SSHTransport
from .prober import ConnectivityProber
from .process_manager import RemoteProcessManager
from .installer import ArtifactInstaller
from .service_unit import ServiceUnitSynthesizer
from .config_bootstrap import DEFAULT_CONFIG, ConfigBootstrapper

__all__ = [
    # Data model
    "BatchBuildResult",
    "BuildArtifact",
    "BuildMode",
    "ConfigStatus",
    "DeployRequest",
    "Outcome",
    "RemoteSession",
    "RemoteTarget",
    "Stage",
    "StageResult",
    "StopStatus",
    "Summary",
    "TargetSpec",

    # Target resolution
    "TARGETS",
    "DeployOptions",
    "resolve",
    "validate",

    # Remote operations
    "CheckReachability",
    "CopyFile",
    "RunCommand",
    "SSHTransport",

    # Components
    "ConnectivityProber",
    "RemoteProcessManager",
    "ArtifactInstaller",
    "ServiceUnitSynthesizer",
    "ConfigBootstrapper",
    "DEFAULT_CONFIG",

    # Exceptions
    "ArtifactMissingError",
    "DeploymentError",
    "MissingHostError",
    "PipelineError",
    "RemoteOperationError",
    "ToolchainError",
    "UnreachableError",
    "UnsupportedTargetError",
    "ValidationError",
]
