"""
Target resolution - turn CLI input plus defaults into a validated DeployRequest.

All preconditions are checked here, before the toolchain or the network is
touched:
    - architecture identifier must be one of TARGETS
    - deploy mode (not --build-only) needs a host
    - user and host must be usable in an ssh address
"""

from dataclasses import dataclass
from typing import Dict, Optional

from .base import BuildMode, DeployRequest, TargetSpec
from .exceptions import MissingHostError, UnsupportedTargetError, ValidationError


# Closed set, in build order for --build-only
TARGETS: Dict[str, TargetSpec] = {
    "arm-unknown-linux-gnueabihf": TargetSpec(
        identifier="arm-unknown-linux-gnueabihf",
        description="Raspberry Pi Zero/1 (32-bit ARM)",
        triple="arm-unknown-linux-gnueabihf",
    ),
    "aarch64-unknown-linux-gnu": TargetSpec(
        identifier="aarch64-unknown-linux-gnu",
        description="Raspberry Pi 4/5 (64-bit ARM)",
        triple="aarch64-unknown-linux-gnu",
    ),
}

DEFAULT_TARGET = "arm-unknown-linux-gnueabihf"


@dataclass(frozen=True)
class DeployOptions:
    """Raw CLI input, before defaults are applied."""
    host: Optional[str] = None
    user: Optional[str] = None
    target: Optional[str] = None
    release: bool = False
    build_only: bool = False
    verbose: bool = False


def get_target(identifier: str) -> TargetSpec:
    """Look up a target, raising UnsupportedTargetError for unknown identifiers."""
    try:
        return TARGETS[identifier]
    except KeyError:
        raise UnsupportedTargetError(identifier, list(TARGETS)) from None


def _check_ssh_token(kind: str, value: str) -> None:
    if not value or not value.strip():
        raise ValidationError(f"Remote {kind} must not be empty")
    if any(ch.isspace() for ch in value) or '@' in value:
        raise ValidationError(f"Invalid remote {kind}: {value!r}")
    # ssh/scp would parse "-o..." as an option, not part of the address
    if value.startswith('-'):
        raise ValidationError(f"Remote {kind} must not start with '-': {value!r}")


def validate(request: DeployRequest) -> DeployRequest:
    """Re-check the invariants of an already-built request.

    The pipeline runs this as its Validate stage so requests constructed in
    code get the same guarantees as ones coming from resolve().
    """
    if request.target.identifier not in TARGETS:
        raise UnsupportedTargetError(request.target.identifier, list(TARGETS))
    _check_ssh_token("user", request.user)
    if not request.build_only:
        if not request.host:
            raise MissingHostError()
        _check_ssh_token("host", request.host)
    if not request.remote_path.startswith('/'):
        raise ValidationError(f"Remote path must be absolute: {request.remote_path}")
    return request


def resolve(options: DeployOptions, settings, env) -> DeployRequest:
    """
    Build the immutable DeployRequest for one invocation.

    Args:
        options: Raw CLI input
        settings: DeploySettings (project defaults from doordeploy.yaml)
        env: EnvironmentProvider, used for the default remote user

    Returns:
        Validated DeployRequest

    Raises:
        UnsupportedTargetError: Unknown architecture identifier
        MissingHostError: Deploy requested without a host
        ValidationError: Malformed user/host
    """
    target = get_target(options.target or settings.default_target or DEFAULT_TARGET)

    user = options.user or settings.user or env.get_login_name()
    host = options.host or settings.host

    request = DeployRequest(
        target=target,
        mode=BuildMode.RELEASE if options.release else BuildMode.DEBUG,
        host=host,
        user=user,
        remote_path=f"/home/{user}/{settings.binary_name}",
        build_only=options.build_only,
        binary_name=settings.binary_name,
        service_name=settings.service_name,
        project_dir=settings.project_dir,
        probe_timeout_seconds=settings.probe_timeout_seconds,
        grace_period_seconds=settings.grace_period_seconds,
        ssh_port=settings.ssh_port,
        verbose=options.verbose,
    )
    return validate(request)
