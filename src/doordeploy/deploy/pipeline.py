"""
DeployPipeline - sequence build and remote install into one fail-fast run.

Stages:
    1. Validate         re-check the DeployRequest
    2. Build            cross-compile (all targets in --build-only mode, then stop)
    3. Probe            batch-mode ssh round-trip; gates everything below
    4. StopExisting     SIGTERM, grace period, SIGKILL
    5. Install          scp + chmod +x
    6. Synthesize       systemd unit, daemon-reload, enable (not start)
    7. BootstrapConfig  example JSON config, only if absent

The first failing stage halts the run with a PipelineError naming it. Nothing
is rolled back and nothing is retried; re-running the whole pipeline is the
retry mechanism.
"""

from typing import Any, Callable, Dict, Optional, Tuple

from doordeploy.core import FileSystemService, Logger, ProcessExecutor, TimeProvider, ToolLocator
from doordeploy.utils.build_helper import BuildInvoker

from .base import (
    BuildArtifact,
    DeployRequest,
    Outcome,
    StageResult,
    Stage,
    Summary,
)
from .config_bootstrap import DEFAULT_CONFIG, ConfigBootstrapper
from .exceptions import DeploymentError, PipelineError, UnreachableError
from .installer import ArtifactInstaller
from .process_manager import RemoteProcessManager
from .prober import ConnectivityProber
from .remote import SSHTransport
from .service_unit import ServiceUnitSynthesizer
from .targets import validate

# (outcome, detail, notes) for the StageResult of a successful stage
Describe = Callable[[Any], Tuple[Outcome, str, list]]

STAGE_LABELS = {
    Stage.VALIDATE: "Validating request",
    Stage.BUILD: "Building",
    Stage.PROBE: "Testing SSH connection",
    Stage.STOP_EXISTING: "Stopping any running instances",
    Stage.INSTALL: "Installing binary",
    Stage.SYNTHESIZE: "Creating systemd service",
    Stage.BOOTSTRAP_CONFIG: "Creating example config file",
}

DEPLOY_STAGES = [
    Stage.VALIDATE,
    Stage.BUILD,
    Stage.PROBE,
    Stage.STOP_EXISTING,
    Stage.INSTALL,
    Stage.SYNTHESIZE,
    Stage.BOOTSTRAP_CONFIG,
]
BUILD_ONLY_STAGES = [Stage.VALIDATE, Stage.BUILD]


def next_steps(request: DeployRequest) -> list[str]:
    """Operator instructions printed after a successful deploy."""
    addr = f"{request.user}@{request.host}"
    if request.ssh_port != 22:
        addr = f"-p {request.ssh_port} {addr}"
    service = request.service_name
    return [
        f"Edit the config file: ssh {addr} 'nano {request.config_path}'",
        f"Start the service: ssh {addr} 'sudo systemctl start {service}'",
        f"Check status: ssh {addr} 'sudo systemctl status {service}'",
        f"View logs: ssh {addr} 'sudo journalctl -u {service} -f'",
    ]


class DeployPipeline:
    """
    Runs the deploy stages in order with injected components.

    Use DeployPipeline.create() for production wiring; tests pass mocks or
    fakes for each component.
    """

    def __init__(
        self,
        builder: BuildInvoker,
        prober: ConnectivityProber,
        process_manager: RemoteProcessManager,
        installer: ArtifactInstaller,
        synthesizer: ServiceUnitSynthesizer,
        bootstrapper: ConfigBootstrapper,
        logger: Logger,
        default_config: Optional[Dict[str, Any]] = None
    ):
        self.builder = builder
        self.prober = prober
        self.process_manager = process_manager
        self.installer = installer
        self.synthesizer = synthesizer
        self.bootstrapper = bootstrapper
        self.log = logger
        self.default_config = default_config if default_config is not None else DEFAULT_CONFIG

    @classmethod
    def create(
        cls,
        request: DeployRequest,
        process_executor: ProcessExecutor,
        filesystem: FileSystemService,
        tool_locator: ToolLocator,
        time_provider: TimeProvider,
        logger: Logger
    ) -> 'DeployPipeline':
        """Wire every component for the given request."""
        transport = SSHTransport(process_executor, logger)
        return cls(
            builder=BuildInvoker(
                process_executor,
                filesystem,
                tool_locator,
                logger,
                project_dir=request.project_dir,
                binary_name=request.binary_name,
                verbose=request.verbose,
            ),
            prober=ConnectivityProber(transport, logger),
            process_manager=RemoteProcessManager(
                transport, time_provider, logger, grace_period=request.grace_period_seconds
            ),
            installer=ArtifactInstaller(transport, logger),
            synthesizer=ServiceUnitSynthesizer(transport, logger, service_name=request.service_name),
            bootstrapper=ConfigBootstrapper(transport, logger),
            logger=logger,
        )

    def _stage(
        self,
        summary: Summary,
        stage: Stage,
        plan: list,
        fn: Callable[[], Any],
        describe: Optional[Describe] = None
    ) -> Any:
        """Run one stage: status line, call, record result or raise PipelineError."""
        index = plan.index(stage) + 1
        self.log.info(f"\n[{index}/{len(plan)}] {STAGE_LABELS[stage]}...")

        try:
            value = fn()
        except DeploymentError as e:
            summary.stages.append(StageResult(stage=stage, outcome=Outcome.FATAL, detail=str(e)))
            raise PipelineError(stage, e, summary=summary) from e

        outcome, detail, notes = describe(value) if describe else (Outcome.OK, "", [])
        summary.stages.append(StageResult(stage=stage, outcome=outcome, detail=detail, notes=notes))
        marker = {Outcome.OK: "✓", Outcome.TOLERATED: "⚠", Outcome.FATAL: "✗"}[outcome]
        self.log.info(f"  {marker} {STAGE_LABELS[stage]}: {detail or outcome.value}")
        return value

    def run(self, request: DeployRequest) -> Summary:
        """
        Execute the pipeline for one request.

        Returns:
            Summary. In build-only mode, summary.success is False when any
            target failed to build.

        Raises:
            PipelineError: First failing stage (deploy mode)
        """
        summary = Summary(request=request)
        plan = BUILD_ONLY_STAGES if request.build_only else DEPLOY_STAGES

        self._stage(summary, Stage.VALIDATE, plan, lambda: validate(request),
                    lambda r: (Outcome.OK, f"{r.target.description}, {r.mode.value}", []))

        if request.build_only:
            summary.batch = self._stage(
                summary, Stage.BUILD, plan,
                lambda: self.builder.build_all(request.mode),
                lambda b: (
                    Outcome.OK if b.success else Outcome.FATAL,
                    f"{len(b.artifacts)} built, {len(b.failures)} failed",
                    [f"{ident}: {reason}" for ident, reason in b.failures.items()],
                ),
            )
            return summary

        artifact: BuildArtifact = self._stage(
            summary, Stage.BUILD, plan,
            lambda: self.builder.build(request.target, request.mode),
            lambda a: (Outcome.OK, str(a.path), []),
        )
        summary.artifact = artifact

        def probe():
            result = self.prober.probe(request.remote_target, request.probe_timeout_seconds)
            if not result.reachable:
                raise UnreachableError(result.guidance)
            return result.session

        session = self._stage(summary, Stage.PROBE, plan, probe,
                              lambda s: (Outcome.OK, f"{s.address} reachable", []))

        self._stage(
            summary, Stage.STOP_EXISTING, plan,
            lambda: self.process_manager.stop_existing(session, request.binary_name),
            lambda r: (r.outcome, r.status.value + (" (forced)" if r.forced else ""), r.notes),
        )
        self._stage(
            summary, Stage.INSTALL, plan,
            lambda: self.installer.install(artifact, session, request.remote_path),
            lambda r: (Outcome.OK, r.remote_path, []),
        )
        self._stage(
            summary, Stage.SYNTHESIZE, plan,
            lambda: self.synthesizer.synthesize(session, request.user, request.remote_path),
            lambda r: (Outcome.OK, f"{r.unit_path} enabled (not started)", []),
        )
        self._stage(
            summary, Stage.BOOTSTRAP_CONFIG, plan,
            lambda: self.bootstrapper.bootstrap_config(session, request.config_path, self.default_config),
            lambda s: (Outcome.OK, f"{request.config_path} {s.value}", []),
        )

        summary.next_steps = next_steps(request)
        return summary


def print_summary(summary: Summary, logger: Logger) -> None:
    """Final report: artifact locations (build-only) or next steps (deploy)."""
    logger.info("")
    logger.info("=" * 80)

    if summary.batch is not None:
        if summary.batch.success:
            logger.info("✅ Build completed for all targets")
        else:
            logger.info("✗ Build finished with failures")
        logger.info("")
        logger.info("Built binaries:")
        for ident, path in summary.batch.artifacts.items():
            logger.info(f"  ✓ {ident}: {path}")
        for ident, reason in summary.batch.failures.items():
            first_line = reason.splitlines()[0] if reason else "failed"
            logger.info(f"  ✗ {ident}: {first_line}")
        logger.info("=" * 80)
        return

    logger.info("🚀 Deployment completed successfully!")
    for result in summary.stages:
        if result.outcome == Outcome.TOLERATED:
            for note in result.notes:
                logger.info(f"  ⚠ {result.stage.value}: {note}")
    logger.info("")
    logger.info("Next steps:")
    for i, step in enumerate(summary.next_steps, 1):
        logger.info(f"{i}. {step}")
    logger.info("=" * 80)
