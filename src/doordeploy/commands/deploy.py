"""Deploy command - build the door monitor and install it on a Raspberry Pi"""
import argparse

from doordeploy.core import (
    ConsoleLogger,
    RealFileSystemService,
    SubprocessExecutor,
    SystemEnvironmentProvider,
    SystemTimeProvider,
    SystemToolLocator,
    YamlConfigLoader,
)
from doordeploy.deploy import DeployOptions, PipelineError, Stage, ValidationError, resolve
from doordeploy.deploy.pipeline import DeployPipeline, print_summary
from doordeploy.deploy.targets import TARGETS
from doordeploy.utils.config import load_settings


def setup_parser(parser):
    """Setup argument parser for deploy command.

    The parser must be created with add_help=False: -h is --host here,
    so --help is registered explicitly.
    """
    parser.add_argument(
        '-h', '--host',
        help='Raspberry Pi hostname or IP address (required unless --build-only)'
    )
    parser.add_argument(
        '-u', '--user',
        help='SSH username (default: current local user)'
    )
    parser.add_argument(
        '-t', '--target',
        help=f"Rust target: {' | '.join(TARGETS)} (default: {next(iter(TARGETS))})"
    )
    parser.add_argument(
        '-r', '--release',
        action='store_true',
        help='Build in release mode (static binary via cross)'
    )
    parser.add_argument(
        '-b', '--build-only',
        action='store_true',
        help="Build for all targets, don't deploy"
    )
    parser.add_argument(
        '-c', '--config',
        help='Settings file (default: doordeploy.yaml if present)'
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Show build output and every ssh/scp command'
    )
    parser.add_argument(
        '--help',
        action='help',
        default=argparse.SUPPRESS,
        help='Show this help message and exit'
    )


def execute(
    args,
    process_executor=None,
    filesystem=None,
    tool_locator=None,
    time_provider=None,
    env_provider=None,
    logger=None
):
    """Execute deploy command.

    Production dependencies are created unless injected (tests pass fakes).

    Returns:
        Exit code: 0 on success, 1 on any validation, build, connectivity
        or remote failure
    """
    process_executor = process_executor or SubprocessExecutor()
    filesystem = filesystem or RealFileSystemService()
    tool_locator = tool_locator or SystemToolLocator()
    time_provider = time_provider or SystemTimeProvider()
    env_provider = env_provider or SystemEnvironmentProvider()
    log = logger or ConsoleLogger(verbose=args.verbose)

    log.info("🔨 Door Monitor Deployment Script")

    # Validate everything before touching the toolchain or the network
    try:
        settings = load_settings(args.config, YamlConfigLoader(filesystem), filesystem)
        request = resolve(
            DeployOptions(
                host=args.host,
                user=args.user,
                target=args.target,
                release=args.release,
                build_only=args.build_only,
                verbose=args.verbose,
            ),
            settings,
            env_provider,
        )
    except ValidationError as e:
        log.error(f"Stage 'validate' failed: {e}")
        return 1

    if request.build_only:
        log.info(f"🔨 Building for all supported targets ({request.mode.value} mode)")
    else:
        log.info(
            f"📟 Deploying {request.binary_name} ({request.mode.value} mode) for "
            f"{request.target.description} to {request.user}@{request.host}"
        )

    pipeline = DeployPipeline.create(
        request,
        process_executor=process_executor,
        filesystem=filesystem,
        tool_locator=tool_locator,
        time_provider=time_provider,
        logger=log,
    )

    try:
        summary = pipeline.run(request)
    except PipelineError as e:
        log.error(f"Stage '{e.stage.value}' failed\n\n{e.cause}")
        return 1

    print_summary(summary, log)
    if not summary.success:
        # Build-only batches report failures in the summary instead of raising
        batch = summary.batch
        total = len(batch.artifacts) + len(batch.failures)
        log.error(
            f"Stage '{Stage.BUILD.value}' failed: "
            f"{len(batch.failures)} of {total} targets failed to build"
        )
        return 1
    return 0
