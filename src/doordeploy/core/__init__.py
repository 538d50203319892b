"""Core dependency injection infrastructure for doordeploy.

This module provides Protocol-based abstractions that enable dependency injection
and testability throughout the codebase. All external dependencies (filesystem,
subprocess, time, environment) are abstracted via Protocols with production
implementations.

Design:
- Protocol-based abstractions (typing.Protocol) for structural typing
- Production implementations for real-world use
- Easy mocking for unit tests
"""

from doordeploy.core.protocols import (
    Logger,
    FileSystemService,
    ProcessExecutor,
    ProcessResult,
    TimeProvider,
    EnvironmentProvider,
    ToolLocator,
    ConfigLoader,
)

from doordeploy.core.implementations import (
    ConsoleLogger,
    RealFileSystemService,
    SubprocessExecutor,
    SystemTimeProvider,
    SystemEnvironmentProvider,
    SystemToolLocator,
    YamlConfigLoader,
)

__all__ = [
    # Protocols
    "Logger",
    "FileSystemService",
    "ProcessExecutor",
    "ProcessResult",
    "TimeProvider",
    "EnvironmentProvider",
    "ToolLocator",
    "ConfigLoader",
    # Implementations
    "ConsoleLogger",
    "RealFileSystemService",
    "SubprocessExecutor",
    "SystemTimeProvider",
    "SystemEnvironmentProvider",
    "SystemToolLocator",
    "YamlConfigLoader",
]
