"""Protocol definitions for dependency injection.

This module defines Protocol-based abstractions for all external dependencies
of the deploy pipeline (local processes, filesystem, clock, environment).
Protocols use structural typing, so any class implementing these methods
satisfies the Protocol without explicit inheritance.

Benefits:
- Easy to mock in tests (just implement the methods)
- No inheritance required
- The pipeline never shells out directly, every command goes through
  a ProcessExecutor
"""

from typing import Protocol, Dict, Any, Optional, List, Union
from pathlib import Path
from dataclasses import dataclass


class Logger(Protocol):
    """Abstraction for logging operations.

    Replaces direct print() statements throughout the codebase.
    Stage status lines and operator guidance go through this interface.
    """

    def info(self, message: str) -> None:
        """Log informational message."""
        ...

    def warning(self, message: str) -> None:
        """Log warning message."""
        ...

    def error(self, message: str) -> None:
        """Log error message."""
        ...

    def debug(self, message: str) -> None:
        """Log debug message."""
        ...


class FileSystemService(Protocol):
    """Abstraction for local filesystem operations."""

    def exists(self, path: Union[str, Path]) -> bool:
        """Check if path exists."""
        ...

    def is_file(self, path: Union[str, Path]) -> bool:
        """Check if path is a file."""
        ...

    def read_file(self, path: Union[str, Path]) -> str:
        """Read entire file as string."""
        ...


@dataclass
class ProcessResult:
    """Outcome of a finished command.

    Attributes:
        returncode: Exit status (non-zero means failure)
        stdout: Captured standard output ("" when not captured)
        stderr: Captured standard error ("" when not captured)
        timed_out: True if the command was killed by the local timeout
    """
    returncode: int
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False


class ProcessExecutor(Protocol):
    """Abstraction for process execution.

    Wraps subprocess.run to enable testing without spawning real processes.
    Implementations never raise on a non-zero exit; callers inspect
    ProcessResult.returncode.
    """

    def run(
        self,
        cmd: List[str],
        input: Optional[str] = None,
        capture_output: bool = True,
        timeout: Optional[float] = None,
        cwd: Optional[str] = None,
    ) -> ProcessResult:
        """Execute command to completion and return its result."""
        ...


class TimeProvider(Protocol):
    """Abstraction for time operations.

    Lets tests skip the grace period of the remote process stop.
    """

    def sleep(self, seconds: float) -> None:
        """Sleep for specified number of seconds."""
        ...


class EnvironmentProvider(Protocol):
    """Abstraction for environment access.

    Wraps the local login name so default user resolution
    can be tested without touching the real environment.
    """

    def get_login_name(self) -> str:
        """Get the operator's local user name."""
        ...


class ToolLocator(Protocol):
    """Abstraction for external tool discovery.

    Wraps shutil.which() to enable testing without requiring
    cargo, cross, rustup, ssh or scp to be installed.
    """

    def find_tool(self, tool_name: str) -> Optional[str]:
        """Find tool in PATH and return absolute path, or None if not found."""
        ...

    def has_tool(self, tool_name: str) -> bool:
        """Check if tool exists in PATH."""
        ...


class ConfigLoader(Protocol):
    """Abstraction for configuration file loading.

    Wraps YAML loading to enable testing with mock configurations
    without requiring actual config files.
    """

    def load_yaml(self, path: str) -> Dict[str, Any]:
        """Load YAML file and return parsed dictionary."""
        ...
