"""Production implementations of dependency injection protocols.

This module provides real implementations that wrap actual external dependencies
(filesystem, subprocess, time, etc.). These are used in production code.

For testing, use mocks or test doubles instead of these implementations.
"""

import getpass
import os
import shutil
import subprocess
import sys
import time
import yaml
from pathlib import Path
from typing import Dict, Any, Optional, List, Union

from doordeploy.core.protocols import ProcessResult


class ConsoleLogger:
    """Production logger that prints to console (stdout/stderr)."""

    def __init__(self, verbose: bool = False):
        self.verbose = verbose

    def info(self, message: str) -> None:
        """Print info message to stdout."""
        print(message)

    def warning(self, message: str) -> None:
        """Print warning message to stdout."""
        print(f"Warning: {message}")

    def error(self, message: str) -> None:
        """Print error message to stderr."""
        print(f"Error: {message}", file=sys.stderr)

    def debug(self, message: str) -> None:
        """Print debug message to stdout (only in verbose mode)."""
        if self.verbose:
            print(f"Debug: {message}")


class RealFileSystemService:
    """Production filesystem service using real pathlib operations."""

    def exists(self, path: Union[str, Path]) -> bool:
        """Check if path exists."""
        return Path(path).exists()

    def is_file(self, path: Union[str, Path]) -> bool:
        """Check if path is a file."""
        return Path(path).is_file()

    def read_file(self, path: Union[str, Path]) -> str:
        """Read entire file as string."""
        with open(path, 'r') as f:
            return f.read()


class SubprocessExecutor:
    """Production process executor using real subprocess.run."""

    def run(
        self,
        cmd: List[str],
        input: Optional[str] = None,
        capture_output: bool = True,
        timeout: Optional[float] = None,
        cwd: Optional[str] = None,
    ) -> ProcessResult:
        """Execute command and return its result (never raises on exit status)."""
        # Without input, children get /dev/null so ssh cannot consume the
        # caller's stdin (e.g. a `while read host` loop)
        stdin_kwargs = {'input': input} if input is not None else {'stdin': subprocess.DEVNULL}
        try:
            completed = subprocess.run(
                cmd,
                capture_output=capture_output,
                text=True,
                timeout=timeout,
                cwd=cwd,
                **stdin_kwargs,
            )
        except subprocess.TimeoutExpired as e:
            stderr = e.stderr if isinstance(e.stderr, str) else ""
            return ProcessResult(returncode=-1, stdout="", stderr=stderr, timed_out=True)
        except FileNotFoundError as e:
            # Same convention as a shell: 127 means command not found
            return ProcessResult(returncode=127, stdout="", stderr=str(e))

        return ProcessResult(
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )


class SystemTimeProvider:
    """Production time provider using real time module."""

    def sleep(self, seconds: float) -> None:
        """Sleep for specified seconds."""
        time.sleep(seconds)


class SystemEnvironmentProvider:
    """Production environment provider using real os and getpass modules."""

    def get_login_name(self) -> str:
        """Get the local user name ($USER, falling back to getpass)."""
        return os.environ.get('USER') or getpass.getuser()


class SystemToolLocator:
    """Production tool locator using real shutil.which."""

    def find_tool(self, tool_name: str) -> Optional[str]:
        """Find tool in PATH."""
        return shutil.which(tool_name)

    def has_tool(self, tool_name: str) -> bool:
        """Check if tool exists in PATH."""
        return self.find_tool(tool_name) is not None


class YamlConfigLoader:
    """Production config loader using real YAML parser."""

    def __init__(self, filesystem: 'RealFileSystemService'):
        """Initialize with filesystem service for reading files."""
        self.fs = filesystem

    def load_yaml(self, path: str) -> Dict[str, Any]:
        """Load YAML file and return parsed dictionary."""
        content = self.fs.read_file(path)
        return yaml.safe_load(content)
