"""Shared fixtures: a fake Raspberry Pi + local Rust toolchain.

FakePi implements the ProcessExecutor protocol. It interprets the argv the
pipeline produces (ssh, scp, rustup, cargo, cross) against in-memory remote
state, so whole deploys run in tests without a network or a compiler.
"""
import re
import shlex
from pathlib import Path
from typing import Optional
from unittest.mock import Mock

import pytest

from doordeploy.core.protocols import Logger, ProcessResult, TimeProvider


class FakePi:
    """In-memory remote host plus local toolchain."""

    def __init__(self, project_dir: Path, binary_name: str = "door-monitor"):
        self.project_dir = Path(project_dir)
        self.binary_name = binary_name
        self.calls = []

        # Remote state
        self.reachable = True
        self.probe_times_out = False
        self.sudo_ok = True
        self.files = {}
        self.executable = set()
        self.processes = []
        self.ignores_term = False
        self.unkillable = False
        self.kill_exit = 0
        self.daemon_reloads = 0
        self.enabled = set()
        self.started = set()

        # Local toolchain state
        self.installed_targets = {"arm-unknown-linux-gnueabihf", "aarch64-unknown-linux-gnu"}
        self.installable_targets = set(self.installed_targets)
        self.failing_builds = set()
        self.skip_artifact = False

    # -- ProcessExecutor -------------------------------------------------

    def run(self, cmd, input=None, capture_output=True, timeout=None, cwd=None) -> ProcessResult:
        self.calls.append(list(cmd))
        prog = cmd[0]
        if prog == 'rustup':
            return self._rustup(cmd)
        if prog in ('cargo', 'cross'):
            return self._build(cmd, cwd)
        if prog == 'ssh':
            return self._ssh(cmd, input)
        if prog == 'scp':
            return self._scp(cmd)
        return ProcessResult(127, "", f"{prog}: command not found")

    # -- helpers for assertions ------------------------------------------

    def remote_commands(self):
        """Remote argv lists (sudo -n stripped) in call order."""
        out = []
        for cmd in self.calls:
            if cmd[0] == 'ssh':
                argv = shlex.split(cmd[-1])
                if argv[:2] == ['sudo', '-n']:
                    argv = argv[2:]
                out.append(argv)
            elif cmd[0] == 'scp':
                out.append(['scp'] + cmd[-2:])
        return out

    def signals_sent(self):
        return [argv for argv in self.remote_commands() if argv and argv[0] == 'pkill']

    # -- local toolchain -------------------------------------------------

    def _rustup(self, cmd):
        if cmd[1:] == ['target', 'list', '--installed']:
            return ProcessResult(0, "\n".join(sorted(self.installed_targets)) + "\n", "")
        if cmd[1:3] == ['target', 'add']:
            triple = cmd[3]
            if triple in self.installable_targets:
                self.installed_targets.add(triple)
                return ProcessResult(0, "", f"info: installing component 'rust-std' for '{triple}'")
            return ProcessResult(1, "", f"error: component download failed for rust-std-{triple}")
        return ProcessResult(1, "", "rustup: unsupported")

    def _build(self, cmd, cwd):
        triple = cmd[cmd.index('--target') + 1]
        if triple not in self.installed_targets:
            return ProcessResult(101, "", f"error[E0463]: can't find crate for `std` ({triple})")
        if triple in self.failing_builds:
            return ProcessResult(101, "", "error: could not compile `door-monitor`")
        mode = 'release' if '--release' in cmd else 'debug'
        if not self.skip_artifact:
            out = Path(cwd or self.project_dir) / "target" / triple / mode / self.binary_name
            out.parent.mkdir(parents=True, exist_ok=True)
            out.write_text(f"ELF {triple} {mode}\n")
        return ProcessResult(0, "", "    Finished")

    # -- remote ----------------------------------------------------------

    def _connection(self, cmd) -> Optional[ProcessResult]:
        if self.probe_times_out:
            return ProcessResult(-1, "", "", timed_out=True)
        if not self.reachable:
            return ProcessResult(255, "", "ssh: connect to host pi.local port 22: No route to host")
        return None

    def _scp(self, cmd):
        failure = self._connection(cmd)
        if failure:
            return failure
        local, remote = cmd[-2], cmd[-1].split(':', 1)[1]
        self.files[remote] = Path(local).read_text()
        self.executable.discard(remote)
        return ProcessResult(0, "", "")

    def _matching(self, pattern):
        return [p for p in self.processes if re.search(pattern, p)]

    def _ssh(self, cmd, stdin):
        failure = self._connection(cmd)
        if failure:
            return failure

        argv = shlex.split(cmd[-1])
        privileged = argv[:2] == ['sudo', '-n']
        if privileged:
            if not self.sudo_ok:
                return ProcessResult(1, "", "sudo: a password is required")
            argv = argv[2:]

        name = argv[0]
        if argv == ['echo', 'ok']:
            return ProcessResult(0, "ok\n", "")

        if name == 'pgrep':
            found = self._matching(argv[-1])
            return ProcessResult(0 if found else 1, "\n".join(str(1000 + i) for i, _ in enumerate(found)), "")

        if name == 'pkill':
            if not privileged:
                return ProcessResult(1, "", "pkill: killing pid 1000 failed: Operation not permitted")
            found = self._matching(argv[-1])
            if not found:
                return ProcessResult(1, "", "")
            if argv[1] == '-TERM':
                if not self.ignores_term:
                    self.processes = [p for p in self.processes if p not in found]
                return ProcessResult(0, "", "")
            if self.unkillable:
                return ProcessResult(1, "", "pkill: killing pid 1000 failed: Operation not permitted")
            self.processes = [p for p in self.processes if p not in found]
            return ProcessResult(self.kill_exit, "", "")

        if name == 'chmod':
            path = argv[-1]
            if path not in self.files:
                return ProcessResult(1, "", f"chmod: cannot access '{path}': No such file or directory")
            self.executable.add(path)
            return ProcessResult(0, "", "")

        if name == 'tee':
            path = argv[1]
            if path.startswith('/etc/') and not privileged:
                return ProcessResult(1, "", f"tee: {path}: Permission denied")
            self.files[path] = stdin or ""
            return ProcessResult(0, stdin or "", "")

        if name == 'systemctl':
            if not privileged:
                return ProcessResult(1, "", "Failed to connect to bus: Access denied")
            verb = argv[1]
            if verb == 'daemon-reload':
                self.daemon_reloads += 1
                return ProcessResult(0, "", "")
            if verb == 'enable':
                unit = argv[2]
                if f"/etc/systemd/system/{unit}.service" not in self.files:
                    return ProcessResult(1, "", f"Failed to enable unit: Unit file {unit}.service does not exist.")
                self.enabled.add(unit)
                return ProcessResult(0, "", "Created symlink ...")
            if verb == 'start':
                self.started.add(argv[2])
                return ProcessResult(0, "", "")

        if name == 'test' and argv[1] == '-e':
            return ProcessResult(0 if argv[2] in self.files else 1, "", "")

        if name == 'sh' and argv[1] == '-c':
            script, path = argv[2], argv[4]
            if script == 'test -e "$1" || cat > "$1"':
                if path not in self.files:
                    self.files[path] = stdin or ""
                return ProcessResult(0, "", "")

        return ProcessResult(127, "", f"bash: {name}: command not found")


@pytest.fixture
def fake_pi(tmp_path):
    """A reachable Pi with no prior installation and both targets installed."""
    return FakePi(project_dir=tmp_path)


@pytest.fixture
def mock_logger():
    return Mock(spec=Logger)


@pytest.fixture
def mock_time():
    return Mock(spec=TimeProvider)


@pytest.fixture
def all_tools():
    """ToolLocator reporting cargo, cross, rustup, ssh and scp as installed."""
    tools = Mock()
    tools.has_tool.return_value = True
    tools.find_tool.side_effect = lambda name: f"/usr/bin/{name}"
    return tools


def logged(logger_mock, level='info'):
    """All messages logged at one level, joined for substring checks."""
    return "\n".join(str(c.args[0]) for c in getattr(logger_mock, level).call_args_list)


@pytest.fixture
def log_text():
    return logged
