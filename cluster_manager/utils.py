# /*
# Copyright 2026 The Local Cluster CLI Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

"""Utility functions for command checks and external CLI invocation."""

from __future__ import annotations

import subprocess

import sh


class PrerequisiteError(RuntimeError):
    """A required external tool is missing or unusable."""


def command_exists(cmd: str) -> bool:
    """Return True if *cmd* resolves on the system PATH."""
    try:
        found = sh.which(cmd)
    except sh.ErrorReturnCode:
        return False
    return bool(found)


def require_command(cmd: str, hint: str = "fresh-install") -> None:
    """Check if a command exists on the system PATH.

    Args:
        cmd: Name of the CLI command to check.
        hint: Subcommand that installs the missing tool.

    Raises:
        PrerequisiteError: If the command is not found.
    """
    if not command_exists(cmd):
        raise PrerequisiteError(
            f"Required command '{cmd}' not found. Run 'local-cluster-cli {hint}' first."
        )


def run_minikube(*args: str, **kwargs) -> str:
    """Run minikube via sh; raises ``sh.ErrorReturnCode`` on non-zero exit."""
    return sh.minikube(*args, **kwargs)


def run_sudo(*args: str) -> None:
    """Run a privileged command in the foreground so sudo can prompt."""
    sh.sudo(*args, _fg=True)


def run_kubectl(args: list[str], timeout: int = 30) -> tuple[bool, str, str]:
    """Run a kubectl command via subprocess and return (success, stdout, stderr).

    Args:
        args: kubectl arguments (e.g. ``["get", "nodes"]``).
        timeout: Maximum seconds to wait for the command to complete.

    Returns:
        Tuple of (success, stdout, stderr).
    """
    try:
        result = subprocess.run(
            ["kubectl", *args],
            capture_output=True,
            text=True,
            timeout=timeout,
        )
        return result.returncode == 0, result.stdout, result.stderr
    except (subprocess.SubprocessError, OSError) as exc:
        return False, "", str(exc)


def run_capture(args: list[str], timeout: int = 30) -> tuple[bool, str]:
    """Run any command and return (success, combined output) without raising."""
    try:
        result = subprocess.run(
            args,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            timeout=timeout,
        )
        return result.returncode == 0, result.stdout
    except (subprocess.SubprocessError, OSError) as exc:
        return False, str(exc)
