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

"""Docker daemon checks, daemon.json generation, and restart handling."""

from __future__ import annotations

import getpass
import grp
import json
import tempfile
import time
from pathlib import Path

import docker
import requests
from rich.panel import Panel
from tenacity import RetryError, retry, retry_if_result, stop_after_attempt, wait_fixed

from cluster_manager import console, info, logger, success, warning
from cluster_manager.config import ClusterProfile, RetryPolicy
from cluster_manager.constants import (
    DAEMON_INSECURE_REGISTRIES,
    DAEMON_LOG_OPTS,
    DOCKER_DAEMON_CONFIG,
    DOCKER_READY_MAX_RETRIES,
    DOCKER_READY_POLL_INTERVAL_SECONDS,
)
from cluster_manager.utils import PrerequisiteError, require_command, run_sudo

DOCKER_READY_POLICY = RetryPolicy(DOCKER_READY_MAX_RETRIES, DOCKER_READY_POLL_INTERVAL_SECONDS)


def docker_available() -> bool:
    """Return True if the Docker daemon answers a ping."""
    try:
        client = docker.from_env()
    except (docker.errors.DockerException, requests.exceptions.RequestException):
        return False
    try:
        return bool(client.ping())
    except (docker.errors.DockerException, requests.exceptions.RequestException):
        return False
    finally:
        client.close()


def wait_for_docker(policy: RetryPolicy = DOCKER_READY_POLICY) -> bool:
    """Poll the Docker daemon until it answers or the policy is exhausted."""

    @retry(
        stop=stop_after_attempt(policy.max_attempts),
        wait=wait_fixed(policy.interval),
        retry=retry_if_result(lambda ok: not ok),
        before_sleep=lambda rs: info(
            f"Waiting for Docker daemon to start... ({rs.attempt_number}/{policy.max_attempts})"),
    )
    def _ping() -> bool:
        return docker_available()

    try:
        return _ping()
    except RetryError:
        return False


def user_in_docker_group(user: str | None = None) -> bool:
    user = user or getpass.getuser()
    try:
        return user in grp.getgrnam("docker").gr_mem
    except KeyError:
        return False


def ensure_docker_running() -> None:
    """Make sure Docker is installed, accessible, and running.

    Installing Docker Engine itself is left to the OS package manager.

    Raises:
        PrerequisiteError: If Docker is missing, or the user must re-login
            after being added to the docker group.
    """
    console.print(Panel.fit("Checking Docker", style="bold blue"))
    require_command("docker", hint="setup-docker")
    if docker_available():
        success("Docker is installed and running")
        return

    user = getpass.getuser()
    if user != "root" and not user_in_docker_group(user):
        warning(f"User '{user}' is not in the docker group. Adding it...")
        run_sudo("usermod", "-aG", "docker", user)
        raise PrerequisiteError(
            "Added to the docker group. Log out and back in (or run 'newgrp docker'), then re-run this command."
        )

    info("Docker is installed but not running. Starting Docker service...")
    run_sudo("systemctl", "start", "docker")
    run_sudo("systemctl", "enable", "docker")
    if not wait_for_docker():
        raise PrerequisiteError("Docker daemon failed to start")
    success("Docker service started")


def build_daemon_config(insecure_registries: list[str], registry_mirrors: list[str]) -> dict:
    """Build the daemon.json content for enterprise registries.

    Args:
        insecure_registries: Profile registries added to the built-in list.
        registry_mirrors: Registry mirror URLs.

    Returns:
        daemon.json content as a dictionary.
    """
    insecure = list(dict.fromkeys([*DAEMON_INSECURE_REGISTRIES, *insecure_registries]))
    return {
        "insecure-registries": insecure,
        "registry-mirrors": [mirror for mirror in registry_mirrors if mirror],
        "log-driver": "json-file",
        "log-opts": dict(DAEMON_LOG_OPTS),
        "storage-driver": "overlay2",
    }


def configure_docker_daemon(profile: ClusterProfile, daemon_config: Path = DOCKER_DAEMON_CONFIG) -> None:
    """Write daemon.json for the profile's registries and restart Docker.

    Raises:
        PrerequisiteError: If the daemon does not come back after the restart.
    """
    console.print(Panel.fit("Configuring Docker daemon for enterprise registries", style="bold blue"))
    config = build_daemon_config(profile.insecure_registries, profile.registry_mirrors)

    if daemon_config.exists():
        backup = daemon_config.with_name(f"{daemon_config.name}.backup.{int(time.time())}")
        run_sudo("cp", str(daemon_config), str(backup))
        info(f"Backed up existing Docker daemon configuration to {backup}")

    with tempfile.NamedTemporaryFile("w", suffix=".json", delete=False) as tmp:
        json.dump(config, tmp, indent=2)
        tmp.write("\n")
    try:
        run_sudo("mkdir", "-p", str(daemon_config.parent))
        run_sudo("cp", tmp.name, str(daemon_config))
    finally:
        Path(tmp.name).unlink(missing_ok=True)
    logger.info("Wrote %s: %s", daemon_config, json.dumps(config))

    info("Restarting Docker daemon to apply new configuration...")
    run_sudo("systemctl", "daemon-reload")
    run_sudo("systemctl", "restart", "docker")
    if not wait_for_docker():
        raise PrerequisiteError("Docker daemon failed to start after configuration change")
    success("Docker daemon restarted successfully")
