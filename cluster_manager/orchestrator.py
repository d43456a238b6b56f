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

"""Orchestration functions that compose domain modules into workflows."""

from __future__ import annotations

import os

import sh
from rich.panel import Panel

from cluster_manager import console, info, logger, success, warning
from cluster_manager.cluster import (
    ClusterLauncher,
    LaunchError,
    LaunchState,
    build_start_args,
    cluster_status,
    delete_cluster,
    enable_addons,
    is_running,
)
from cluster_manager.config import ClusterProfile, Settings
from cluster_manager.diagnostics import show_cluster_info
from cluster_manager.docker_setup import configure_docker_daemon, docker_available, ensure_docker_running
from cluster_manager.images import build_image_specs, prepull_images
from cluster_manager.installer import install_kubectl, install_minikube
from cluster_manager.utils import PrerequisiteError, require_command, run_minikube

# ============================================================================
# Internal helpers
# ============================================================================


def _check_prerequisites(profile: ClusterProfile) -> None:
    """Check the CLI tools the start workflow shells out to.

    Raises:
        PrerequisiteError: If a tool is missing or Docker is unreachable.
    """
    console.print(Panel.fit("Checking prerequisites", style="bold blue"))
    for cmd in ("minikube", "kubectl"):
        require_command(cmd)
    if profile.driver == "docker":
        require_command("docker", hint="setup-docker")
        if not docker_available():
            raise PrerequisiteError("Docker daemon is not accessible. Run 'local-cluster-cli setup-docker' first.")
    success("All required tools are available")


def _cleanup_failed_install(profile_name: str) -> None:
    warning("Cleaning up failed installation...")
    for action in ("stop", "delete"):
        try:
            run_minikube(action, "-p", profile_name)
        except sh.ErrorReturnCode as e:
            logger.warning("minikube %s -p %s failed during cleanup: %s", action, profile_name, e)
    info("Cleanup completed")


# ============================================================================
# Workflows
# ============================================================================


def run_start(settings: Settings, *, skip_prepull: bool = False) -> LaunchState:
    """Pre-pull images, start the cluster, and enable addons.

    Args:
        settings: Resolved settings with CLI overrides applied.
        skip_prepull: Whether to skip image pre-pulling.

    Returns:
        The launcher's final state.

    Raises:
        PrerequisiteError: If a required tool is missing.
        LaunchError: If the cluster fails to start after all retries.
    """
    profile = settings.profile
    _check_prerequisites(profile)

    if is_running(profile.name):
        warning(f"Kubernetes cluster '{profile.name}' is already running")
        show_cluster_info(profile.name)
        return LaunchState.READY

    specs = build_image_specs(profile.image_repository, settings.custom_images)
    if profile.image_repository:
        info(f"Using custom image repository: {profile.image_repository}")
    if not skip_prepull:
        prepull_images(specs, settings.retries.pull_policy, settings.store, settings.retries.pull_timeout)

    kicbase = next(spec for spec in specs if spec.component == "kicbase")
    launcher = ClusterLauncher(
        profile.name,
        build_start_args(profile, settings.proxy, base_image=kicbase.custom_url),
        settings.retries.start_policy,
        settings.retries.ready_policy,
    )
    state = launcher.launch()

    enable_addons(profile.name, profile.addons)
    success(f"Kubernetes cluster '{profile.name}' started successfully!")
    show_cluster_info(profile.name)
    return state


def run_fresh_install(settings: Settings, *, skip_prepull: bool = False) -> LaunchState:
    """Set up Docker, install minikube and kubectl, and create a new cluster.

    Raises:
        PrerequisiteError: If run as root or Docker cannot be made usable.
        RuntimeError: If a binary cannot be installed or the cluster fails to start.
    """
    profile = settings.profile
    info("Starting fresh Minikube installation...")
    if os.geteuid() == 0:
        raise PrerequisiteError(
            "This command should not be run as root. Run it as a regular user; sudo is used when needed."
        )

    if profile.driver == "docker":
        ensure_docker_running()
        configure_docker_daemon(profile)

    install_minikube(settings.mirror, settings.store)
    install_kubectl(profile.kubectl_version, settings.mirror)

    exists, _ = cluster_status(profile.name)
    if exists:
        warning(f"Existing cluster '{profile.name}' found. Deleting...")
        delete_cluster(profile.name)

    try:
        state = run_start(settings, skip_prepull=skip_prepull)
    except LaunchError:
        _cleanup_failed_install(profile.name)
        raise

    success("Fresh Minikube installation completed successfully!")
    info("If Docker was just set up, log out and back in for docker group permissions to take effect")
    return state
