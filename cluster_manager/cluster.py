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

"""Minikube cluster lifecycle: start flags, retrying launcher, readiness, addons."""

from __future__ import annotations

import enum
from pathlib import Path

import sh
from rich.panel import Panel
from tenacity import RetryError, Retrying, retry, retry_if_exception_type, retry_if_result, stop_after_attempt, wait_fixed

from cluster_manager import console, error, info, logger, success, warning
from cluster_manager.config import ClusterProfile, ProxySettings, RetryPolicy
from cluster_manager.constants import DOCKER_ADDRESS_POOL, NODE_READY_REQUEST_TIMEOUT, SYSTEMD_RESOLV_CONF
from cluster_manager.utils import run_kubectl, run_minikube


class LaunchState(enum.Enum):
    NOT_STARTED = "NotStarted"
    STARTING = "Starting"
    READY = "Ready"
    FAILED = "Failed"


class LaunchError(RuntimeError):
    """The cluster did not start within the configured number of attempts."""


# ============================================================================
# Start flags
# ============================================================================

def build_start_args(
    profile: ClusterProfile,
    proxy: ProxySettings,
    base_image: str | None = None,
    resolv_conf: Path = SYSTEMD_RESOLV_CONF,
) -> list[str]:
    """Assemble the ``minikube start`` arguments for a profile.

    Args:
        profile: Cluster profile with resources, registries, and versions.
        proxy: Proxy settings forwarded to the Docker driver.
        base_image: Custom kicbase image, or None for Minikube's default.
        resolv_conf: systemd-resolved file passed to the kubelet when present.

    Returns:
        Argument list, without the leading ``start``.
    """
    args = [
        f"--profile={profile.name}",
        f"--driver={profile.driver}",
        f"--memory={profile.memory}",
        f"--cpus={profile.cpus}",
        f"--disk-size={profile.disk_size}",
        f"--kubernetes-version={profile.kubernetes_version}",
        "--embed-certs=true",
        "--force-systemd=true",
        "--extra-config=kubeadm.ignore-preflight-errors=NumCPU",
    ]
    if resolv_conf.exists():
        args.append(f"--extra-config=kubelet.resolv-conf={resolv_conf}")
    if profile.insecure_registries:
        args.append(f"--insecure-registry={','.join(profile.insecure_registries)}")
    args.extend(f"--registry-mirror={mirror}" for mirror in profile.registry_mirrors)
    if profile.image_repository:
        args.append(f"--image-repository={profile.image_repository}")
    if base_image:
        args.append(f"--base-image={base_image}")
    if profile.driver == "docker":
        args.append(f"--docker-opt={DOCKER_ADDRESS_POOL}")
        args.extend(f"--docker-env={pair}" for pair in proxy.docker_env())
    return args


# ============================================================================
# Launcher
# ============================================================================

class ClusterLauncher:
    """Drive ``minikube start`` through NotStarted -> Starting -> Ready | Failed.

    A failed start deletes the partial profile before the next attempt; the
    delete never runs after the last attempt.
    """

    def __init__(
        self,
        profile_name: str,
        start_args: list[str],
        start_policy: RetryPolicy,
        ready_policy: RetryPolicy,
    ) -> None:
        self.profile_name = profile_name
        self.start_args = start_args
        self.start_policy = start_policy
        self.ready_policy = ready_policy
        self.state = LaunchState.NOT_STARTED
        self.attempts = 0
        self.deletions = 0

    def launch(self) -> LaunchState:
        """Start the cluster, then wait for its nodes.

        Returns:
            ``LaunchState.READY``; a readiness timeout is logged but not fatal.

        Raises:
            LaunchError: If every start attempt failed.
        """
        console.print(Panel.fit(f"Starting cluster '{self.profile_name}'", style="bold blue"))
        logger.info("minikube start %s", " ".join(self.start_args))
        try:
            for attempt in Retrying(
                stop=stop_after_attempt(self.start_policy.max_attempts),
                wait=wait_fixed(self.start_policy.interval),
                retry=retry_if_exception_type(sh.ErrorReturnCode),
                before_sleep=self._cleanup_partial,
                reraise=True,
            ):
                with attempt:
                    self._start_once()
        except sh.ErrorReturnCode as e:
            self.state = LaunchState.FAILED
            error(f"Failed to start cluster after {self.attempts} attempts")
            info(f"You can run 'minikube logs -p {self.profile_name}' for more details")
            raise LaunchError(f"Cluster '{self.profile_name}' failed to start (exit code {e.exit_code})") from e

        success("Cluster started successfully!")
        wait_for_nodes(self.ready_policy)
        self.state = LaunchState.READY
        return self.state

    def _start_once(self) -> None:
        self.attempts += 1
        self.state = LaunchState.STARTING
        info(f"Cluster start attempt {self.attempts}/{self.start_policy.max_attempts}")
        try:
            run_minikube("start", *self.start_args, _fg=True)
        except sh.ErrorReturnCode:
            self.state = LaunchState.NOT_STARTED
            raise

    def _cleanup_partial(self, retry_state) -> None:
        warning("Cluster start failed, cleaning up and retrying...")
        try:
            run_minikube("delete", "-p", self.profile_name)
        except sh.ErrorReturnCode as e:
            logger.warning("Cleanup of profile %s failed: %s", self.profile_name, e)
        self.deletions += 1


def wait_for_nodes(policy: RetryPolicy) -> bool:
    """Poll ``kubectl get nodes`` until it succeeds or the policy is exhausted.

    Returns:
        True if the API server answered, False on timeout.
    """
    info("Waiting for cluster to be ready...")

    @retry(
        stop=stop_after_attempt(policy.max_attempts),
        wait=wait_fixed(policy.interval),
        retry=retry_if_result(lambda ok: not ok),
    )
    def _poll() -> bool:
        ok, _, _ = run_kubectl(["get", "nodes", f"--request-timeout={NODE_READY_REQUEST_TIMEOUT}"])
        return ok

    try:
        ready = _poll()
    except RetryError:
        ready = False

    if ready:
        success("Cluster is ready!")
    else:
        warning(f"Cluster nodes not ready after {policy.max_attempts} checks, continuing anyway")
    return ready


# ============================================================================
# Cluster operations
# ============================================================================

def cluster_status(profile_name: str) -> tuple[bool, str]:
    """Return (exists, status text) from ``minikube status``."""
    try:
        return True, str(run_minikube("status", "-p", profile_name))
    except sh.ErrorReturnCode as e:
        output = e.stdout.decode(errors="replace")
        # minikube exits non-zero for stopped clusters but still prints their status
        return "host:" in output.lower(), output


def is_running(profile_name: str) -> bool:
    _, output = cluster_status(profile_name)
    return "Running" in output


def stop_cluster(profile_name: str) -> None:
    info(f"Stopping cluster '{profile_name}'...")
    if not is_running(profile_name):
        warning("Cluster is not running")
        return
    run_minikube("stop", "-p", profile_name, _fg=True)
    success("Cluster stopped successfully!")


def delete_cluster(profile_name: str) -> None:
    info(f"Deleting cluster '{profile_name}'...")
    run_minikube("delete", "-p", profile_name, _fg=True)
    success(f"Cluster '{profile_name}' deleted")


def enable_addons(profile_name: str, addons: list[str]) -> list[str]:
    """Enable each addon; failures are warnings.

    Returns:
        Addons that failed to enable.
    """
    if not addons:
        return []
    console.print(Panel.fit("Enabling addons", style="bold blue"))
    failed = []
    for addon in addons:
        try:
            run_minikube("addons", "enable", addon, "-p", profile_name)
            success(f"Enabled {addon} addon")
        except sh.ErrorReturnCode:
            warning(f"Failed to enable {addon} addon - continuing anyway")
            failed.append(addon)
    return failed


def load_images(profile_name: str, references: list[str]) -> list[str]:
    """Load local images into the cluster with ``minikube image load``.

    Returns:
        References that failed to load.
    """
    console.print(Panel.fit(f"Loading {len(references)} images into '{profile_name}'", style="bold blue"))
    failed = []
    for reference in references:
        try:
            run_minikube("image", "load", reference, "-p", profile_name)
            console.print(f"[green]\u2713 {reference}[/green]")
        except sh.ErrorReturnCode as e:
            console.print(f"[red]\u2717 {reference}[/red]")
            logger.error("Failed to load %s: %s", reference, e)
            failed.append(reference)
    if failed:
        warning(f"Failed to load {len(failed)} images")
    else:
        success(f"Loaded {len(references)} images")
    return failed
