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

"""Cluster status display and the troubleshooting report."""

from __future__ import annotations

import platform

import requests
import sh
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from cluster_manager import console, info
from cluster_manager.cluster import cluster_status
from cluster_manager.config import Settings
from cluster_manager.constants import (
    CONNECTIVITY_ENDPOINTS,
    CONNECTIVITY_TIMEOUT_SECONDS,
    DOCKER_INFO_LINES,
    LOG_TAIL_LINES,
    REGISTRY_CONFIG_NAME,
)
from cluster_manager.utils import command_exists, run_capture, run_minikube


def show_cluster_info(profile_name: str) -> bool:
    """Print the status of a profile and, when running, how to reach it.

    Returns:
        True if the profile exists.
    """
    info("Cluster Information:")
    if not command_exists("minikube"):
        console.print("No cluster found (minikube is not installed)")
        return False

    exists, status = cluster_status(profile_name)
    if not exists:
        console.print("No cluster found")
        return False

    console.print(f"[bold]Profile:[/bold] {escape(profile_name)}")
    console.print(escape(status.rstrip()))
    if "Running" in status:
        try:
            ip = str(run_minikube("ip", "-p", profile_name)).strip()
        except sh.ErrorReturnCode:
            ip = "Not available"
        console.print(f"\n[bold]Cluster IP:[/bold] {ip}")
        console.print("\nUseful commands:")
        for cmd in (
            "kubectl get nodes",
            "kubectl get pods --all-namespaces",
            f"minikube dashboard -p {profile_name}",
            f"minikube logs -p {profile_name}",
        ):
            console.print(f"  {escape(cmd)}")
    return True


def check_endpoint(endpoint: str, timeout: float = CONNECTIVITY_TIMEOUT_SECONDS) -> bool:
    """Return True if ``https://<endpoint>`` answers at all."""
    try:
        requests.head(f"https://{endpoint}", timeout=timeout, allow_redirects=True)
    except requests.exceptions.RequestException:
        return False
    return True


def _section(title: str) -> None:
    console.print(Panel.fit(title, style="bold blue"))


def _tool_section(title: str, tool: str, commands: list[tuple[list[str], str]], max_lines: int | None = None) -> None:
    _section(title)
    if not command_exists(tool):
        console.print(f"{tool} not installed")
        return
    for cmd, fallback in commands:
        ok, output = run_capture(cmd)
        if not ok:
            console.print(fallback)
            continue
        lines = output.rstrip().splitlines()
        console.print(escape("\n".join(lines[:max_lines] if max_lines else lines)))


def troubleshoot(settings: Settings) -> dict[str, bool]:
    """Print the troubleshooting report.

    Returns:
        Reachability of each connectivity endpoint.
    """
    profile_name = settings.profile.name
    info("Running troubleshooting diagnostics...")

    _section("System Information")
    console.print(escape(" ".join(platform.uname())))

    _tool_section("Docker Status", "docker", [
        (["docker", "version"], "Docker not accessible"),
        (["docker", "info"], "Docker daemon not running"),
    ], max_lines=DOCKER_INFO_LINES)
    _tool_section("Minikube Status", "minikube", [
        (["minikube", "version"], "minikube not working"),
        (["minikube", "status", "-p", profile_name], "No cluster running"),
    ])
    _tool_section("kubectl Status", "kubectl", [
        (["kubectl", "version", "--client"], "kubectl not working"),
        (["kubectl", "cluster-info"], "No cluster connection"),
    ])

    _section("Network Connectivity")
    reachability = {endpoint: check_endpoint(endpoint) for endpoint in CONNECTIVITY_ENDPOINTS}
    table = Table(show_header=True, header_style="bold")
    table.add_column("Endpoint")
    table.add_column("Status")
    for endpoint, ok in reachability.items():
        table.add_row(endpoint, "[green]\u2713 reachable[/green]" if ok else "[red]\u2717 unreachable[/red]")
    console.print(table)

    _section("Proxy Configuration")
    console.print(f"HTTP_PROXY: {settings.proxy.http_proxy or 'not set'}")
    console.print(f"HTTPS_PROXY: {settings.proxy.https_proxy or 'not set'}")
    console.print(f"NO_PROXY: {settings.proxy.no_proxy or 'not set'}")

    _section("Registry Configuration")
    registry_file = settings.store.path(REGISTRY_CONFIG_NAME)
    if registry_file.exists():
        console.print(f"Registry configuration found at {registry_file}:")
        console.print(escape(registry_file.read_text().rstrip()))
    else:
        console.print("No registry configuration found")

    _section("Log File")
    log_file = settings.store.log_file
    console.print(f"Main log: {log_file}")
    if log_file.exists():
        console.print(f"Last {LOG_TAIL_LINES} log entries:")
        for line in log_file.read_text().splitlines()[-LOG_TAIL_LINES:]:
            console.print(escape(line))

    _section("Recommended Actions")
    for step, action in enumerate((
        "If Docker is not accessible, run: sudo usermod -aG docker $USER && newgrp docker",
        "If network issues, run: local-cluster-cli configure-proxy (or configure-registry for mirrors)",
        "If image pulls fail, run: local-cluster-cli configure-images",
        f"For detailed cluster logs, run: minikube logs -p {profile_name}",
        "To completely reset, run: local-cluster-cli delete && local-cluster-cli fresh-install",
    ), start=1):
        console.print(f"{step}. {escape(action)}")
    return reachability
