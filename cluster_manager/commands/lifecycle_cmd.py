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

"""Cluster lifecycle subcommands (fresh-install, start, stop, delete, status)."""

from __future__ import annotations

import typer

from cluster_manager import info
from cluster_manager.cluster import delete_cluster, stop_cluster
from cluster_manager.config import resolve_settings
from cluster_manager.diagnostics import show_cluster_info
from cluster_manager.orchestrator import run_fresh_install, run_start
from cluster_manager.utils import require_command


def fresh_install(
    profile: str | None = typer.Option(None, "--profile", help="Minikube profile name"),
    driver: str | None = typer.Option(None, "--driver", help="Minikube driver (docker, virtualbox, kvm2, ...)"),
    memory: int | None = typer.Option(None, "--memory", min=1024, help="Memory allocation in MB"),
    cpus: int | None = typer.Option(None, "--cpus", min=1, help="Number of CPUs"),
    disk_size: str | None = typer.Option(None, "--disk-size", help="Disk size (e.g. 50g)"),
    kubectl_version: str | None = typer.Option(None, "--kubectl-version", help="kubectl release to install"),
    image_repository: str | None = typer.Option(
        None, "--image-repository", help="Registry for all Kubernetes component images"),
    skip_prepull: bool = typer.Option(False, "--skip-prepull", help="Skip image pre-pulling"),
    pause: str | None = typer.Option(None, "--pause", help="Custom pause image URL"),
    apiserver: str | None = typer.Option(None, "--apiserver", help="Custom kube-apiserver image URL"),
    scheduler: str | None = typer.Option(None, "--scheduler", help="Custom kube-scheduler image URL"),
    controller: str | None = typer.Option(None, "--controller", help="Custom kube-controller-manager image URL"),
    proxy: str | None = typer.Option(None, "--proxy", help="Custom kube-proxy image URL"),
    etcd: str | None = typer.Option(None, "--etcd", help="Custom etcd image URL"),
    coredns: str | None = typer.Option(None, "--coredns", help="Custom coredns image URL"),
    storage: str | None = typer.Option(None, "--storage", help="Custom storage-provisioner image URL"),
    kicbase: str | None = typer.Option(None, "--kicbase", help="Custom kicbase image URL"),
) -> None:
    """Set up Docker, install minikube and kubectl, and create a new cluster."""
    settings = resolve_settings(
        name=profile, driver=driver, memory=memory, cpus=cpus, disk_size=disk_size,
        kubectl_version=kubectl_version, image_repository=image_repository,
        images={
            "pause": pause, "apiserver": apiserver, "scheduler": scheduler,
            "controller": controller, "proxy": proxy, "etcd": etcd,
            "coredns": coredns, "storage": storage, "kicbase": kicbase,
        },
    )
    run_fresh_install(settings, skip_prepull=skip_prepull)


def start(
    profile: str | None = typer.Option(None, "--profile", help="Minikube profile name"),
    driver: str | None = typer.Option(None, "--driver", help="Minikube driver (docker, virtualbox, kvm2, ...)"),
    memory: int | None = typer.Option(None, "--memory", min=1024, help="Memory allocation in MB"),
    cpus: int | None = typer.Option(None, "--cpus", min=1, help="Number of CPUs"),
    disk_size: str | None = typer.Option(None, "--disk-size", help="Disk size (e.g. 50g)"),
    image_repository: str | None = typer.Option(
        None, "--image-repository", help="Registry for all Kubernetes component images"),
    skip_prepull: bool = typer.Option(False, "--skip-prepull", help="Skip image pre-pulling"),
    pause: str | None = typer.Option(None, "--pause", help="Custom pause image URL"),
    apiserver: str | None = typer.Option(None, "--apiserver", help="Custom kube-apiserver image URL"),
    scheduler: str | None = typer.Option(None, "--scheduler", help="Custom kube-scheduler image URL"),
    controller: str | None = typer.Option(None, "--controller", help="Custom kube-controller-manager image URL"),
    proxy: str | None = typer.Option(None, "--proxy", help="Custom kube-proxy image URL"),
    etcd: str | None = typer.Option(None, "--etcd", help="Custom etcd image URL"),
    coredns: str | None = typer.Option(None, "--coredns", help="Custom coredns image URL"),
    storage: str | None = typer.Option(None, "--storage", help="Custom storage-provisioner image URL"),
    kicbase: str | None = typer.Option(None, "--kicbase", help="Custom kicbase image URL"),
) -> None:
    """Pre-pull images and start the cluster, retrying failed starts."""
    settings = resolve_settings(
        name=profile, driver=driver, memory=memory, cpus=cpus, disk_size=disk_size,
        image_repository=image_repository,
        images={
            "pause": pause, "apiserver": apiserver, "scheduler": scheduler,
            "controller": controller, "proxy": proxy, "etcd": etcd,
            "coredns": coredns, "storage": storage, "kicbase": kicbase,
        },
    )
    run_start(settings, skip_prepull=skip_prepull)


def stop(
    profile: str | None = typer.Option(None, "--profile", help="Minikube profile name"),
) -> None:
    """Stop the cluster."""
    settings = resolve_settings(name=profile)
    require_command("minikube")
    stop_cluster(settings.profile.name)


def delete(
    profile: str | None = typer.Option(None, "--profile", help="Minikube profile name"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Delete the cluster."""
    settings = resolve_settings(name=profile)
    require_command("minikube")
    name = settings.profile.name
    if not yes and not typer.confirm(f"Are you sure you want to delete the cluster '{name}'?", default=False):
        info("Deletion cancelled")
        return
    delete_cluster(name)


def status(
    profile: str | None = typer.Option(None, "--profile", help="Minikube profile name"),
) -> None:
    """Show cluster status and information."""
    settings = resolve_settings(name=profile)
    show_cluster_info(settings.profile.name)
