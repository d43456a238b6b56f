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

"""Host setup and diagnostics subcommands (setup-docker, troubleshoot)."""

from __future__ import annotations

import typer

from cluster_manager.config import load_settings, resolve_settings
from cluster_manager.diagnostics import troubleshoot as run_troubleshoot
from cluster_manager.docker_setup import configure_docker_daemon, ensure_docker_running


def setup_docker(
    skip_daemon_config: bool = typer.Option(
        False, "--skip-daemon-config", help="Do not rewrite /etc/docker/daemon.json"),
) -> None:
    """Make sure Docker is running and configured for the registries."""
    settings = load_settings()
    ensure_docker_running()
    if not skip_daemon_config:
        configure_docker_daemon(settings.profile)


def troubleshoot(
    profile: str | None = typer.Option(None, "--profile", help="Minikube profile name"),
) -> None:
    """Run troubleshooting diagnostics."""
    run_troubleshoot(resolve_settings(name=profile))
