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

"""Image maintenance subcommands (clean-images, load-images)."""

from __future__ import annotations

import typer

from cluster_manager import warning
from cluster_manager.cluster import load_images as load_into_cluster
from cluster_manager.config import load_settings, resolve_settings
from cluster_manager.images import clean_images as remove_manifest_images
from cluster_manager.images import read_manifest
from cluster_manager.utils import require_command


def clean_images() -> None:
    """Remove the pre-pulled images recorded in the image manifest."""
    settings = load_settings()
    remove_manifest_images(settings.store, settings.retries.pull_timeout)


def load_images(
    profile: str | None = typer.Option(None, "--profile", help="Minikube profile name"),
) -> None:
    """Load the pre-pulled images into the cluster."""
    settings = resolve_settings(name=profile)
    require_command("minikube")
    entries = read_manifest(settings.store)
    if not entries:
        warning("No pre-pulled images recorded. Run 'local-cluster-cli start' first.")
        return
    failed = load_into_cluster(settings.profile.name, [entry.expected for entry in entries])
    if failed:
        raise typer.Exit(code=1)
