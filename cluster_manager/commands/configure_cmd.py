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

"""Configuration subcommands that persist YAML files in the config directory."""

from __future__ import annotations

import typer

from cluster_manager import info, success
from cluster_manager.config import load_settings, split_csv
from cluster_manager.constants import (
    IMAGES_CONFIG_NAME,
    MIRROR_CONFIG_NAME,
    PROXY_CONFIG_NAME,
    REGISTRY_CONFIG_NAME,
)
from cluster_manager.images import build_image_specs


def _ask(text: str, default: str = "") -> str:
    return typer.prompt(text, default=default, show_default=bool(default)).strip()


def configure_registry() -> None:
    """Configure registry mirrors, insecure registries, and the image repository."""
    settings = load_settings()
    profile = settings.profile
    info("Configuring container registry mirrors...")

    dockerhub_mirror = _ask("Docker Hub mirror URL (leave empty to skip)")
    additional = _ask("Additional registry mirrors (comma-separated, leave empty to skip)")
    insecure = _ask("Insecure registries (comma-separated)", ",".join(profile.insecure_registries))
    image_repository = _ask(
        "Kubernetes image repository (leave empty for the default registries)",
        profile.image_repository or "",
    )

    mirrors = split_csv(",".join(filter(None, (dockerhub_mirror, additional))))
    path = settings.store.save(REGISTRY_CONFIG_NAME, {
        "registry_mirrors": mirrors,
        "insecure_registries": split_csv(insecure),
        "image_repository": image_repository or None,
    }, "Registry configuration")
    success(f"Registry settings saved to {path}")
    info("Run 'local-cluster-cli setup-docker' to apply them to the Docker daemon")


def configure_mirror() -> None:
    """Configure an enterprise mirror for minikube binary downloads."""
    settings = load_settings()
    info("Configuring enterprise mirror...")

    mirror_url = _ask("Enterprise mirror URL (leave empty to skip)", settings.mirror.enterprise_mirror or "")
    if not mirror_url:
        info("No mirror URL provided. Skipping mirror configuration.")
        return
    verify_tls = typer.confirm("Verify TLS certificates for downloads?", default=settings.mirror.verify_tls)

    path = settings.store.save(MIRROR_CONFIG_NAME, {
        "enterprise_mirror": mirror_url,
        "verify_tls": verify_tls,
    }, "Enterprise mirror configuration")
    success(f"Mirror configuration saved to {path}")


def configure_proxy() -> None:
    """Configure HTTP(S) proxy settings passed to the cluster's Docker daemon."""
    settings = load_settings()
    proxy = settings.proxy
    info("Configuring proxy settings...")

    http_proxy = _ask("HTTP_PROXY (leave empty for none)", proxy.http_proxy)
    https_proxy = _ask("HTTPS_PROXY (leave empty for none)", proxy.https_proxy)
    no_proxy = _ask("NO_PROXY", proxy.no_proxy)

    path = settings.store.save(PROXY_CONFIG_NAME, {
        "http_proxy": http_proxy,
        "https_proxy": https_proxy,
        "no_proxy": no_proxy,
    }, "Proxy configuration")
    success(f"Proxy settings saved to {path}")


def configure_images(
    reset: bool = typer.Option(False, "--reset", help="Remove all custom image URLs"),
) -> None:
    """Set a custom image URL per Kubernetes component.

    Leave a prompt empty to use the default image for that component.
    """
    settings = load_settings()
    if reset:
        path = settings.store.save(IMAGES_CONFIG_NAME, {}, "Custom image configuration")
        success(f"Custom images cleared in {path}")
        return

    info("Configuring custom component images...")
    custom: dict[str, str] = {}
    for spec in build_image_specs(settings.profile.image_repository, settings.custom_images):
        url = _ask(f"{spec.component} [default: {spec.expected_name}]", spec.custom_url or "")
        if url:
            custom[spec.component] = url

    path = settings.store.save(IMAGES_CONFIG_NAME, custom, "Custom image configuration")
    success(f"Saved {len(custom)} custom images to {path}")
