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

"""Component image resolution, pre-pulling with registry fallback, and the image manifest."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import NamedTuple

import docker
import requests
from docker.utils import parse_repository_tag
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn
from tenacity import Retrying, retry_if_exception_type, retry_if_not_exception_type, stop_after_attempt, wait_fixed

from cluster_manager import console, info, logger, success, warning
from cluster_manager.config import ConfigStore, RetryPolicy
from cluster_manager.constants import CATALOG, COMPONENTS, FALLBACK_REGISTRIES
from cluster_manager.utils import PrerequisiteError

PULL_ERRORS = (docker.errors.DockerException, requests.exceptions.RequestException)


# ============================================================================
# Image resolution
# ============================================================================

@dataclass(frozen=True)
class ImageSpec:
    """One Kubernetes component image.

    Attributes:
        component: Component identifier (``etcd``, ``apiserver``, ...).
        image: Image name inside the registry (``etcd``, ``kube-apiserver``, ...).
        registry: Default registry host, optionally with a path.
        version: Image tag.
        repository: Path segment between registry and image, may be empty.
        custom_url: Full image reference that replaces the default, or None.
    """

    component: str
    image: str
    registry: str
    version: str
    repository: str = ""
    custom_url: str | None = None

    @property
    def expected_name(self) -> str:
        """Reference Minikube looks up for this component."""
        prefix = "/".join(part.strip("/") for part in (self.registry, self.repository) if part)
        return f"{prefix}/{self.image}:{self.version}"

    def fallback_name(self, registry: str) -> str:
        return f"{registry}/{self.image}:{self.version}"


def resolve_image(spec: ImageSpec) -> str:
    """Return the reference to pull: the custom URL verbatim, else the expected name."""
    if spec.custom_url:
        return spec.custom_url
    return spec.expected_name


def build_image_specs(
    image_repository: str | None = None,
    custom_images: dict[str, str] | None = None,
) -> list[ImageSpec]:
    """Build one ImageSpec per catalog component.

    Args:
        image_repository: Registry replacing every component's default registry.
        custom_images: Mapping of component identifier to full image URL.

    Returns:
        ImageSpecs in pull order.

    Raises:
        ValueError: If *custom_images* names an unknown component.
    """
    custom_images = custom_images or {}
    unknown = sorted(set(custom_images) - set(COMPONENTS))
    if unknown:
        raise ValueError(f"Unknown image components: {', '.join(unknown)}")

    specs = []
    for component in COMPONENTS:
        entry = CATALOG["components"][component]
        specs.append(ImageSpec(
            component=component,
            image=entry["image"],
            registry=(image_repository or entry["registry"]).rstrip("/"),
            version=str(entry["version"]),
            repository=entry.get("repository", ""),
            custom_url=custom_images.get(component) or None,
        ))
    return specs


# ============================================================================
# Pull/tag pipeline
# ============================================================================

class PullOutcome(enum.Enum):
    PULLED = "pulled"
    FALLBACK = "fallback"
    FAILED = "failed"


@dataclass(frozen=True)
class PullResult:
    component: str
    outcome: PullOutcome
    source: str
    expected: str
    error: str | None = None


@dataclass
class PullReport:
    """Aggregate of one pre-pull run."""

    results: list[PullResult] = field(default_factory=list)
    skipped: bool = False

    def _components(self, outcome: PullOutcome) -> list[str]:
        return [r.component for r in self.results if r.outcome is outcome]

    @property
    def pulled(self) -> list[str]:
        return self._components(PullOutcome.PULLED)

    @property
    def fell_back(self) -> list[str]:
        return self._components(PullOutcome.FALLBACK)

    @property
    def failed(self) -> list[str]:
        return self._components(PullOutcome.FAILED)


def _pull(docker_client: docker.DockerClient, reference: str, policy: RetryPolicy):
    # a missing manifest will not appear on retry
    for attempt in Retrying(
        stop=stop_after_attempt(policy.max_attempts),
        wait=wait_fixed(policy.interval),
        retry=retry_if_exception_type(PULL_ERRORS) & retry_if_not_exception_type(docker.errors.NotFound),
        reraise=True,
    ):
        with attempt:
            return docker_client.images.pull(reference)


def _tag(image, reference: str) -> None:
    repository, tag = parse_repository_tag(reference)
    image.tag(repository, tag)


def pull_image(docker_client: docker.DockerClient, spec: ImageSpec, policy: RetryPolicy) -> PullResult:
    """Pull one image, falling back to alternate registries for default URLs.

    Custom URLs never fall back. A successful pull from anywhere other than
    the expected name is tagged to the expected name; a failed tag counts as
    a failed pull of that reference.

    Args:
        docker_client: Docker client instance.
        spec: Image to pull.
        policy: Retry policy applied to every individual pull.

    Returns:
        The outcome for this component.
    """
    primary = resolve_image(spec)
    expected = spec.expected_name
    logger.info("Attempting to pull image: %s", primary)
    try:
        image = _pull(docker_client, primary, policy)
        if primary != expected:
            _tag(image, expected)
    except PULL_ERRORS as e:
        if spec.custom_url:
            return PullResult(spec.component, PullOutcome.FAILED, primary, expected, str(e))
        logger.warning("Failed to pull %s: %s", primary, e)
        for registry in FALLBACK_REGISTRIES:
            candidate = spec.fallback_name(registry)
            if candidate == primary:
                continue
            logger.info("Trying alternative registry: %s", candidate)
            try:
                _tag(_pull(docker_client, candidate, policy), expected)
            except PULL_ERRORS as fallback_error:
                logger.warning("Failed to pull %s: %s", candidate, fallback_error)
                continue
            return PullResult(spec.component, PullOutcome.FALLBACK, candidate, expected)
        return PullResult(spec.component, PullOutcome.FAILED, primary, expected, str(e))

    return PullResult(spec.component, PullOutcome.PULLED, primary, expected)


def pull_all(docker_client: docker.DockerClient, specs: list[ImageSpec], policy: RetryPolicy) -> PullReport:
    """Pull every image in order with a progress bar."""
    report = PullReport()
    with Progress(
        SpinnerColumn(), TextColumn("[progress.description]{task.description}"),
        BarColumn(), TaskProgressColumn(), console=console,
    ) as progress:
        task = progress.add_task("[cyan]Pulling images...", total=len(specs))
        for spec in specs:
            result = pull_image(docker_client, spec, policy)
            report.results.append(result)
            progress.advance(task)
            if result.outcome is PullOutcome.PULLED:
                console.print(f"[green]\u2713 {result.source}[/green]")
            elif result.outcome is PullOutcome.FALLBACK:
                console.print(f"[green]\u2713 {result.source}[/green] [yellow]-> {result.expected}[/yellow]")
            else:
                console.print(f"[red]\u2717 {result.source} - {result.error}[/red]")
                logger.error("Failed to pull %s: %s", result.source, result.error)
    return report


def prepull_images(
    specs: list[ImageSpec],
    policy: RetryPolicy,
    store: ConfigStore,
    timeout: int,
) -> PullReport:
    """Pre-pull component images into the local Docker image store.

    Best effort: an unreachable daemon skips the step, failed images are
    reported and left for Minikube to pull on demand.

    Args:
        specs: Images to pull.
        policy: Retry policy for each pull.
        store: Config store receiving the image manifest.
        timeout: Docker API timeout in seconds.

    Returns:
        The pull report.
    """
    console.print(Panel.fit("Pre-pulling Kubernetes images", style="bold blue"))
    info(f"Pre-pulling {len(specs)} images (this speeds up cluster startup)...")

    docker_client = None
    try:
        docker_client = docker.from_env(timeout=timeout)
        docker_client.ping()
    except PULL_ERRORS as e:
        if docker_client is not None:
            docker_client.close()
        warning(f"Failed to connect to Docker: {e}")
        warning("Skipping image pre-pull (cluster will pull images on-demand)")
        return PullReport(skipped=True)

    try:
        report = pull_all(docker_client, specs, policy)
    finally:
        docker_client.close()

    write_manifest(store, report)
    if report.failed:
        warning(f"Failed to pre-pull {len(report.failed)} images: {', '.join(report.failed)}")
        warning("Cluster will pull these images on-demand (may be slower)")
    else:
        success(f"Successfully pre-pulled all {len(specs)} images")
    return report


# ============================================================================
# Image manifest
# ============================================================================

class ManifestEntry(NamedTuple):
    expected: str
    source: str | None = None


def write_manifest(store: ConfigStore, report: PullReport) -> None:
    """Record each locally available image as ``expected [source]``."""
    lines = []
    for result in report.results:
        if result.outcome is PullOutcome.FAILED:
            continue
        if result.source != result.expected:
            lines.append(f"{result.expected} {result.source}")
        else:
            lines.append(result.expected)
    path = store.write_manifest(lines)
    logger.info("Image manifest written to %s", path)


def read_manifest(store: ConfigStore) -> list[ManifestEntry]:
    entries = []
    for line in store.read_manifest():
        parts = line.split()
        entries.append(ManifestEntry(parts[0], parts[1] if len(parts) > 1 else None))
    return entries


def clean_images(store: ConfigStore, timeout: int) -> int:
    """Remove every image recorded in the manifest, then the manifest itself.

    Returns:
        Number of image references removed.

    Raises:
        PrerequisiteError: If the Docker daemon is unreachable.
    """
    entries = read_manifest(store)
    if not entries:
        info("No pre-pulled images recorded")
        return 0

    try:
        docker_client = docker.from_env(timeout=timeout)
    except PULL_ERRORS as e:
        raise PrerequisiteError(f"Docker is not accessible: {e}. Run 'local-cluster-cli setup-docker' first.") from e

    removed = 0
    try:
        for entry in entries:
            for reference in filter(None, (entry.expected, entry.source)):
                try:
                    docker_client.images.remove(reference)
                    removed += 1
                    console.print(f"[green]\u2713 removed {reference}[/green]")
                except docker.errors.NotFound:
                    logger.info("Image %s already removed", reference)
                except docker.errors.APIError as e:
                    warning(f"Failed to remove {reference}: {e}")
    finally:
        docker_client.close()

    store.manifest_file.unlink(missing_ok=True)
    success(f"Removed {removed} image references")
    return removed
