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

"""Configuration classes, the on-disk config store, and settings resolution."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from pathlib import Path
from typing import Annotated, Any

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from cluster_manager import logger
from cluster_manager.constants import (
    CLUSTER_START_MAX_RETRIES,
    CLUSTER_START_RETRY_WAIT_SECONDS,
    COMPONENTS,
    DEFAULT_ADDONS,
    DEFAULT_CONFIG_DIR,
    DEFAULT_CPUS,
    DEFAULT_DISK_SIZE,
    DEFAULT_DRIVER,
    DEFAULT_INSECURE_REGISTRIES,
    DEFAULT_KUBECTL_VERSION,
    DEFAULT_KUBERNETES_VERSION,
    DEFAULT_MEMORY_MB,
    DEFAULT_NO_PROXY,
    DEFAULT_PROFILE_NAME,
    IMAGE_MANIFEST_NAME,
    IMAGE_PULL_MAX_RETRIES,
    IMAGE_PULL_RETRY_WAIT_SECONDS,
    IMAGE_PULL_TIMEOUT_SECONDS,
    IMAGES_CONFIG_NAME,
    LOG_FILE_NAME,
    MIRROR_CONFIG_NAME,
    NODE_READY_MAX_RETRIES,
    NODE_READY_POLL_INTERVAL_SECONDS,
    PROXY_CONFIG_NAME,
    REGISTRY_CONFIG_NAME,
)

CommaList = Annotated[list[str], NoDecode]


def split_csv(value: Any) -> Any:
    """Split a comma-separated string into a list, dropping blanks."""
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


# ============================================================================
# Configuration classes
# ============================================================================

class ClusterProfile(BaseSettings):
    """Minikube profile configuration, auto-loaded from LOCAL_CLUSTER_* env vars.

    List fields accept comma-separated strings from the environment.

    Attributes:
        name: Minikube profile name.
        driver: Minikube driver (docker, virtualbox, kvm2, ...).
        memory: Memory allocation in MB.
        cpus: Number of CPUs.
        disk_size: Disk size passed to ``--disk-size``.
        kubernetes_version: Kubernetes version the cluster runs.
        kubectl_version: kubectl release to install, empty for latest stable.
        insecure_registries: Registries reachable without TLS validation.
        registry_mirrors: Registry mirrors passed to the container runtime.
        image_repository: Repository replacing the default component registries.
        addons: Minikube addons enabled after start.
    """

    model_config = SettingsConfigDict(env_prefix="LOCAL_CLUSTER_", extra="ignore")

    name: str = Field(default=DEFAULT_PROFILE_NAME, min_length=1)
    driver: str = DEFAULT_DRIVER
    memory: int = Field(default=DEFAULT_MEMORY_MB, ge=1024)
    cpus: int = Field(default=DEFAULT_CPUS, ge=1)
    disk_size: str = Field(default=DEFAULT_DISK_SIZE, pattern=r"^\d+[mMgG]?$")
    kubernetes_version: str = DEFAULT_KUBERNETES_VERSION
    kubectl_version: str = DEFAULT_KUBECTL_VERSION
    insecure_registries: CommaList = Field(default_factory=lambda: list(DEFAULT_INSECURE_REGISTRIES))
    registry_mirrors: CommaList = Field(default_factory=list)
    image_repository: str | None = None
    addons: CommaList = Field(default_factory=lambda: list(DEFAULT_ADDONS))

    @field_validator("insecure_registries", "registry_mirrors", "addons", mode="before")
    @classmethod
    def split_lists(cls, value: Any) -> Any:
        return split_csv(value)


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry with a fixed sleep between attempts.

    Attributes:
        max_attempts: Maximum number of attempts, including the first.
        interval: Seconds to sleep between attempts.
    """

    max_attempts: int
    interval: float = 0


class RetrySettings(BaseSettings):
    """Retry and polling bounds, auto-loaded from LOCAL_CLUSTER_* env vars."""

    model_config = SettingsConfigDict(env_prefix="LOCAL_CLUSTER_", extra="ignore")

    start_max_retries: int = Field(default=CLUSTER_START_MAX_RETRIES, ge=1, le=10)
    start_retry_wait: float = Field(default=CLUSTER_START_RETRY_WAIT_SECONDS, ge=0)
    pull_max_retries: int = Field(default=IMAGE_PULL_MAX_RETRIES, ge=1, le=10)
    pull_retry_wait: float = Field(default=IMAGE_PULL_RETRY_WAIT_SECONDS, ge=0)
    pull_timeout: int = Field(default=IMAGE_PULL_TIMEOUT_SECONDS, ge=1)
    ready_max_retries: int = Field(default=NODE_READY_MAX_RETRIES, ge=1)
    ready_poll_interval: float = Field(default=NODE_READY_POLL_INTERVAL_SECONDS, ge=0)

    @property
    def start_policy(self) -> RetryPolicy:
        return RetryPolicy(self.start_max_retries, self.start_retry_wait)

    @property
    def pull_policy(self) -> RetryPolicy:
        return RetryPolicy(self.pull_max_retries, self.pull_retry_wait)

    @property
    def ready_policy(self) -> RetryPolicy:
        return RetryPolicy(self.ready_max_retries, self.ready_poll_interval)


class ProxySettings(BaseSettings):
    """HTTP proxy settings, read from the conventional *_PROXY env vars."""

    model_config = SettingsConfigDict(extra="ignore")

    http_proxy: str = ""
    https_proxy: str = ""
    no_proxy: str = DEFAULT_NO_PROXY

    def docker_env(self) -> list[str]:
        """Return ``KEY=value`` pairs for every proxy variable that is set."""
        pairs = [
            ("HTTP_PROXY", self.http_proxy),
            ("HTTPS_PROXY", self.https_proxy),
            ("NO_PROXY", self.no_proxy),
        ]
        return [f"{key}={value}" for key, value in pairs if value]


class MirrorSettings(BaseSettings):
    """Enterprise binary mirror, auto-loaded from LOCAL_CLUSTER_* env vars.

    Attributes:
        enterprise_mirror: Base URL tried before the public download endpoints.
        verify_tls: Whether downloads validate TLS certificates.
    """

    model_config = SettingsConfigDict(env_prefix="LOCAL_CLUSTER_", extra="ignore")

    enterprise_mirror: str | None = None
    verify_tls: bool = True


class PathSettings(BaseSettings):
    """Location of the config directory (LOCAL_CLUSTER_CONFIG_DIR)."""

    model_config = SettingsConfigDict(env_prefix="LOCAL_CLUSTER_", extra="ignore")

    config_dir: Path = DEFAULT_CONFIG_DIR


# ============================================================================
# Config store
# ============================================================================

class ConfigStore:
    """Flat YAML files, the log file, and the image manifest in one directory."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root).expanduser()

    @classmethod
    def from_env(cls) -> ConfigStore:
        return cls(PathSettings().config_dir)

    @property
    def log_file(self) -> Path:
        return self.root / LOG_FILE_NAME

    @property
    def manifest_file(self) -> Path:
        return self.root / IMAGE_MANIFEST_NAME

    def path(self, name: str) -> Path:
        return self.root / name

    def load(self, name: str) -> dict[str, Any]:
        """Load a YAML mapping, returning an empty dict when the file is absent.

        Raises:
            RuntimeError: If the file does not contain a mapping.
        """
        path = self.path(name)
        if not path.exists():
            return {}
        with open(path) as f:
            data = yaml.safe_load(f)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise RuntimeError(f"{path} must contain a YAML mapping")
        return data

    def save(self, name: str, data: dict[str, Any], title: str) -> Path:
        """Write *data* as YAML under a dated comment header."""
        self.root.mkdir(parents=True, exist_ok=True)
        path = self.path(name)
        with open(path, "w") as f:
            f.write(f"# {title} - {datetime.now():%Y-%m-%d %H:%M:%S}\n")
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
        logger.debug("Saved %s", path)
        return path

    def read_manifest(self) -> list[str]:
        if not self.manifest_file.exists():
            return []
        return [line.strip() for line in self.manifest_file.read_text().splitlines() if line.strip()]

    def write_manifest(self, images: list[str]) -> Path:
        self.root.mkdir(parents=True, exist_ok=True)
        self.manifest_file.write_text("".join(f"{image}\n" for image in images))
        return self.manifest_file


# ============================================================================
# Settings resolution
# ============================================================================

@dataclass(frozen=True)
class Settings:
    """Everything a command needs, resolved once per run."""

    store: ConfigStore
    profile: ClusterProfile
    retries: RetrySettings
    proxy: ProxySettings
    mirror: MirrorSettings
    custom_images: dict[str, str]


def _known_fields(model: type[BaseSettings], data: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if key in model.model_fields}


def load_custom_images(store: ConfigStore) -> dict[str, str]:
    """Return the non-empty custom image URLs saved by ``configure-images``."""
    saved = store.load(IMAGES_CONFIG_NAME)
    unknown = sorted(set(saved) - set(COMPONENTS))
    if unknown:
        logger.warning("Ignoring unknown components in %s: %s", IMAGES_CONFIG_NAME, ", ".join(unknown))
    return {name: str(url) for name, url in saved.items() if name in COMPONENTS and url}


def load_settings(store: ConfigStore | None = None) -> Settings:
    """Resolve settings with precedence defaults < environment < saved YAML.

    CLI flags are applied afterwards with :func:`apply_overrides`.
    """
    store = store or ConfigStore.from_env()
    return Settings(
        store=store,
        profile=ClusterProfile(**_known_fields(ClusterProfile, store.load(REGISTRY_CONFIG_NAME))),
        retries=RetrySettings(),
        proxy=ProxySettings(**_known_fields(ProxySettings, store.load(PROXY_CONFIG_NAME))),
        mirror=MirrorSettings(**_known_fields(MirrorSettings, store.load(MIRROR_CONFIG_NAME))),
        custom_images=load_custom_images(store),
    )


def apply_overrides(model: BaseSettings, **overrides: Any) -> BaseSettings:
    """Return a copy of *model* with every non-None override applied.

    Raises:
        pydantic.ValidationError: If an override violates a field constraint.
    """
    update = {key: value for key, value in overrides.items() if value is not None}
    if not update:
        return model
    return type(model).model_validate({**model.model_dump(), **update})


def resolve_settings(*, images: dict[str, str | None] | None = None, **profile_overrides: Any) -> Settings:
    """Load settings and apply CLI flag overrides on top.

    Args:
        images: Per-component custom image URLs from CLI flags; None values are ignored.
        **profile_overrides: ClusterProfile fields from CLI flags; None values are ignored.
    """
    settings = load_settings()
    custom_images = {**settings.custom_images, **{name: url for name, url in (images or {}).items() if url}}
    return replace(
        settings,
        profile=apply_overrides(settings.profile, **profile_overrides),
        custom_images=custom_images,
    )
