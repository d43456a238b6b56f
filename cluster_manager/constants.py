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

"""Constants, component catalog loading, and catalog_value helper."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml


def load_catalog() -> dict:
    """Load component images and versions from components.yaml.

    Returns:
        Parsed YAML content as a nested dictionary.
    """
    catalog_file = Path(__file__).resolve().parent / "components.yaml"
    with open(catalog_file) as f:
        return yaml.safe_load(f)


CATALOG = load_catalog()


def catalog_value(*keys: str, default: Any = None) -> Any:
    """Safely traverse the CATALOG dict by key path.

    Args:
        *keys: Sequence of dictionary keys to traverse.
        default: Value to return if any key is missing.

    Returns:
        The value at the nested key path, or *default* if not found.
    """
    node = CATALOG
    for key in keys:
        if not isinstance(node, dict):
            return default
        node = node.get(key)
        if node is None:
            return default
    return node


# Component identifiers in pull order.
COMPONENTS = ("pause", "apiserver", "controller", "scheduler", "proxy", "etcd", "coredns", "storage", "kicbase")

FALLBACK_REGISTRIES = ("registry.k8s.io", "k8s.gcr.io", "gcr.io/k8s-minikube")

# -- Config directory layout --
DEFAULT_CONFIG_DIR = Path.home() / ".local-cluster-cli"
LOG_FILE_NAME = "cluster.log"
IMAGE_MANIFEST_NAME = "images.txt"
IMAGES_CONFIG_NAME = "images.yaml"
REGISTRY_CONFIG_NAME = "registry.yaml"
PROXY_CONFIG_NAME = "proxy.yaml"
MIRROR_CONFIG_NAME = "mirror.yaml"

# -- Cluster profile defaults --
DEFAULT_PROFILE_NAME = "enterprise-k8s"
DEFAULT_DRIVER = "docker"
DEFAULT_MEMORY_MB = 4096
DEFAULT_CPUS = 2
DEFAULT_DISK_SIZE = "50g"
DEFAULT_KUBECTL_VERSION = "v1.31.1"
DEFAULT_KUBERNETES_VERSION = catalog_value("kubernetes_version", default="v1.31.1")
DEFAULT_INSECURE_REGISTRIES = ("10.0.0.0/8", "172.16.0.0/12", "192.168.0.0/16")
DEFAULT_ADDONS = ("dashboard", "metrics-server", "ingress", "registry")
DEFAULT_NO_PROXY = "localhost,127.0.0.1,10.96.0.0/12,192.168.0.0/16,172.17.0.0/16"
DOCKER_ADDRESS_POOL = "default-address-pool=base=192.168.64.0/16,size=24"
SYSTEMD_RESOLV_CONF = Path("/run/systemd/resolve/resolv.conf")

# -- Retry and polling --
CLUSTER_START_MAX_RETRIES = 3
CLUSTER_START_RETRY_WAIT_SECONDS = 10
IMAGE_PULL_MAX_RETRIES = 2
IMAGE_PULL_RETRY_WAIT_SECONDS = 2
IMAGE_PULL_TIMEOUT_SECONDS = 300
NODE_READY_MAX_RETRIES = 60
NODE_READY_POLL_INTERVAL_SECONDS = 5
NODE_READY_REQUEST_TIMEOUT = "10s"
DOCKER_READY_MAX_RETRIES = 30
DOCKER_READY_POLL_INTERVAL_SECONDS = 2

# -- Docker daemon --
DOCKER_DAEMON_CONFIG = Path("/etc/docker/daemon.json")
DAEMON_INSECURE_REGISTRIES = (
    "10.0.0.0/8",
    "172.16.0.0/12",
    "192.168.0.0/16",
    "*.pkg.dev",
    "gcr.io",
    "k8s.gcr.io",
    "registry.k8s.io",
)
DAEMON_LOG_OPTS = {"max-size": "10m", "max-file": "3"}

# -- Binary downloads --
INSTALL_DIR = Path("/usr/local/bin")
DOWNLOAD_TIMEOUT_SECONDS = 60
MINIKUBE_DOWNLOAD_URLS = (
    "https://github.com/kubernetes/minikube/releases/latest/download/{binary}",
    "https://storage.googleapis.com/minikube/releases/latest/{binary}",
)
MINIKUBE_MIRROR_PATH = "minikube/releases/latest/download/{binary}"
KUBECTL_DOWNLOAD_URLS = (
    "https://dl.k8s.io/release/{version}/bin/{os}/{arch}/kubectl",
    "https://storage.googleapis.com/kubernetes-release/release/{version}/bin/{os}/{arch}/kubectl",
)
KUBECTL_STABLE_URLS = (
    "https://dl.k8s.io/release/stable.txt",
    "https://storage.googleapis.com/kubernetes-release/release/stable.txt",
)
SUPPORTED_OS = {"Linux": "linux", "Darwin": "darwin"}
SUPPORTED_ARCH = {"x86_64": "amd64", "amd64": "amd64", "arm64": "arm64", "aarch64": "arm64"}

# -- Diagnostics --
CONNECTIVITY_ENDPOINTS = ("github.com", "dl.k8s.io", "registry.k8s.io", "gcr.io", "europe-docker.pkg.dev")
CONNECTIVITY_TIMEOUT_SECONDS = 5
LOG_TAIL_LINES = 10
DOCKER_INFO_LINES = 20
