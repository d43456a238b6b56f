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

"""minikube and kubectl binary downloads with mirror and local fallbacks."""

from __future__ import annotations

import platform
import shutil
import tempfile
from pathlib import Path

import requests
from requests.adapters import HTTPAdapter, Retry
from rich.panel import Panel

from cluster_manager import console, info, logger, success, warning
from cluster_manager.config import ConfigStore, MirrorSettings
from cluster_manager.constants import (
    DEFAULT_KUBECTL_VERSION,
    DOWNLOAD_TIMEOUT_SECONDS,
    INSTALL_DIR,
    KUBECTL_DOWNLOAD_URLS,
    KUBECTL_STABLE_URLS,
    MINIKUBE_DOWNLOAD_URLS,
    MINIKUBE_MIRROR_PATH,
    SUPPORTED_ARCH,
    SUPPORTED_OS,
)
from cluster_manager.utils import run_capture, run_sudo


def detect_platform(system: str | None = None, machine: str | None = None) -> tuple[str, str]:
    """Map the host to the (os, arch) pair used in release URLs.

    Raises:
        RuntimeError: If the operating system or architecture is unsupported.
    """
    system = system or platform.system()
    machine = machine or platform.machine()
    if system not in SUPPORTED_OS:
        raise RuntimeError(f"Unsupported operating system: {system}")
    if machine not in SUPPORTED_ARCH:
        raise RuntimeError(f"Unsupported architecture: {machine}")
    return SUPPORTED_OS[system], SUPPORTED_ARCH[machine]


def minikube_urls(binary: str, enterprise_mirror: str | None = None) -> list[str]:
    """Download URLs for a minikube binary, enterprise mirror first."""
    urls = [template.format(binary=binary) for template in MINIKUBE_DOWNLOAD_URLS]
    if enterprise_mirror:
        mirror_url = f"{enterprise_mirror.rstrip('/')}/{MINIKUBE_MIRROR_PATH.format(binary=binary)}"
        urls.insert(0, mirror_url)
    return urls


def kubectl_urls(version: str, os_name: str, arch: str) -> list[str]:
    return [template.format(version=version, os=os_name, arch=arch) for template in KUBECTL_DOWNLOAD_URLS]


def _session(verify: bool) -> requests.Session:
    session = requests.Session()
    session.verify = verify
    adapter = HTTPAdapter(max_retries=Retry(total=5, backoff_factor=1, status_forcelist=(500, 502, 503, 504)))
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


def resolve_kubectl_version(requested: str, session: requests.Session) -> str:
    """Return *requested*, or the latest stable release when it is empty."""
    if requested:
        return requested
    info("Getting latest kubectl version...")
    for url in KUBECTL_STABLE_URLS:
        try:
            response = session.get(url, timeout=DOWNLOAD_TIMEOUT_SECONDS)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.warning("Could not fetch %s: %s", url, e)
            continue
        version = response.text.strip()
        if version:
            return version
    warning(f"Could not fetch latest version, using fallback version {DEFAULT_KUBECTL_VERSION}")
    return DEFAULT_KUBECTL_VERSION


def download_first(urls: list[str], dest: Path, session: requests.Session) -> str | None:
    """Download the first URL that yields a non-empty body into *dest*.

    Returns:
        The URL that succeeded, or None if every URL failed.
    """
    for url in urls:
        info(f"Trying to download from: {url}")
        try:
            with session.get(url, stream=True, timeout=DOWNLOAD_TIMEOUT_SECONDS) as response:
                response.raise_for_status()
                with open(dest, "wb") as f:
                    for chunk in response.iter_content(chunk_size=1 << 20):
                        f.write(chunk)
        except requests.exceptions.RequestException as e:
            warning(f"Failed to download from {url}")
            logger.warning("Download error for %s: %s", url, e)
            continue
        if dest.stat().st_size > 0:
            success(f"Downloaded {url}")
            return url
        warning(f"Downloaded file from {url} is empty")
    return None


def install_binary(source: Path, name: str, install_dir: Path = INSTALL_DIR) -> Path:
    """Install *source* as an executable named *name* in *install_dir*."""
    target = install_dir / name
    info(f"Installing {name} to {target}...")
    run_sudo("install", "-m", "0755", str(source), str(target))
    return target


def _verify(cmd: list[str], name: str) -> None:
    ok, output = run_capture(cmd)
    if not ok:
        raise RuntimeError(f"{name} installation verification failed: {output.strip()}")
    success(f"{name} installed successfully")
    console.print(output.strip())


def install_minikube(mirror: MirrorSettings, store: ConfigStore) -> None:
    """Download and install minikube for this host.

    A binary placed at ``<config dir>/minikube-<os>-<arch>`` is used when
    every download fails.

    Raises:
        RuntimeError: If no download succeeds and no local binary exists.
    """
    console.print(Panel.fit("Installing minikube", style="bold blue"))
    os_name, arch = detect_platform()
    binary = f"minikube-{os_name}-{arch}"

    with tempfile.TemporaryDirectory() as tmpdir:
        dest = Path(tmpdir) / binary
        with _session(mirror.verify_tls) as session:
            downloaded = download_first(minikube_urls(binary, mirror.enterprise_mirror), dest, session)
        if downloaded is None:
            local_binary = store.path(binary)
            warning("All download attempts failed. Checking for local minikube binary...")
            if not local_binary.is_file() or local_binary.stat().st_size == 0:
                raise RuntimeError(
                    f"No local minikube binary found. Download minikube manually to {local_binary} "
                    "and run this command again."
                )
            info(f"Found local minikube binary at {local_binary}")
            shutil.copyfile(local_binary, dest)
        install_binary(dest, "minikube")

    _verify(["minikube", "version"], "minikube")


def install_kubectl(version: str, mirror: MirrorSettings) -> None:
    """Download and install kubectl *version* (latest stable when empty).

    Raises:
        RuntimeError: If every download URL fails.
    """
    console.print(Panel.fit("Installing kubectl", style="bold blue"))
    os_name, arch = detect_platform()

    with _session(mirror.verify_tls) as session, tempfile.TemporaryDirectory() as tmpdir:
        version = resolve_kubectl_version(version, session)
        dest = Path(tmpdir) / "kubectl"
        if download_first(kubectl_urls(version, os_name, arch), dest, session) is None:
            raise RuntimeError("Failed to download kubectl from all sources")
        install_binary(dest, "kubectl")

    _verify(["kubectl", "version", "--client"], "kubectl")
