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

import pytest
import requests

from cluster_manager import installer
from cluster_manager.config import MirrorSettings
from cluster_manager.installer import (
    detect_platform,
    download_first,
    install_minikube,
    kubectl_urls,
    minikube_urls,
    resolve_kubectl_version,
)


class FakeResponse:
    def __init__(self, body=b"", status=200):
        self.body = body
        self.status = status
        self.text = body.decode()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.exceptions.HTTPError(f"{self.status} error")

    def iter_content(self, chunk_size=1):
        yield self.body


class FakeSession:
    """Serves canned responses by URL; unknown URLs raise ConnectionError."""

    def __init__(self, responses=None):
        self.responses = responses or {}
        self.requested = []

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def get(self, url, **kwargs):
        self.requested.append(url)
        if url not in self.responses:
            raise requests.exceptions.ConnectionError(f"cannot reach {url}")
        return self.responses[url]


def test_detect_platform():
    assert detect_platform("Linux", "x86_64") == ("linux", "amd64")
    assert detect_platform("Darwin", "arm64") == ("darwin", "arm64")
    with pytest.raises(RuntimeError, match="architecture"):
        detect_platform("Linux", "s390x")
    with pytest.raises(RuntimeError, match="operating system"):
        detect_platform("Windows", "x86_64")


def test_minikube_urls_try_enterprise_mirror_first():
    urls = minikube_urls("minikube-linux-amd64", "https://mirror.corp/")
    assert urls[0] == "https://mirror.corp/minikube/releases/latest/download/minikube-linux-amd64"
    assert urls[1] == "https://github.com/kubernetes/minikube/releases/latest/download/minikube-linux-amd64"
    assert len(minikube_urls("minikube-linux-amd64")) == 2


def test_kubectl_urls():
    assert kubectl_urls("v1.31.1", "linux", "arm64")[0] == "https://dl.k8s.io/release/v1.31.1/bin/linux/arm64/kubectl"


def test_resolve_kubectl_version():
    session = FakeSession({"https://dl.k8s.io/release/stable.txt": FakeResponse(b"v1.32.0\n")})
    assert resolve_kubectl_version("v1.30.0", session) == "v1.30.0"
    assert session.requested == []
    assert resolve_kubectl_version("", session) == "v1.32.0"
    assert resolve_kubectl_version("", FakeSession()) == "v1.31.1"


def test_download_first_skips_failed_and_empty_downloads(tmp_path):
    session = FakeSession({
        "https://a/minikube": FakeResponse(status=404),
        "https://b/minikube": FakeResponse(b""),
        "https://c/minikube": FakeResponse(b"\x7fELF"),
    })
    dest = tmp_path / "minikube"
    urls = ["https://down/minikube", "https://a/minikube", "https://b/minikube", "https://c/minikube"]
    assert download_first(urls, dest, session) == "https://c/minikube"
    assert dest.read_bytes() == b"\x7fELF"
    assert download_first(urls[:3], tmp_path / "other", session) is None


@pytest.fixture
def offline_installer(monkeypatch):
    installed = []
    monkeypatch.setattr(installer, "detect_platform", lambda: ("linux", "amd64"))
    monkeypatch.setattr(installer, "_session", lambda verify: FakeSession())
    monkeypatch.setattr(installer, "_verify", lambda cmd, name: None)
    monkeypatch.setattr(installer, "install_binary", lambda source, name: installed.append(source.read_bytes()))
    return installed


def test_install_minikube_uses_local_binary_when_offline(store, offline_installer):
    store.root.mkdir(parents=True)
    store.path("minikube-linux-amd64").write_bytes(b"local-binary")
    install_minikube(MirrorSettings(), store)
    assert offline_installer == [b"local-binary"]


def test_install_minikube_without_local_binary_fails(store, offline_installer):
    with pytest.raises(RuntimeError, match="minikube-linux-amd64"):
        install_minikube(MirrorSettings(), store)
    assert offline_installer == []
