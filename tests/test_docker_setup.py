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

import json

import pytest

from cluster_manager import docker_setup, utils
from cluster_manager.config import ClusterProfile
from cluster_manager.docker_setup import build_daemon_config, configure_docker_daemon, ensure_docker_running
from cluster_manager.utils import PrerequisiteError


class RecordingSudo:
    """Captures sudo invocations and the daemon.json content being copied."""

    def __init__(self):
        self.calls = []
        self.written = None

    def __call__(self, *args):
        self.calls.append(args)
        if args[0] == "cp" and args[1].endswith(".json") and not args[1].endswith("daemon.json"):
            with open(args[1]) as f:
                self.written = json.load(f)


def test_daemon_config_merges_profile_registries():
    config = build_daemon_config(["registry.k8s.io", "harbor.corp:8443"], ["https://mirror.corp", ""])
    assert config["insecure-registries"][-1] == "harbor.corp:8443"
    assert config["insecure-registries"].count("registry.k8s.io") == 1
    assert config["registry-mirrors"] == ["https://mirror.corp"]
    assert config["log-driver"] == "json-file"
    assert config["log-opts"] == {"max-size": "10m", "max-file": "3"}
    assert config["storage-driver"] == "overlay2"


def test_configure_daemon_backs_up_writes_and_restarts(tmp_path, monkeypatch):
    daemon_json = tmp_path / "daemon.json"
    daemon_json.write_text("{}\n")
    sudo = RecordingSudo()
    monkeypatch.setattr(docker_setup, "run_sudo", sudo)
    monkeypatch.setattr(docker_setup, "wait_for_docker", lambda: True)

    configure_docker_daemon(ClusterProfile(registry_mirrors="https://mirror.corp"), daemon_json)

    assert sudo.calls[0][0] == "cp"
    assert sudo.calls[0][2].startswith(str(daemon_json) + ".backup.")
    assert sudo.written["registry-mirrors"] == ["https://mirror.corp"]
    assert ("cp", sudo.calls[2][1], str(daemon_json)) == sudo.calls[2]
    assert sudo.calls[-2:] == [("systemctl", "daemon-reload"), ("systemctl", "restart", "docker")]


def test_configure_daemon_fails_when_docker_does_not_return(tmp_path, monkeypatch):
    monkeypatch.setattr(docker_setup, "run_sudo", RecordingSudo())
    monkeypatch.setattr(docker_setup, "wait_for_docker", lambda: False)
    with pytest.raises(PrerequisiteError, match="failed to start"):
        configure_docker_daemon(ClusterProfile(), tmp_path / "daemon.json")


def test_ensure_docker_running_requires_docker_binary(monkeypatch):
    monkeypatch.setattr(utils, "command_exists", lambda cmd: False)
    with pytest.raises(PrerequisiteError, match="setup-docker"):
        ensure_docker_running()


def test_ensure_docker_running_adds_user_to_group(monkeypatch):
    sudo = RecordingSudo()
    monkeypatch.setattr(utils, "command_exists", lambda cmd: True)
    monkeypatch.setattr(docker_setup, "docker_available", lambda: False)
    monkeypatch.setattr(docker_setup.getpass, "getuser", lambda: "alice")
    monkeypatch.setattr(docker_setup, "user_in_docker_group", lambda user=None: False)
    monkeypatch.setattr(docker_setup, "run_sudo", sudo)

    with pytest.raises(PrerequisiteError, match="Log out"):
        ensure_docker_running()
    assert sudo.calls == [("usermod", "-aG", "docker", "alice")]


def test_ensure_docker_running_starts_service(monkeypatch):
    sudo = RecordingSudo()
    monkeypatch.setattr(utils, "command_exists", lambda cmd: True)
    monkeypatch.setattr(docker_setup, "docker_available", lambda: False)
    monkeypatch.setattr(docker_setup, "user_in_docker_group", lambda user=None: True)
    monkeypatch.setattr(docker_setup, "wait_for_docker", lambda: True)
    monkeypatch.setattr(docker_setup, "run_sudo", sudo)

    ensure_docker_running()
    assert sudo.calls == [("systemctl", "start", "docker"), ("systemctl", "enable", "docker")]
