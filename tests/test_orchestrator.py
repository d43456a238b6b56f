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

from cluster_manager import orchestrator
from cluster_manager.cluster import LaunchError, LaunchState
from cluster_manager.config import resolve_settings
from cluster_manager.utils import PrerequisiteError
from fakes import command_failed


class FakeLauncher:
    instances = []

    def __init__(self, profile_name, start_args, start_policy, ready_policy, fail=False):
        self.profile_name = profile_name
        self.start_args = start_args
        self.start_policy = start_policy
        self.fail = fail
        FakeLauncher.instances.append(self)

    def launch(self):
        if self.fail:
            raise LaunchError(f"Cluster '{self.profile_name}' failed to start")
        return LaunchState.READY


@pytest.fixture
def workflow(monkeypatch):
    """Replace every external effect of the start workflow with recorders."""
    calls = {"prepull": [], "addons": [], "minikube": [], "info": 0}
    FakeLauncher.instances = []
    monkeypatch.setattr(orchestrator, "require_command", lambda cmd, hint="fresh-install": None)
    monkeypatch.setattr(orchestrator, "docker_available", lambda: True)
    monkeypatch.setattr(orchestrator, "is_running", lambda name: False)
    monkeypatch.setattr(orchestrator, "prepull_images", lambda *args: calls["prepull"].append(args))
    monkeypatch.setattr(orchestrator, "enable_addons", lambda name, addons: calls["addons"].append(addons))
    monkeypatch.setattr(orchestrator, "ClusterLauncher", FakeLauncher)

    def fake_info(name):
        calls["info"] += 1
        return True

    monkeypatch.setattr(orchestrator, "show_cluster_info", fake_info)
    monkeypatch.setattr(orchestrator, "run_minikube", lambda *args, **kwargs: calls["minikube"].append(args))
    return calls


def test_start_prepulls_and_launches(workflow):
    settings = resolve_settings(images={"kicbase": "my.reg/kicbase:v1"})

    assert orchestrator.run_start(settings) is LaunchState.READY

    specs = workflow["prepull"][0][0]
    assert [s.custom_url for s in specs if s.component == "kicbase"] == ["my.reg/kicbase:v1"]
    launcher = FakeLauncher.instances[0]
    assert "--base-image=my.reg/kicbase:v1" in launcher.start_args
    assert launcher.start_policy.max_attempts == 3
    assert workflow["addons"] == [settings.profile.addons]
    assert workflow["info"] == 1


def test_start_can_skip_prepull(workflow):
    orchestrator.run_start(resolve_settings(), skip_prepull=True)
    assert workflow["prepull"] == []
    assert not any(a.startswith("--base-image") for a in FakeLauncher.instances[0].start_args)


def test_start_leaves_running_cluster_alone(workflow, monkeypatch):
    monkeypatch.setattr(orchestrator, "is_running", lambda name: True)
    assert orchestrator.run_start(resolve_settings()) is LaunchState.READY
    assert FakeLauncher.instances == []
    assert workflow["prepull"] == []


def test_start_requires_docker_daemon_for_docker_driver(workflow, monkeypatch):
    monkeypatch.setattr(orchestrator, "docker_available", lambda: False)
    with pytest.raises(PrerequisiteError, match="setup-docker"):
        orchestrator.run_start(resolve_settings())

    orchestrator.run_start(resolve_settings(driver="kvm2"))
    assert len(FakeLauncher.instances) == 1


@pytest.fixture
def fresh_install(workflow, monkeypatch):
    monkeypatch.setattr(orchestrator.os, "geteuid", lambda: 1000)
    monkeypatch.setattr(orchestrator, "ensure_docker_running", lambda: None)
    monkeypatch.setattr(orchestrator, "configure_docker_daemon", lambda profile: None)
    monkeypatch.setattr(orchestrator, "install_minikube", lambda mirror, store: None)
    monkeypatch.setattr(orchestrator, "install_kubectl", lambda version, mirror: None)
    monkeypatch.setattr(orchestrator, "cluster_status", lambda name: (False, ""))
    return workflow


def test_fresh_install_refuses_root(fresh_install, monkeypatch):
    monkeypatch.setattr(orchestrator.os, "geteuid", lambda: 0)
    with pytest.raises(PrerequisiteError, match="root"):
        orchestrator.run_fresh_install(resolve_settings())


def test_fresh_install_deletes_existing_cluster(fresh_install, monkeypatch):
    deleted = []
    monkeypatch.setattr(orchestrator, "cluster_status", lambda name: (True, "host: Stopped"))
    monkeypatch.setattr(orchestrator, "delete_cluster", deleted.append)

    assert orchestrator.run_fresh_install(resolve_settings(name="dev"), skip_prepull=True) is LaunchState.READY
    assert deleted == ["dev"]


def test_fresh_install_cleans_up_after_launch_failure(fresh_install, monkeypatch):
    def failing_launcher(*args):
        return FakeLauncher(*args, fail=True)

    monkeypatch.setattr(orchestrator, "ClusterLauncher", failing_launcher)

    def flaky_minikube(*args, **kwargs):
        fresh_install["minikube"].append(args)
        if args[0] == "stop":
            raise command_failed("minikube stop")

    monkeypatch.setattr(orchestrator, "run_minikube", flaky_minikube)

    with pytest.raises(LaunchError):
        orchestrator.run_fresh_install(resolve_settings(), skip_prepull=True)
    assert fresh_install["minikube"] == [("stop", "-p", "enterprise-k8s"), ("delete", "-p", "enterprise-k8s")]
