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

import requests

from cluster_manager import diagnostics
from cluster_manager.config import resolve_settings
from cluster_manager.constants import CONNECTIVITY_ENDPOINTS
from fakes import command_failed


def test_check_endpoint(monkeypatch):
    def fake_head(url, **kwargs):
        if "down" in url:
            raise requests.exceptions.ConnectTimeout(url)
        return object()

    monkeypatch.setattr(diagnostics.requests, "head", fake_head)
    assert diagnostics.check_endpoint("registry.k8s.io")
    assert not diagnostics.check_endpoint("down.example.com")


def test_show_cluster_info_without_minikube(monkeypatch):
    monkeypatch.setattr(diagnostics, "command_exists", lambda cmd: False)
    assert diagnostics.show_cluster_info("enterprise-k8s") is False


def test_show_cluster_info_for_running_cluster(monkeypatch):
    monkeypatch.setattr(diagnostics, "command_exists", lambda cmd: True)
    monkeypatch.setattr(diagnostics, "cluster_status", lambda name: (True, "host: Running\nkubelet: Running\n"))

    def fake_minikube(*args, **kwargs):
        raise command_failed("minikube ip")

    monkeypatch.setattr(diagnostics, "run_minikube", fake_minikube)
    assert diagnostics.show_cluster_info("enterprise-k8s") is True


def test_troubleshoot_reports_every_endpoint(monkeypatch, store):
    store.root.mkdir(parents=True)
    store.log_file.write_text("".join(f"[2026-01-01 00:00:{i:02d}] INFO line {i}\n" for i in range(30)))
    ran = []

    def fake_capture(cmd, timeout=30):
        ran.append(cmd[0])
        return True, "ok\n"

    monkeypatch.setattr(diagnostics, "command_exists", lambda cmd: cmd != "kubectl")
    monkeypatch.setattr(diagnostics, "run_capture", fake_capture)
    monkeypatch.setattr(diagnostics, "check_endpoint", lambda endpoint: endpoint == CONNECTIVITY_ENDPOINTS[0])

    reachability = diagnostics.troubleshoot(resolve_settings())

    assert list(reachability) == list(CONNECTIVITY_ENDPOINTS)
    assert reachability[CONNECTIVITY_ENDPOINTS[0]]
    assert not any(reachability[e] for e in CONNECTIVITY_ENDPOINTS[1:])
    assert "kubectl" not in ran
    assert ran.count("docker") == 2
