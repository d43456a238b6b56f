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

import os

import pytest

from cluster_manager.config import ConfigStore

PROXY_VARS = ("HTTP_PROXY", "HTTPS_PROXY", "NO_PROXY", "http_proxy", "https_proxy", "no_proxy")


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Point the config directory at tmp_path and drop settings leaking in from the host."""
    for key in list(os.environ):
        if key.startswith("LOCAL_CLUSTER_") or key in PROXY_VARS:
            monkeypatch.delenv(key, raising=False)
    config_dir = tmp_path / "config"
    monkeypatch.setenv("LOCAL_CLUSTER_CONFIG_DIR", str(config_dir))
    return config_dir


@pytest.fixture
def store(isolated_env):
    return ConfigStore(isolated_env)
