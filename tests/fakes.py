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

"""Test doubles for the Docker SDK and sh command failures."""

import docker
import sh


def command_failed(cmd="minikube start", stdout=b"", stderr=b"failed"):
    return sh.ErrorReturnCode_1(cmd, stdout, stderr)


class FakeImage:
    def __init__(self, reference, tag_error=None):
        self.reference = reference
        self.tag_error = tag_error
        self.tags = []

    def tag(self, repository, tag=None):
        if self.tag_error:
            raise docker.errors.APIError(self.tag_error)
        self.tags.append(f"{repository}:{tag}")
        return True


class FakeImages:
    """In-memory image store.

    References in *flaky* fail once with a server error before pulling;
    images pulled from *untaggable* references refuse to be tagged.
    """

    def __init__(self, available=(), flaky=(), untaggable=()):
        self.available = set(available)
        self.flaky = set(flaky)
        self.untaggable = set(untaggable)
        self.pulls = []
        self.pulled = {}
        self.removed = []

    def pull(self, reference):
        self.pulls.append(reference)
        if reference in self.flaky:
            self.flaky.discard(reference)
            raise docker.errors.APIError("500 Server Error: registry unavailable")
        if reference not in self.available:
            raise docker.errors.NotFound(f"manifest for {reference} not found")
        image = FakeImage(reference, "tag failed" if reference in self.untaggable else None)
        self.pulled[reference] = image
        return image

    def remove(self, reference):
        if reference not in self.available:
            raise docker.errors.ImageNotFound(f"No such image: {reference}")
        self.available.discard(reference)
        self.removed.append(reference)


class FakeDockerClient:
    def __init__(self, available=(), flaky=(), untaggable=(), reachable=True):
        self.images = FakeImages(available, flaky, untaggable)
        self.reachable = reachable
        self.closed = False

    def ping(self):
        if not self.reachable:
            raise docker.errors.APIError("Cannot connect to the Docker daemon")
        return True

    def close(self):
        self.closed = True
