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

"""
cli.py - Unified CLI for local Minikube cluster management.

Subcommands:
    fresh-install       Set up Docker, install minikube and kubectl, create a cluster
    start / stop        Start (with image pre-pull and retries) or stop the cluster
    delete / status     Delete the cluster or show its status
    configure-*         Persist images, registry, mirror, and proxy settings
    clean-images        Remove pre-pulled images
    load-images         Load pre-pulled images into the cluster
    setup-docker        Check Docker and write daemon.json
    troubleshoot        Print diagnostics

Examples:
    # Fresh install with more resources
    local-cluster-cli fresh-install --memory 8192 --cpus 4

    # Start with a custom etcd image and a mirrored image repository
    local-cluster-cli start --etcd my.registry/etcd:3.5.15-0 --image-repository my.registry/k8s

    # Delete a specific profile without prompting
    local-cluster-cli delete --profile my-cluster --yes

Environment Variables:
    LOCAL_CLUSTER_CONFIG_DIR (default: ~/.local-cluster-cli)
    LOCAL_CLUSTER_NAME, LOCAL_CLUSTER_MEMORY, LOCAL_CLUSTER_CPUS, ... (see ClusterProfile)
    HTTP_PROXY, HTTPS_PROXY, NO_PROXY
"""

from __future__ import annotations

import logging
import signal
import sys

import typer

from cluster_manager import configure_logging, error
from cluster_manager.commands import configure_cmd, images_cmd, lifecycle_cmd, system_cmd
from cluster_manager.config import ConfigStore

app = typer.Typer(
    help="Local Kubernetes cluster management on Minikube.",
    no_args_is_help=True,
)


def _handle_signal(signum: int, frame) -> None:
    error(f"Interrupted by {signal.Signals(signum).name}, exiting")
    raise SystemExit(128 + signum)


def install_signal_handlers() -> None:
    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)


@app.callback()
def _main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Write debug entries to the log file"),
) -> None:
    """Initialize logging and signal handling for all subcommands."""
    configure_logging(ConfigStore.from_env().log_file, logging.DEBUG if verbose else logging.INFO)
    install_signal_handlers()


@app.command("help")
def help_(ctx: typer.Context) -> None:
    """Show this help message."""
    typer.echo(ctx.parent.get_help() if ctx.parent else ctx.get_help())


app.command("fresh-install")(lifecycle_cmd.fresh_install)
app.command("start")(lifecycle_cmd.start)
app.command("stop")(lifecycle_cmd.stop)
app.command("delete")(lifecycle_cmd.delete)
app.command("status")(lifecycle_cmd.status)
app.command("configure-images")(configure_cmd.configure_images)
app.command("configure-registry")(configure_cmd.configure_registry)
app.command("configure-mirror")(configure_cmd.configure_mirror)
app.command("configure-proxy")(configure_cmd.configure_proxy)
app.command("clean-images")(images_cmd.clean_images)
app.command("load-images")(images_cmd.load_images)
app.command("setup-docker")(system_cmd.setup_docker)
app.command("troubleshoot")(system_cmd.troubleshoot)


def main() -> None:
    try:
        app()
    except Exception as e:
        error(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
