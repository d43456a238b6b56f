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

"""cluster_manager - local Minikube cluster management package."""

from __future__ import annotations

import logging
from pathlib import Path

from rich.console import Console
from rich.markup import escape

__version__ = "0.3.0"

console = Console(stderr=True)
logger = logging.getLogger("cluster_manager")


def configure_logging(log_file: Path | None = None, level: int = logging.INFO) -> None:
    """Attach a timestamped file handler to the package logger.

    Console output is rendered by ``console``; the logger only feeds the
    plain-text log file so the two never print the same line twice.

    Args:
        log_file: Path of the log file, or None to log nowhere.
        level: Minimum level written to the log file.
    """
    logger.setLevel(level)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    if log_file is None:
        logger.addHandler(logging.NullHandler())
        return
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file)
    handler.setFormatter(logging.Formatter(
        "[%(asctime)s] %(levelname)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    logger.addHandler(handler)


def info(message: str) -> None:
    console.print(f"[blue]\u2139\ufe0f  {escape(message)}[/blue]")
    logger.info(message)


def success(message: str) -> None:
    console.print(f"[green]\u2705 {escape(message)}[/green]")
    logger.info(message)


def warning(message: str) -> None:
    console.print(f"[yellow]\u26a0\ufe0f  {escape(message)}[/yellow]")
    logger.warning(message)


def error(message: str) -> None:
    console.print(f"[red]\u274c {escape(message)}[/red]")
    logger.error(message)
