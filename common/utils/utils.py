# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#   https://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
This module provides essential tools for command-line interface operations
and logging setup.
"""

import logging
from argparse import ArgumentParser, ArgumentTypeError


def str2bool(v):
    """
    Converts a string representation of truth to a boolean value.
    """
    if isinstance(v, bool):
        return v
    if v.lower() in ("yes", "true", "t", "y", "1"):
        return True
    elif v.lower() in ("no", "false", "f", "n", "0"):
        return False
    else:
        raise ArgumentTypeError("Boolean value expected.")


def key_value(v: str) -> tuple[str, str]:
    """
    Converts a 'key=value' string into a tuple.
    """
    key, separator, value = v.partition("=")

    if not separator or not key:
        raise ArgumentTypeError(f"Expected 'key=value', got '{v}'.")

    return key.strip(), value.strip()


def parse_common_args(parser: ArgumentParser) -> None:
    """
    Adds the arguments shared by every provisioner command.
    """
    parser.add_argument(
        "-d",
        "--dry-run",
        default=False,
        type=str2bool,
        help=(
            "Dry run mode: If True, changes are computed and logged but "
            "never sent to Google Cloud. (default: False)"
        ),
    )
    parser.add_argument(
        "-p",
        "--project",
        type=str,
        help=(
            "The project in which resources are provisioned. If not "
            "specified, the project of the configuration file or of the "
            "application default credentials is used."
        ),
    )
    parser.add_argument(
        "-sd",
        "--state-dir",
        default=".state",
        type=str,
        help=(
            "Local directory holding state files when no state bucket is "
            "configured. (default: '.state')"
        ),
    )
    parser.add_argument(
        "-sb",
        "--state-bucket",
        type=str,
        help=(
            "Cloud Storage bucket holding state files. Takes precedence "
            "over the local state directory."
        ),
    )
    parser.add_argument(
        "-sp",
        "--state-prefix",
        type=str,
        help="Object name prefix for state files in the state bucket.",
    )


def get_logger():
    """
    Configures and retrieves the root logger with a specified logging
    level and format.
    """
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(filename)s - %(levelname)s - %(message)s",
    )
    logger = logging.getLogger()
    return logger
