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
Module to manage application configuration settings based on command-line
inputs, and to load the resource configuration file. Utilizes
`common.utils` for argument parsing.

A configuration file lists the resources to provision:

{
  "project_id": "my-project",
  "resources": [
    {"type": "pubsub-topic", "name": "events", "properties": {...}},
    {"type": "pubsub-subscription", "name": "reader",
     "properties": {"topic": {"$ref": "pubsub-topic.events"}, ...}}
  ]
}
"""

import json
import os
from argparse import (
    ArgumentParser,
    ArgumentTypeError,
    Action as argparseAction,
)
from typing import Any

from pydantic import ValidationError

from common.api import ProviderContext
from common.entities import GoogleResource, finder_types, get_resource_type
from common.exceptions import IncorrectTypeException, ProviderException
from common.state import ResourceKey
from common.utils import key_value, parse_common_args
from services.provisioner.planner import dependency_order

COMMANDS = (
    "plan",
    "apply",
    "destroy",
    "refresh",
    "find",
    "types",
    "states",
)
CONFIG_COMMANDS = ("plan", "apply", "destroy", "refresh")
REFERENCE = "$ref"


class ValidateResourceType(argparseAction):
    """
    Validates that a finder exists for the resource type.
    """

    def __call__(
        self,
        parser: ArgumentParser,
        namespace: Any,
        values: str,
        option_string: str | None = None,
    ) -> None:
        if values not in finder_types():
            parser.error(
                f"Unknown resource type '{values}'. Expected one of: "
                f"{', '.join(sorted(finder_types()))}."
            )
        setattr(namespace, self.dest, values)


class ParseFilters(argparseAction):
    """
    Collects 'key=value' arguments into a dictionary.
    """

    def __call__(
        self,
        parser: ArgumentParser,
        namespace: Any,
        values: list[str],
        option_string: str | None = None,
    ) -> None:
        filters = dict(getattr(namespace, self.dest, None) or {})

        for value in values:
            try:
                key, item = key_value(value)
            except ArgumentTypeError as e:
                parser.error(str(e))
            filters[key] = item

        setattr(namespace, self.dest, filters)


def parse_service_args(parser: ArgumentParser) -> None:
    """
    Adds service-specific arguments to the argument parser.
    """
    parser.add_argument(
        "command",
        choices=COMMANDS,
        help=(
            "plan: show the changes; apply: provision the configuration; "
            "destroy: delete every provisioned resource; refresh: re-read "
            "the state from Google Cloud; find: look up existing "
            "resources; types: list the supported resource types; "
            "states: list the state files."
        ),
    )
    parser.add_argument(
        "-c",
        "--config",
        type=str,
        help="Path of the JSON configuration file.",
    )
    parser.add_argument(
        "-t",
        "--resource-type",
        type=str,
        action=ValidateResourceType,
        help="Resource type to look up with 'find'.",
    )
    parser.add_argument(
        "-f",
        "--filters",
        nargs="*",
        default={},
        action=ParseFilters,
        help="Filters for 'find', as 'key=value' pairs.",
    )
    parser.add_argument(
        "-sf",
        "--state-file",
        type=str,
        help=(
            "Name of the state file. (default: the configuration file "
            "name)"
        ),
    )


def get_application_config(argv: list[str] | None = None) -> dict:
    """
    Combines common and service-specific arguments into a unified
    configuration.
    """
    parser = ArgumentParser(description="CLI for the GCP provisioner")

    parse_service_args(parser)
    parse_common_args(parser)

    args = parser.parse_args(argv)

    if args.command in CONFIG_COMMANDS and args.config is None:
        parser.error(f"'{args.command}' requires --config.")

    if args.command == "find" and args.resource_type is None:
        parser.error("'find' requires --resource-type.")

    state_file = args.state_file
    if state_file is None and args.config is not None:
        state_file = (
            os.path.splitext(os.path.basename(args.config))[0] + ".json"
        )

    return {
        "command": args.command,
        "config_file": args.config,
        "project_name": args.project,
        "dry_run": args.dry_run or args.command == "plan",
        "state_dir": args.state_dir,
        "state_bucket": args.state_bucket,
        "state_prefix": args.state_prefix,
        "state_file": state_file,
        "resource_type": args.resource_type,
        "filters": args.filters,
    }


def read_configuration(path: str) -> dict:
    """
    Reads a configuration file.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ProviderException(
            f"Cannot read configuration {path}: {e}"
        ) from e

    if not isinstance(data.get("resources", []), list):
        raise ProviderException(f"'resources' in {path} must be a list.")

    return data


def parse_reference(reference: str) -> ResourceKey:
    resource_type, separator, name = reference.partition(".")

    if not separator or not resource_type or not name:
        raise ProviderException(
            f"Invalid reference '{reference}'. Expected 'type.name'."
        )

    return resource_type, name


def find_references(value: Any) -> set[ResourceKey]:
    """
    Returns the keys of every resource referenced in a properties tree.
    """
    if isinstance(value, dict):
        if REFERENCE in value:
            return {parse_reference(value[REFERENCE])}
        return set().union(*(find_references(v) for v in value.values()))

    if isinstance(value, list):
        return set().union(*(find_references(v) for v in value))

    return set()


def _substitute(
    value: Any, built: dict[ResourceKey, GoogleResource]
) -> Any:
    if isinstance(value, dict):
        if REFERENCE in value:
            return built[parse_reference(value[REFERENCE])]
        return {key: _substitute(item, built) for key, item in value.items()}

    if isinstance(value, list):
        return [_substitute(item, built) for item in value]

    return value


def build_resources(
    data: dict, context: ProviderContext
) -> dict[ResourceKey, GoogleResource]:
    """
    Validates the configured resources and returns them bound to the
    context, in dependency order.
    """
    entries = {}

    for entry in data.get("resources", []):
        try:
            key = (entry["type"], entry["name"])
        except (KeyError, TypeError) as e:
            raise ProviderException(
                f"Every resource needs a 'type' and a 'name': {entry}"
            ) from e

        if key in entries:
            raise ProviderException(f"Duplicate resource {key[0]}.{key[1]}")

        entries[key] = entry.get("properties", {})

    dependencies = {}
    for key, properties in entries.items():
        dependencies[key] = find_references(properties)
        missing = dependencies[key] - entries.keys()

        if missing:
            raise ProviderException(
                f"{key[0]}.{key[1]} references unknown resource(s): "
                + ", ".join(f"{t}.{n}" for t, n in sorted(missing))
            )

    built = {}
    for key in dependency_order(dependencies):
        resource_type, name = key

        try:
            resource_class = get_resource_type(resource_type)
        except IncorrectTypeException as e:
            raise ProviderException(f"{resource_type}.{name}: {e}") from e

        try:
            resource = resource_class.model_validate(
                _substitute(entries[key], built)
            )
        except ValidationError as e:
            raise ProviderException(
                f"Invalid configuration for {resource_type}.{name}: {e}"
            ) from e

        built[key] = resource.bind(context, name)

    return built
