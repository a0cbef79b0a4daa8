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
This module reads and writes state files.

A state file records the resources a configuration has provisioned:

{"version": 1, "resources": [{"type": ..., "name": ..., "properties": ...}]}

References to other resources are stored as {"$type": ..., "$id": ...}.
Resources are kept in the order they were provisioned.
"""

import json
from typing import Any

from pydantic import ValidationError

from common.api import ProviderContext
from common.entities import GoogleResource, get_resource_type
from common.exceptions import ProviderException

STATE_VERSION = 1

ResourceKey = tuple[str, str]


class StateFile:
    """
    Loads and saves the resources of one configuration.
    """

    def __init__(self, backend, file: str) -> None:
        self._backend = backend
        self.file = file

    def load(
        self, context: ProviderContext
    ) -> dict[ResourceKey, GoogleResource]:
        content = self._backend.read(self.file)

        if content is None:
            return {}

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise ProviderException(
                f"State file {self.file} is not valid JSON: {e}"
            ) from e

        if data.get("version") != STATE_VERSION:
            raise ProviderException(
                f"Unsupported state version in {self.file}: "
                f"{data.get('version')}"
            )

        resources = {}
        by_id = {}

        for entry in data.get("resources", []):
            resource_class = get_resource_type(entry["type"])
            properties = self._resolve(
                entry.get("properties", {}), context, by_id
            )

            try:
                resource = resource_class.model_validate(properties)
            except ValidationError as e:
                raise ProviderException(
                    f"Invalid state for {entry['type']}.{entry['name']}: {e}"
                ) from e

            resource.bind(context, entry["name"])
            resources[(entry["type"], entry["name"])] = resource
            by_id[(entry["type"], resource.reference_id())] = resource

        return resources

    def save(self, resources: dict[ResourceKey, GoogleResource]) -> None:
        data = {
            "version": STATE_VERSION,
            "resources": [
                {
                    "type": resource_type,
                    "name": name,
                    "properties": resource.to_dict(),
                }
                for (resource_type, name), resource in resources.items()
            ],
        }
        self._backend.write(self.file, json.dumps(data, indent=2))

    def delete(self) -> None:
        self._backend.delete(self.file)

    def _resolve(
        self, value: Any, context: ProviderContext, by_id: dict
    ) -> Any:
        if isinstance(value, dict):
            if "$type" in value and "$id" in value:
                known = by_id.get((value["$type"], value["$id"]))
                if known is not None:
                    return known
                return (
                    get_resource_type(value["$type"])
                    .from_id(value["$id"])
                    .bind(context)
                )
            return {
                key: self._resolve(item, context, by_id)
                for key, item in value.items()
            }

        if isinstance(value, list):
            return [self._resolve(item, context, by_id) for item in value]

        return value
