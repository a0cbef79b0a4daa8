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
This module computes the changes needed to bring Google Cloud in line with
a configuration.

Classes:
- ChangeType: Kinds of change.
- Change: One planned change to one resource.
- Planner: Compares configured resources against the recorded state.

Functions:
- dependency_order: Orders resource keys so that references come first.
"""

from enum import StrEnum
from graphlib import CycleError, TopologicalSorter

from common.entities import GoogleResource
from common.exceptions import ProviderException
from common.state import ResourceKey
from common.utils import get_logger


def dependency_order(
    dependencies: dict[ResourceKey, set[ResourceKey]],
) -> list[ResourceKey]:
    """
    Returns the keys ordered so that every key comes after the keys it
    depends on. Keys that become ready together keep their configured
    order.
    """
    position = {key: index for index, key in enumerate(dependencies)}
    sorter = TopologicalSorter(
        {
            key: requires & position.keys()
            for key, requires in dependencies.items()
        }
    )

    try:
        sorter.prepare()
    except CycleError as e:
        cycle = " -> ".join(f"{t}.{n}" for t, n in e.args[1])
        raise ProviderException(
            f"Circular reference between resources: {cycle}"
        ) from e

    ordered = []
    while sorter.is_active():
        ready = sorted(sorter.get_ready(), key=position.__getitem__)
        ordered.extend(ready)
        sorter.done(*ready)

    return ordered


class ChangeType(StrEnum):
    """
    Kinds of change applied to a resource.
    """

    CREATE = "create"
    UPDATE = "update"
    REPLACE = "replace"
    DELETE = "delete"
    KEEP = "keep"


class Change:
    """
    A change to one resource. `desired` is the configured resource and
    `current` the one read back from Google Cloud; either may be None.
    """

    change_type: ChangeType
    key: ResourceKey
    desired: GoogleResource | None
    current: GoogleResource | None
    changed_fields: set[str]

    def __init__(
        self,
        change_type: ChangeType,
        key: ResourceKey,
        desired: GoogleResource | None = None,
        current: GoogleResource | None = None,
        changed_fields: set[str] | None = None,
    ) -> None:
        self.change_type = change_type
        self.key = key
        self.desired = desired
        self.current = current
        self.changed_fields = changed_fields or set()

    def __repr__(self) -> str:
        description = f"{self.change_type.value} {self.key[0]}.{self.key[1]}"

        if self.changed_fields:
            description += f" ({', '.join(sorted(self.changed_fields))})"

        return description


class Planner:
    """
    Builds the list of changes between configured resources and the
    resources recorded in state.
    """

    def __init__(self) -> None:
        self._logger = get_logger()

    def plan(
        self,
        desired: dict[ResourceKey, GoogleResource],
        state: dict[ResourceKey, GoogleResource],
    ) -> list[Change]:
        """
        Returns deletions of resources that are no longer configured, in
        reverse state order, followed by one change per configured
        resource, in configuration order.

        Configured resources must be in dependency order: comparing a
        resource needs the outputs of the resources it references.
        """
        changes = [
            Change(ChangeType.DELETE, key, current=state[key])
            for key in reversed(list(state))
            if key not in desired
        ]

        for key, resource in desired.items():
            changes.append(self.plan_resource(key, resource, state.get(key)))

        for change in changes:
            self._logger.info("Planned: %s", change)

        return changes

    def plan_resource(
        self,
        key: ResourceKey,
        desired: GoogleResource,
        current: GoogleResource | None,
    ) -> Change:
        if current is None:
            return Change(ChangeType.CREATE, key, desired)

        if not current.refresh():
            self._logger.info("%s vanished and will be created again", current)
            return Change(ChangeType.CREATE, key, desired)

        changed_fields = desired.changed_fields(current)

        if not changed_fields:
            change_type = ChangeType.KEEP
        elif changed_fields <= desired.updatable_fields():
            change_type = ChangeType.UPDATE
        else:
            change_type = ChangeType.REPLACE

        # a replacement gets new outputs when it is created
        if change_type != ChangeType.REPLACE:
            desired.copy_outputs_from(current)

        return Change(change_type, key, desired, current, changed_fields)
