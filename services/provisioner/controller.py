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
This module defines the ProvisionController class, which drives the
provisioner commands: it loads the configuration and the state, plans the
changes and applies them through the resource lifecycle.

Classes:
- ProvisionController: Runs plan, apply, destroy, refresh, find, types and
  states.
"""

import json

from common.api import ClientKind, ProviderContext
from common.entities import (
    GoogleResource,
    get_finder_type,
    resource_types,
)
from common.exceptions import ProviderException
from common.state import (
    GoogleStorageFileBackend,
    LocalFileBackend,
    ResourceKey,
    StateFile,
)
from common.utils import get_logger
from services.provisioner.config import build_resources, read_configuration
from services.provisioner.planner import Change, ChangeType, Planner


class ProvisionController:
    """
    A controller class for provisioning the resources of a configuration
    file and keeping their state.
    """

    def __init__(
        self,
        app_config: dict,
        context: ProviderContext | None = None,
        backend=None,
    ) -> None:
        """
        Initializes the ProvisionController. The context and the state
        backend are derived from the application config unless given.
        """
        self.app_config = app_config
        self.dry_run = app_config.get("dry_run", False)
        self._configuration = (
            read_configuration(app_config["config_file"])
            if app_config.get("config_file")
            else {}
        )
        self.context = context or ProviderContext(
            app_config.get("project_name")
            or self._configuration.get("project_id")
        )
        self._backend = backend or self._create_backend()
        self._planner = Planner()
        self._logger = get_logger()

    def _create_backend(self):
        if self.app_config.get("state_bucket"):
            return GoogleStorageFileBackend(
                self.context.client_factory.create(ClientKind.STORAGE),
                self.app_config["state_bucket"],
                self.app_config.get("state_prefix"),
            )
        return LocalFileBackend(self.app_config.get("state_dir", ".state"))

    @property
    def state_file(self) -> StateFile:
        if not self.app_config.get("state_file"):
            raise ProviderException("No state file configured.")
        return StateFile(self._backend, self.app_config["state_file"])

    def run(self) -> None:
        command = self.app_config["command"]
        self._logger.info("Running %s", command)
        getattr(self, command)()

    def plan(self) -> list[Change]:
        """
        Computes the changes needed to provision the configuration.
        """
        desired = build_resources(self._configuration, self.context)
        state = self.state_file.load(self.context)
        return self._planner.plan(desired, state)

    def apply(self) -> list[Change]:
        """
        Applies the planned changes and saves the state after each one.
        """
        desired = build_resources(self._configuration, self.context)
        state_file = self.state_file
        state = state_file.load(self.context)
        changes = self._planner.plan(desired, state)

        if self.dry_run:
            self._logger.info("Dry run, no changes applied.")
            return changes

        pending = [c for c in changes if c.change_type != ChangeType.KEEP]
        self._logger.info("Applying %d change(s)", len(pending))

        for change in changes:
            self.apply_change(change, state)

            if change.change_type == ChangeType.KEEP:
                state[change.key] = change.desired
            else:
                state_file.save(self._ordered(state, desired))

        state_file.save(self._ordered(state, desired))
        self._logger.info("Applied %d change(s)", len(pending))
        return changes

    def apply_change(
        self, change: Change, state: dict[ResourceKey, GoogleResource]
    ) -> None:
        match change.change_type:
            case ChangeType.DELETE:
                change.current.delete()
                state.pop(change.key, None)
            case ChangeType.CREATE:
                change.desired.create()
                state[change.key] = change.desired
            case ChangeType.UPDATE:
                change.desired.update(change.current, change.changed_fields)
                state[change.key] = change.desired
            case ChangeType.REPLACE:
                change.current.delete()
                state.pop(change.key, None)
                change.desired.create()
                state[change.key] = change.desired

    def destroy(self) -> list[ResourceKey]:
        """
        Deletes every resource in the state, dependents first.
        """
        state_file = self.state_file
        state = state_file.load(self.context)
        keys = list(reversed(list(state)))

        for key in keys:
            self._logger.info("Planned: delete %s.%s", *key)

        if self.dry_run:
            self._logger.info("Dry run, nothing deleted.")
            return keys

        for key in keys:
            resource = state[key]
            if resource.refresh():
                resource.delete()
            state.pop(key)
            state_file.save(state)

        state_file.delete()
        return keys

    def refresh(self) -> dict[ResourceKey, GoogleResource]:
        """
        Re-reads every resource in the state and drops those that no
        longer exist.
        """
        state_file = self.state_file
        state = state_file.load(self.context)

        for key, resource in list(state.items()):
            if not resource.refresh():
                self._logger.warning(
                    "%s.%s no longer exists, removing it from state", *key
                )
                state.pop(key)

        if not self.dry_run:
            state_file.save(state)

        return state

    def find(self) -> list[GoogleResource]:
        """
        Looks up existing resources and prints them as JSON.
        """
        finder = get_finder_type(self.app_config["resource_type"])(
            self.context
        )
        resources = finder.find(self.app_config.get("filters") or {})

        print(
            json.dumps(
                [
                    {
                        "type": resource.resource_type,
                        "id": resource.reference_id(),
                        "properties": resource.to_dict(),
                    }
                    for resource in resources
                ],
                indent=2,
            )
        )
        return resources

    def types(self) -> list[str]:
        names = sorted(resource_types())
        print("\n".join(names))
        return names

    def states(self) -> list[str]:
        files = self._backend.list()
        print("\n".join(files))
        return files

    @staticmethod
    def _ordered(
        state: dict[ResourceKey, GoogleResource],
        desired: dict[ResourceKey, GoogleResource],
    ) -> dict[ResourceKey, GoogleResource]:
        """
        Orders the state like the configuration, followed by resources
        that are still to be deleted.
        """
        ordered = {key: state[key] for key in desired if key in state}
        ordered.update(
            (key, resource)
            for key, resource in state.items()
            if key not in ordered
        )
        return ordered
