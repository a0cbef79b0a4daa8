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
This module provides the Cloud DNS managed zone resource and finder.

Classes:
- ManagedZoneResource: Creates, patches and deletes managed zones.
- ManagedZoneFinder: Looks up zones by name or lists every zone of the
  project.
"""

from typing import Literal, Optional, Self

from googleapiclient.errors import HttpError
from pydantic import model_validator

from common.api import ClientKind
from common.entities import (
    GoogleFinder,
    GoogleResource,
    google_body,
    google_values,
    output_field,
    updatable_field,
)
from common.exceptions import ProviderException, is_not_found
from common.utils import Waiter, list_items
from resources.dns.models import (
    ZoneDnsSecConfig,
    ZoneForwardingConfig,
    ZonePrivateVisibilityConfig,
)

OPERATION_TIMEOUT = 300

# configs the API refuses to remove once they are set
PERMANENT_CONFIGS = (
    "dnssec_config",
    "forwarding_config",
    "private_visibility_config",
)


def wait_for_dns(client, description: str, fetch, operation: dict) -> dict:
    """
    Polls a DNS operation or change until its status is no longer
    `pending` and returns its final state.
    """
    if operation.get("status") != "pending":
        return operation

    def finished():
        current = fetch(client, operation["id"])
        return current if current.get("status") != "pending" else None

    return Waiter(OPERATION_TIMEOUT, check_every=1, backoff=True).until(
        finished, description
    )


class ManagedZoneResource(GoogleResource):
    """
    A Cloud DNS managed zone. Private zones are visible from the VPC
    networks listed in `private_visibility_config`.
    """

    resource_type = "dns-managed-zone"

    name: str
    description: str = updatable_field()
    dns_name: str
    visibility: Literal["public", "private"] = "public"
    labels: Optional[dict[str, str]] = updatable_field(default=None)
    dnssec_config: Optional[ZoneDnsSecConfig] = updatable_field(default=None)
    forwarding_config: Optional[ZoneForwardingConfig] = updatable_field(
        default=None
    )
    private_visibility_config: Optional[ZonePrivateVisibilityConfig] = (
        updatable_field(default=None)
    )
    name_server_set: Optional[str] = None

    id: Optional[str] = output_field()
    creation_time: Optional[str] = output_field()
    name_servers: list[str] = output_field(default_factory=list)

    @model_validator(mode="after")
    def validate_visibility(self) -> Self:
        if self.is_stub():
            return self

        errors = []

        if self.visibility == "public":
            if self.forwarding_config is not None:
                errors.append(
                    "'forwarding_config' can't be provided in public zone."
                )
            if self.private_visibility_config is not None:
                errors.append(
                    "'private_visibility_config' can't be provided in "
                    "public zone."
                )
        elif self.dnssec_config is not None:
            errors.append("'dnssec_config' can't be provided in private zone.")

        if errors:
            raise ValueError(" ".join(errors))

        return self

    def copy_from(self, model: dict) -> None:
        self.copy_values(google_values(type(self), model))

    def to_managed_zone(self, fields: set[str] | None = None) -> dict:
        return google_body(self, fields)

    def do_refresh(self) -> bool:
        client = self.create_client(ClientKind.DNS)

        try:
            zone = (
                client.managedZones()
                .get(project=self.project_id, managedZone=self.name)
                .execute()
            )
        except HttpError as e:
            if is_not_found(e):
                return False
            raise

        self.copy_from(zone)
        return True

    def do_create(self) -> None:
        client = self.create_client(ClientKind.DNS)
        zone = (
            client.managedZones()
            .create(project=self.project_id, body=self.to_managed_zone())
            .execute()
        )
        self.copy_from(zone)

    def do_update(self, current: Self, changed_fields: set[str]) -> None:
        for name in PERMANENT_CONFIGS:
            if name in changed_fields and getattr(self, name) is None:
                raise ProviderException(f"'{name}' can't be removed once set.")

        body = self.to_managed_zone(changed_fields)

        if "labels" in changed_fields:
            # labels are replaced rather than merged
            self.patch({"labels": None}, refresh=False)
            body["labels"] = self.labels

        self.patch(body)

    def do_delete(self) -> None:
        client = self.create_client(ClientKind.DNS)
        client.managedZones().delete(
            project=self.project_id, managedZone=self.name
        ).execute()

    def patch(self, body: dict, refresh: bool = True) -> None:
        client = self.create_client(ClientKind.DNS)
        operation = (
            client.managedZones()
            .patch(project=self.project_id, managedZone=self.name, body=body)
            .execute()
        )
        operation = wait_for_dns(
            client, f"{self} to be updated", self._get_operation, operation
        )

        if not refresh:
            return

        new_value = operation.get("zoneContext", {}).get("newValue")
        if new_value:
            self.copy_from(new_value)
        else:
            self.do_refresh()

    def _get_operation(self, client, operation_id: str) -> dict:
        return (
            client.managedZoneOperations()
            .get(
                project=self.project_id,
                managedZone=self.name,
                operation=operation_id,
            )
            .execute()
        )


class ManagedZoneFinder(GoogleFinder):
    """
    Finds managed zones by `name`, or every zone of the project.
    """

    resource_type = "dns-managed-zone"
    resource_class = ManagedZoneResource
    client_kind = ClientKind.DNS
    filter_names = ("name",)

    def find_all_google(self, client) -> list[dict]:
        return list(
            list_items(
                client.managedZones().list,
                items_key="managedZones",
                project=self.project_id,
            )
        )

    def find_google(self, client, filters: dict[str, str]) -> list[dict]:
        try:
            return [
                client.managedZones()
                .get(project=self.project_id, managedZone=filters["name"])
                .execute()
            ]
        except HttpError as e:
            if is_not_found(e):
                return []
            raise
