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
This module provides the Cloud SQL database instance resource and finder.

Every change to an instance is an asynchronous SQL Admin operation; the
resource waits for each one before returning.
"""

from typing import Literal, Optional, Self

from googleapiclient.errors import HttpError

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
from common.utils.naming import convert_to_filters
from resources.cloudsql.models import (
    DbInstanceSettings,
    DiskEncryptionConfiguration,
    IpMapping,
)

CREATE_TIMEOUT = 15 * 60
UPDATE_TIMEOUT = 15 * 60
DELETE_TIMEOUT = 10 * 60
CHECK_EVERY = 10


def format_operation_error(operation: dict) -> str:
    return "\n".join(
        error.get("message", error.get("code", ""))
        for error in operation.get("error", {}).get("errors", [])
    )


class DatabaseInstanceResource(GoogleResource):
    """
    A Cloud SQL database instance.
    """

    resource_type = "sql-database-instance"

    name: str
    database_version: str = updatable_field()
    region: Optional[str] = None
    gce_zone: Optional[str] = None
    secondary_gce_zone: Optional[str] = None
    instance_type: Optional[
        Literal[
            "CLOUD_SQL_INSTANCE",
            "ON_PREMISES_INSTANCE",
            "READ_REPLICA_INSTANCE",
        ]
    ] = None
    master_instance: Optional["DatabaseInstanceResource"] = None
    root_password: Optional[str] = updatable_field(default=None)
    disk_encryption_configuration: Optional[DiskEncryptionConfiguration] = (
        None
    )
    settings: DbInstanceSettings = updatable_field()

    state: Optional[str] = output_field()
    self_link: Optional[str] = output_field()
    connection_name: Optional[str] = output_field()
    service_account_email_address: Optional[str] = output_field()
    ip_addresses: list[IpMapping] = output_field(default_factory=list)
    create_time: Optional[str] = output_field()
    database_installed_version: Optional[str] = output_field()
    dns_name: Optional[str] = output_field()
    replica_names: list[str] = output_field(default_factory=list)

    def copy_from(self, model: dict) -> None:
        # the root password is write-only
        self.copy_values(
            google_values(type(self), model), keep=("root_password",)
        )

        master = model.get("masterInstanceName")
        # replicas report their primary as 'project:instance'
        self.master_instance = self.find_by_id(
            DatabaseInstanceResource, master.split(":")[-1] if master else None
        )

    def to_instance(self, fields: set[str] | None = None) -> dict:
        names = set(type(self).model_fields) - {"master_instance"}
        if fields is not None:
            names &= fields

        instance = google_body(self, names)

        if self.master_instance is not None and (
            fields is None or "master_instance" in fields
        ):
            instance["masterInstanceName"] = self.master_instance.name

        return instance

    def do_refresh(self) -> bool:
        client = self.create_client(ClientKind.SQL_ADMIN)

        try:
            instance = (
                client.instances()
                .get(project=self.project_id, instance=self.name)
                .execute()
            )
        except HttpError as e:
            if is_not_found(e):
                return False
            raise

        self.copy_from(instance)
        return True

    def do_create(self) -> None:
        client = self.create_client(ClientKind.SQL_ADMIN)

        try:
            operation = (
                client.instances()
                .insert(project=self.project_id, body=self.to_instance())
                .execute()
            )
        except HttpError as e:
            if e.status_code == 409:
                raise ProviderException(
                    f"Database instance '{self.name}' already exists, or "
                    "was deleted recently and its name cannot be reused "
                    "yet."
                ) from e
            raise

        self.wait_for_completion(client, operation, CREATE_TIMEOUT)
        self.refresh()

    def do_update(self, current: Self, changed_fields: set[str]) -> None:
        client = self.create_client(ClientKind.SQL_ADMIN)

        if (
            "settings" in changed_fields
            and self.settings.edition is not None
            and self.settings.edition != current.settings.edition
        ):
            # the edition has to change before edition specific settings
            self._patch(
                client,
                {
                    "settings": {
                        "edition": self.settings.edition,
                        "tier": self.settings.tier,
                        "settingsVersion": current.settings.settings_version,
                    }
                },
            )

        self._patch(client, self.to_instance(changed_fields))
        self.refresh()

    def do_delete(self) -> None:
        settings = getattr(self, "settings", None)
        if settings is not None and settings.deletion_protection_enabled:
            raise ProviderException(
                f"Deletion protection is enabled on database instance "
                f"'{self.name}'. Disable it before deleting the instance."
            )

        client = self.create_client(ClientKind.SQL_ADMIN)
        operation = (
            client.instances()
            .delete(project=self.project_id, instance=self.name)
            .execute()
        )
        self.wait_for_completion(client, operation, DELETE_TIMEOUT)

    def _patch(self, client, body: dict) -> None:
        operation = (
            client.instances()
            .patch(project=self.project_id, instance=self.name, body=body)
            .execute()
        )
        self.wait_for_completion(client, operation, UPDATE_TIMEOUT)

    def wait_for_completion(
        self, client, operation: dict, timeout: float
    ) -> None:
        """
        Waits for an SQL Admin operation to finish. Operation errors are
        raised as a ProviderException.
        """

        def done() -> bool:
            response = (
                client.operations()
                .get(project=self.project_id, operation=operation["name"])
                .execute()
            )

            if response.get("error", {}).get("errors"):
                raise ProviderException(format_operation_error(response))

            return response.get("status") == "DONE"

        Waiter(timeout, CHECK_EVERY).until(done, f"{self} operation")


DatabaseInstanceResource.model_rebuild()


class DatabaseInstanceFinder(GoogleFinder):
    """
    Finds database instances by `name`, or lists the instances of the
    project matching a `filter` expression and the field filters.
    """

    resource_type = "sql-database-instance"
    resource_class = DatabaseInstanceResource
    client_kind = ClientKind.SQL_ADMIN
    field_filters = ("database_version", "region", "instance_type", "state")
    filter_names = ("name", "filter", *field_filters)

    def find_all_google(self, client) -> list[dict]:
        return list(
            list_items(client.instances().list, project=self.project_id)
        )

    def list_filter(self, filters: dict[str, str]) -> str:
        expression = convert_to_filters(
            {
                name: value
                for name, value in filters.items()
                if name in self.field_filters
            }
        )
        return " ".join(
            part for part in (expression, filters.get("filter")) if part
        )

    def find_google(self, client, filters: dict[str, str]) -> list[dict]:
        if "name" not in filters:
            return list(
                list_items(
                    client.instances().list,
                    project=self.project_id,
                    filter=self.list_filter(filters),
                )
            )

        try:
            instance = (
                client.instances()
                .get(project=self.project_id, instance=filters["name"])
                .execute()
            )
        except HttpError as e:
            if is_not_found(e):
                return []
            raise

        return [instance]
