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
This module provides the IAM service account resource and finder.

The project roles of a service account are managed by rewriting the
project IAM policy through the ResourceManagerApiAdapter.
"""

from typing import Optional, Self

from googleapiclient.errors import HttpError
from pydantic import Field

from common.api import ClientKind, ResourceManagerApiAdapter
from common.entities import (
    GoogleFinder,
    GoogleResource,
    output_field,
    updatable_field,
)
from common.exceptions import is_not_found
from common.utils import list_items
from common.utils.naming import (
    get_service_account_email_from_id,
    get_service_account_id_from_name,
    get_service_account_name_from_id,
)

PAGE_SIZE = 20


class ServiceAccountResource(GoogleResource):
    """
    A service account and the roles it holds in the project.
    """

    resource_type = "iam-service-account"
    id_field = "id"

    name: str = Field(pattern=r"^[a-z][a-z0-9-]{5,29}$")
    display_name: str = updatable_field()
    description: Optional[str] = updatable_field(default=None)
    enable_account: bool = updatable_field(default=True)
    roles: list[str] = updatable_field(default_factory=list)

    id: Optional[str] = output_field()
    email: Optional[str] = output_field()

    @classmethod
    def from_id(cls, resource_id: str) -> Self:
        return cls.model_construct(
            id=resource_id,
            name=get_service_account_name_from_id(resource_id),
            email=get_service_account_email_from_id(resource_id),
        )

    @property
    def member(self) -> str:
        return f"serviceAccount:{self.email}"

    def account_path(self) -> str:
        return self.id or get_service_account_id_from_name(
            self.name, self.project_id
        )

    def copy_from(self, model: dict) -> None:
        self.id = model["name"]
        self.email = model["email"]
        self.name = get_service_account_name_from_id(model["name"])
        self.display_name = model.get("displayName")
        self.description = model.get("description")
        self.enable_account = not model.get("disabled", False)
        self.roles = self.resource_manager().get_member_roles(
            self.project_id, self.member
        )

    def resource_manager(self) -> ResourceManagerApiAdapter:
        return ResourceManagerApiAdapter(
            self.create_client(ClientKind.PROJECTS)
        )

    def do_refresh(self) -> bool:
        client = self.create_client(ClientKind.IAM)

        try:
            account = (
                client.projects()
                .serviceAccounts()
                .get(name=self.account_path())
                .execute()
            )
        except HttpError as e:
            if is_not_found(e):
                return False
            raise

        self.copy_from(account)
        return True

    def do_create(self) -> None:
        client = self.create_client(ClientKind.IAM)
        account = {"displayName": self.display_name}
        if self.description is not None:
            account["description"] = self.description

        response = (
            client.projects()
            .serviceAccounts()
            .create(
                name=f"projects/{self.project_id}",
                body={"accountId": self.name, "serviceAccount": account},
            )
            .execute()
        )
        self.id = response["name"]
        self.email = response["email"]

        if not self.enable_account:
            self.change_status(client)

        if self.roles:
            self.resource_manager().set_member_roles(
                self.project_id, self.member, self.roles
            )

        self.refresh()

    def do_update(self, current: Self, changed_fields: set[str]) -> None:
        client = self.create_client(ClientKind.IAM)
        self.id = self.id or current.id
        self.email = self.email or current.email

        if "enable_account" in changed_fields:
            self.change_status(client)

        masks = [
            mask
            for name, mask in (
                ("display_name", "displayName"),
                ("description", "description"),
            )
            if name in changed_fields
        ]
        if masks:
            client.projects().serviceAccounts().patch(
                name=self.id,
                body={
                    "serviceAccount": {
                        "displayName": self.display_name,
                        "description": self.description,
                    },
                    "updateMask": ",".join(masks),
                },
            ).execute()

        if "roles" in changed_fields:
            self.resource_manager().set_member_roles(
                self.project_id, self.member, self.roles
            )

        self.refresh()

    def do_delete(self) -> None:
        self.resource_manager().set_member_roles(
            self.project_id, self.member, []
        )

        client = self.create_client(ClientKind.IAM)
        client.projects().serviceAccounts().delete(name=self.id).execute()

    def change_status(self, client) -> None:
        accounts = client.projects().serviceAccounts()

        if self.enable_account:
            accounts.enable(name=self.id, body={}).execute()
        else:
            accounts.disable(name=self.id, body={}).execute()


class ServiceAccountFinder(GoogleFinder):
    """
    Finds service accounts by `name` or `display_name`, or every service
    account of the project.
    """

    resource_type = "iam-service-account"
    resource_class = ServiceAccountResource
    client_kind = ClientKind.IAM
    filter_names = ("name", "display_name")

    def find_all_google(self, client) -> list[dict]:
        return list(
            list_items(
                client.projects().serviceAccounts().list,
                items_key="accounts",
                name=f"projects/{self.project_id}",
                pageSize=PAGE_SIZE,
            )
        )

    def find_google(self, client, filters: dict[str, str]) -> list[dict]:
        return [
            account
            for account in self.find_all_google(client)
            if (
                "name" not in filters
                or get_service_account_name_from_id(account["name"])
                == filters["name"]
            )
            and (
                "display_name" not in filters
                or account.get("displayName") == filters["display_name"]
            )
        ]
