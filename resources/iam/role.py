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
This module provides the IAM custom project role resource and finder.

Deleted custom roles are kept by IAM for a while and their id can't be
reused, so creating a role whose id belongs to a deleted role restores
it instead.
"""

from typing import Literal, Optional, Self

from googleapiclient.errors import HttpError
from pydantic import Field

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
from common.utils import list_items
from common.utils.naming import get_segment, is_custom_role, to_camel_case

STAGES = Literal["ALPHA", "BETA", "GA", "DEPRECATED", "DISABLED", "EAP"]


class CustomRoleResource(GoogleResource):
    """
    A custom IAM role defined in the project.
    """

    resource_type = "iam-custom-role"

    role_id: str = Field(pattern=r"^[a-zA-Z0-9_.]{3,64}$")
    title: Optional[str] = updatable_field(default=None, max_length=100)
    description: Optional[str] = updatable_field(default=None)
    included_permissions: list[str] = updatable_field(default_factory=list)
    stage: Optional[STAGES] = updatable_field(default=None)

    name: Optional[str] = output_field()
    etag: Optional[str] = output_field()
    deleted: Optional[bool] = output_field()

    @classmethod
    def from_id(cls, resource_id: str) -> Self:
        return cls.model_construct(
            name=resource_id, role_id=get_segment(resource_id, "roles")
        )

    def role_path(self) -> str:
        return self.name or f"projects/{self.project_id}/roles/{self.role_id}"

    def copy_from(self, model: dict) -> None:
        self.copy_values(google_values(type(self), model))
        self.role_id = get_segment(model["name"], "roles")

    def to_role(self, fields: set[str] | None = None) -> dict:
        names = set(type(self).model_fields) - {"role_id"}
        if fields is not None:
            names &= fields
        return google_body(self, names)

    def get_role(self, client) -> dict | None:
        try:
            return (
                client.projects().roles().get(name=self.role_path()).execute()
            )
        except HttpError as e:
            if is_not_found(e):
                return None
            raise

    def do_refresh(self) -> bool:
        role = self.get_role(self.create_client(ClientKind.IAM))

        if role is None or role.get("deleted"):
            return False

        self.copy_from(role)
        return True

    def do_create(self) -> None:
        client = self.create_client(ClientKind.IAM)
        roles = client.projects().roles()
        existing = self.get_role(client)

        if existing is not None and existing.get("deleted"):
            self._logger.info("Restoring the deleted role of %s", self)
            roles.undelete(
                name=existing["name"], body={"etag": existing.get("etag")}
            ).execute()
            role = self.patch(client, self.configured_fields())
        else:
            role = roles.create(
                parent=f"projects/{self.project_id}",
                body={"roleId": self.role_id, "role": self.to_role()},
            ).execute()

        self.copy_from(role)

    def do_update(self, current: Self, changed_fields: set[str]) -> None:
        self.name = self.name or current.name
        self.copy_from(
            self.patch(self.create_client(ClientKind.IAM), changed_fields)
        )

    def do_delete(self) -> None:
        client = self.create_client(ClientKind.IAM)
        client.projects().roles().delete(name=self.role_path()).execute()

    def patch(self, client, fields: set[str]) -> dict:
        fields = fields - {"role_id"}
        return (
            client.projects()
            .roles()
            .patch(
                name=self.role_path(),
                body=self.to_role(fields),
                updateMask=",".join(sorted(to_camel_case(f) for f in fields)),
            )
            .execute()
        )


class CustomRoleFinder(GoogleFinder):
    """
    Finds custom roles of the project by `name`, either the role id or
    the full 'projects/<project>/roles/<role>' name, or lists all of
    them.
    """

    resource_type = "iam-custom-role"
    resource_class = CustomRoleResource
    client_kind = ClientKind.IAM
    filter_names = ("name",)

    def role_name(self, name: str) -> str:
        if is_custom_role(name):
            return name
        if name.startswith("roles/"):
            raise ProviderException(
                f"'{name}' is a predefined role, not a custom role."
            )
        return f"projects/{self.project_id}/roles/{name}"

    def find_all_google(self, client) -> list[dict]:
        return list(
            list_items(
                client.projects().roles().list,
                items_key="roles",
                parent=f"projects/{self.project_id}",
                view="FULL",
            )
        )

    def find_google(self, client, filters: dict[str, str]) -> list[dict]:
        name = self.role_name(filters["name"])

        try:
            role = client.projects().roles().get(name=name).execute()
        except HttpError as e:
            if is_not_found(e):
                return []
            raise

        return [] if role.get("deleted") else [role]
