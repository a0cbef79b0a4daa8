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
This module provides the Cloud DNS policy resource and finder.

A policy configures inbound forwarding, query logging and alternative
name servers for the VPC networks bound to it.
"""

from typing import Optional, Self

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
from common.exceptions import is_not_found
from common.utils import list_items
from common.utils.naming import to_camel_case
from resources.dns.models import (
    PolicyAlternativeNameServerConfig,
    PolicyNetwork,
)


class PolicyResource(GoogleResource):
    """
    A Cloud DNS policy.
    """

    resource_type = "dns-policy"

    name: str = Field(pattern=r"^[a-z][a-z0-9-]{0,62}$")
    description: str = updatable_field()
    enable_inbound_forwarding: Optional[bool] = updatable_field(default=None)
    enable_logging: Optional[bool] = updatable_field(default=None)
    alternative_name_server_config: Optional[
        PolicyAlternativeNameServerConfig
    ] = updatable_field(default=None)
    networks: list[PolicyNetwork] = updatable_field(default_factory=list)

    id: Optional[str] = output_field()

    def copy_from(self, model: dict) -> None:
        self.copy_values(google_values(type(self), model))

    def to_policy(self, fields: set[str] | None = None) -> dict:
        return google_body(self, fields)

    def do_refresh(self) -> bool:
        client = self.create_client(ClientKind.DNS)

        try:
            policy = (
                client.policies()
                .get(project=self.project_id, policy=self.name)
                .execute()
            )
        except HttpError as e:
            if is_not_found(e):
                return False
            raise

        self.copy_from(policy)
        return True

    def do_create(self) -> None:
        client = self.create_client(ClientKind.DNS)
        policy = (
            client.policies()
            .create(project=self.project_id, body=self.to_policy())
            .execute()
        )
        self.copy_from(policy)

    def do_update(self, current: Self, changed_fields: set[str]) -> None:
        body = self.to_policy(changed_fields)

        # cleared fields must be sent explicitly to be removed
        for name in changed_fields:
            body.setdefault(to_camel_case(name), None)

        self.copy_from(self.patch(body))

    def do_delete(self) -> None:
        client = self.create_client(ClientKind.DNS)
        policy = (
            client.policies()
            .get(project=self.project_id, policy=self.name)
            .execute()
        )

        # a policy still bound to networks can't be deleted
        if policy.get("networks"):
            self.patch({"networks": []})

        client.policies().delete(
            project=self.project_id, policy=self.name
        ).execute()

    def patch(self, body: dict) -> dict:
        client = self.create_client(ClientKind.DNS)
        response = (
            client.policies()
            .patch(project=self.project_id, policy=self.name, body=body)
            .execute()
        )
        return response["policy"]


class PolicyFinder(GoogleFinder):
    """
    Finds DNS policies by `name`, or every policy of the project.
    """

    resource_type = "dns-policy"
    resource_class = PolicyResource
    client_kind = ClientKind.DNS
    filter_names = ("name",)

    def find_all_google(self, client) -> list[dict]:
        return list(
            list_items(
                client.policies().list,
                items_key="policies",
                project=self.project_id,
            )
        )

    def find_google(self, client, filters: dict[str, str]) -> list[dict]:
        try:
            return [
                client.policies()
                .get(project=self.project_id, policy=filters["name"])
                .execute()
            ]
        except HttpError as e:
            if is_not_found(e):
                return []
            raise
