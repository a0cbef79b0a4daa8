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
This module provides the Cloud KMS key ring resource and finder.
Key rings cannot be deleted, so deleting the resource only forgets it.
"""

from typing import Optional, Self

from google.api_core.exceptions import NotFound
from google.cloud import kms
from pydantic import Field

from common.api import ClientKind
from common.entities import GoogleFinder, GoogleResource, output_field
from common.exceptions import ProviderException
from common.utils.naming import (
    get_kms_key_ring_name_from_id,
    get_location_from_id,
)


class KeyRingResource(GoogleResource):
    """
    A Cloud KMS key ring.
    """

    resource_type = "kms-key-ring"
    id_field = "id"

    location: str
    name: str = Field(pattern=r"^[\w-]+$")

    id: Optional[str] = output_field()

    @classmethod
    def from_id(cls, resource_id: str) -> Self:
        return cls.model_construct(
            id=resource_id,
            name=get_kms_key_ring_name_from_id(resource_id),
            location=get_location_from_id(resource_id),
        )

    def key_ring_path(self) -> str:
        return self.id or (
            f"projects/{self.project_id}/locations/{self.location}/"
            f"keyRings/{self.name}"
        )

    def copy_from(self, model: kms.KeyRing) -> None:
        self.id = model.name
        self.name = get_kms_key_ring_name_from_id(model.name)
        self.location = get_location_from_id(model.name)

    def do_refresh(self) -> bool:
        client = self.create_client(ClientKind.KMS)

        try:
            key_ring = client.get_key_ring(name=self.key_ring_path())
        except NotFound:
            return False

        self.copy_from(key_ring)
        return True

    def do_create(self) -> None:
        client = self.create_client(ClientKind.KMS)
        parent = f"projects/{self.project_id}/locations/{self.location}"

        try:
            client.list_key_rings(request={"parent": parent, "page_size": 1})
        except NotFound as e:
            raise ProviderException(
                f"Invalid value: {self.location}, for 'location'"
            ) from e

        key_ring = client.create_key_ring(
            request={
                "parent": parent,
                "key_ring_id": self.name,
                "key_ring": kms.KeyRing(),
            }
        )
        self.copy_from(key_ring)

    def do_update(self, current: Self, changed_fields: set[str]) -> None:
        pass

    def do_delete(self) -> None:
        self._logger.warning(
            "Key rings cannot be deleted, %s is only removed from state", self
        )


class KeyRingFinder(GoogleFinder):
    """
    Finds the key rings of a `location`.
    """

    resource_type = "kms-key-ring"
    resource_class = KeyRingResource
    client_kind = ClientKind.KMS
    filter_names = ("location",)

    def find_all_google(self, client) -> list[kms.KeyRing]:
        raise ProviderException(
            "Finding all key rings without a 'location' filter is not "
            "supported."
        )

    def find_google(self, client, filters: dict[str, str]) -> list[kms.KeyRing]:
        if "location" not in filters:
            return self.find_all_google(client)

        return list(
            client.list_key_rings(
                request={
                    "parent": (
                        f"projects/{self.project_id}/locations/"
                        f"{filters['location']}"
                    )
                }
            )
        )
