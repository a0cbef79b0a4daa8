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
This module provides the Cloud KMS crypto key version resource and finder.
Deleting a version schedules its destruction.
"""

from typing import Literal, Optional, Self

from google.api_core.exceptions import NotFound
from google.cloud import kms
from google.protobuf import field_mask_pb2

from common.api import ClientKind
from common.entities import (
    GoogleFinder,
    GoogleResource,
    output_field,
    updatable_field,
)
from common.exceptions import ProviderException
from common.utils.naming import get_kms_key_id_from_id
from resources.kms.crypto_key import CryptoKeyResource

State = kms.CryptoKeyVersion.CryptoKeyVersionState


class CryptoKeyVersionResource(GoogleResource):
    """
    A version of a Cloud KMS crypto key.
    """

    resource_type = "kms-crypto-key-version"
    id_field = "id"

    crypto_key: CryptoKeyResource
    state: Literal["ENABLED", "DISABLED"] = updatable_field(default="ENABLED")

    id: Optional[str] = output_field()

    def copy_from(self, model: kms.CryptoKeyVersion) -> None:
        self.id = model.name
        self.crypto_key = self.find_by_id(
            CryptoKeyResource, get_kms_key_id_from_id(model.name)
        )
        self.state = State(model.state).name

    def do_refresh(self) -> bool:
        if self.id is None:
            return False

        client = self.create_client(ClientKind.KMS)

        try:
            version = client.get_crypto_key_version(name=self.id)
        except NotFound:
            return False

        if version.state in (State.DESTROYED, State.DESTROY_SCHEDULED):
            return False

        self.copy_from(version)
        return True

    def do_create(self) -> None:
        client = self.create_client(ClientKind.KMS)
        version = client.create_crypto_key_version(
            request={
                "parent": self.crypto_key.reference_id(),
                "crypto_key_version": kms.CryptoKeyVersion(
                    state=State[self.state]
                ),
            }
        )
        self.id = version.name

    def do_update(self, current: Self, changed_fields: set[str]) -> None:
        client = self.create_client(ClientKind.KMS)
        client.update_crypto_key_version(
            request={
                "crypto_key_version": kms.CryptoKeyVersion(
                    name=self.id, state=State[self.state]
                ),
                "update_mask": field_mask_pb2.FieldMask(paths=["state"]),
            }
        )

    def do_delete(self) -> None:
        client = self.create_client(ClientKind.KMS)
        client.destroy_crypto_key_version(name=self.id)


class CryptoKeyVersionFinder(GoogleFinder):
    """
    Finds the versions of a crypto key given by `location`,
    `key_ring_name` and `key_name`.
    """

    resource_type = "kms-crypto-key-version"
    resource_class = CryptoKeyVersionResource
    client_kind = ClientKind.KMS
    filter_names = ("location", "key_ring_name", "key_name")

    def find_all_google(self, client) -> list[kms.CryptoKeyVersion]:
        raise ProviderException(
            "Finding all crypto key versions without 'location', "
            "'key_ring_name' and 'key_name' filters is not supported."
        )

    def find_google(
        self, client, filters: dict[str, str]
    ) -> list[kms.CryptoKeyVersion]:
        if not set(self.filter_names) <= set(filters):
            return self.find_all_google(client)

        return list(
            client.list_crypto_key_versions(
                parent=(
                    f"projects/{self.project_id}/locations/"
                    f"{filters['location']}/keyRings/"
                    f"{filters['key_ring_name']}/cryptoKeys/"
                    f"{filters['key_name']}"
                )
            )
        )
