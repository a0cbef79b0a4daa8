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
This module provides the Cloud KMS crypto key resource and finder.

Rotation periods are configured in days. Crypto keys cannot be deleted,
so deleting the resource only forgets it.
"""

from datetime import datetime, timedelta, timezone
from typing import Literal, Optional, Self

from google.api_core.exceptions import NotFound
from google.cloud import kms
from google.protobuf import field_mask_pb2
from pydantic import Field, field_validator, model_validator

from common.api import ClientKind
from common.entities import (
    Diffable,
    GoogleFinder,
    GoogleResource,
    output_field,
    updatable_field,
)
from common.exceptions import ProviderException
from common.utils.naming import (
    get_kms_key_name_from_id,
    get_kms_key_ring_id_from_id,
    get_kms_primary_key_version_from_id,
)
from resources.kms.key_ring import KeyRingResource

SECONDS_PER_DAY = 86400
ROTATION_DATE_FORMAT = "%m/%d/%Y"

Algorithm = kms.CryptoKeyVersion.CryptoKeyVersionAlgorithm
Purpose = kms.CryptoKey.CryptoKeyPurpose


class CryptoKeyVersionTemplate(Diffable):
    """
    Settings of the versions created for a crypto key. Only the algorithm
    can be updated.
    """

    algorithm: str = updatable_field()
    protection_level: Literal["SOFTWARE", "HSM", "EXTERNAL", "EXTERNAL_VPC"]

    @field_validator("algorithm")
    @classmethod
    def validate_algorithm(cls, value: str) -> str:
        if value not in Algorithm.__members__:
            raise ValueError(f"Unknown crypto key version algorithm: {value}")
        return value

    @classmethod
    def copy_from(cls, model: kms.CryptoKeyVersionTemplate) -> Self:
        return cls.model_construct(
            algorithm=Algorithm(model.algorithm).name,
            protection_level=kms.ProtectionLevel(model.protection_level).name,
        )

    def to_crypto_key_version_template(self) -> kms.CryptoKeyVersionTemplate:
        return kms.CryptoKeyVersionTemplate(
            algorithm=Algorithm[self.algorithm],
            protection_level=kms.ProtectionLevel[self.protection_level],
        )


class CryptoKeyResource(GoogleResource):
    """
    A Cloud KMS crypto key.
    """

    resource_type = "kms-crypto-key"
    id_field = "id"

    key_ring: KeyRingResource
    name: str = Field(pattern=r"^[\w-]+$")
    purpose: Literal["ENCRYPT_DECRYPT", "ASYMMETRIC_SIGN", "ASYMMETRIC_DECRYPT"]
    rotation_period: Optional[int] = updatable_field(default=None, ge=1)
    next_rotation_date: Optional[str] = updatable_field(
        default=None,
        pattern=r"^(1[0-2]|0[1-9])/(3[01]|[012][0-9])/[0-9]{4}$",
    )
    crypto_key_version_template: CryptoKeyVersionTemplate = updatable_field()
    labels: dict[str, str] = updatable_field(default_factory=dict)
    primary_key_version_id: Optional[str] = updatable_field(default=None)

    id: Optional[str] = output_field()
    versions: list[str] = output_field(default_factory=list)

    @model_validator(mode="after")
    def validate_rotation(self) -> Self:
        """
        Symmetric keys rotate, asymmetric keys have no rotation schedule
        and no primary version.
        """
        if self.is_stub():
            return self

        if self.purpose == "ENCRYPT_DECRYPT":
            if self.next_rotation_date is None or self.rotation_period is None:
                raise ValueError(
                    "Both 'next_rotation_date' and 'rotation_period' are "
                    "required if 'purpose' is set to 'ENCRYPT_DECRYPT'"
                )
        elif (
            self.next_rotation_date is not None
            or self.rotation_period is not None
            or self.primary_key_version_id is not None
        ):
            raise ValueError(
                "The 'next_rotation_date', 'rotation_period' and "
                "'primary_key_version_id' cannot be set if the 'purpose' "
                "is 'ASYMMETRIC_SIGN' or 'ASYMMETRIC_DECRYPT'"
            )

        return self

    @classmethod
    def from_id(cls, resource_id: str) -> Self:
        return cls.model_construct(
            id=resource_id, name=get_kms_key_name_from_id(resource_id)
        )

    def crypto_key_path(self) -> str:
        return self.id or (
            f"{self.key_ring.reference_id()}/cryptoKeys/{self.name}"
        )

    def copy_from(self, model: kms.CryptoKey) -> None:
        self.id = model.name
        self.name = get_kms_key_name_from_id(model.name)
        self.purpose = Purpose(model.purpose).name
        self.key_ring = self.find_by_id(
            KeyRingResource, get_kms_key_ring_id_from_id(model.name)
        )
        self.labels = dict(model.labels)
        self.next_rotation_date = (
            model.next_rotation_time.strftime(ROTATION_DATE_FORMAT)
            if "next_rotation_time" in model
            else None
        )
        self.rotation_period = (
            int(model.rotation_period.total_seconds()) // SECONDS_PER_DAY
            if "rotation_period" in model
            else None
        )
        self.crypto_key_version_template = CryptoKeyVersionTemplate.copy_from(
            model.version_template
        )
        self.primary_key_version_id = (
            get_kms_primary_key_version_from_id(model.primary.name)
            if "primary" in model
            else None
        )
        self.refresh_versions()

    def refresh_versions(self) -> None:
        client = self.create_client(ClientKind.KMS)
        self.versions = [
            version.name
            for version in client.list_crypto_key_versions(parent=self.id)
        ]

    def to_crypto_key(self) -> kms.CryptoKey:
        template = self.crypto_key_version_template
        crypto_key = kms.CryptoKey(
            purpose=Purpose[self.purpose],
            labels=self.labels,
            version_template=template.to_crypto_key_version_template(),
        )

        if self.rotation_period is not None:
            crypto_key.rotation_period = timedelta(
                seconds=self.rotation_period * SECONDS_PER_DAY
            )
        if self.next_rotation_date is not None:
            crypto_key.next_rotation_time = self._next_rotation_time()

        return crypto_key

    def _next_rotation_time(self) -> datetime:
        return datetime.strptime(
            self.next_rotation_date, ROTATION_DATE_FORMAT
        ).replace(tzinfo=timezone.utc)

    def do_refresh(self) -> bool:
        client = self.create_client(ClientKind.KMS)

        try:
            crypto_key = client.get_crypto_key(name=self.crypto_key_path())
        except NotFound:
            return False

        self.copy_from(crypto_key)
        return True

    def do_create(self) -> None:
        client = self.create_client(ClientKind.KMS)
        crypto_key = client.create_crypto_key(
            request={
                "parent": self.key_ring.reference_id(),
                "crypto_key_id": self.name,
                "crypto_key": self.to_crypto_key(),
            }
        )

        if self.primary_key_version_id is not None:
            crypto_key = client.update_crypto_key_primary_version(
                request={
                    "name": crypto_key.name,
                    "crypto_key_version_id": self.primary_key_version_id,
                }
            )

        self.copy_from(crypto_key)

    def do_update(self, current: Self, changed_fields: set[str]) -> None:
        client = self.create_client(ClientKind.KMS)
        crypto_key = kms.CryptoKey(name=self.crypto_key_path())
        paths = []

        if "rotation_period" in changed_fields:
            crypto_key.rotation_period = timedelta(
                seconds=self.rotation_period * SECONDS_PER_DAY
            )
            paths.append("rotation_period")
        if "next_rotation_date" in changed_fields:
            crypto_key.next_rotation_time = self._next_rotation_time()
            paths.append("next_rotation_time")
        if "crypto_key_version_template" in changed_fields:
            crypto_key.version_template = kms.CryptoKeyVersionTemplate(
                algorithm=Algorithm[self.crypto_key_version_template.algorithm]
            )
            paths.append("version_template.algorithm")
        if "labels" in changed_fields:
            crypto_key.labels = self.labels
            paths.append("labels")

        if paths:
            client.update_crypto_key(
                request={
                    "crypto_key": crypto_key,
                    "update_mask": field_mask_pb2.FieldMask(paths=paths),
                }
            )

        if "primary_key_version_id" in changed_fields:
            client.update_crypto_key_primary_version(
                request={
                    "name": self.crypto_key_path(),
                    "crypto_key_version_id": self.primary_key_version_id,
                }
            )

    def do_delete(self) -> None:
        self._logger.warning(
            "Crypto keys cannot be deleted, %s is only removed from state",
            self,
        )


class CryptoKeyFinder(GoogleFinder):
    """
    Finds the crypto keys of a key ring given by `location` and
    `key_ring_name`.
    """

    resource_type = "kms-crypto-key"
    resource_class = CryptoKeyResource
    client_kind = ClientKind.KMS
    filter_names = ("location", "key_ring_name")

    def find_all_google(self, client) -> list[kms.CryptoKey]:
        raise ProviderException(
            "Finding all crypto keys without 'location' and 'key_ring_name' "
            "filters is not supported."
        )

    def find_google(
        self, client, filters: dict[str, str]
    ) -> list[kms.CryptoKey]:
        if not {"location", "key_ring_name"} <= set(filters):
            return self.find_all_google(client)

        return list(
            client.list_crypto_keys(
                parent=(
                    f"projects/{self.project_id}/locations/"
                    f"{filters['location']}/keyRings/"
                    f"{filters['key_ring_name']}"
                )
            )
        )
