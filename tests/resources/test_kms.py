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
Cloud KMS key ring, crypto key and crypto key version tests
"""

import pytest
from google.cloud import kms
from pydantic import ValidationError

from common.api import ClientKind
from common.exceptions import ProviderException
from resources.kms import (
    CryptoKeyFinder,
    CryptoKeyResource,
    CryptoKeyVersionFinder,
    CryptoKeyVersionResource,
    KeyRingFinder,
    KeyRingResource,
)
from tests.mocks.api.kms_api_mock import KmsApiMock

RING_ID = "projects/test-project/locations/us-east1/keyRings/ring"
KEY_ID = f"{RING_ID}/cryptoKeys/key"
SYMMETRIC = {
    "algorithm": "GOOGLE_SYMMETRIC_ENCRYPTION",
    "protection_level": "SOFTWARE",
}
SIGNING = {"algorithm": "EC_SIGN_P256_SHA256", "protection_level": "HSM"}


class TestKms:
    """
    Cloud KMS resource tests
    """

    @pytest.fixture
    def kms_api(self) -> KmsApiMock:
        return KmsApiMock()

    @pytest.fixture
    def context(self, make_context, kms_api):
        return make_context({ClientKind.KMS: kms_api})

    @pytest.fixture
    def key_ring(self, context) -> KeyRingResource:
        key_ring = KeyRingResource(location="us-east1", name="ring").bind(
            context, "ring"
        )
        key_ring.create()
        return key_ring

    def symmetric_key(self, key_ring, **values) -> CryptoKeyResource:
        return CryptoKeyResource(
            key_ring=key_ring,
            name="key",
            purpose="ENCRYPT_DECRYPT",
            rotation_period=30,
            next_rotation_date="01/15/2030",
            crypto_key_version_template=SYMMETRIC,
            **values,
        ).bind(key_ring.context, "key")

    def test_create_key_ring(self, key_ring, kms_api):
        assert key_ring.id == RING_ID
        assert RING_ID in kms_api.key_rings
        assert KeyRingResource.from_id(RING_ID).bind(
            key_ring.context
        ).refresh()

    def test_create_key_ring_in_unknown_location(self, context):
        key_ring = KeyRingResource(location="mars", name="ring").bind(context)

        with pytest.raises(ProviderException, match="mars"):
            key_ring.create()

    def test_invalid_key_ring_name(self):
        with pytest.raises(ValidationError):
            KeyRingResource(location="global", name="my ring")

    def test_create_symmetric_key(self, key_ring, kms_api):
        crypto_key = self.symmetric_key(key_ring, labels={"team": "data"})

        crypto_key.create()

        assert crypto_key.id == KEY_ID
        assert crypto_key.primary_key_version_id == "1"
        assert crypto_key.versions == [f"{KEY_ID}/cryptoKeyVersions/1"]
        stored = kms_api.crypto_keys[KEY_ID]
        assert stored.rotation_period.days == 30
        assert stored.next_rotation_time.year == 2030

        current = CryptoKeyResource.from_id(KEY_ID).bind(key_ring.context)
        assert current.refresh()
        assert current.next_rotation_date == "01/15/2030"
        assert current.rotation_period == 30
        assert current.key_ring.reference_id() == RING_ID
        fresh = self.symmetric_key(key_ring, labels={"team": "data"})
        assert fresh.changed_fields(current) == set()

    def test_update_symmetric_key(self, key_ring, kms_api):
        self.symmetric_key(key_ring).create()
        current = CryptoKeyResource.from_id(KEY_ID).bind(key_ring.context)
        current.refresh()
        desired = self.symmetric_key(key_ring, labels={"env": "prod"})
        desired.rotation_period = 90
        desired.copy_outputs_from(current)

        changed_fields = desired.changed_fields(current)
        desired.update(current, changed_fields)

        assert changed_fields == {"rotation_period", "labels"}
        assert kms_api.updates == [["rotation_period", "labels"]]
        stored = kms_api.crypto_keys[KEY_ID]
        assert stored.rotation_period.days == 90
        assert dict(stored.labels) == {"env": "prod"}

    def test_update_primary_version(self, key_ring, kms_api):
        self.symmetric_key(key_ring).create()
        version = CryptoKeyVersionResource(
            crypto_key=CryptoKeyResource.from_id(KEY_ID)
        ).bind(key_ring.context, "v2")
        version.create()
        current = CryptoKeyResource.from_id(KEY_ID).bind(key_ring.context)
        current.refresh()
        desired = self.symmetric_key(key_ring, primary_key_version_id="2")

        desired.update(current, desired.changed_fields(current))

        assert kms_api.crypto_keys[KEY_ID].primary.name == version.id
        assert not kms_api.updates

    def test_update_algorithm(self, key_ring, kms_api):
        CryptoKeyResource(
            key_ring=key_ring,
            name="key",
            purpose="ASYMMETRIC_SIGN",
            crypto_key_version_template=SIGNING,
        ).bind(key_ring.context).create()
        current = CryptoKeyResource.from_id(KEY_ID).bind(key_ring.context)
        current.refresh()
        desired = CryptoKeyResource(
            key_ring=key_ring,
            name="key",
            purpose="ASYMMETRIC_SIGN",
            crypto_key_version_template={
                **SIGNING,
                "algorithm": "EC_SIGN_P384_SHA384",
            },
        ).bind(key_ring.context)

        changed_fields = desired.changed_fields(current)
        desired.update(current, changed_fields)

        assert changed_fields == {"crypto_key_version_template"}
        assert kms_api.updates == [["version_template.algorithm"]]
        template = kms_api.crypto_keys[KEY_ID].version_template
        assert template.algorithm == (
            kms.CryptoKeyVersion.CryptoKeyVersionAlgorithm.EC_SIGN_P384_SHA384
        )
        assert template.protection_level == kms.ProtectionLevel.HSM

    def test_changing_purpose_replaces_key(self, key_ring):
        self.symmetric_key(key_ring).create()
        current = CryptoKeyResource.from_id(KEY_ID).bind(key_ring.context)
        current.refresh()
        desired = CryptoKeyResource(
            key_ring=key_ring,
            name="key",
            purpose="ASYMMETRIC_SIGN",
            crypto_key_version_template=SIGNING,
        )

        changed_fields = desired.changed_fields(current)

        assert "purpose" in changed_fields
        assert not changed_fields <= CryptoKeyResource.updatable_fields()

    def test_delete_only_forgets_key(self, key_ring, kms_api):
        crypto_key = self.symmetric_key(key_ring)
        crypto_key.create()

        crypto_key.delete()
        key_ring.delete()

        assert KEY_ID in kms_api.crypto_keys
        assert RING_ID in kms_api.key_rings

    @pytest.mark.parametrize(
        "values",
        [
            {
                "purpose": "ENCRYPT_DECRYPT",
                "crypto_key_version_template": SYMMETRIC,
            },
            {
                "purpose": "ASYMMETRIC_SIGN",
                "rotation_period": 30,
                "crypto_key_version_template": SIGNING,
            },
            {
                "purpose": "ASYMMETRIC_SIGN",
                "crypto_key_version_template": {
                    **SIGNING,
                    "algorithm": "EC_SIGN_P999",
                },
            },
            {
                "purpose": "ENCRYPT_DECRYPT",
                "rotation_period": 30,
                "next_rotation_date": "2030-01-15",
                "crypto_key_version_template": SYMMETRIC,
            },
        ],
    )
    def test_invalid_crypto_key(self, key_ring, values):
        with pytest.raises(ValidationError):
            CryptoKeyResource(key_ring=key_ring, name="key", **values)

    def test_stub_key_skips_rotation_checks(self, key_ring):
        stub = CryptoKeyResource.from_id(KEY_ID)

        assert stub.is_stub()
        assert not self.symmetric_key(key_ring).is_stub()
        assert CryptoKeyResource.model_validate(stub) is stub
        version = CryptoKeyVersionResource(crypto_key=stub)
        assert version.crypto_key.reference_id() == KEY_ID

    def test_crypto_key_version_lifecycle(self, key_ring, kms_api):
        self.symmetric_key(key_ring).create()
        version = CryptoKeyVersionResource(
            crypto_key=CryptoKeyResource.from_id(KEY_ID), state="DISABLED"
        ).bind(key_ring.context, "v2")

        version.create()

        assert version.id == f"{KEY_ID}/cryptoKeyVersions/2"
        assert version.refresh()
        assert version.state == "DISABLED"

        desired = CryptoKeyVersionResource(
            crypto_key=CryptoKeyResource.from_id(KEY_ID), state="ENABLED"
        ).bind(key_ring.context, "v2")
        desired.copy_outputs_from(version)
        desired.update(version, desired.changed_fields(version))

        assert kms_api.updates == [["state"]]
        assert desired.refresh()
        assert desired.state == "ENABLED"

        desired.delete()

        assert not desired.refresh()


class TestKmsFinders:
    """
    Cloud KMS finder tests
    """

    @pytest.fixture
    def context(self, make_context):
        kms_api = KmsApiMock()
        kms_api.create_key_ring(
            {
                "parent": "projects/test-project/locations/us-east1",
                "key_ring_id": "ring",
            }
        )
        kms_api.create_crypto_key(
            {
                "parent": RING_ID,
                "crypto_key_id": "key",
                "crypto_key": kms.CryptoKey(
                    purpose=kms.CryptoKey.CryptoKeyPurpose.ENCRYPT_DECRYPT
                ),
            }
        )
        return make_context({ClientKind.KMS: kms_api})

    def test_find_key_rings(self, context):
        key_rings = KeyRingFinder(context).find({"location": "us-east1"})

        assert [k.reference_id() for k in key_rings] == [RING_ID]
        assert key_rings[0].location == "us-east1"

    def test_find_crypto_keys(self, context):
        crypto_keys = CryptoKeyFinder(context).find(
            {"location": "us-east1", "key_ring_name": "ring"}
        )

        assert [k.reference_id() for k in crypto_keys] == [KEY_ID]
        assert crypto_keys[0].purpose == "ENCRYPT_DECRYPT"
        assert crypto_keys[0].primary_key_version_id == "1"

    def test_find_crypto_key_versions(self, context):
        versions = CryptoKeyVersionFinder(context).find(
            {"location": "us-east1", "key_ring_name": "ring", "key_name": "key"}
        )

        assert [v.reference_id() for v in versions] == [
            f"{KEY_ID}/cryptoKeyVersions/1"
        ]
        assert versions[0].crypto_key.reference_id() == KEY_ID

    @pytest.mark.parametrize(
        "finder, filters",
        [
            (KeyRingFinder, {}),
            (CryptoKeyFinder, {"location": "us-east1"}),
            (CryptoKeyVersionFinder, {"key_name": "key"}),
        ],
    )
    def test_missing_filters(self, context, finder, filters):
        with pytest.raises(ProviderException, match="not supported"):
            finder(context).find(filters)
