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
Mock for cloud kms api
"""
from google.api_core.exceptions import NotFound
from google.cloud import kms

State = kms.CryptoKeyVersion.CryptoKeyVersionState


class KmsApiMock:
    """
    Mock for key management service client
    """

    def __init__(self, locations: tuple[str, ...] = ("global", "us-east1")):
        self.locations = locations
        self.key_rings = {}
        self.crypto_keys = {}
        self.versions = {}
        self.updates = []

    def _location(self, parent: str) -> None:
        if parent.split("/")[-1] not in self.locations:
            raise NotFound(f"Location {parent} not found")

    def get_key_ring(self, name):
        if name not in self.key_rings:
            raise NotFound(f"KeyRing {name} not found")
        return self.key_rings[name]

    def list_key_rings(self, request):
        self._location(request["parent"])
        return [
            key_ring
            for name, key_ring in self.key_rings.items()
            if name.startswith(request["parent"] + "/")
        ]

    def create_key_ring(self, request):
        name = f"{request['parent']}/keyRings/{request['key_ring_id']}"
        self.key_rings[name] = kms.KeyRing(name=name)
        return self.key_rings[name]

    def get_crypto_key(self, name):
        if name not in self.crypto_keys:
            raise NotFound(f"CryptoKey {name} not found")
        return kms.CryptoKey(self.crypto_keys[name])

    def list_crypto_keys(self, parent):
        return [
            kms.CryptoKey(crypto_key)
            for name, crypto_key in self.crypto_keys.items()
            if name.startswith(parent + "/")
        ]

    def create_crypto_key(self, request):
        name = f"{request['parent']}/cryptoKeys/{request['crypto_key_id']}"
        crypto_key = kms.CryptoKey(request["crypto_key"])
        crypto_key.name = name
        self.crypto_keys[name] = crypto_key
        self._add_version(name)

        if crypto_key.purpose == kms.CryptoKey.CryptoKeyPurpose.ENCRYPT_DECRYPT:
            crypto_key.primary = self.versions[f"{name}/cryptoKeyVersions/1"]

        return kms.CryptoKey(crypto_key)

    def update_crypto_key(self, request):
        self.updates.append(list(request["update_mask"].paths))
        crypto_key = self.crypto_keys[request["crypto_key"].name]

        for path in request["update_mask"].paths:
            if path == "version_template.algorithm":
                template = kms.CryptoKeyVersionTemplate(
                    crypto_key.version_template
                )
                template.algorithm = request[
                    "crypto_key"
                ].version_template.algorithm
                crypto_key.version_template = template
            elif path == "labels":
                crypto_key.labels = dict(request["crypto_key"].labels)
            else:
                setattr(
                    crypto_key, path, getattr(request["crypto_key"], path)
                )

        return kms.CryptoKey(crypto_key)

    def update_crypto_key_primary_version(self, request):
        crypto_key = self.crypto_keys[request["name"]]
        version = (
            f"{request['name']}/cryptoKeyVersions/"
            f"{request['crypto_key_version_id']}"
        )
        crypto_key.primary = self.versions[version]
        return kms.CryptoKey(crypto_key)

    def _add_version(self, key_name: str, state=State.ENABLED):
        number = 1 + sum(
            1 for name in self.versions if name.startswith(key_name + "/")
        )
        name = f"{key_name}/cryptoKeyVersions/{number}"
        self.versions[name] = kms.CryptoKeyVersion(name=name, state=state)
        return self.versions[name]

    def list_crypto_key_versions(self, parent):
        return [
            kms.CryptoKeyVersion(version)
            for name, version in self.versions.items()
            if name.startswith(parent + "/")
        ]

    def get_crypto_key_version(self, name):
        if name not in self.versions:
            raise NotFound(f"CryptoKeyVersion {name} not found")
        return kms.CryptoKeyVersion(self.versions[name])

    def create_crypto_key_version(self, request):
        return kms.CryptoKeyVersion(
            self._add_version(
                request["parent"], request["crypto_key_version"].state
            )
        )

    def update_crypto_key_version(self, request):
        version = request["crypto_key_version"]
        self.updates.append(list(request["update_mask"].paths))
        self.versions[version.name].state = version.state
        return kms.CryptoKeyVersion(self.versions[version.name])

    def destroy_crypto_key_version(self, name):
        self.versions[name].state = State.DESTROY_SCHEDULED
        return kms.CryptoKeyVersion(self.versions[name])
