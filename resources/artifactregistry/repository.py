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
This module provides the Artifact Registry repository resource and finder.
"""

from typing import Literal, Optional, Self

from google.api_core.exceptions import (
    GoogleAPICallError,
    InvalidArgument,
    NotFound,
)
from google.cloud import artifactregistry_v1
from google.protobuf import field_mask_pb2

from common.api import ClientKind
from common.entities import (
    GoogleFinder,
    GoogleResource,
    output_field,
    updatable_field,
)
from common.exceptions import ProviderException
from common.utils.naming import (
    get_location_from_id,
    get_repository_name_from_id,
)
from resources.kms.crypto_key import CryptoKeyResource

OPERATION_TIMEOUT = 300
LOCATION_MISMATCH = "does not match the service location"

Repository = artifactregistry_v1.Repository


class RepositoryResource(GoogleResource):
    """
    An Artifact Registry repository. Only labels can be updated.
    """

    resource_type = "artifact-repository"
    id_field = "id"

    name: str
    location: str
    description: Optional[str] = None
    format: Literal["DOCKER"] = "DOCKER"
    kms_key: Optional[CryptoKeyResource] = None
    labels: dict[str, str] = updatable_field(default_factory=dict)

    id: Optional[str] = output_field()

    @classmethod
    def from_id(cls, resource_id: str) -> Self:
        return cls.model_construct(
            id=resource_id,
            name=get_repository_name_from_id(resource_id),
            location=get_location_from_id(resource_id),
        )

    def parent(self) -> str:
        return f"projects/{self.project_id}/locations/{self.location}"

    def repository_path(self) -> str:
        return self.id or f"{self.parent()}/repositories/{self.name}"

    def copy_from(self, model: Repository) -> None:
        self.id = model.name
        self.name = get_repository_name_from_id(model.name)
        self.location = get_location_from_id(model.name)
        self.description = model.description or None
        self.format = Repository.Format(model.format_).name
        self.kms_key = self.find_by_id(CryptoKeyResource, model.kms_key_name)
        self.labels = dict(model.labels)

    def to_repository(self) -> Repository:
        repository = Repository(
            format_=Repository.Format[self.format], labels=self.labels
        )

        if self.description:
            repository.description = self.description
        if self.kms_key is not None:
            repository.kms_key_name = self.kms_key.reference_id()

        return repository

    def do_refresh(self) -> bool:
        client = self.create_client(ClientKind.ARTIFACT_REGISTRY)

        try:
            repository = client.get_repository(name=self.repository_path())
        except (NotFound, InvalidArgument):
            return False

        self.copy_from(repository)
        return True

    def do_create(self) -> None:
        client = self.create_client(ClientKind.ARTIFACT_REGISTRY)

        try:
            operation = client.create_repository(
                request={
                    "parent": self.parent(),
                    "repository_id": self.name,
                    "repository": self.to_repository(),
                }
            )
            self.id = operation.result(timeout=OPERATION_TIMEOUT).name
        except GoogleAPICallError as e:
            if LOCATION_MISMATCH not in str(e):
                raise

            # the repository is created even though the operation fails
            self._logger.warning(
                "Looking up %s after a location mismatch: %s", self, e
            )
            repository = self._find_in_location(client)
            if repository is None:
                raise
            self.id = repository.name

        self.refresh()

    def do_update(self, current: Self, changed_fields: set[str]) -> None:
        client = self.create_client(ClientKind.ARTIFACT_REGISTRY)
        repository = client.get_repository(name=self.repository_path())
        repository.labels.clear()
        repository.labels.update(self.labels)
        client.update_repository(
            request={
                "repository": repository,
                "update_mask": field_mask_pb2.FieldMask(paths=["labels"]),
            }
        )

    def do_delete(self) -> None:
        client = self.create_client(ClientKind.ARTIFACT_REGISTRY)
        operation = client.delete_repository(name=self.repository_path())
        operation.result(timeout=OPERATION_TIMEOUT)

    def _find_in_location(self, client) -> Repository | None:
        return next(
            (
                repository
                for repository in client.list_repositories(
                    parent=self.parent()
                )
                if get_repository_name_from_id(repository.name) == self.name
            ),
            None,
        )


class RepositoryFinder(GoogleFinder):
    """
    Finds the repositories of a `location`, optionally narrowed by
    `name`.
    """

    resource_type = "artifact-repository"
    resource_class = RepositoryResource
    client_kind = ClientKind.ARTIFACT_REGISTRY
    filter_names = ("location", "name")

    def find_all_google(self, client) -> list[Repository]:
        raise ProviderException(
            "Finding repositories without a 'location' filter is not "
            "supported."
        )

    def find_google(
        self, client, filters: dict[str, str]
    ) -> list[Repository]:
        if "location" not in filters:
            return self.find_all_google(client)

        repositories = client.list_repositories(
            parent=(
                f"projects/{self.project_id}/locations/{filters['location']}"
            )
        )

        return [
            repository
            for repository in repositories
            if "name" not in filters
            or get_repository_name_from_id(repository.name) == filters["name"]
        ]
