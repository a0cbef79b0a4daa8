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
This module provides the Cloud Storage bucket resource and finder.

Classes:
- BucketResource: Creates, updates and deletes buckets.
- BucketFinder: Looks up buckets by name or lists every bucket in the
  project.
"""

import re
from typing import Self

from pydantic import field_validator
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
from common.exceptions import is_not_found
from common.utils import list_items
from common.utils.naming import to_camel_case
from resources.storage.models import (
    STORAGE_CLASSES,
    BucketAccessControl,
    BucketBilling,
    BucketCors,
    BucketEncryption,
    BucketIamConfiguration,
    BucketLifecycle,
    BucketLogging,
    BucketRetentionPolicy,
    BucketVersioning,
    BucketWebsite,
)

LABEL_PATTERN = re.compile(r"[^a-z0-9_-]")


class BucketResource(GoogleResource):
    """
    A Cloud Storage bucket.
    """

    resource_type = "bucket"

    name: str
    location: str | None = None
    storage_class: STORAGE_CLASSES | None = updatable_field(default=None)
    labels: dict[str, str] | None = updatable_field(default=None)
    default_event_based_hold: bool | None = updatable_field(default=None)
    acl: list[BucketAccessControl] | None = updatable_field(default=None)
    cors: list[BucketCors] | None = updatable_field(default=None)
    billing: BucketBilling | None = updatable_field(default=None)
    encryption: BucketEncryption | None = updatable_field(default=None)
    iam_configuration: BucketIamConfiguration | None = updatable_field(
        default=None
    )
    lifecycle: BucketLifecycle | None = updatable_field(default=None)
    logging: BucketLogging | None = updatable_field(default=None)
    retention_policy: BucketRetentionPolicy | None = updatable_field(
        default=None
    )
    versioning: BucketVersioning | None = updatable_field(default=None)
    website: BucketWebsite | None = updatable_field(default=None)

    id: str | None = output_field()
    self_link: str | None = output_field()
    time_created: str | None = output_field()

    @field_validator("location")
    @classmethod
    def upper_case_location(cls, value: str | None) -> str | None:
        return value.upper() if value else value

    @field_validator("labels")
    @classmethod
    def validate_labels(
        cls, value: dict[str, str] | None
    ) -> dict[str, str] | None:
        """
        Label keys and values must be at most 63 characters long and
        contain only lowercase letters, digits, underscores and dashes.
        """
        for key, label in (value or {}).items():
            if (
                len(key) > 63
                or len(label) > 63
                or LABEL_PATTERN.search(key)
                or LABEL_PATTERN.search(label)
            ):
                raise ValueError(
                    f"Invalid key/value => '{key}:{label}'. Keys and values "
                    "must be less than 64 characters and contain only "
                    "lowercase letters, numeric characters, underscores, "
                    "and dashes."
                )
        return value

    def do_refresh(self) -> bool:
        client = self.create_client(ClientKind.STORAGE)

        try:
            bucket = (
                client.buckets()
                .get(bucket=self.name, projection="full")
                .execute()
            )
        except HttpError as e:
            if is_not_found(e):
                return False
            raise

        self.copy_from(bucket)
        return True

    def do_create(self) -> None:
        client = self.create_client(ClientKind.STORAGE)
        client.buckets().insert(
            project=self.project_id, body=self.to_bucket()
        ).execute()
        self.refresh()

    def do_update(self, current: Self, changed_fields: set[str]) -> None:
        client = self.create_client(ClientKind.STORAGE)
        body = self.to_bucket(changed_fields)

        # cleared fields must be sent explicitly to be removed
        for name in changed_fields:
            body.setdefault(to_camel_case(name), None)

        client.buckets().patch(bucket=self.name, body=body).execute()
        self.refresh()

    def do_delete(self) -> None:
        client = self.create_client(ClientKind.STORAGE)
        client.buckets().delete(bucket=self.name).execute()

    def to_bucket(self, fields: set[str] | None = None) -> dict:
        return google_body(self, fields)

    def copy_from(self, model: dict) -> None:
        self.copy_values(google_values(type(self), model))


class BucketFinder(GoogleFinder):
    """
    Finds buckets by `name`, or every bucket of the project.
    """

    resource_type = "bucket"
    resource_class = BucketResource
    client_kind = ClientKind.STORAGE
    filter_names = ("name",)

    def find_all_google(self, client) -> list[dict]:
        return list(
            list_items(
                client.buckets().list,
                project=self.project_id,
                projection="full",
            )
        )

    def find_google(self, client, filters: dict[str, str]) -> list[dict]:
        try:
            return [
                client.buckets()
                .get(bucket=filters["name"], projection="full")
                .execute()
            ]
        except HttpError as e:
            if is_not_found(e):
                return []
            raise
