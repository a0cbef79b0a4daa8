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
Sub-configurations of a Cloud Storage bucket.
"""

from typing import Literal

from pydantic import Field

from common.entities import GoogleConfig, output_field

STORAGE_CLASSES = Literal[
    "STANDARD",
    "NEARLINE",
    "COLDLINE",
    "ARCHIVE",
    "MULTI_REGIONAL",
    "REGIONAL",
    "DURABLE_REDUCED_AVAILABILITY",
]


class BucketAccessControl(GoogleConfig):
    """
    An access control entry, e.g. entity 'user-someone@example.com'.
    """

    entity: str
    role: Literal["OWNER", "READER", "WRITER"]

    def primary_key(self) -> str:
        return self.entity


class BucketCors(GoogleConfig):
    origin: list[str] | None = None
    method: (
        list[
            Literal[
                "GET",
                "HEAD",
                "POST",
                "MATCH",
                "PUT",
                "DELETE",
                "CONNECT",
                "OPTIONS",
                "TRACE",
                "PATCH",
                "*",
            ]
        ]
        | None
    ) = None
    response_header: list[str] | None = None
    max_age_seconds: int | None = None


class BucketBilling(GoogleConfig):
    requester_pays: bool


class BucketEncryption(GoogleConfig):
    default_kms_key_name: str


class BucketUniformBucketLevelAccess(GoogleConfig):
    enabled: bool
    locked_time: str | None = output_field()


class BucketIamConfiguration(GoogleConfig):
    uniform_bucket_level_access: BucketUniformBucketLevelAccess | None = None
    public_access_prevention: Literal["inherited", "enforced"] | None = None


class BucketLifecycleRuleAction(GoogleConfig):
    type: Literal["Delete", "SetStorageClass"]
    storage_class: STORAGE_CLASSES | None = None


class BucketLifecycleRuleCondition(GoogleConfig):
    age: int | None = Field(default=None, ge=0)
    created_before: str | None = Field(
        default=None, pattern=r"^\d{4}-\d{2}-\d{2}$"
    )
    is_live: bool | None = None
    matches_storage_class: list[STORAGE_CLASSES] | None = None
    num_newer_versions: int | None = Field(default=None, ge=0)


class BucketLifecycleRule(GoogleConfig):
    action: BucketLifecycleRuleAction
    condition: BucketLifecycleRuleCondition


class BucketLifecycle(GoogleConfig):
    rule: list[BucketLifecycleRule] = Field(default_factory=list)


class BucketLogging(GoogleConfig):
    log_bucket: str
    log_object_prefix: str | None = None


class BucketRetentionPolicy(GoogleConfig):
    retention_period: int = Field(ge=1, le=3155759999)
    effective_time: str | None = output_field()
    is_locked: bool | None = output_field()


class BucketVersioning(GoogleConfig):
    enabled: bool


class BucketWebsite(GoogleConfig):
    main_page_suffix: str | None = None
    not_found_page: str | None = None
