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
Helpers for building and parsing Google Cloud resource names and URLs.
"""

import re

from common.exceptions import FormatException

COMPUTE_API_URL = "https://www.googleapis.com/compute/v1"


def extract_name(url: str | None) -> str:
    """
    Extracts the last path segment of a url. Non-url values are
    returned unchanged.
    """
    if url is None:
        return ""
    return url[url.rfind("/") + 1:]


def to_camel_case(value: str) -> str:
    """
    Converts 'snake_case' or 'kebab-case' names to 'camelCase'.
    """
    head, *tail = re.split(r"[-_]", value)
    return head + "".join(part[:1].upper() + part[1:] for part in tail)


def convert_to_filters(filters: dict[str, str] | None) -> str:
    """
    Converts a filter map into the filter string accepted by Google
    list APIs.

    {"name": "foo", "enable-schedule": "true"}
    -> '(name = "foo") (enableSchedule = "true")'
    """
    if not filters:
        return ""

    return " ".join(
        "({} = \"{}\")".format(
            ".".join(to_camel_case(part) for part in key.split(".")),
            value,
        )
        for key, value in filters.items()
    )


def get_segment(resource_id: str, collection: str) -> str:
    """
    Returns the path segment following `collection` in a resource id,
    e.g. the key ring name of 'projects/p/locations/l/keyRings/k'.
    """
    parts = resource_id.split("/") if resource_id else []

    try:
        return parts[parts.index(collection) + 1]
    except (ValueError, IndexError) as e:
        raise FormatException(
            f"'{collection}' not found in resource id: {resource_id}"
        ) from e


def get_prefix(resource_id: str, collection: str) -> str:
    """
    Returns the resource id truncated after the segment following
    `collection`, e.g. the key ring id of a crypto key id.
    """
    parts = resource_id.split("/") if resource_id else []

    try:
        end = parts.index(collection) + 2
        start = parts.index("projects")
    except ValueError as e:
        raise FormatException(
            f"'{collection}' not found in resource id: {resource_id}"
        ) from e

    if end > len(parts):
        raise FormatException(f"Incomplete resource id: {resource_id}")

    return "/".join(parts[start:end])


def get_location_from_id(resource_id: str) -> str:
    return get_segment(resource_id, "locations")


def get_kms_key_ring_name_from_id(resource_id: str) -> str:
    return get_segment(resource_id, "keyRings")


def get_kms_key_name_from_id(resource_id: str) -> str:
    return get_segment(resource_id, "cryptoKeys")


def get_kms_key_ring_id_from_id(resource_id: str) -> str:
    return get_prefix(resource_id, "keyRings")


def get_kms_key_id_from_id(resource_id: str) -> str:
    return get_prefix(resource_id, "cryptoKeys")


def get_kms_primary_key_version_from_id(resource_id: str) -> str:
    return get_segment(resource_id, "cryptoKeyVersions")


def get_topic_name_from_id(resource_id: str) -> str:
    return get_segment(resource_id, "topics")


def get_subscription_name_from_id(resource_id: str) -> str:
    return get_segment(resource_id, "subscriptions")


def get_snapshot_name_from_id(resource_id: str) -> str:
    return get_segment(resource_id, "snapshots")


def get_repository_name_from_id(resource_id: str) -> str:
    return get_segment(resource_id, "repositories")


def get_service_account_id_from_name(name: str, project_id: str) -> str:
    return (
        f"projects/{project_id}/serviceAccounts/"
        f"{name}@{project_id}.iam.gserviceaccount.com"
    )


def get_service_account_email_from_id(resource_id: str) -> str:
    return get_segment(resource_id, "serviceAccounts")


def get_service_account_name_from_id(resource_id: str) -> str:
    return get_service_account_email_from_id(resource_id).split("@")[0]


def is_custom_role(role_id: str) -> bool:
    """
    Custom roles are qualified by a project or an organization:
    'projects/p/roles/r' as opposed to 'roles/r'.
    """
    return len(role_id.split("/")) > 2


def global_network_url(project_id: str, network: str) -> str:
    return f"{COMPUTE_API_URL}/projects/{project_id}/global/networks/{network}"
