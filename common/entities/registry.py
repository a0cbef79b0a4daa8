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
Registry of resource and finder types, keyed by their type name.
"""

import importlib

from common.exceptions import IncorrectTypeException

RESOURCE_PACKAGES = (
    "resources.storage",
    "resources.pubsub",
    "resources.kms",
    "resources.dns",
    "resources.cloudsql",
    "resources.artifactregistry",
    "resources.compute",
    "resources.iam",
)

_resource_types = {}
_finder_types = {}


def register_resource(resource_class) -> None:
    _resource_types[resource_class.resource_type] = resource_class


def register_finder(finder_class) -> None:
    _finder_types[finder_class.resource_type] = finder_class


def load_resources() -> None:
    """
    Imports every resource package so that its types get registered.
    """
    for package in RESOURCE_PACKAGES:
        importlib.import_module(package)


def resource_types() -> dict:
    load_resources()
    return dict(_resource_types)


def finder_types() -> dict:
    load_resources()
    return dict(_finder_types)


def get_resource_type(type_name: str):
    types = resource_types()

    if type_name not in types:
        raise IncorrectTypeException(f"Unknown resource type: {type_name}")

    return types[type_name]


def get_finder_type(type_name: str):
    types = finder_types()

    if type_name not in types:
        raise IncorrectTypeException(
            f"No finder for resource type: {type_name}"
        )

    return types[type_name]
