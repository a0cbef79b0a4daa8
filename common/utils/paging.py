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
Pagination over discovery API list methods.
"""

from typing import Any, Callable, Iterator


def list_pages(list_method: Callable, **kwargs) -> Iterator[dict[str, Any]]:
    """
    Calls a discovery API list method page by page and yields every
    response.
    """
    page_token = None

    while True:
        if page_token:
            kwargs["pageToken"] = page_token

        response = list_method(**kwargs).execute()
        yield response

        page_token = response.get("nextPageToken")
        if not page_token:
            return


def list_items(
    list_method: Callable, items_key: str = "items", **kwargs
) -> Iterator[dict[str, Any]]:
    """
    Yields the items of every page of a discovery API list method.
    """
    for response in list_pages(list_method, **kwargs):
        yield from response.get(items_key, [])


def list_aggregated_items(
    list_method: Callable, items_key: str, **kwargs
) -> Iterator[dict[str, Any]]:
    """
    Yields the items of every scope and page of a Compute Engine
    aggregatedList method, whose pages map scopes such as
    'regions/us-central1' to their items.
    """
    for response in list_pages(list_method, **kwargs):
        for scoped in response.get("items", {}).values():
            yield from scoped.get(items_key, [])
