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
Module for testing bounded polling, discovery paging and the Google API
exception shield.
"""

import pytest
from google.api_core.exceptions import NotFound

from common.exceptions import (
    ProviderException,
    WaitTimeoutException,
    google_api_exception_shield,
)
from common.utils import Waiter, list_aggregated_items, list_items
from tests.mocks.api.discovery_mock import RequestMock, http_error, page


@pytest.fixture
def sleeps(monkeypatch) -> list[float]:
    """
    Records the waits instead of sleeping.
    """
    recorded = []
    monkeypatch.setattr(
        "common.utils.waiter.time.sleep", lambda delay: recorded.append(delay)
    )
    return recorded


class TestWaiter:
    """
    Waiter tests
    """

    def test_returns_first_truthy_result(self, sleeps):
        results = iter([None, False, "done"])

        assert Waiter(10).until(lambda: next(results)) == "done"
        assert sleeps == [1, 1]

    def test_does_not_sleep_when_condition_holds(self, sleeps):
        assert Waiter(10).until(lambda: True) is True
        assert not sleeps

    def test_backoff_increases_waits(self, sleeps):
        results = iter([False, False, False, True])

        Waiter(12, check_every=2, backoff=True).until(lambda: next(results))

        assert sleeps == [2, 4, 6]

    def test_wait_past_the_budget_is_not_started(self, sleeps):
        with pytest.raises(WaitTimeoutException, match="after 6 seconds"):
            Waiter(10, check_every=2, backoff=True).until(lambda: False)

        assert sleeps == [2, 4]


    def test_times_out(self, sleeps):
        with pytest.raises(WaitTimeoutException, match="my operation"):
            Waiter(3).until(lambda: False, "my operation")

        assert sum(sleeps) <= 3

    def test_timeout_is_a_provider_exception(self, sleeps):
        with pytest.raises(ProviderException):
            Waiter(0).until(lambda: None)


class ListMethodMock:
    def __init__(self, items: list, page_size: int, key: str = "items"):
        self.items = items
        self.page_size = page_size
        self.key = key
        self.calls = []

    def __call__(self, **kwargs):
        self.calls.append(kwargs)
        return RequestMock(
            page(self.items, kwargs.get("pageToken"), self.page_size, self.key)
        )


class TestListItems:
    """
    Discovery paging tests
    """

    def test_yields_items_of_every_page(self):
        list_method = ListMethodMock([{"id": i} for i in range(5)], 2)

        items = list(list_items(list_method, project="p"))

        assert [item["id"] for item in items] == [0, 1, 2, 3, 4]
        assert len(list_method.calls) == 3
        assert all(call["project"] == "p" for call in list_method.calls)
        assert "pageToken" not in list_method.calls[0]

    def test_custom_items_key(self):
        list_method = ListMethodMock([{"id": 1}], 10, key="managedZones")

        assert list(list_items(list_method, "managedZones")) == [{"id": 1}]

    def test_empty_response(self):
        list_method = ListMethodMock([], 10)

        assert not list(list_items(list_method))

    def test_aggregated_items_of_every_scope(self):
        pages = {
            None: {
                "items": {
                    "regions/us-east1": {"subnetworks": [{"name": "a"}]},
                    "regions/europe-west1": {"warning": {"code": "EMPTY"}},
                },
                "nextPageToken": "1",
            },
            "1": {
                "items": {
                    "regions/us-central1": {
                        "subnetworks": [{"name": "b"}, {"name": "c"}]
                    }
                }
            },
        }

        def aggregated_list(project, pageToken=None):
            return RequestMock(pages[pageToken])

        items = list_aggregated_items(
            aggregated_list, "subnetworks", project="p"
        )

        assert [item["name"] for item in items] == ["a", "b", "c"]



class TestExceptionShield:
    """
    Google API exception shield tests
    """

    def test_http_error_is_translated(self):
        @google_api_exception_shield
        def failing():
            raise http_error(403)

        with pytest.raises(ProviderException, match="Error 403"):
            failing()

    def test_api_call_error_is_translated(self):
        @google_api_exception_shield
        def failing():
            raise NotFound("topic is gone")

        with pytest.raises(ProviderException, match="topic is gone"):
            failing()

    def test_other_errors_pass_through(self):
        @google_api_exception_shield
        def failing():
            raise KeyError("name")

        with pytest.raises(KeyError):
            failing()

    def test_result_is_returned(self):
        @google_api_exception_shield
        def succeeding():
            return 42

        assert succeeding() == 42
