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
Module for configuring the shared test fixtures.
"""

import pytest

from common.api import ProviderContext
from tests.mocks.api.client_factory_mock import ClientFactoryMock


@pytest.fixture(scope="class")
def basic_config():
    """
    Provides a basic configuration dictionary for the test environment.
    """
    return {
        "project_name": "test-project",
    }


@pytest.fixture
def make_context(basic_config):
    """
    Builds a provider context whose client factory returns the given
    mock clients.
    """

    def make(clients: dict) -> ProviderContext:
        return ProviderContext(
            basic_config["project_name"],
            ClientFactoryMock(clients, basic_config["project_name"]),
        )

    return make
