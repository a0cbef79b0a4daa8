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
This module defines the exceptions raised by the provider and a decorator
that shields callers from raw Google API exceptions by translating them into
provider exceptions.
"""

from functools import wraps

from google.api_core.exceptions import GoogleAPICallError
from googleapiclient.errors import HttpError


class FormatException(Exception):
    """
    Raised when a resource name or identifier has an unexpected format.
    """


class IncorrectTypeException(Exception):
    """
    Raised when an unknown resource or finder type is requested.
    """


class ProviderException(Exception):
    """
    Raised when a provisioning operation against Google Cloud fails.
    """


class WaitTimeoutException(ProviderException):
    """
    Raised when a polled operation does not finish in the allotted time.
    """


def google_api_exception_shield(target):
    """
    Decorator to shield a function from exceptions raised by the Google API.
    Converts Google API call errors and discovery HTTP errors into
    ProviderException.
    """

    @wraps(target)
    def inner(*args, **kwargs):
        try:
            return target(*args, **kwargs)
        except GoogleAPICallError as e:
            raise ProviderException(f"Error: {e.message}") from e
        except HttpError as e:
            raise ProviderException(
                f"Error {e.status_code}: {e.reason}"
            ) from e

    return inner


def is_not_found(error: HttpError) -> bool:
    return error.status_code == 404
