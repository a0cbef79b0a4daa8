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
This module provides a factory for the Google Cloud clients used by
resources and finders. Discovery based clients and GAPIC clients share the
application default credentials and a common user agent.

Classes:
- CustomRequestBuilder: Adds the user agent to discovery HTTP requests.
- ClientKind: Names of the clients the factory can create.
- ClientFactory: Creates clients for a project.
"""

from enum import StrEnum
from functools import cached_property

import google.auth as auth
from google.api_core.gapic_v1.client_info import ClientInfo
from google.cloud import artifactregistry_v1
from google.cloud import kms
from google.cloud import pubsub_v1
from google.cloud import resourcemanager
from googleapiclient import discovery
from googleapiclient.http import HttpRequest

from common.exceptions import IncorrectTypeException
from common.utils import get_logger

USER_AGENT = "GcpProvisioner/1.0.0"
SCOPES = ["https://www.googleapis.com/auth/cloud-platform"]


class CustomRequestBuilder(HttpRequest):
    """
    A custom request builder that extends `googleapiclient.http.HttpRequest`
    to include a custom `User-Agent` header for all outgoing HTTP requests.
    """

    def __init__(
        self,
        http,
        postproc,
        uri,
        method="GET",
        body=None,
        headers=None,
        methodId=None,
        resumable=None,
    ):
        if headers is None:
            headers = {}
        headers["User-Agent"] = USER_AGENT
        super().__init__(
            http, postproc, uri, method, body, headers, methodId, resumable
        )


class ClientKind(StrEnum):
    """
    Clients available from the ClientFactory.
    """

    STORAGE = "storage"
    DNS = "dns"
    SQL_ADMIN = "sqladmin"
    COMPUTE = "compute"
    IAM = "iam"
    PUBLISHER = "publisher"
    SUBSCRIBER = "subscriber"
    KMS = "kms"
    ARTIFACT_REGISTRY = "artifactregistry"
    PROJECTS = "projects"


DISCOVERY_APIS = {
    ClientKind.STORAGE: ("storage", "v1"),
    ClientKind.DNS: ("dns", "v1"),
    ClientKind.SQL_ADMIN: ("sqladmin", "v1beta4"),
    ClientKind.COMPUTE: ("compute", "v1"),
    ClientKind.IAM: ("iam", "v1"),
}

GAPIC_CLIENTS = {
    ClientKind.PUBLISHER: pubsub_v1.PublisherClient,
    ClientKind.SUBSCRIBER: pubsub_v1.SubscriberClient,
    ClientKind.KMS: kms.KeyManagementServiceClient,
    ClientKind.ARTIFACT_REGISTRY: artifactregistry_v1.ArtifactRegistryClient,
    ClientKind.PROJECTS: resourcemanager.ProjectsClient,
}


class ClientFactory:
    """
    Creates Google Cloud clients authenticated with the application
    default credentials.
    """

    def __init__(self, project_id: str | None = None) -> None:
        self._project_id = project_id
        self._logger = get_logger()

    @cached_property
    def _default_credentials(self) -> tuple:
        return auth.default(scopes=SCOPES)

    @property
    def credentials(self):
        return self._default_credentials[0]

    @property
    def project_id(self) -> str | None:
        """
        The configured project, or the project of the application default
        credentials.
        """
        return self._project_id or self._default_credentials[1]

    def create(self, kind: str):
        """
        Creates a new client of the given kind.
        """
        try:
            kind = ClientKind(kind)
        except ValueError as e:
            raise IncorrectTypeException(f"Unknown client kind: {kind}") from e

        if kind in DISCOVERY_APIS:
            service_name, version = DISCOVERY_APIS[kind]
            self._logger.debug(
                "Building discovery client %s %s", service_name, version
            )
            return discovery.build(
                service_name,
                version,
                credentials=self.credentials,
                requestBuilder=CustomRequestBuilder,
                cache_discovery=False,
            )

        return GAPIC_CLIENTS[kind](
            credentials=self.credentials,
            client_info=ClientInfo(user_agent=USER_AGENT),
        )


class ProviderContext:
    """
    Runtime settings shared by every resource and finder of a run.
    """

    def __init__(
        self, project_id: str | None = None, client_factory=None
    ) -> None:
        self.client_factory = client_factory or ClientFactory(project_id)
        self._project_id = project_id

    @property
    def project_id(self) -> str | None:
        return self._project_id or self.client_factory.project_id
