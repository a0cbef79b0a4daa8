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
This module provides an adapter for interacting with the
Google Cloud Resource Manager API.
It includes functionality for reading and rewriting the project
IAM policy bindings of a single member.

Classes:
- ResourceManagerApiAdapter: An adapter class for interacting with the
  Resource Manager API.
"""

from google.iam.v1 import policy_pb2

from common.utils import get_logger

OWNER_ROLE = "roles/owner"


class ResourceManagerApiAdapter:
    """
    An adapter class for interacting with the Google Cloud Resource
    Manager API.
    """

    def __init__(self, project_client) -> None:
        """
        Initializes the ResourceManagerApiAdapter with a Projects client.
        """
        self._project_client = project_client
        self._logger = get_logger()

    def get_iam_policy(self, project_id: str) -> policy_pb2.Policy:
        return self._project_client.get_iam_policy(
            resource=f"projects/{project_id}"
        )

    def get_member_roles(self, project_id: str, member: str) -> list[str]:
        """
        Returns the roles bound to a member, excluding the owner role.
        """
        policy = self.get_iam_policy(project_id)

        return [
            binding.role
            for binding in policy.bindings
            if member in binding.members and binding.role != OWNER_ROLE
        ]

    def set_member_roles(
        self, project_id: str, member: str, roles: list[str]
    ) -> policy_pb2.Policy:
        """
        Rewrites the project policy so that the member is bound to exactly
        the given roles. Owner bindings are left untouched.
        """
        policy = self.get_iam_policy(project_id)
        bindings = []

        for binding in policy.bindings:
            kept = policy_pb2.Binding()
            kept.CopyFrom(binding)

            if member in binding.members and binding.role != OWNER_ROLE:
                del kept.members[:]
                kept.members.extend(m for m in binding.members if m != member)

                if not kept.members:
                    continue

            bindings.append(kept)

        for role in roles:
            bindings.append(policy_pb2.Binding(role=role, members=[member]))

        del policy.bindings[:]
        policy.bindings.extend(bindings)

        self._logger.info(
            "Binding %s to %d role(s) in project %s",
            member,
            len(roles),
            project_id,
        )

        return self._project_client.set_iam_policy(
            request={"resource": f"projects/{project_id}", "policy": policy}
        )
