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
Mock for resource manager api
"""
from google.iam.v1 import policy_pb2


class ResourceManagerApiMock:
    """
    Mock for resource manager projects client, keeps one project policy
    """

    def __init__(self, bindings: dict[str, list[str]] | None = None):
        self.policy = policy_pb2.Policy(
            bindings=[
                policy_pb2.Binding(role=role, members=members)
                for role, members in (bindings or {}).items()
            ],
            etag=b"etag",
        )
        self.set_requests = []

    def get_iam_policy(self, resource):
        policy = policy_pb2.Policy()
        policy.CopyFrom(self.policy)
        return policy

    def set_iam_policy(self, request):
        self.set_requests.append(request)
        self.policy = policy_pb2.Policy()
        self.policy.CopyFrom(request["policy"])
        return self.policy

    def roles_of(self, member: str) -> list[str]:
        return sorted(
            binding.role
            for binding in self.policy.bindings
            if member in binding.members
        )
