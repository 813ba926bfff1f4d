"""
Pytest configuration and fixtures for resourcekit tests.
"""

import sys
from pathlib import Path

import pytest

# Add the repository root to path for imports
# This allows `from resourcekit import ...` to work without installing
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from resourcekit.client import ClientResponse  # noqa: E402


class FakeClient:
    """
    In-memory ApiClient.

    ``responses`` maps a method name to a payload (or a callable taking the
    params); ``pages`` maps a method name to a list of page payloads. Every
    call and every fetched page is recorded in ``calls``.
    """

    def __init__(self, responses=None, pages=None):
        self.responses = dict(responses or {})
        self.pages = dict(pages or {})
        self.calls = []

    def call(self, method_name, params):
        self.calls.append((method_name, params))
        data = self.responses.get(method_name)
        if callable(data):
            data = data(params)
        return ClientResponse(data=data, params=params)

    def paginate(self, method_name, params):
        for data in self.pages.get(method_name, []):
            self.calls.append((method_name, params))
            yield ClientResponse(data=data, params=params)

    def methods_called(self):
        return [name for name, _ in self.calls]


def _identifier(target, source):
    return {"target": target, "sourceType": "identifier", "source": source}


USER_NAME_PARAM = _identifier("UserName", "Name")


IAM_DEFINITION = {
    "service": {
        "actions": {
            "CreateUser": {
                "request": {"operation": "CreateUser"},
                "resource": {
                    "type": "User",
                    "identifiers": [
                        {"target": "Name", "sourceType": "requestParameter", "source": "UserName"}
                    ],
                    "path": "User",
                },
            },
            "GetAccountSummary": {
                "request": {"operation": "GetAccountSummary"},
                "path": "SummaryMap",
            },
            "ListAccountAliases": {
                "request": {"operation": "ListAccountAliases"},
                "path": "AccountAliases[]",
            },
        },
        "hasMany": {
            "Users": {
                "type": "User",
                "enumerate": {
                    "request": {"operation": "ListUsers"},
                    "resource": {
                        "identifiers": [
                            {
                                "target": "Name",
                                "sourceType": "responsePath",
                                "source": "Users[].UserName",
                            }
                        ],
                        "path": "Users[]",
                    },
                },
            },
        },
    },
    "resources": {
        "User": {
            "identifiers": [{"name": "Name"}],
            "shape": "User",
            "load": {
                "request": {"operation": "GetUser", "params": [USER_NAME_PARAM]},
                "path": "User",
            },
            "actions": {
                "Delete": {"request": {"operation": "DeleteUser", "params": [USER_NAME_PARAM]}},
                "Update": {
                    "request": {
                        "operation": "UpdateUser",
                        "params": [
                            USER_NAME_PARAM,
                            {"target": "Path", "sourceType": "dataMember", "source": "Path"},
                        ],
                    }
                },
            },
            "hasMany": {
                "AccessKeys": {
                    "type": "AccessKey",
                    "enumerate": {
                        "request": {"operation": "ListAccessKeys", "params": [USER_NAME_PARAM]},
                        "resource": {
                            "identifiers": [
                                _identifier("UserName", "Name"),
                                {
                                    "target": "Id",
                                    "sourceType": "responsePath",
                                    "source": "AccessKeyMetadata[].AccessKeyId",
                                },
                            ]
                        },
                    },
                    "create": {
                        "request": {"operation": "CreateAccessKey", "params": [USER_NAME_PARAM]},
                        "resource": {
                            "identifiers": [
                                _identifier("UserName", "Name"),
                                {
                                    "target": "Id",
                                    "sourceType": "responsePath",
                                    "source": "AccessKey.AccessKeyId",
                                },
                            ],
                            "path": "AccessKey",
                        },
                    },
                    "resource": {"identifiers": [_identifier("UserName", "Name")]},
                },
            },
            "hasSome": {
                "AttachedPolicies": {
                    "type": "Policy",
                    "resource": {
                        "identifiers": [
                            {
                                "target": "Arn",
                                "sourceType": "dataMember",
                                "source": "AttachedPolicyArns[]",
                            }
                        ]
                    },
                },
            },
            "hasOne": {
                "LoginProfile": {
                    "type": "LoginProfile",
                    "resource": {"identifiers": [_identifier("UserName", "Name")]},
                },
            },
            "subResources": {
                "resources": ["UserPolicy"],
                "identifiers": {"Name": "UserName"},
            },
        },
        "AccessKey": {
            "identifiers": ["UserName", "Id"],
            "actions": {
                "Delete": {
                    "request": {
                        "operation": "DeleteAccessKey",
                        "params": [
                            _identifier("UserName", "UserName"),
                            _identifier("AccessKeyId", "Id"),
                        ],
                    }
                },
            },
        },
        "LoginProfile": {"identifiers": ["UserName"]},
        "Policy": {"identifiers": ["Arn"]},
        "UserPolicy": {"identifiers": ["UserName", "Name"]},
        "AccountSummary": {"identifiers": []},
    },
}


@pytest.fixture
def fake_client():
    """Empty FakeClient; tests fill in responses and pages."""
    return FakeClient()


@pytest.fixture
def iam_definition():
    """IAM-style definition document."""
    return IAM_DEFINITION


@pytest.fixture
def iam_model(iam_definition, fake_client):
    """Compiled IAM service whose resources default to fake_client."""
    from resourcekit.definition import Definition

    return Definition(iam_definition).define_service("iam", client_factory=lambda: fake_client)


@pytest.fixture
def iam(iam_model, fake_client):
    """IAM service root resource."""
    return iam_model(client=fake_client)
