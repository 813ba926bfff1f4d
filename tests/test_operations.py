"""
Tests for Operations.

Tests cover:
- Constructor validation for each kind
- Basic / Data / Resource / Reference / Load invocation
- Enumeration laziness, ordering and non-restartability
"""

import itertools

import pytest

from resourcekit.builder import Builder
from resourcekit.errors import DefinitionError
from resourcekit.operations import InvocationContext, Operation, OperationKind
from resourcekit.params import RequestParam
from resourcekit.request import Request
from resourcekit.resource import ResourceType
from resourcekit.sources import BuilderSource

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def service(fake_client):
    return ResourceType("Service")(client=fake_client)


@pytest.fixture
def user_type():
    return ResourceType("User", ["name"])


@pytest.fixture
def list_users(user_type):
    return Operation.enumerate_resource(
        Request("list_users"),
        Builder(user_type, [BuilderSource.build("responsePath", "Users[].UserName", "name")]),
    )


def _users_page(*names):
    return {"Users": [{"UserName": name} for name in names]}


# =============================================================================
# Test Construction
# =============================================================================


class TestOperationConstruction:
    """Tests for Operation constructor validation."""

    def test_missing_request(self):
        """Test kinds that call the API need a request."""
        with pytest.raises(DefinitionError, match="missing required option 'request'"):
            Operation(OperationKind.BASIC)

    def test_missing_builder(self):
        """Test kinds that build resources need a builder."""
        with pytest.raises(DefinitionError, match="missing required option 'builder'"):
            Operation(OperationKind.REFERENCE)

    def test_missing_path(self):
        """Test kinds that extract data need a path."""
        with pytest.raises(DefinitionError, match="missing required option 'path'"):
            Operation(OperationKind.DATA, request=Request("get"))

    def test_enumerate_resource_needs_plural_builder(self, user_type):
        """Test a singular builder cannot enumerate."""
        builder = Builder(user_type, [BuilderSource.build("responsePath", "User.Name", "name")])

        with pytest.raises(DefinitionError, match="plural builder"):
            Operation.enumerate_resource(Request("list_users"), builder)

    def test_invalid_path(self):
        """Test paths are compiled at construction."""
        with pytest.raises(DefinitionError, match="invalid path expression"):
            Operation.data(Request("get"), "Users[")

    def test_kind_requirements(self):
        """Test which collaborators each kind needs."""
        assert not OperationKind.REFERENCE.needs_request
        assert OperationKind.LOAD.needs_path
        assert not OperationKind.BASIC.needs_path
        assert OperationKind.RESOURCE.needs_builder


# =============================================================================
# Test Single-Call Kinds
# =============================================================================


class TestSingleCall:
    """Tests for kinds that make at most one call."""

    def test_basic_returns_raw_response(self, service, fake_client):
        """Test basic returns the ClientResponse itself."""
        fake_client.responses["get_account_summary"] = {"SummaryMap": {"Users": 3}}

        response = Operation.basic(Request("get_account_summary")).invoke(
            InvocationContext(service, params={"Verbose": True})
        )

        assert response.data == {"SummaryMap": {"Users": 3}}
        assert response.params == {"Verbose": True}
        assert fake_client.calls == [("get_account_summary", {"Verbose": True})]

    def test_data_extracts_path(self, service, fake_client):
        """Test data returns the value at its path."""
        fake_client.responses["get_account_summary"] = {"SummaryMap": {"Users": 3}}

        operation = Operation.data(Request("get_account_summary"), "SummaryMap.Users")

        assert operation.invoke(InvocationContext(service)) == 3

    def test_data_root_path(self, service, fake_client):
        """Test "$" returns the whole payload."""
        fake_client.responses["get_account_summary"] = {"SummaryMap": {"Users": 3}}

        operation = Operation.data(Request("get_account_summary"), "$")

        assert operation.invoke(InvocationContext(service)) == {"SummaryMap": {"Users": 3}}

    def test_resource_builds_from_response(self, service, fake_client, user_type):
        """Test resource builds from request params and response data."""
        fake_client.responses["create_user"] = {"User": {"UserName": "jane", "Arn": "arn:jane"}}
        operation = Operation.resource(
            Request("create_user"),
            Builder(
                user_type,
                [BuilderSource.build("requestParameter", "UserName", "name")],
                load_path="User",
            ),
        )

        user = operation.invoke(InvocationContext(service, params={"UserName": "jane"}))

        assert user.name == "jane"
        assert user.data == {"UserName": "jane", "Arn": "arn:jane"}
        assert len(fake_client.calls) == 1

    def test_reference_makes_no_call(self, service, fake_client, user_type):
        """Test references never call the API."""
        operation = Operation.reference(Builder(user_type))

        user = operation.invoke(InvocationContext(service, argument="jane"))

        assert user.name == "jane"
        assert operation.requires_argument
        assert fake_client.calls == []

    def test_load_sets_data(self, fake_client, user_type):
        """Test load replaces the calling resource's data and returns it."""
        fake_client.responses["get_user"] = {"User": {"UserName": "jane"}}
        user = user_type("jane", client=fake_client)
        operation = Operation.load(
            Request("get_user", [RequestParam.build("UserName", "identifier", "name")]),
            "User",
        )

        result = operation.invoke(InvocationContext(user))

        assert result is user
        assert user.data == {"UserName": "jane"}
        assert fake_client.calls == [("get_user", {"UserName": "jane"})]


# =============================================================================
# Test Enumerations
# =============================================================================


class TestEnumeration:
    """Tests for lazy paginated enumeration."""

    def test_nothing_requested_until_consumed(self, service, fake_client, list_users):
        """Test invoking an enumeration makes no call."""
        fake_client.pages["list_users"] = [_users_page("a", "b")]

        list_users.invoke(InvocationContext(service))

        assert fake_client.calls == []

    def test_yields_every_page_in_order(self, service, fake_client, list_users):
        """Test resources come page by page in order."""
        fake_client.pages["list_users"] = [_users_page("a", "b"), _users_page("c", "d")]

        users = list(list_users.invoke(InvocationContext(service)))

        assert [u.name for u in users] == ["a", "b", "c", "d"]
        assert fake_client.methods_called() == ["list_users", "list_users"]
        assert all(u.client is fake_client for u in users)

    def test_second_page_fetched_only_when_needed(self, service, fake_client, list_users):
        """Test stopping inside page one never fetches page two."""
        fake_client.pages["list_users"] = [_users_page("a", "b"), _users_page("c", "d")]

        first_two = list(itertools.islice(list_users.invoke(InvocationContext(service)), 2))

        assert [u.name for u in first_two] == ["a", "b"]
        assert len(fake_client.calls) == 1

    def test_not_restartable(self, service, fake_client, list_users):
        """Test an exhausted enumeration stays exhausted; invoking again refetches."""
        fake_client.pages["list_users"] = [_users_page("a")]

        users = list_users.invoke(InvocationContext(service))
        assert [u.name for u in users] == ["a"]
        assert list(users) == []

        again = list(list_users.invoke(InvocationContext(service)))
        assert [u.name for u in again] == ["a"]
        assert len(fake_client.calls) == 2

    def test_empty_page_yields_nothing(self, service, fake_client, list_users):
        """Test a page without matches contributes no resources."""
        fake_client.pages["list_users"] = [{"Users": []}, _users_page("z")]

        assert [u.name for u in list_users.invoke(InvocationContext(service))] == ["z"]

    def test_enumerate_data(self, service, fake_client):
        """Test enumerate_data yields each value across pages."""
        fake_client.pages["list_account_aliases"] = [
            {"AccountAliases": ["one", "two"]},
            {"AccountAliases": ["three"]},
            {},
        ]
        operation = Operation.enumerate_data(Request("list_account_aliases"), "AccountAliases[]")

        assert list(operation.invoke(InvocationContext(service))) == ["one", "two", "three"]
        assert operation.plural
