"""Unit tests for avidbase.core.identity.models."""
import pytest

from avidbase.core.identity import UNSET, AuthOutput, Identity, UserInput
from avidbase.core.identity.exceptions import ResponseDecodeError


class TestIdentity:
    def test_missing_keys_default_to_empty(self):
        identity = Identity.from_dict({"id": "u-1"})
        assert identity.username == ""
        assert identity.data == {}
        assert identity.created_at is None

    def test_unknown_keys_ignored(self):
        identity = Identity.from_dict({"id": "u-1", "favourite_colour": "green"})
        assert identity.id == "u-1"

    def test_null_fields(self):
        identity = Identity.from_dict({"id": "u-1", "email": None, "data": None})
        assert identity.email == ""
        assert identity.data == {}

    @pytest.mark.parametrize("payload", [[], "u-1", None, 42])
    def test_non_object_rejected(self, payload):
        with pytest.raises(ResponseDecodeError):
            Identity.from_dict(payload)

    @pytest.mark.parametrize("key, value", [("id", 123), ("email", ["a@b.c"]), ("created_at", 1700000000)])
    def test_non_string_field_rejected(self, key, value):
        with pytest.raises(ResponseDecodeError, match=key):
            Identity.from_dict({"id": "u-1", key: value})

    def test_data_must_be_object(self):
        with pytest.raises(ResponseDecodeError):
            Identity.from_dict({"id": "u-1", "data": ["a"]})

    def test_to_dict_uses_wire_names(self, alice_payload):
        assert Identity.from_dict(alice_payload).to_dict() == alice_payload

    def test_display_name(self):
        assert Identity(first_name="Alice", last_name="Wonder").display_name == "Alice Wonder"
        assert Identity(username="alice").display_name == "alice"
        assert Identity(id="u-1").display_name == "u-1"

    def test_is_immutable(self):
        identity = Identity(id="u-1")
        with pytest.raises(AttributeError):
            identity.id = "u-2"


class TestAuthOutput:
    def test_from_dict(self, alice_payload):
        output = AuthOutput.from_dict({"user": alice_payload, "permissions": {"admin": True, "audit": False}}, "tok")
        assert output.user.username == "alice"
        assert output.permissions == {"admin": True, "audit": False}
        assert output.access_token == "tok"

    def test_missing_permissions(self, alice_payload):
        output = AuthOutput.from_dict({"user": alice_payload}, "tok")
        assert output.permissions == {}

    def test_bad_permissions(self, alice_payload):
        with pytest.raises(ResponseDecodeError):
            AuthOutput.from_dict({"user": alice_payload, "permissions": ["admin"]}, "tok")

    @pytest.mark.parametrize("granted", ["false", "true", None, 1, 0])
    def test_non_boolean_permission_rejected(self, alice_payload, granted):
        with pytest.raises(ResponseDecodeError, match="users.delete"):
            AuthOutput.from_dict({"user": alice_payload, "permissions": {"users.delete": granted}}, "tok")


class TestUserInput:
    def test_empty_input(self):
        user = UserInput()
        assert user.is_empty()
        assert user.to_payload() == {}
        assert user.provided_fields() == []

    def test_none_is_sent_as_null(self):
        user = UserInput(email=None, data=None)
        assert not user.is_empty()
        assert user.to_payload() == {"email": None, "data": None}

    def test_data_is_copied(self):
        data = {"team": "blue"}
        payload = UserInput(data=data).to_payload()
        payload["data"]["team"] = "red"
        assert data == {"team": "blue"}

    def test_repr_hides_password(self):
        assert "hunter2" not in repr(UserInput(username="bob", password="hunter2"))

    def test_unset_is_falsy_singleton(self):
        assert not UNSET
        assert repr(UNSET) == "UNSET"
        assert type(UNSET)() is UNSET
