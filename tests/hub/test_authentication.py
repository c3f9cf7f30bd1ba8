"""Tests for authentication strategy selection."""

import dataclasses

import pytest

from messaginghub.authentication import (
    GuestAuthentication,
    KeyAuthentication,
    PlainAuthentication,
    select_authentication,
)


class TestSelectAuthentication:
    """Tests for select_authentication."""

    def test_guest_without_credentials(self):
        strategy = select_authentication()
        assert isinstance(strategy, GuestAuthentication)
        assert strategy.scheme == "guest"
        assert strategy.to_dict() == {}

    def test_password_is_base64_encoded(self):
        strategy = select_authentication(password="s3cr3t!")
        assert isinstance(strategy, PlainAuthentication)
        assert strategy.scheme == "plain"
        assert strategy.password == "czNjcjN0IQ=="
        assert strategy.to_dict() == {"password": "czNjcjN0IQ=="}

    def test_non_ascii_password(self):
        assert PlainAuthentication.from_password("ção").password == "w6fDo28="

    def test_key_is_sent_as_is(self):
        strategy = select_authentication(key="bXlrZXk=")
        assert isinstance(strategy, KeyAuthentication)
        assert strategy.scheme == "key"
        assert strategy.to_dict() == {"key": "bXlrZXk="}

    def test_strategies_are_immutable(self):
        strategy = KeyAuthentication(key="abc")
        with pytest.raises(dataclasses.FrozenInstanceError):
            strategy.key = "other"
