from urllib.parse import parse_qs
from urllib.parse import urlparse

import pytest

from openidprovider.authn import SessionAuthSource
from openidprovider.exception import IdentityResolutionError
from openidprovider.identity import IdentityResolver

USER_URL = "https://idp.example.org/openid/user"
LOGIN_URL = "https://idp.example.org/login?source=ldap"


class TestIdentityResolver(object):

    @pytest.fixture(autouse=True)
    def create_resolver(self):
        self.resolver = IdentityResolver("uid", USER_URL + "/")

    def test_user_id(self):
        assert self.resolver.user_id({"uid": ["alice"], "mail": ["a@example.org"]}) == "alice"

    def test_user_id_scalar(self):
        assert self.resolver.user_id({"uid": "alice"}) == "alice"

    def test_missing(self):
        with pytest.raises(IdentityResolutionError):
            self.resolver.user_id({"mail": ["a@example.org"]})

    def test_empty(self):
        with pytest.raises(IdentityResolutionError):
            self.resolver.user_id({"uid": []})

    def test_more_than_one(self):
        with pytest.raises(IdentityResolutionError):
            self.resolver.user_id({"uid": ["alice", "bob"]})

    def test_identity(self):
        assert self.resolver.identity("alice") == f"{USER_URL}/alice"


class TestSessionAuthSource(object):

    @pytest.fixture(autouse=True)
    def create_source(self):
        self.session = {}
        self.auth = SessionAuthSource(self.session, login_url=LOGIN_URL)

    def test_not_authenticated(self):
        assert self.auth.is_authenticated() is False
        assert self.auth.get_attributes() == {}

    def test_login_logout(self):
        self.auth.login({"uid": "alice", "mail": ["a@example.org", "alice@example.org"]})
        assert self.auth.is_authenticated()
        assert self.auth.get_attributes() == {
            "uid": ["alice"], "mail": ["a@example.org", "alice@example.org"]}

        # A new source over the same session sees the same user
        other = SessionAuthSource(self.session, login_url=LOGIN_URL)
        assert other.is_authenticated()

        self.auth.logout()
        assert self.auth.is_authenticated() is False

    def test_require_auth(self):
        return_to = "https://idp.example.org/openid/resume?StateID=abc"
        _url = self.auth.require_auth(return_to)
        _part = urlparse(_url)
        assert _url.startswith("https://idp.example.org/login?")
        _query = parse_qs(_part.query)
        assert _query["source"] == ["ldap"]
        assert _query["ReturnTo"] == [return_to]

    def test_logout_url(self):
        assert self.auth.get_logout_url() == LOGIN_URL
        auth = SessionAuthSource({}, login_url=LOGIN_URL,
                                 logout_url="https://idp.example.org/logout")
        assert auth.get_logout_url("https://idp.example.org/") == \
               "https://idp.example.org/logout?ReturnTo=https%3A%2F%2Fidp.example.org%2F"
