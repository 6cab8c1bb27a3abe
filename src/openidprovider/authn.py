import logging
from typing import MutableMapping
from typing import Optional

from openidprovider.utils import add_url_parameters

logger = logging.getLogger(__name__)


def _values(val) -> list:
    if isinstance(val, str):
        return [val]
    return list(val)


class AuthSource(object):
    """
    The authentication source of the current request. Verifying the user's
    credentials is done elsewhere; this is how the provider learns the outcome.
    """

    def is_authenticated(self) -> bool:
        raise NotImplementedError()

    def get_attributes(self) -> dict:
        raise NotImplementedError()

    def require_auth(self, return_to: str) -> str:
        """
        :param return_to: Where the browser should come back to after login
        :return: The URL the browser should be redirected to in order to log in
        """
        raise NotImplementedError()

    def get_login_url(self, return_to: Optional[str] = None) -> str:
        raise NotImplementedError()

    def get_logout_url(self, return_to: Optional[str] = None) -> str:
        raise NotImplementedError()


class SessionAuthSource(AuthSource):
    """
    Keeps the attributes of the logged in user in a per browser session mapping.
    The login service calls login() once it has verified the user.
    """
    session_key = "openidprovider.authn"

    def __init__(self,
                 session: MutableMapping,
                 login_url: str,
                 logout_url: Optional[str] = "",
                 return_to_param: Optional[str] = "ReturnTo",
                 **kwargs):
        self.session = session
        self.login_url = login_url
        self.logout_url = logout_url or login_url
        self.return_to_param = return_to_param

    def is_authenticated(self) -> bool:
        return self.session_key in self.session

    def get_attributes(self) -> dict:
        return {k: _values(v) for k, v in self.session.get(self.session_key, {}).items()}

    def require_auth(self, return_to: str) -> str:
        logger.debug(f'Login required, returning to {return_to}')
        return self.get_login_url(return_to)

    def get_login_url(self, return_to: Optional[str] = None) -> str:
        if return_to:
            return add_url_parameters(self.login_url, {self.return_to_param: return_to})
        return self.login_url

    def get_logout_url(self, return_to: Optional[str] = None) -> str:
        if return_to:
            return add_url_parameters(self.logout_url, {self.return_to_param: return_to})
        return self.logout_url

    def login(self, attributes: dict):
        self.session[self.session_key] = {k: _values(v) for k, v in attributes.items()}

    def logout(self):
        self.session.pop(self.session_key, None)
