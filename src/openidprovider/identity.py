import logging

from openidprovider.exception import IdentityResolutionError

logger = logging.getLogger(__name__)


class IdentityResolver(object):
    """
    Maps the attributes of an authenticated user to a user ID and the user ID to
    the identity URL asserted to relying parties.
    """

    def __init__(self, username_attribute: str, user_url: str):
        self.username_attribute = username_attribute
        self.user_url = user_url.rstrip('/')

    def user_id(self, attributes: dict) -> str:
        """
        :param attributes: The attributes of the user, each one a list of values
        :return: The one and only value of the username attribute
        """
        try:
            _values = attributes[self.username_attribute]
        except KeyError:
            raise IdentityResolutionError(
                f'Missing username attribute {self.username_attribute!r} in the attributes of '
                f'the user.')

        if isinstance(_values, str):
            _values = [_values]
        else:
            _values = list(_values)

        if not _values:
            raise IdentityResolutionError('Username attribute was empty.')
        if len(_values) > 1:
            raise IdentityResolutionError('More than one attribute value in username.')
        return _values[0]

    def identity(self, user_id: str) -> str:
        return f"{self.user_url}/{user_id}"
