"""
What handling a request results in. Nothing here is sent anywhere, that is
left to whoever dispatched the request.
"""
from typing import Optional


class Outcome(object):
    pass


class Respond(Outcome):
    """A protocol response to be encoded and sent back."""

    def __init__(self, response):
        self.response = response


class Accepted(Respond):
    """The user is authenticated and trusts the relying party."""

    def __init__(self, response, identity: str):
        Respond.__init__(self, response)
        self.identity = identity


class Rejected(Respond):
    pass


class Direct(Respond):
    """Requests the protocol library answers without any decision on our part."""
    pass


class Redirect(Outcome):

    def __init__(self, location: str):
        self.location = location


class Suspend(Redirect):
    """
    Processing stopped and will continue when the browser comes back with the
    state ID.
    """

    def __init__(self, location: str, state_id: str, namespace: str):
        Redirect.__init__(self, location)
        self.state_id = state_id
        self.namespace = namespace


class Page(Outcome):

    def __init__(self, template: str, data: Optional[dict] = None):
        self.template = template
        self.data = data or {}
