import json

from openidprovider.attribute import AttributeFilter
from openidprovider.defaults import INTERACTIVE_MODES
from openidprovider.exception import InteractionRequired
from openidprovider.exception import ProtocolDecodeError
from openidprovider.state import MemoryStateStore
from openidprovider.trust_store import MemoryTrustStore

BASE_URL = "https://idp.example.org/openid"
LOGIN_URL = "https://idp.example.org/login"
LOGOUT_URL = "https://idp.example.org/logout"
RP = "https://rp.example.com/"


class DummyRequest(object):

    def __init__(self, mode="checkid_setup", identity="", trust_root=RP, immediate=False,
                 id_select=False, required=None, **kwargs):
        self.mode = mode
        self.identity = identity
        self.trust_root = trust_root
        self.immediate = immediate
        self.id_select = id_select
        self.required = required or []

    def idSelect(self):
        return self.id_select

    def to_dict(self):
        return {
            "mode": self.mode,
            "identity": self.identity,
            "trust_root": self.trust_root,
            "immediate": self.immediate,
            "id_select": self.id_select,
            "required": self.required
        }


class DummyResponse(object):

    def __init__(self, request, accepted, identity=None):
        self.request = request
        self.accepted = accepted
        self.identity = identity
        self.fields = {}


class DummyProtocol(object):
    """Stands in for the OpenID library."""

    def __init__(self, **kwargs):
        self.kwargs = kwargs

    def decode_request(self, query):
        if "mode" not in query:
            raise ProtocolDecodeError("No request in the parameters")
        return DummyRequest(**query)

    def is_interactive(self, request):
        return request.mode in INTERACTIVE_MODES

    def dump_request(self, request):
        return request.to_dict()

    def load_request(self, args):
        return DummyRequest(**args)

    def handle_request(self, request):
        return DummyResponse(request, True)

    def answer(self, request, accepted, identity=None):
        return DummyResponse(request, accepted, identity)

    def add_attributes(self, request, response, attributes):
        for name in request.required:
            if name in attributes:
                response.fields[name] = attributes[name]

    def can_encode(self, error):
        return False

    def encode_response(self, response):
        return {
            "response_code": 200,
            "http_headers": [],
            "response": json.dumps({
                "accepted": response.accepted,
                "identity": response.identity,
                "fields": response.fields
            })
        }


class AskUser(AttributeFilter):

    def process(self, state):
        raise InteractionRequired("Need to ask the user")


def provider_conf(filestore, **kwargs):
    conf = {
        "base_url": BASE_URL,
        "auth": {
            "class": "openidprovider.authn.SessionAuthSource",
            "kwargs": {"login_url": LOGIN_URL, "logout_url": LOGOUT_URL}
        },
        "username_attribute": "uid",
        "filestore": filestore,
        "protocol": {"class": DummyProtocol, "kwargs": {}},
        "state_store": {"class": MemoryStateStore, "kwargs": {}},
        "trust_store": {"class": MemoryTrustStore, "kwargs": {}}
    }
    conf.update(kwargs)
    return conf
