import json
import logging
import os
from typing import MutableMapping
from typing import Optional
from typing import Union

from idpyoidc.util import instantiate

from openidprovider.attribute import ProcessingChain
from openidprovider.authn import AuthSource
from openidprovider.configure import ProviderConfiguration
from openidprovider.defaults import STATE_STORE_DIR
from openidprovider.defaults import TRUST_STORE_DIR
from openidprovider.endpoint import build_endpoints
from openidprovider.exception import AuthorizationMismatch
from openidprovider.exception import ProtocolDecodeError
from openidprovider.exception import UserInputError
from openidprovider.identity import IdentityResolver
from openidprovider.outcome import Outcome
from openidprovider.outcome import Page
from openidprovider.outcome import Redirect
from openidprovider.outcome import Respond
from openidprovider.processor import RequestProcessor
from openidprovider.protocol import OpenIDProtocol
from openidprovider.state import FileStateStore
from openidprovider.trust_store import FileTrustStore

logger = logging.getLogger(__name__)


def init_component(spec: Optional[dict], default_class, **kwargs):
    if spec:
        _kwargs = kwargs.copy()
        _kwargs.update(spec.get("kwargs", {}))
        return instantiate(spec["class"], **_kwargs)
    return default_class(**kwargs)


class Provider(object):
    """
    Everything needed to handle requests. Built once from the configuration and
    handed to every request handler.
    """

    def __init__(self, conf: Union[dict, ProviderConfiguration], base_path: Optional[str] = ''):
        if not isinstance(conf, ProviderConfiguration):
            conf = ProviderConfiguration(conf, base_path=base_path)

        self.config = conf
        self.base_url = conf.base_url
        self.filestore = conf.filestore

        self.endpoint = build_endpoints(conf.endpoint, self.unit_get)

        self.identity_resolver = IdentityResolver(conf.username_attribute, self.get_url("user"))
        self.trust_store = init_component(
            conf.trust_store, FileTrustStore,
            trust_store_dir=os.path.join(self.filestore, TRUST_STORE_DIR))
        self.state_store = init_component(
            conf.state_store, FileStateStore,
            state_dir=os.path.join(self.filestore, STATE_STORE_DIR),
            lifetime=conf.state_lifetime)
        self.protocol = init_component(
            conf.protocol, OpenIDProtocol,
            server_url=self.get_url("server"), filestore=self.filestore)
        self.attribute_release = ProcessingChain(conf.authproc)
        self.processor = RequestProcessor(self.unit_get)

    def unit_get(self, what, *arg):
        _func = getattr(self, f"get_{what}", None)
        if _func:
            return _func(*arg)
        return None

    def get_attribute(self, attr, *args):
        return getattr(self, attr, None)

    def get_endpoint(self, endpoint_name, *args):
        try:
            return self.endpoint[endpoint_name]
        except KeyError:
            return None

    def get_url(self, endpoint_name: str) -> str:
        return self.endpoint[endpoint_name].full_path

    @property
    def server_url(self) -> str:
        return self.get_url("server")

    def auth_source(self, session: MutableMapping) -> AuthSource:
        """
        :param session: The session of the browser making the current request
        :return: An authentication source bound to that session
        """
        _spec = self.config.auth
        return instantiate(_spec["class"], session=session, **_spec.get("kwargs", {}))

    def get_user_id(self, auth: AuthSource) -> Optional[str]:
        if not auth.is_authenticated():
            return None
        return self.identity_resolver.user_id(auth.get_attributes())

    def get_identity(self, auth: AuthSource) -> Optional[str]:
        _user_id = self.get_user_id(auth)
        if _user_id is None:
            return None
        return self.identity_resolver.identity(_user_id)

    def do_response(self, outcome: Outcome) -> dict:
        if isinstance(outcome, Respond):
            return self.protocol.encode_response(outcome.response)
        elif isinstance(outcome, Redirect):
            logger.info(f'Redirect to: {outcome.location}')
            return {
                "response_code": 302,
                "http_headers": [("Location", outcome.location)],
                "response": ""
            }
        elif isinstance(outcome, Page):
            return {"response_code": 200, "template": outcome.template, "data": outcome.data}
        else:
            raise ValueError(f'Unknown outcome {outcome!r}')

    def error_response(self, err: Exception) -> dict:
        """
        The response to send when handling a request failed. The error itself
        goes to the log, for the operator.
        """
        if isinstance(err, (UserInputError, ProtocolDecodeError)):
            logger.warning(f'Bad request: {err}')
            _code = 400
            _error = "invalid_request"
        elif isinstance(err, AuthorizationMismatch):
            logger.warning(f'Refused request: {err}')
            _code = 403
            _error = "access_denied"
        else:
            logger.error(f'Failed to handle request: {err.__class__.__name__}: {err}', exc_info=err)
            _code = 500
            _error = "server_error"

        return {
            "response_code": _code,
            "http_headers": [("Content-Type", "application/json")],
            "response": json.dumps({"error": _error, "error_description": str(err)})
        }

    def handle(self, endpoint_name: str, request: Optional[dict] = None,
               session: Optional[MutableMapping] = None, **kwargs) -> dict:
        """
        Run one endpoint and turn whatever happens into something that can be
        sent back.
        """
        _endpoint = self.get_endpoint(endpoint_name)
        if _endpoint is None:
            return self.error_response(UserInputError(f'No endpoint named {endpoint_name!r}'))

        _auth = self.auth_source(session if session is not None else {})
        try:
            outcome = _endpoint.process_request(request or {}, auth=_auth, **kwargs)
            return self.do_response(outcome)
        except Exception as err:
            return self.error_response(err)
