import logging
from typing import Callable

from openidprovider.attribute import collapse_attributes
from openidprovider.authn import AuthSource
from openidprovider.defaults import RESUME_STATE_NAMESPACE
from openidprovider.defaults import TRUST_STATE_NAMESPACE
from openidprovider.exception import AuthorizationMismatch
from openidprovider.outcome import Accepted
from openidprovider.outcome import Direct
from openidprovider.outcome import Outcome
from openidprovider.outcome import Rejected
from openidprovider.outcome import Suspend
from openidprovider.utils import add_url_parameters

logger = logging.getLogger(__name__)


class RequestProcessor(object):
    """
    Decides what to answer an authentication request. Whenever the user has
    to be asked something the request is written to the state store and a
    Suspend is returned. Processing restarts from the top when the browser
    comes back, with the saved state allowing already settled questions to be
    skipped.
    """

    def __init__(self, upstream_get: Callable):
        self.upstream_get = upstream_get

    @property
    def protocol(self):
        return self.upstream_get("attribute", "protocol")

    def dump_state(self, state: dict) -> dict:
        _state = state.copy()
        _state["request"] = self.protocol.dump_request(state["request"])
        return _state

    def save_state(self, namespace: str, state: dict) -> str:
        _state_store = self.upstream_get("attribute", "state_store")
        return _state_store.save(namespace, self.dump_state(state))

    def load_state(self, namespace: str, state_id: str) -> dict:
        _state_store = self.upstream_get("attribute", "state_store")
        _state = _state_store.load(namespace, state_id)
        _state["request"] = self.protocol.load_request(_state["request"])
        return _state

    def state_url(self, endpoint_name: str, state_id: str) -> str:
        return add_url_parameters(self.upstream_get("url", endpoint_name), {"StateID": state_id})

    def receive_request(self, query: dict, auth: AuthSource) -> Outcome:
        request = self.protocol.decode_request(query)

        if not self.protocol.is_interactive(request):
            return Direct(self.protocol.handle_request(request))

        return self.process_request({"request": request}, auth)

    def resume(self, state_id: str, auth: AuthSource) -> Outcome:
        return self.process_request(self.load_state(RESUME_STATE_NAMESPACE, state_id), auth)

    def process_request(self, state: dict, auth: AuthSource) -> Outcome:
        request = state["request"]

        if not auth.is_authenticated():
            if request.immediate:
                logger.debug('Not logged in and no login form can be shown')
                return Rejected(self.protocol.answer(request, False))

            state_id = self.save_state(RESUME_STATE_NAMESPACE, state)
            _location = auth.require_auth(self.state_url("resume", state_id))
            logger.info(f'Login needed, suspending as {state_id}')
            return Suspend(_location, state_id, RESUME_STATE_NAMESPACE)

        identity = self.upstream_get("identity", auth)

        if not request.idSelect() and identity != request.identity:
            raise AuthorizationMismatch(
                f'Logged in as {identity} while the request is for {request.identity}')

        trust_store = self.upstream_get("attribute", "trust_store")
        if trust_store.is_trusted(identity, request.trust_root):
            trusted = True
        elif "TrustResponse" in state:
            trusted = bool(state["TrustResponse"])
        else:
            if request.immediate:
                logger.debug(f'{request.trust_root} not trusted and no trust form can be shown')
                return Rejected(self.protocol.answer(request, False))

            state_id = self.save_state(TRUST_STATE_NAMESPACE, state)
            logger.info(f'Asking {identity} about {request.trust_root}, suspending as {state_id}')
            return Suspend(self.state_url("trust", state_id), state_id, TRUST_STATE_NAMESPACE)

        if not trusted:
            logger.debug(f'{identity} does not trust {request.trust_root}')
            return Rejected(self.protocol.answer(request, False))

        response = self.protocol.answer(request, True, identity=identity)

        _state = {"Attributes": collapse_attributes(auth.get_attributes())}
        self.upstream_get("attribute", "attribute_release").process_passive(_state)
        self.protocol.add_attributes(request, response, _state["Attributes"])

        logger.info(f'{identity} authenticated to {request.trust_root}')
        return Accepted(response, identity)
