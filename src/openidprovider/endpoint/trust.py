import logging
from typing import Optional

from openidprovider.authn import AuthSource
from openidprovider.defaults import TRUST_STATE_NAMESPACE
from openidprovider.endpoint import Endpoint
from openidprovider.endpoint import TrustRequest
from openidprovider.outcome import Outcome
from openidprovider.outcome import Page

logger = logging.getLogger(__name__)


class Trust(Endpoint):
    """
    Asks the user whether the relying party should be trusted and records
    the answer.
    """
    request_cls = TrustRequest
    name = "trust"

    def process_request(self, request: Optional[dict] = None, auth: Optional[AuthSource] = None,
                        **kwargs) -> Outcome:
        _req = self.parse_request(request)
        _processor = self.upstream_get("attribute", "processor")
        state = _processor.load_state(TRUST_STATE_NAMESPACE, _req["StateID"])

        trust_root = state["request"].trust_root
        identity = self.upstream_get("identity", auth)
        if identity is None:
            # Logged out in the meantime
            return _processor.process_request(state, auth)

        # Submit buttons may carry an empty value, only their presence counts
        if "TrustYes" in request:
            if "TrustRemember" in request:
                self.upstream_get("attribute", "trust_store").add(identity, trust_root)
            state["TrustResponse"] = True
            return _processor.process_request(state, auth)

        if "TrustNo" in request:
            state["TrustResponse"] = False
            return _processor.process_request(state, auth)

        return Page("trust", {"StateID": _req["StateID"], "trustRoot": trust_root})
