from typing import Optional

from openidprovider.authn import AuthSource
from openidprovider.endpoint import Endpoint
from openidprovider.endpoint import StateRequest
from openidprovider.outcome import Outcome


class Resume(Endpoint):
    """Where the browser comes back to after logging in."""
    request_cls = StateRequest
    name = "resume"

    def process_request(self, request: Optional[dict] = None, auth: Optional[AuthSource] = None,
                        **kwargs) -> Outcome:
        _req = self.parse_request(request)
        _processor = self.upstream_get("attribute", "processor")
        return _processor.resume(_req["StateID"], auth)
