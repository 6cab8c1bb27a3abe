import logging
from typing import Optional

from openidprovider.authn import AuthSource
from openidprovider.endpoint import Endpoint
from openidprovider.exception import ProtocolDecodeError
from openidprovider.outcome import Direct
from openidprovider.outcome import Outcome

logger = logging.getLogger(__name__)


class Server(Endpoint):
    """Where relying parties send their OpenID requests."""
    name = "server"

    def process_request(self, request: Optional[dict] = None, auth: Optional[AuthSource] = None,
                        **kwargs) -> Outcome:
        _processor = self.upstream_get("attribute", "processor")
        try:
            return _processor.receive_request(request or {}, auth)
        except ProtocolDecodeError as err:
            _protocol = self.upstream_get("attribute", "protocol")
            if err.protocol_error is not None and _protocol.can_encode(err.protocol_error):
                logger.warning(f'Malformed request: {err}')
                return Direct(err.protocol_error)
            raise
