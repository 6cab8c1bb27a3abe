"""
The OpenID 2.0 wire protocol, as implemented by python3-openid. Nothing
outside this module knows about the library.
"""
import logging
from typing import Optional

from openid.extensions import ax
from openid.extensions import sreg
from openid.server.server import ProtocolError
from openid.server.server import Server
from openid.store.filestore import FileOpenIDStore

from openidprovider.defaults import INTERACTIVE_MODES
from openidprovider.exception import ConfigurationError
from openidprovider.exception import ProtocolDecodeError

logger = logging.getLogger(__name__)


class OpenIDProtocol(object):

    def __init__(self,
                 server_url: str,
                 filestore: Optional[str] = "",
                 store: Optional[object] = None,
                 **kwargs):
        if store is None:
            if not filestore:
                raise ConfigurationError('OpenID protocol needs either a store or a filestore')
            store = FileOpenIDStore(filestore)

        self.server_url = server_url
        self.server = Server(store, server_url)

    def decode_request(self, query: dict):
        try:
            request = self.server.decodeRequest(query)
        except ProtocolError as err:
            raise ProtocolDecodeError(str(err), protocol_error=err) from err

        if request is None:
            raise ProtocolDecodeError('No OpenID request in the parameters')
        logger.debug(f'Decoded {request.mode} request')
        return request

    def is_interactive(self, request) -> bool:
        return request.mode in INTERACTIVE_MODES

    def dump_request(self, request) -> dict:
        return request.message.toPostArgs()

    def load_request(self, args: dict):
        return self.decode_request(args)

    def handle_request(self, request):
        return self.server.handleRequest(request)

    def answer(self, request, accepted: bool, identity: Optional[str] = None):
        if accepted:
            return request.answer(True, identity=identity)
        return request.answer(False)

    def add_attributes(self, request, response, attributes: dict):
        """
        Add the attribute values the relying party asked for through
        Simple Registration or Attribute Exchange.

        :param request: The authentication request
        :param response: The positive response to add values to
        :param attributes: The attributes released for this relying party
        """
        sreg_req = sreg.SRegRequest.fromOpenIDRequest(request)
        if sreg_req.wereFieldsRequested():
            # Simple registration only deals in single string values
            _data = {k: v for k, v in attributes.items() if isinstance(v, str)}
            response.addExtension(sreg.SRegResponse.extractResponse(sreg_req, _data))

        try:
            ax_req = ax.FetchRequest.fromOpenIDRequest(request)
        except ax.AXError as err:
            logger.warning(f'Ignoring malformed attribute exchange request: {err}')
            ax_req = None

        if ax_req is not None:
            ax_resp = ax.FetchResponse(request=ax_req)
            for attr in ax_req.iterAttrs():
                if attr.type_uri not in attributes:
                    continue
                _values = attributes[attr.type_uri]
                if not isinstance(_values, list):
                    _values = [_values]
                # Sending more values than asked for is an error
                if not attr.wantsUnlimitedValues():
                    _values = _values[:attr.count]
                ax_resp.setValues(attr.type_uri, _values)
            response.addExtension(ax_resp)

    def can_encode(self, error) -> bool:
        return isinstance(error, ProtocolError) and error.whichEncoding() is not None

    def encode_response(self, response) -> dict:
        webresponse = self.server.encodeResponse(response)
        _headers = list(webresponse.headers.items())
        _headers.append(("Connection", "close"))
        return {
            "response_code": webresponse.code,
            "http_headers": _headers,
            "response": webresponse.body
        }
