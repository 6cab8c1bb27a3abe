import logging
from typing import Callable
from typing import Optional

from idpyoidc.exception import MessageException
from idpyoidc.message import Message
from idpyoidc.message import SINGLE_OPTIONAL_STRING
from idpyoidc.message import SINGLE_REQUIRED_STRING
from idpyoidc.util import instantiate

from openidprovider.exception import UserInputError
from openidprovider.outcome import Outcome

logger = logging.getLogger(__name__)


class StateRequest(Message):
    c_param = {
        "StateID": SINGLE_REQUIRED_STRING
    }


class TrustRequest(StateRequest):
    c_param = StateRequest.c_param.copy()
    c_param.update({
        "TrustYes": SINGLE_OPTIONAL_STRING,
        "TrustNo": SINGLE_OPTIONAL_STRING,
        "TrustRemember": SINGLE_OPTIONAL_STRING
    })


class Endpoint(object):
    request_cls = Message
    name = ""

    def __init__(self, upstream_get: Callable, path: Optional[str] = "", **kwargs):
        self.upstream_get = upstream_get
        self.path = path or self.name
        self.kwargs = kwargs

    @property
    def full_path(self) -> str:
        return f"{self.upstream_get('attribute', 'base_url')}/{self.path}"

    def parse_request(self, request: Optional[dict] = None) -> Message:
        try:
            _req = self.request_cls(**(request or {}))
            _req.verify()
        except (MessageException, ValueError) as err:
            raise UserInputError(f'Bad request to {self.name}: {err}') from err
        return _req

    def process_request(self, request: Optional[dict] = None, **kwargs) -> Outcome:
        raise NotImplementedError()


def build_endpoints(conf: dict, upstream_get: Callable) -> dict:
    endpoint = {}
    for name, spec in conf.items():
        _kwargs = spec.get("kwargs", {}).copy()
        _kwargs["path"] = spec.get("path", name)
        endpoint[name] = instantiate(spec["class"], upstream_get=upstream_get, **_kwargs)
    return endpoint
