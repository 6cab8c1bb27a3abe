import logging
from typing import Optional

from openidprovider.authn import AuthSource
from openidprovider.endpoint import Endpoint
from openidprovider.outcome import Outcome
from openidprovider.outcome import Page
from openidprovider.outcome import Redirect
from openidprovider.utils import decode_trust_root
from openidprovider.utils import encode_trust_root

logger = logging.getLogger(__name__)


class User(Endpoint):
    """The identity page of a user, where users manage the sites they trust."""
    name = "user"

    def removals(self, request: dict) -> list:
        res = []
        for key in request.keys():
            _op = key.split('_', 1)
            if len(_op) == 1 or _op[0] != 'remove':
                continue
            res.append(decode_trust_root(_op[1]))
        return res

    def process_request(self, request: Optional[dict] = None, auth: Optional[AuthSource] = None,
                        user_id: Optional[str] = "", method: Optional[str] = "GET",
                        **kwargs) -> Outcome:
        identity = self.upstream_get("identity", auth)
        logged_in_as = self.upstream_get("user_id", auth)
        user_base = self.full_path

        if not user_id and identity:
            # The front page while logged in
            return Redirect(identity)

        own_page = bool(user_id) and user_id == logged_in_as

        if method == "POST":
            if own_page:
                _trust_store = self.upstream_get("attribute", "trust_store")
                for trust_root in self.removals(request or {}):
                    _trust_store.remove(identity, trust_root)
            return Redirect(identity or user_base)

        if own_page:
            trusted_sites = self.upstream_get("attribute", "trust_store").get(identity)
        else:
            trusted_sites = []

        return Page("user", {
            "identity": identity,
            "loggedInAs": logged_in_as,
            "loginURL": auth.get_login_url(user_base),
            "logoutURL": auth.get_logout_url(),
            "ownPage": own_page,
            "serverURL": self.upstream_get("url", "server"),
            "trustedSites": [
                {"trustRoot": site, "removeKey": f"remove_{encode_trust_root(site)}"}
                for site in trusted_sites
            ],
            "userId": user_id,
            "userIdURL": f"{user_base}/{user_id}",
        })
