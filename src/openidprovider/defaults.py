RESUME_STATE_NAMESPACE = "openidProvider:resumeState"
TRUST_STATE_NAMESPACE = "openidProvider:trustState"

INTERACTIVE_MODES = ["checkid_immediate", "checkid_setup"]

DEFAULT_STATE_LIFETIME = 3600
STATE_ID_LENGTH = 32

TRUST_STORE_DIR = "truststore"
STATE_STORE_DIR = "state"

PROVIDER_ENDPOINTS = {
    "server": {
        "path": "server",
        "class": "openidprovider.endpoint.server.Server",
        "kwargs": {}
    },
    "resume": {
        "path": "resume",
        "class": "openidprovider.endpoint.resume.Resume",
        "kwargs": {}
    },
    "trust": {
        "path": "trust",
        "class": "openidprovider.endpoint.trust.Trust",
        "kwargs": {}
    },
    "user": {
        "path": "user",
        "class": "openidprovider.endpoint.user.User",
        "kwargs": {}
    }
}


def provider_endpoints(*apis) -> dict:
    interm = {a: PROVIDER_ENDPOINTS[a] for a in apis if isinstance(a, str)}
    for a in apis:
        if isinstance(a, dict):
            interm.update(a)
    return interm


DEFAULT_PROVIDER_ENDPOINTS = provider_endpoints("server", "resume", "trust", "user")
