import json
import os

import pytest

from openidprovider.configure import ProviderConfiguration
from openidprovider.configure import load_configuration
from openidprovider.defaults import DEFAULT_STATE_LIFETIME
from openidprovider.defaults import provider_endpoints
from openidprovider.exception import ConfigurationError
from openidprovider.provider import Provider
from openidprovider.protocol import OpenIDProtocol
from openidprovider.state import FileStateStore
from openidprovider.trust_store import FileTrustStore
from tests.utils import BASE_URL
from tests.utils import LOGIN_URL
from tests.utils import provider_conf

CONF = {
    "base_url": f"{BASE_URL}/",
    "auth": {
        "class": "openidprovider.authn.SessionAuthSource",
        "kwargs": {"login_url": LOGIN_URL}
    },
    "username_attribute": "uid"
}


def conf(filestore, **kwargs):
    _conf = CONF.copy()
    _conf["filestore"] = filestore
    _conf.update(kwargs)
    return _conf


def test_defaults(tmp_path):
    _conf = ProviderConfiguration(conf(str(tmp_path)))
    assert _conf.base_url == BASE_URL
    assert _conf.state_lifetime == DEFAULT_STATE_LIFETIME
    assert _conf.authproc == []
    assert set(_conf.endpoint.keys()) == {"server", "resume", "trust", "user"}


@pytest.mark.parametrize("missing", ["base_url", "auth", "username_attribute", "filestore"])
def test_missing(tmp_path, missing):
    _conf = conf(str(tmp_path))
    del _conf[missing]
    with pytest.raises(ConfigurationError):
        ProviderConfiguration(_conf)


def test_auth_without_class(tmp_path):
    with pytest.raises(ConfigurationError):
        ProviderConfiguration(conf(str(tmp_path), auth={"kwargs": {"login_url": LOGIN_URL}}))


def test_load_configuration(tmp_path):
    file_name = os.path.join(str(tmp_path), "provider.json")
    with open(file_name, "w") as fp:
        json.dump({"openid_provider": conf(str(tmp_path), state_lifetime=600)}, fp)

    _conf = load_configuration(file_name)
    assert _conf.state_lifetime == 600
    assert _conf.username_attribute == "uid"


def test_default_components(tmp_path):
    provider = Provider(conf(str(tmp_path), state_lifetime=600))
    assert isinstance(provider.trust_store, FileTrustStore)
    assert provider.trust_store.trust_store_dir == os.path.join(str(tmp_path), "truststore")
    assert isinstance(provider.state_store, FileStateStore)
    assert provider.state_store.lifetime == 600
    assert isinstance(provider.protocol, OpenIDProtocol)
    assert provider.protocol.server_url == f"{BASE_URL}/server"
    assert len(provider.attribute_release) == 0


def test_endpoint_paths(tmp_path):
    _endpoints = provider_endpoints("resume", "trust", "user", {
        "server": {"path": "openid/server", "class": "openidprovider.endpoint.server.Server"}
    })
    provider = Provider(provider_conf(str(tmp_path), endpoint=_endpoints))
    assert provider.server_url == f"{BASE_URL}/openid/server"
    assert provider.get_url("trust") == f"{BASE_URL}/trust"
