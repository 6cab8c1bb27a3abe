from typing import Dict
from typing import List
from typing import Optional

from idpyoidc.configure import Base
from idpyoidc.util import load_config_file

from openidprovider.defaults import DEFAULT_PROVIDER_ENDPOINTS
from openidprovider.defaults import DEFAULT_STATE_LIFETIME
from openidprovider.exception import ConfigurationError

DEFAULT_PROVIDER_FILE_ATTRIBUTE_NAMES = ['filename', 'private_path', 'public_path']
DEFAULT_PROVIDER_DIR_ATTRIBUTE_NAMES = ['filestore', 'trust_store_dir', 'state_dir']

REQUIRED = ['base_url', 'auth', 'username_attribute', 'filestore']


class ProviderConfiguration(Base):
    """ OpenID provider configuration """

    def __init__(self,
                 conf: Dict,
                 base_path: Optional[str] = '',
                 file_attributes: Optional[List[str]] = None,
                 dir_attributes: Optional[List[str]] = None,
                 domain: Optional[str] = "",
                 port: Optional[int] = 0,
                 ):
        file_attributes = file_attributes or DEFAULT_PROVIDER_FILE_ATTRIBUTE_NAMES
        dir_attributes = dir_attributes or DEFAULT_PROVIDER_DIR_ATTRIBUTE_NAMES

        Base.__init__(self, conf=conf, base_path=base_path, file_attributes=file_attributes,
                      dir_attributes=dir_attributes, domain=domain, port=port)

        for key in REQUIRED:
            if not conf.get(key):
                raise ConfigurationError(f'Missing required configuration option {key!r}')

        if "class" not in conf["auth"]:
            raise ConfigurationError('The auth option must name an authentication source class')

        self.base_url = conf["base_url"].rstrip('/')
        self.auth = conf["auth"]
        self.username_attribute = conf["username_attribute"]
        self.filestore = conf["filestore"]
        self.authproc = conf.get("authproc", [])
        self.state_lifetime = conf.get("state_lifetime", DEFAULT_STATE_LIFETIME)
        self.trust_store = conf.get("trust_store")
        self.state_store = conf.get("state_store")
        self.protocol = conf.get("protocol")
        self.endpoint = conf.get("endpoint", DEFAULT_PROVIDER_ENDPOINTS)


def load_configuration(filename: str, base_path: Optional[str] = '') -> ProviderConfiguration:
    """
    :param filename: A JSON or YAML file
    :param base_path: Prefixed to relative directory names in the configuration
    """
    _conf = load_config_file(filename)
    if "openid_provider" in _conf:
        _conf = _conf["openid_provider"]
    return ProviderConfiguration(_conf, base_path=base_path)
