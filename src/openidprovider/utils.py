import binascii
import os
import tempfile
from urllib.parse import parse_qsl
from urllib.parse import urlencode
from urllib.parse import urlparse
from urllib.parse import urlunparse

from openidprovider.exception import StorageError
from openidprovider.exception import UserInputError


def atomic_write(file_name: str, data: str):
    """
    Write data to a file in such a way that readers only ever see the old or the
    new content. The data is first written to a uniquely named file in the same
    directory which is then renamed over the target.

    :param file_name: The target file
    :param data: The new content
    """
    _dir, _base = os.path.split(file_name)
    try:
        fd, tmp_name = tempfile.mkstemp(prefix=f"{_base}.new.", dir=_dir or '.')
    except OSError as err:
        raise StorageError(f'Failed to create temporary file for {file_name!r}') from err

    try:
        with os.fdopen(fd, "w") as fp:
            fp.write(data)
        os.replace(tmp_name, file_name)
    except OSError as err:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise StorageError(f'Failed to save file {file_name!r}') from err


def add_url_parameters(url: str, params: dict) -> str:
    _part = urlparse(url)
    _query = parse_qsl(_part.query, keep_blank_values=True)
    _query.extend(params.items())
    return urlunparse(_part._replace(query=urlencode(_query)))


def encode_trust_root(trust_root: str) -> str:
    # Used in form field names, so restricted to [0-9a-f]
    return binascii.hexlify(trust_root.encode('utf-8')).decode('ascii')


def decode_trust_root(value: str) -> str:
    try:
        return binascii.unhexlify(value).decode('utf-8')
    except (binascii.Error, ValueError) as err:
        raise UserInputError(f'Malformed trust root reference: {value!r}') from err
