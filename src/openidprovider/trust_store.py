import fcntl
import hashlib
import json
import logging
import os
from contextlib import contextmanager
from typing import List

from idpyoidc.impexp import ImpExp

from openidprovider.exception import StorageError
from openidprovider.utils import atomic_write

logger = logging.getLogger(__name__)


def storage_key(identity: str) -> str:
    """
    The key under which the trust roots of an identity are stored.
    A hash keeps unsafe characters out of file names and bounds the length.

    :param identity: The identity of the user
    :return: Hex encoded SHA-256 digest
    """
    return hashlib.sha256(identity.encode('utf-8')).hexdigest()


class TrustStore(object):
    """
    The sites each user has told us to trust. Subclasses provide get, save and
    optionally a lock that serializes updates for one identity.
    """

    def get(self, identity: str) -> List[str]:
        raise NotImplementedError()

    def save(self, identity: str, trust_roots: List[str]):
        raise NotImplementedError()

    @contextmanager
    def lock(self, identity: str):
        yield

    def add(self, identity: str, trust_root: str):
        with self.lock(identity):
            _roots = self.get(identity)
            if trust_root not in _roots:
                _roots.append(trust_root)
            self.save(identity, _roots)
        logger.info(f'{identity} now trusts {trust_root}')

    def remove(self, identity: str, trust_root: str):
        with self.lock(identity):
            _roots = self.get(identity)
            try:
                _roots.remove(trust_root)
            except ValueError:
                return
            self.save(identity, _roots)
        logger.info(f'{identity} no longer trusts {trust_root}')

    def is_trusted(self, identity: str, trust_root: str) -> bool:
        return trust_root in self.get(identity)


class FileTrustStore(TrustStore):
    """
    One JSON file per identity. Writes replace the whole file atomically so
    readers never see a partial list. Updates to the same identity are
    serialized with an advisory lock unless lock is False.
    """

    def __init__(self, trust_store_dir: str, lock: bool = True, **kwargs):
        self.trust_store_dir = trust_store_dir
        self.use_lock = lock
        if not os.path.isdir(trust_store_dir):
            try:
                os.makedirs(trust_store_dir, exist_ok=True)
            except OSError as err:
                raise StorageError(f'Failed to create directory: {trust_store_dir}') from err

    def trust_file(self, identity: str) -> str:
        return os.path.join(self.trust_store_dir, f"{storage_key(identity)}.json")

    def get(self, identity: str) -> List[str]:
        file_name = self.trust_file(identity)
        try:
            with open(file_name, "r") as fp:
                _info = json.load(fp)
        except FileNotFoundError:
            return []
        except (OSError, ValueError) as err:
            raise StorageError(f'Failed to load trust roots from {file_name!r}') from err

        try:
            _roots = _info["trust_roots"]
        except (KeyError, TypeError):
            _roots = None

        if not isinstance(_roots, list):
            raise StorageError(f'Malformed trust root file {file_name!r}')
        return _roots

    def save(self, identity: str, trust_roots: List[str]):
        _data = json.dumps({"identity": identity, "trust_roots": trust_roots})
        atomic_write(self.trust_file(identity), _data)

    @contextmanager
    def lock(self, identity: str):
        if not self.use_lock:
            yield
            return

        lock_file = open(os.path.join(self.trust_store_dir, f"{storage_key(identity)}.lock"), "w")
        try:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
            yield
        finally:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)
            lock_file.close()

    def remove(self, identity: str, trust_root: str):
        if not os.path.isfile(self.trust_file(identity)):
            return
        TrustStore.remove(self, identity, trust_root)


class MemoryTrustStore(TrustStore, ImpExp):
    parameter = {
        "_db": {}
    }

    def __init__(self, **kwargs):
        ImpExp.__init__(self)
        self._db = {}

    def get(self, identity: str) -> List[str]:
        return list(self._db.get(identity, []))

    def save(self, identity: str, trust_roots: List[str]):
        self._db[identity] = list(trust_roots)

    def __contains__(self, identity):
        return identity in self._db
