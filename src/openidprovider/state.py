import json
import logging
import os
import re
from typing import Optional
from urllib.parse import quote
from urllib.parse import unquote

from cryptojwt.jwt import utc_time_sans_frac
from idpyoidc.util import rndstr

from openidprovider.defaults import DEFAULT_STATE_LIFETIME
from openidprovider.defaults import STATE_ID_LENGTH
from openidprovider.exception import NoSuchState
from openidprovider.exception import StorageError
from openidprovider.utils import atomic_write

logger = logging.getLogger(__name__)

# The alphabet of URL safe random strings. Keeps path separators out of file names.
STATE_ID_PATTERN = re.compile(r"[A-Za-z0-9_-]+")


class StateStore(object):
    """
    Keeps the data of a suspended interaction while the browser makes a round
    trip to some other page. Every entry is addressed by a namespace and a
    random state ID. Possessing the ID is enough to resume the interaction so
    the ID must not be guessable.

    Entries are not removed when read. They expire after lifetime seconds and
    are reclaimed by sweep().
    """

    def __init__(self, lifetime: Optional[int] = DEFAULT_STATE_LIFETIME,
                 id_length: Optional[int] = STATE_ID_LENGTH, **kwargs):
        self.lifetime = lifetime
        self.id_length = id_length

    def _store(self, namespace: str, state_id: str, item: dict):
        raise NotImplementedError()

    def _fetch(self, namespace: str, state_id: str) -> Optional[dict]:
        raise NotImplementedError()

    def _exists(self, namespace: str, state_id: str) -> bool:
        raise NotImplementedError()

    def delete(self, namespace: str, state_id: str):
        raise NotImplementedError()

    def items(self):
        raise NotImplementedError()

    def is_expired(self, item: dict, now: Optional[int] = 0) -> bool:
        if not self.lifetime:
            return False
        now = now or utc_time_sans_frac()
        return item.get("created", 0) + self.lifetime < now

    def save(self, namespace: str, state: dict) -> str:
        state_id = rndstr(self.id_length)
        while self._exists(namespace, state_id):
            state_id = rndstr(self.id_length)

        _item = {"namespace": namespace, "created": utc_time_sans_frac(), "state": state}
        self._store(namespace, state_id, _item)
        logger.debug(f'Saved state {state_id} in {namespace}')
        return state_id

    def load(self, namespace: str, state_id: str) -> dict:
        if not isinstance(state_id, str) or not STATE_ID_PATTERN.fullmatch(state_id):
            raise NoSuchState(f'Malformed state ID: {state_id!r}')

        _item = self._fetch(namespace, state_id)
        if _item is None or _item.get("namespace") != namespace:
            raise NoSuchState(f'Unknown state ID {state_id} in {namespace}')

        if self.is_expired(_item):
            logger.debug(f'State {state_id} in {namespace} has expired')
            raise NoSuchState(f'State {state_id} has expired')

        return _item["state"]

    def sweep(self) -> int:
        """
        Remove expired entries.

        :return: The number of entries removed
        """
        _now = utc_time_sans_frac()
        _expired = [(ns, sid) for ns, sid, item in self.items() if self.is_expired(item, _now)]
        for namespace, state_id in _expired:
            self.delete(namespace, state_id)
        if _expired:
            logger.info(f'Swept {len(_expired)} expired states')
        return len(_expired)


class FileStateStore(StateStore):
    """
    One JSON file per state, in one directory per namespace. Any process
    sharing the directory can resume a state saved by another.
    """

    def __init__(self, state_dir: str, lifetime: Optional[int] = DEFAULT_STATE_LIFETIME,
                 id_length: Optional[int] = STATE_ID_LENGTH, **kwargs):
        StateStore.__init__(self, lifetime=lifetime, id_length=id_length)
        self.state_dir = state_dir
        if not os.path.isdir(state_dir):
            try:
                os.makedirs(state_dir, exist_ok=True)
            except OSError as err:
                raise StorageError(f'Failed to create directory: {state_dir}') from err

    def _namespace_dir(self, namespace: str) -> str:
        return os.path.join(self.state_dir, quote(namespace, safe=''))

    def _state_file(self, namespace: str, state_id: str) -> str:
        return os.path.join(self._namespace_dir(namespace), f"{state_id}.json")

    def _store(self, namespace: str, state_id: str, item: dict):
        _dir = self._namespace_dir(namespace)
        try:
            os.makedirs(_dir, exist_ok=True)
        except OSError as err:
            raise StorageError(f'Failed to create directory: {_dir}') from err

        try:
            _data = json.dumps(item)
        except (TypeError, ValueError) as err:
            raise StorageError('State can not be serialized') from err
        atomic_write(self._state_file(namespace, state_id), _data)

    def _read(self, file_name: str) -> Optional[dict]:
        try:
            with open(file_name, "r") as fp:
                return json.load(fp)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as err:
            raise StorageError(f'Failed to load state from {file_name!r}') from err

    def _fetch(self, namespace: str, state_id: str) -> Optional[dict]:
        return self._read(self._state_file(namespace, state_id))

    def _exists(self, namespace: str, state_id: str) -> bool:
        return os.path.exists(self._state_file(namespace, state_id))

    def delete(self, namespace: str, state_id: str):
        try:
            os.unlink(self._state_file(namespace, state_id))
        except FileNotFoundError:
            pass

    def items(self):
        for _ns_dir in os.listdir(self.state_dir):
            _path = os.path.join(self.state_dir, _ns_dir)
            if not os.path.isdir(_path):
                continue
            for file_name in os.listdir(_path):
                if not file_name.endswith(".json"):
                    continue
                _item = self._read(os.path.join(_path, file_name))
                if _item is None:
                    continue
                yield unquote(_ns_dir), file_name[:-len(".json")], _item


class MemoryStateStore(StateStore):
    """States kept in the memory of one process. Mostly useful for testing."""

    def __init__(self, lifetime: Optional[int] = DEFAULT_STATE_LIFETIME,
                 id_length: Optional[int] = STATE_ID_LENGTH, **kwargs):
        StateStore.__init__(self, lifetime=lifetime, id_length=id_length)
        self._db = {}

    def _store(self, namespace: str, state_id: str, item: dict):
        # Stored as JSON to get the same copy semantics as the file store
        try:
            self._db.setdefault(namespace, {})[state_id] = json.dumps(item)
        except (TypeError, ValueError) as err:
            raise StorageError('State can not be serialized') from err

    def _fetch(self, namespace: str, state_id: str) -> Optional[dict]:
        try:
            return json.loads(self._db[namespace][state_id])
        except KeyError:
            return None

    def _exists(self, namespace: str, state_id: str) -> bool:
        return state_id in self._db.get(namespace, {})

    def delete(self, namespace: str, state_id: str):
        self._db.get(namespace, {}).pop(state_id, None)

    def items(self):
        for namespace, states in self._db.items():
            for state_id, item in states.items():
                yield namespace, state_id, json.loads(item)

    def __len__(self):
        return sum(len(states) for states in self._db.values())
