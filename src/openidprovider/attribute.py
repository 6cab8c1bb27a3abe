"""The attribute release pipeline run before attributes are handed to a relying party."""
import copy
import logging
from typing import List
from typing import Optional
from typing import Union

from idpyoidc.util import instantiate

from openidprovider.exception import AttributeReleaseError
from openidprovider.exception import InteractionRequired

logger = logging.getLogger(__name__)


def collapse_attributes(attributes: dict) -> dict:
    """
    Attributes with exactly one value are turned into a scalar.

    :param attributes: attribute name to list of values
    :return: A new dictionary
    """
    res = {}
    for key, val in attributes.items():
        if isinstance(val, list) and len(val) == 1:
            res[key] = val[0]
        else:
            res[key] = val
    return res


class AttributeFilter(object):

    def __init__(self, **kwargs):
        self.kwargs = kwargs

    def process(self, state: dict):
        """
        Modifies state["Attributes"] in place. A filter that needs to interact
        with the user raises InteractionRequired.
        """
        raise NotImplementedError()


class AttributeLimit(AttributeFilter):
    """Only release the listed attributes."""

    def __init__(self, allowed: Optional[List[str]] = None, **kwargs):
        AttributeFilter.__init__(self, **kwargs)
        self.allowed = allowed or []

    def process(self, state: dict):
        _attributes = state["Attributes"]
        for name in list(_attributes.keys()):
            if name not in self.allowed:
                del _attributes[name]


class AttributeMap(AttributeFilter):
    """Rename attributes. Attributes not in the map are left alone."""

    def __init__(self, map: Optional[dict] = None, **kwargs):
        AttributeFilter.__init__(self, **kwargs)
        self.map = map or {}

    def process(self, state: dict):
        _res = {}
        for name, value in state["Attributes"].items():
            _res[self.map.get(name, name)] = value
        state["Attributes"] = _res


class AttributeAdd(AttributeFilter):

    def __init__(self, attributes: Optional[dict] = None, replace: Optional[bool] = False,
                 **kwargs):
        AttributeFilter.__init__(self, **kwargs)
        self.attributes = attributes or {}
        self.replace = replace

    def process(self, state: dict):
        _attributes = state["Attributes"]
        for name, value in self.attributes.items():
            if self.replace or name not in _attributes:
                _attributes[name] = copy.deepcopy(value)
            else:
                _old = _attributes[name]
                if not isinstance(_old, list):
                    _old = [_old]
                if not isinstance(value, list):
                    value = [value]
                _attributes[name] = _old + [v for v in value if v not in _old]


class ProcessingChain(object):

    def __init__(self, filters: Optional[List[Union[dict, AttributeFilter]]] = None):
        self.filters = []
        for spec in filters or []:
            if isinstance(spec, dict):
                self.filters.append(instantiate(spec["class"], **spec.get("kwargs", {})))
            else:
                self.filters.append(spec)

    def process_passive(self, state: dict) -> dict:
        """
        Run all filters without any possibility to interact with the user.

        :param state: Must contain 'Attributes'
        :return: The processed state
        """
        state["isPassive"] = True
        for _filter in self.filters:
            try:
                _filter.process(state)
            except InteractionRequired as err:
                raise AttributeReleaseError(
                    f'{_filter.__class__.__name__} requires user interaction which is not '
                    f'allowed here') from err
        return state

    def __len__(self):
        return len(self.filters)
