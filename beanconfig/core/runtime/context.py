from __future__ import annotations

from typing import Any, Dict, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel

from beanconfig.core.admin.context import AdminContext
from beanconfig.core.beans.models import Bean, BeanId
from beanconfig.core.beans.objects import to_object

M = TypeVar("M", bound=BaseModel)

View = Union[Dict[str, Any], BaseModel]


class RuntimeContext:
    """
    Read side for applications: typed views of the current configuration.

    Without a model the view is a plain dict; with a pydantic model it is
    validated into an instance of that model.
    """

    def __init__(self, admin: AdminContext):
        self._admin = admin

    def get(self, schema_name: str, instance_id: str, model: Optional[Type[M]] = None) -> View:
        return self._view(self._admin.get(BeanId(instance_id, schema_name)), model)

    def all(self, schema_name: str, model: Optional[Type[M]] = None) -> List[View]:
        return [self._view(self._admin.get(b.id), model) for b in self._admin.list(schema_name)]

    def singleton(self, schema_name: str, model: Optional[Type[M]] = None) -> View:
        return self._view(self._admin.get_singleton(schema_name), model)

    def _view(self, bean: Bean, model: Optional[Type[M]]) -> View:
        view = to_object(bean, self._admin.conversion)
        if model is None:
            return view
        return model.model_validate(view)
