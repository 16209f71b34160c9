from __future__ import annotations

from collections import deque
from typing import Iterable, Mapping, Set, Union

from beanconfig.core.beans.models import Bean
from beanconfig.core.events import SchemaNotFound
from beanconfig.core.schema.models import Schema


def attach_schema(beans: Union[Bean, Iterable[Bean]], schemas: Mapping[str, Schema]) -> None:
    """
    Bind every bean, and every already materialised reference target
    reachable from it, to its schema.

    Breadth-first with a visited set on object identity: the same bean id
    can legitimately show up as several objects in one graph (a target
    reached through different referrers), and each of them needs a schema,
    while cycles must still terminate.
    """
    queue = deque([beans] if isinstance(beans, Bean) else beans)
    seen: Set[int] = set()

    while queue:
        bean = queue.popleft()
        if id(bean) in seen:
            continue
        seen.add(id(bean))

        schema = schemas.get(bean.id.schema_name)
        if schema is None:
            raise SchemaNotFound(bean.id.schema_name)
        bean.schema = schema

        for ref in bean.references():
            if ref.bean is not None and id(ref.bean) not in seen:
                queue.append(ref.bean)
