"""
Gateway — the store boundary the unit of work writes through.

    from detached import gateway as G

    gateway = G.MemoryGateway(users)
    gateway = G.SQLAlchemyGateway(session_factory, model=UserTable, schema=users)
    gateway = G.gateway_from(insert=..., update_fields=..., replace_row=...,
                             delete=..., bulk_update=...)

    setter = G.set_field("first_name", "jw").set("last_name", "Doe")
"""

from detached.gateway._protocol import (
    FieldSetter,
    set_field,
    Gateway,
)
from detached.gateway._functional import (
    FunctionalGateway,
    gateway_from,
)
from detached.gateway._memory import MemoryGateway
from detached.gateway._sqlalchemy import SQLAlchemyGateway

__all__ = (
    "FieldSetter",
    "set_field",
    "Gateway",
    "FunctionalGateway",
    "gateway_from",
    "MemoryGateway",
    "SQLAlchemyGateway",
)
