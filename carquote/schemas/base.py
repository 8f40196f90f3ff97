"""
Shared schema configuration.

The dashboard frontend speaks camelCase JSON; Python code uses
snake_case attribute names.
"""

from typing import ClassVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serializing fields as camelCase while accepting either form."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Pagination(CamelModel):
    """
    Page metadata shared by the admin list endpoints.

    Subclasses add the total under the name their endpoint uses and point
    ``total_field`` at it.
    """
    total_field: ClassVar[str]

    current_page: int
    total_pages: int
    has_next: bool
    has_prev: bool


class QuotePagination(Pagination):
    total_field: ClassVar[str] = "total_quotes"

    total_quotes: int


class PickupPagination(Pagination):
    total_field: ClassVar[str] = "total_pickups"

    total_pickups: int


class CustomerPagination(Pagination):
    total_field: ClassVar[str] = "total_customers"

    total_customers: int
