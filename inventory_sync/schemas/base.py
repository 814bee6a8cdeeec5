"""
Read schemas built straight from ORM rows.
"""
from typing import Any, Iterable, List, Type, TypeVar

from pydantic import BaseModel, ConfigDict

T = TypeVar('T', bound='BaseSchema')


class BaseSchema(BaseModel):
    """Attribute-populated schema for ledger rows"""

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_orm_list(cls: Type[T], rows: Iterable[Any]) -> List[T]:
        return [cls.model_validate(row) for row in rows]
