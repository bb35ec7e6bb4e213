"""
Declarative request shapes accepted by the statement compiler.

Field aliases are the JSON keys on the wire (``select``, ``or``, ``in``,
``orderBy`` ...), matching what the query façade posts.
"""
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from errors import ValidationError
from models.conditions import Condition, InCondition, OrGroup, parse_or_expression


class StoreRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    table: str

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class SelectRequest(StoreRequest):
    select_fields: str = Field(default="*", alias="select")
    where: List[Condition] = Field(default_factory=list)
    or_groups: List[OrGroup] = Field(default_factory=list, alias="or")
    in_conditions: List[InCondition] = Field(default_factory=list, alias="in")
    order_by: Optional[str] = Field(default=None, alias="orderBy")
    order_direction: Literal["asc", "desc"] = Field(default="asc", alias="orderDirection")
    limit: Optional[int] = Field(default=None, ge=0)
    offset: int = Field(default=0, ge=0)
    single: bool = False

    @field_validator("or_groups", mode="before")
    @classmethod
    def _translate_legacy_or(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return value
        groups: List[Union[OrGroup, Any]] = []
        for item in value:
            if isinstance(item, str):
                try:
                    groups.append(parse_or_expression(item))
                except ValidationError as e:
                    raise ValueError(str(e)) from e
            else:
                groups.append(item)
        return groups


class InsertRequest(StoreRequest):
    records: List[Dict[str, Any]]


class UpdateRequest(StoreRequest):
    updates: Dict[str, Any]
    where: List[Condition] = Field(default_factory=list)
    in_conditions: List[InCondition] = Field(default_factory=list, alias="in")


class DeleteRequest(StoreRequest):
    where: List[Condition] = Field(default_factory=list)
