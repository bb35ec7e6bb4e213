"""
Filter conditions shared by the query façade and the statement compiler
"""
from typing import Any, List, Literal

from pydantic import BaseModel, Field

from errors import ValidationError

WhereOperator = Literal["=", "!=", ">", ">=", "<", "<=", "LIKE"]
OrOperator = Literal["eq", "ilike"]


class Condition(BaseModel):
    """A single ``field <operator> value`` comparison"""
    field: str
    operator: WhereOperator = "="
    value: Any = None


class InCondition(BaseModel):
    """``field IN (values...)``"""
    field: str
    values: List[Any] = Field(default_factory=list)


class OrClause(BaseModel):
    """One alternative of an OR group"""
    field: str
    operator: OrOperator = "eq"
    value: Any = None


class OrGroup(BaseModel):
    """Alternatives joined with OR; the group is AND-ed with the other filters"""
    clauses: List[OrClause] = Field(default_factory=list)

    @classmethod
    def of(cls, *clauses: OrClause) -> "OrGroup":
        return cls(clauses=list(clauses))


def parse_or_expression(expression: str) -> OrGroup:
    """
    Translate the legacy ``field.op.value,field.op.value`` string form.

    The value is everything after the second dot, so ``name.eq.a.b`` compares
    ``name`` with ``"a.b"``. ``%`` markers in ilike values are kept as
    wildcards; the caller supplies them.

    Raises:
        ValidationError: a clause is malformed or uses an unknown operator
    """
    clauses: List[OrClause] = []
    for raw_clause in expression.split(","):
        parts = raw_clause.split(".", 2)
        if len(parts) < 3 or not parts[0]:
            raise ValidationError(f"Malformed OR clause: '{raw_clause}'")

        field, operator, value = parts
        if operator not in ("eq", "ilike"):
            raise ValidationError(f"Unsupported OR operator '{operator}' in '{raw_clause}'")

        clauses.append(OrClause(field=field, operator=operator, value=value))

    return OrGroup(clauses=clauses)
