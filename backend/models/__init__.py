"""
Database models and store request shapes
"""
from .report import Report
from .issue import Issue
from .conditions import Condition, InCondition, OrClause, OrGroup, parse_or_expression
from .requests import SelectRequest, InsertRequest, UpdateRequest, DeleteRequest

__all__ = [
    "Report",
    "Issue",
    "Condition",
    "InCondition",
    "OrClause",
    "OrGroup",
    "parse_or_expression",
    "SelectRequest",
    "InsertRequest",
    "UpdateRequest",
    "DeleteRequest",
]
