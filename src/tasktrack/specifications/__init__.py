"""Composable specifications with in-memory and store-query interpretations."""

from __future__ import annotations

from .base import BaseSpecification, CompositeSpecification, ISpecification, and_, or_
from .evaluator import (
    DEFAULT_MEMORY_REGISTRY,
    MemoryOperator,
    MemoryOperatorRegistry,
    build_default_registry,
)
from .field import FieldSpecification, by_field
from .filter_expr import (
    FilterCondition,
    FilterExpr,
    FilterGroup,
    evaluate_filter,
    filter_objects,
    iter_conditions,
    resolve_field,
)
from .operators import LogicalOperator, SpecificationOperator
from .task import TASK_FIELDS, TaskSpecifications, task_field

__all__ = [
    "DEFAULT_MEMORY_REGISTRY",
    "TASK_FIELDS",
    "BaseSpecification",
    "CompositeSpecification",
    "FieldSpecification",
    "FilterCondition",
    "FilterExpr",
    "FilterGroup",
    "ISpecification",
    "LogicalOperator",
    "MemoryOperator",
    "MemoryOperatorRegistry",
    "SpecificationOperator",
    "TaskSpecifications",
    "and_",
    "build_default_registry",
    "by_field",
    "evaluate_filter",
    "filter_objects",
    "iter_conditions",
    "or_",
    "resolve_field",
    "task_field",
]
