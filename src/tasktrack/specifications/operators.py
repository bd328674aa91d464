from __future__ import annotations

from enum import Enum

from ..primitives.exceptions import UnsupportedPredicateError


class SpecificationOperator(str, Enum):
    """Operators a leaf specification may use.

    ``contains`` is a case-insensitive substring match on text fields.
    """

    EQ = "eq"
    NE = "ne"
    LT = "lt"
    GT = "gt"
    CONTAINS = "contains"

    @classmethod
    def parse(cls, value: SpecificationOperator | str) -> SpecificationOperator:
        """Accept an operator, its name or its symbol (``=``, ``!=``, ``<``, ``>``).

        Raises:
            UnsupportedPredicateError: for anything else.
        """
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        op = _ALIASES.get(key)
        if op is None:
            raise UnsupportedPredicateError(
                f"Unsupported operator: {value!r}. "
                f"Valid operators: {', '.join(m.value for m in cls)}",
                operator=str(value),
            )
        return op


class LogicalOperator(str, Enum):
    """Operators joining child specifications."""

    AND = "and"
    OR = "or"


_ALIASES: dict[str, SpecificationOperator] = {
    **{m.value: m for m in SpecificationOperator},
    "=": SpecificationOperator.EQ,
    "==": SpecificationOperator.EQ,
    "!=": SpecificationOperator.NE,
    "<>": SpecificationOperator.NE,
    "<": SpecificationOperator.LT,
    ">": SpecificationOperator.GT,
}
