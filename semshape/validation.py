"""Validation — check JSON-LD style nodes against a NodeShape.

validate() walks the shape's properties in declaration order:

  1. Non-object data        → a single UNKNOWN violation, nothing else runs
  2. @type membership       → TYPE_MISMATCH when @type lacks the target class
  3. Cardinality            → CARDINALITY_REQUIRED / _MIN / _MAX
  4. Value-level checks     → datatype, class, nodeKind, in, hasValue,
                              string and numeric bounds, shape reference
  5. Logical combinators    → or, xone, and, not

Combinators re-use the value-level checks through evaluate_value_constraints();
cardinality is evaluated once, on the named property, never inside a nested
constraint set. Data problems are reported as violations, never raised.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from .constraints import (
    check_cardinality,
    check_class,
    check_datatype,
    check_has_value,
    check_in,
    check_node_kind,
    check_numeric_bounds,
    check_shape_reference,
    check_string_bounds,
    check_type,
)
from .inference import InferenceContext
from .shape import NodeShape, PropertyShape
from .types import ShapeViolation, ViolationCode

logger = logging.getLogger(__name__)

# JSON-LD keywords never validated as properties
_JSONLD_KEYWORDS = frozenset({"@id", "@type", "@context"})


# ---------------------------------------------------------------------------
# Result type
# ---------------------------------------------------------------------------

@dataclass
class ShapeValidationResult:
    """Outcome of validating one node against one NodeShape."""
    violations: list[ShapeViolation] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return len(self.violations) == 0

    def by_code(self, code: ViolationCode) -> list[ShapeViolation]:
        return [v for v in self.violations if v.code == code]

    def by_path(self, path: str) -> list[ShapeViolation]:
        return [v for v in self.violations if v.path == path]

    def summary(self) -> str:
        lines = []
        status = "CONFORMS" if self.ok else "DOES NOT CONFORM"
        lines.append(f"Shape Validation: {status}")
        lines.append("-" * 50)
        if self.violations:
            lines.append(f"  Violations ({len(self.violations)}):")
            for v in self.violations:
                lines.append(f"    - {v.path} [{v.code.value}]: {v.message}")
        else:
            lines.append("  No violations found.")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Value-level evaluation (shared with the combinators)
# ---------------------------------------------------------------------------

def _value_violations(
    path: str,
    value: Any,
    prop: PropertyShape,
    context: InferenceContext | None,
) -> list[ShapeViolation]:
    """Every non-cardinality check declared on prop, combinators included."""
    violations: list[ShapeViolation] = []

    if prop.datatype is not None:
        violations.extend(check_datatype(path, value, prop.datatype))
    if prop.class_ is not None:
        violations.extend(check_class(path, value, prop.class_, context))
    if prop.node is not None:
        violations.extend(check_shape_reference(path, value, prop.node))
    if prop.node_kind is not None:
        violations.extend(check_node_kind(path, value, prop.node_kind))
    if prop.in_ is not None:
        violations.extend(check_in(path, value, prop.in_))
    if prop.has_value is not None:
        violations.extend(check_has_value(path, value, prop.has_value))
    violations.extend(check_string_bounds(
        path, value,
        min_length=prop.min_length,
        max_length=prop.max_length,
        pattern=prop.pattern,
    ))
    violations.extend(check_numeric_bounds(
        path, value,
        min_inclusive=prop.min_inclusive,
        max_inclusive=prop.max_inclusive,
        min_exclusive=prop.min_exclusive,
        max_exclusive=prop.max_exclusive,
    ))
    violations.extend(_combinator_violations(path, value, prop, context))
    return violations


def _combinator_violations(
    path: str,
    value: Any,
    prop: PropertyShape,
    context: InferenceContext | None,
) -> list[ShapeViolation]:
    violations: list[ShapeViolation] = []

    if prop.or_:
        if not any(evaluate_value_constraints(value, alt, context) for alt in prop.or_):
            violations.append(ShapeViolation(
                path, ViolationCode.OR,
                "No alternative in sh:or satisfied",
                expected=f"any of {len(prop.or_)} alternatives", actual=value,
                constraint="or",
            ))

    if prop.xone:
        count = sum(1 for alt in prop.xone if evaluate_value_constraints(value, alt, context))
        if count != 1:
            violations.append(ShapeViolation(
                path, ViolationCode.XONE,
                f"Exactly one alternative in sh:xone must be satisfied (got {count})",
                expected=1, actual=count, constraint="xone",
            ))

    if prop.and_:
        if not all(evaluate_value_constraints(value, c, context) for c in prop.and_):
            violations.append(ShapeViolation(
                path, ViolationCode.UNKNOWN,
                "Value does not satisfy all constraints in sh:and",
                expected=f"all of {len(prop.and_)} constraints", actual=value,
                constraint="and",
            ))

    if prop.not_ is not None:
        if evaluate_value_constraints(value, prop.not_, context):
            violations.append(ShapeViolation(
                path, ViolationCode.UNKNOWN,
                "Value satisfies constraint in sh:not (should not)",
                actual=value, constraint="not",
            ))

    return violations


def evaluate_value_constraints(
    value: Any,
    constraints: PropertyShape,
    context: InferenceContext | None = None,
) -> bool:
    """True if value satisfies every value-level constraint in the set.

    Cardinality fields of the set are ignored.
    """
    return not _value_violations("", value, constraints, context)


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------

def validate(
    shape: NodeShape,
    data: Any,
    context: InferenceContext | None = None,
) -> ShapeValidationResult:
    """Validate a single node against a NodeShape.

    ``context`` enables class constraints; without it they are skipped.
    """
    result = ShapeValidationResult()

    if not isinstance(data, Mapping):
        result.violations.append(ShapeViolation(
            "/", ViolationCode.UNKNOWN,
            "Data must be an object",
            expected="object", actual=type(data).__name__,
        ))
        return result

    if "@type" in data:
        result.violations.extend(check_type(data, shape.target_class))

    for name, prop in shape.properties.items():
        if name in _JSONLD_KEYWORDS:
            continue
        value = data.get(name)

        if prop.has_cardinality:
            result.violations.extend(check_cardinality(name, value, prop.cardinality))

        if value is None:
            continue
        result.violations.extend(_value_violations(name, value, prop, context))

    logger.debug("validated node %s against %r: %d violation(s)",
                 data.get("@id", "<anonymous>"), shape, len(result.violations))
    return result


def check(
    shape: NodeShape,
    data: Any,
    context: InferenceContext | None = None,
) -> bool:
    """Boolean form of validate()."""
    return validate(shape, data, context).ok


def validate_batch(
    shape: NodeShape,
    nodes: Iterable[Any],
    context: InferenceContext | None = None,
) -> list[ShapeValidationResult]:
    """Validate several nodes against the same shape."""
    return [validate(shape, node, context) for node in nodes]
