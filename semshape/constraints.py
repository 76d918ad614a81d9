"""Constraint evaluators — one function per SHACL-lite constraint family.

Every evaluator is pure: it receives the property path, the raw value and
the constraint, and returns the list of violations it found (empty when the
constraint holds). Sequence values (lists and tuples) are checked element by
element; any other value is checked as a single element.

Evaluators assume the value is present. Absent values are the business of
check_cardinality alone.
"""

from __future__ import annotations

import re
from typing import Any, Iterable, Mapping

from .inference import InferenceContext, is_sub_class_of
from .shape import Cardinality
from .types import NodeKind, ShapeViolation, ViolationCode

_IRI_SCHEME = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:")

_XSD_NS = "http://www.w3.org/2001/XMLSchema#"

# XSD datatype local name → accepted primitive kind
_DATATYPE_KINDS: dict[str, str] = {
    "string": "string",
    "integer": "number",
    "decimal": "number",
    "boolean": "boolean",
}


# ---------------------------------------------------------------------------
# Value helpers
# ---------------------------------------------------------------------------

def is_iri(value: Any) -> bool:
    """True if value is a string that starts with a URI scheme (or prefix)."""
    return isinstance(value, str) and _IRI_SCHEME.match(value) is not None


def is_blank_node_id(value: Any) -> bool:
    return isinstance(value, str) and value.startswith("_:")


def is_object(value: Any) -> bool:
    return isinstance(value, (Mapping, list, tuple))


def is_number(value: Any) -> bool:
    # bool is an int subclass but never a number here
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def primitive_kind(value: Any) -> str | None:
    if isinstance(value, bool):
        return "boolean"
    if is_number(value):
        return "number"
    if isinstance(value, str):
        return "string"
    return None


def values_of(value: Any) -> list[Any]:
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def count_of(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, (list, tuple)):
        return len(value)
    return 1


def strict_equals(a: Any, b: Any) -> bool:
    """Primitive equality that keeps booleans apart from numbers."""
    if is_object(a) or is_object(b):
        return False
    if isinstance(a, bool) != isinstance(b, bool):
        return False
    return a == b


def node_types(node: Mapping[str, Any]) -> list[str]:
    types = node.get("@type")
    if isinstance(types, str):
        return [types]
    if isinstance(types, (list, tuple)):
        return [t for t in types if isinstance(t, str)]
    return []


def datatype_local_name(datatype: str) -> str:
    """Reduce ``xsd:integer`` or the full XSD IRI to ``integer``."""
    if datatype.startswith(_XSD_NS):
        return datatype[len(_XSD_NS):]
    if datatype.startswith("xsd:"):
        return datatype[4:]
    return datatype


# ---------------------------------------------------------------------------
# Cardinality
# ---------------------------------------------------------------------------

def check_cardinality(path: str, value: Any, cardinality: Cardinality) -> list[ShapeViolation]:
    """Check occurrence count; a missing required property short-circuits."""
    count = count_of(value)

    if cardinality.required and count == 0:
        return [ShapeViolation(
            path, ViolationCode.CARDINALITY_REQUIRED,
            f"Property '{path}' is required but missing",
            expected=f"min: {cardinality.min}", actual=0, constraint="minCount",
        )]

    violations: list[ShapeViolation] = []
    if count < cardinality.min:
        violations.append(ShapeViolation(
            path, ViolationCode.CARDINALITY_MIN,
            f"Property '{path}' has {count} occurrence(s), expected at least {cardinality.min}",
            expected=f"min: {cardinality.min}", actual=count, constraint="minCount",
        ))
    if cardinality.max is not None and count > cardinality.max:
        violations.append(ShapeViolation(
            path, ViolationCode.CARDINALITY_MAX,
            f"Property '{path}' has {count} occurrence(s), expected at most {cardinality.max}",
            expected=f"max: {cardinality.max}", actual=count, constraint="maxCount",
        ))
    return violations


# ---------------------------------------------------------------------------
# @type membership
# ---------------------------------------------------------------------------

def check_type(data: Mapping[str, Any], target_class: str) -> list[ShapeViolation]:
    """Check that ``@type`` (string or list of strings) includes target_class."""
    type_value = data.get("@type")
    if isinstance(type_value, str):
        types = [type_value]
    elif isinstance(type_value, (list, tuple)):
        types = [t for t in type_value if isinstance(t, str)]
    else:
        return [ShapeViolation(
            "@type", ViolationCode.TYPE_MISMATCH,
            "@type field is missing or invalid",
            expected=f"@type includes {target_class}", actual=type_value,
            constraint="targetClass",
        )]

    if target_class not in types:
        return [ShapeViolation(
            "@type", ViolationCode.TYPE_MISMATCH,
            f"@type does not include expected class '{target_class}'",
            expected=f"@type includes {target_class}", actual=types,
            constraint="targetClass",
        )]
    return []


# ---------------------------------------------------------------------------
# Datatype
# ---------------------------------------------------------------------------

def check_datatype(path: str, value: Any, datatype: str) -> list[ShapeViolation]:
    """Match each element's primitive kind against a known XSD datatype.

    Unrecognised datatypes accept any element that is not an object.
    """
    expected_kind = _DATATYPE_KINDS.get(datatype_local_name(datatype))
    violations: list[ShapeViolation] = []
    for v in values_of(value):
        kind = primitive_kind(v)
        if expected_kind is None:
            ok = not is_object(v)
        else:
            ok = kind == expected_kind
        if not ok:
            violations.append(ShapeViolation(
                path, ViolationCode.DATATYPE_MISMATCH,
                f"Property '{path}' value must be of datatype {datatype}",
                expected=datatype, actual=kind or type(v).__name__, constraint="datatype",
            ))
    return violations


# ---------------------------------------------------------------------------
# Class (needs an inference context)
# ---------------------------------------------------------------------------

def check_class(
    path: str, value: Any, class_iri: str, context: InferenceContext | None
) -> list[ShapeViolation]:
    """Check that embedded nodes are instances of class_iri or a subclass.

    Without a context the constraint is not evaluated. Bare IRI references
    are skipped: resolving them would need instance data.
    """
    if context is None:
        return []
    violations: list[ShapeViolation] = []
    for v in values_of(value):
        if not isinstance(v, Mapping) or "@type" not in v:
            continue
        types = node_types(v)
        if not any(is_sub_class_of(context, t, class_iri) for t in types):
            violations.append(ShapeViolation(
                path, ViolationCode.RANGE_MISMATCH,
                f"Property '{path}' value must be an instance of class {class_iri}",
                expected=class_iri, actual=types, constraint="class",
            ))
    return violations


# ---------------------------------------------------------------------------
# Node kind
# ---------------------------------------------------------------------------

def _is_blank_node(v: Any) -> bool:
    if is_blank_node_id(v):
        return True
    if isinstance(v, Mapping):
        node_id = v.get("@id")
        return node_id is None or is_blank_node_id(node_id)
    return False


def check_node_kind(path: str, value: Any, node_kind: NodeKind) -> list[ShapeViolation]:
    violations: list[ShapeViolation] = []
    for v in values_of(value):
        if node_kind is NodeKind.IRI:
            ok = is_iri(v)
        elif node_kind is NodeKind.LITERAL:
            ok = not is_object(v) and not is_iri(v)
        else:
            ok = _is_blank_node(v)
        if not ok:
            violations.append(ShapeViolation(
                path, ViolationCode.NODE_KIND,
                f"Property '{path}' expects {node_kind.value}",
                expected=node_kind.value, actual=v, constraint="nodeKind",
            ))
    return violations


# ---------------------------------------------------------------------------
# Enumeration / fixed value
# ---------------------------------------------------------------------------

def check_in(path: str, value: Any, allowed: Iterable[Any]) -> list[ShapeViolation]:
    allowed = tuple(allowed)
    violations: list[ShapeViolation] = []
    for v in values_of(value):
        if not any(strict_equals(v, a) for a in allowed):
            violations.append(ShapeViolation(
                path, ViolationCode.IN,
                f"Property '{path}' value not in allowed set",
                expected=list(allowed), actual=v, constraint="in",
            ))
    return violations


def check_has_value(path: str, value: Any, expected: Any) -> list[ShapeViolation]:
    if any(strict_equals(v, expected) for v in values_of(value)):
        return []
    return [ShapeViolation(
        path, ViolationCode.HAS_VALUE,
        f"Property '{path}' must have value {expected}",
        expected=expected, actual=value, constraint="hasValue",
    )]


# ---------------------------------------------------------------------------
# String and numeric bounds
# ---------------------------------------------------------------------------

def check_string_bounds(
    path: str,
    value: Any,
    min_length: int | None = None,
    max_length: int | None = None,
    pattern: str | None = None,
) -> list[ShapeViolation]:
    """Length and regex checks; non-string elements are ignored.

    The pattern is searched, not anchored, as in SHACL sh:pattern.
    """
    regex = re.compile(pattern) if pattern is not None else None
    violations: list[ShapeViolation] = []
    for v in values_of(value):
        if not isinstance(v, str):
            continue
        if min_length is not None and len(v) < min_length:
            violations.append(ShapeViolation(
                path, ViolationCode.RANGE_MISMATCH,
                f"String length must be at least {min_length}, got {len(v)}",
                expected=min_length, actual=len(v), constraint="minLength",
            ))
        if max_length is not None and len(v) > max_length:
            violations.append(ShapeViolation(
                path, ViolationCode.RANGE_MISMATCH,
                f"String length must be at most {max_length}, got {len(v)}",
                expected=max_length, actual=len(v), constraint="maxLength",
            ))
        if regex is not None and regex.search(v) is None:
            violations.append(ShapeViolation(
                path, ViolationCode.RANGE_MISMATCH,
                f"String must match pattern {pattern}",
                expected=pattern, actual=v, constraint="pattern",
            ))
    return violations


def check_numeric_bounds(
    path: str,
    value: Any,
    min_inclusive: float | None = None,
    max_inclusive: float | None = None,
    min_exclusive: float | None = None,
    max_exclusive: float | None = None,
) -> list[ShapeViolation]:
    """Inclusive/exclusive bounds; non-numeric elements are ignored."""
    bounds = (
        ("minInclusive", min_inclusive, lambda v, b: v >= b, ">="),
        ("maxInclusive", max_inclusive, lambda v, b: v <= b, "<="),
        ("minExclusive", min_exclusive, lambda v, b: v > b, ">"),
        ("maxExclusive", max_exclusive, lambda v, b: v < b, "<"),
    )
    violations: list[ShapeViolation] = []
    for v in values_of(value):
        if not is_number(v):
            continue
        for name, bound, holds, op in bounds:
            if bound is not None and not holds(v, bound):
                violations.append(ShapeViolation(
                    path, ViolationCode.RANGE_MISMATCH,
                    f"Number must be {op} {bound}, got {v}",
                    expected=bound, actual=v, constraint=name,
                ))
    return violations


# ---------------------------------------------------------------------------
# Shape reference
# ---------------------------------------------------------------------------

def check_shape_reference(path: str, value: Any, shape_id: str) -> list[ShapeViolation]:
    """A reference to another shape must be an IRI string; the target is not resolved."""
    violations: list[ShapeViolation] = []
    for v in values_of(value):
        if not isinstance(v, str):
            violations.append(ShapeViolation(
                path, ViolationCode.SHAPE_REFERENCE_INVALID,
                f"Property '{path}' expects IRI reference (shape: {shape_id}), "
                f"got {type(v).__name__}",
                expected=f"shape: {shape_id}", actual=type(v).__name__, constraint="node",
            ))
        elif not is_iri(v):
            violations.append(ShapeViolation(
                path, ViolationCode.SHAPE_REFERENCE_INVALID,
                f"Property '{path}' expects valid IRI (shape: {shape_id}), got '{v}'",
                expected=f"shape: {shape_id}", actual=v, constraint="node",
            ))
    return violations
