"""Tests for node validation against NodeShapes.

Covers the orchestration order (object check, @type, cardinality, value-level
checks, combinators), class-aware checks with and without an inference
context, and the result helpers.
"""

import logging
import re

import pytest

from semshape.inference import build_inference_context
from semshape.shape import define_shape, property_shape
from semshape.types import Datatype, ViolationCode
from semshape.validation import (
    ShapeValidationResult,
    check,
    evaluate_value_constraints,
    validate,
    validate_batch,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _person_shape():
    """ex:Person with exactly one string email."""
    return define_shape(
        "ex:Person",
        {"email": property_shape(min_count=1, max_count=1, datatype=Datatype.STRING)},
    )


def _codes(result):
    return [v.code for v in result.violations]


def _alternatives():
    return [{"pattern": "^[A-Z]"}, {"min_length": 3}]


# ---------------------------------------------------------------------------
# End-to-end
# ---------------------------------------------------------------------------

class TestPersonEmail:
    def test_conforming_node(self):
        result = validate(_person_shape(), {"@type": ["ex:Person"], "email": "a@b.com"})
        assert result.ok
        assert result.violations == []

    def test_wrong_type(self):
        result = validate(_person_shape(), {"@type": ["ex:Project"], "email": "a@b.com"})
        assert not result.ok
        assert _codes(result) == [ViolationCode.TYPE_MISMATCH]
        assert result.violations[0].path == "@type"

    def test_missing_email(self):
        result = validate(_person_shape(), {"@type": ["ex:Person"]})
        assert not result.ok
        assert _codes(result) == [ViolationCode.CARDINALITY_REQUIRED]
        assert result.violations[0].path == "email"

    def test_too_many_emails(self):
        result = validate(_person_shape(), {"@type": "ex:Person", "email": ["a@b.com", "c@d.com"]})
        assert _codes(result) == [ViolationCode.CARDINALITY_MAX]

    def test_wrong_datatype(self):
        result = validate(_person_shape(), {"@type": "ex:Person", "email": 42})
        assert _codes(result) == [ViolationCode.DATATYPE_MISMATCH]

    def test_type_check_skipped_without_type(self):
        assert check(_person_shape(), {"email": "a@b.com"})

    def test_check_matches_validate(self):
        shape = _person_shape()
        assert check(shape, {"@type": "ex:Person", "email": "a@b.com"}) is True
        assert check(shape, {"@type": "ex:Person"}) is False


class TestRequired:
    @pytest.mark.parametrize("data", [{}, {"name": None}])
    def test_single_violation_for_missing_value(self, data):
        shape = define_shape("ex:Thing", {"name": property_shape(min_count=1, max_count=5)})
        result = validate(shape, data)
        assert _codes(result) == [ViolationCode.CARDINALITY_REQUIRED]

    def test_empty_list_is_missing(self):
        shape = define_shape("ex:Thing", {"name": property_shape(min_count=1)})
        assert _codes(validate(shape, {"name": []})) == [ViolationCode.CARDINALITY_REQUIRED]

    def test_optional_absent_value_not_checked(self):
        shape = define_shape("ex:Thing", {"age": property_shape(datatype=Datatype.INTEGER)})
        assert validate(shape, {}).ok


class TestNonObjectData:
    @pytest.mark.parametrize("data", [None, "text", 3, ["a"]])
    def test_single_unknown_violation(self, data):
        result = validate(_person_shape(), data)
        assert not result.ok
        assert _codes(result) == [ViolationCode.UNKNOWN]
        assert result.violations[0].path == "/"


class TestJsonLdKeywords:
    def test_keyword_properties_skipped(self):
        shape = define_shape(
            "ex:Thing",
            {
                "@id": property_shape(min_count=1),
                "@context": property_shape(min_count=1),
                "label": property_shape(datatype=Datatype.STRING),
            },
        )
        assert validate(shape, {"label": "x"}).ok


# ---------------------------------------------------------------------------
# Value-level checks through validate
# ---------------------------------------------------------------------------

class TestValueChecks:
    def test_every_failing_check_reported(self):
        shape = define_shape(
            "ex:Product",
            {
                "sku": property_shape(pattern=r"^[A-Z]{3}-\d+$", max_length=8),
                "price": property_shape(datatype=Datatype.DECIMAL, min_exclusive=0),
                "status": property_shape(in_=["draft", "published"]),
                "tags": property_shape(has_value="featured"),
                "maker": property_shape(node="ex:CompanyShape"),
                "homepage": property_shape(node_kind="IRI"),
            },
        )
        result = validate(shape, {
            "sku": "abc-123456789",
            "price": 0,
            "status": "archived",
            "tags": ["new"],
            "maker": {"name": "ACME"},
            "homepage": "not a link",
        })
        assert [v.constraint for v in result.by_path("sku")] == ["maxLength", "pattern"]
        assert [v.constraint for v in result.by_path("price")] == ["minExclusive"]
        assert result.by_code(ViolationCode.IN)[0].path == "status"
        assert result.by_code(ViolationCode.HAS_VALUE)[0].path == "tags"
        assert result.by_code(ViolationCode.SHAPE_REFERENCE_INVALID)[0].path == "maker"
        assert result.by_code(ViolationCode.NODE_KIND)[0].path == "homepage"

    def test_conforming_values(self):
        shape = define_shape(
            "ex:Product",
            {
                "sku": property_shape(pattern=r"^[A-Z]{3}-\d+$"),
                "price": property_shape(min_inclusive=0, max_inclusive=100),
                "maker": property_shape(node="ex:CompanyShape"),
            },
        )
        assert check(shape, {"sku": "ABC-1", "price": [0, 99.5], "maker": "ex:acme"})

    def test_invalid_pattern_raises(self):
        shape = define_shape("ex:Thing", {"code": property_shape(pattern="[unclosed")})
        with pytest.raises(re.error):
            validate(shape, {"code": "x"})


# ---------------------------------------------------------------------------
# Class-aware validation
# ---------------------------------------------------------------------------

class TestClassConstraint:
    def _shape(self):
        return define_shape("ex:Person", {"knows": property_shape(class_="ex:Agent")})

    def _ctx(self):
        return build_inference_context(
            [{"iri": "ex:Person", "super_classes": ["ex:Agent"]}, {"iri": "ex:Agent"}],
            [],
        )

    def test_subclass_satisfies_with_context(self):
        data = {"knows": {"@type": "ex:Person", "name": "Jane"}}
        assert validate(self._shape(), data, self._ctx()).ok

    def test_skipped_without_context(self):
        data = {"knows": {"@type": "ex:Rock"}}
        assert validate(self._shape(), data).ok

    def test_unrelated_class_fails_with_context(self):
        data = {"knows": [{"@type": "ex:Person"}, {"@type": "ex:Rock"}]}
        result = validate(self._shape(), data, self._ctx())
        assert _codes(result) == [ViolationCode.RANGE_MISMATCH]
        assert result.violations[0].constraint == "class"


# ---------------------------------------------------------------------------
# Logical combinators
# ---------------------------------------------------------------------------

class TestCombinators:
    def _xone_shape(self):
        return define_shape("ex:Thing", {"code": property_shape(xone=_alternatives())})

    def test_xone_both_hold(self):
        result = validate(self._xone_shape(), {"code": "Abc"})
        assert _codes(result) == [ViolationCode.XONE]
        assert result.violations[0].actual == 2
        assert "(got 2)" in result.violations[0].message

    @pytest.mark.parametrize("value", ["abc", "A"])
    def test_xone_exactly_one_holds(self, value):
        assert validate(self._xone_shape(), {"code": value}).ok

    def test_xone_none_hold(self):
        result = validate(self._xone_shape(), {"code": "a"})
        assert result.violations[0].actual == 0

    def test_or_none_hold(self):
        shape = define_shape("ex:Thing", {"code": property_shape(or_=_alternatives())})
        assert _codes(validate(shape, {"code": "a"})) == [ViolationCode.OR]

    @pytest.mark.parametrize("value", ["Abc", "abc", "A"])
    def test_or_some_hold(self, value):
        shape = define_shape("ex:Thing", {"code": property_shape(or_=_alternatives())})
        assert validate(shape, {"code": value}).ok

    def test_and(self):
        shape = define_shape("ex:Thing", {"code": property_shape(and_=_alternatives())})
        assert validate(shape, {"code": "Abc"}).ok
        result = validate(shape, {"code": "abc"})
        assert _codes(result) == [ViolationCode.UNKNOWN]
        assert result.violations[0].constraint == "and"

    def test_not(self):
        shape = define_shape("ex:Thing", {"status": property_shape(not_={"in_": ["deleted"]})})
        assert validate(shape, {"status": "active"}).ok
        result = validate(shape, {"status": "deleted"})
        assert _codes(result) == [ViolationCode.UNKNOWN]
        assert result.violations[0].constraint == "not"

    def test_nested_cardinality_ignored(self):
        shape = define_shape(
            "ex:Thing",
            {"code": property_shape(or_=[{"min_count": 5, "datatype": Datatype.STRING}])},
        )
        assert validate(shape, {"code": "x"}).ok

    def test_combinators_see_inference_context(self):
        ctx = build_inference_context([{"iri": "ex:Dog", "super_classes": ["ex:Animal"]}], [])
        shape = define_shape(
            "ex:Owner",
            {"pet": property_shape(or_=[{"class_": "ex:Animal"}, {"node_kind": "IRI"}])},
        )
        assert validate(shape, {"pet": {"@type": "ex:Dog"}}, ctx).ok
        assert not validate(shape, {"pet": {"@type": "ex:Car"}}, ctx).ok


class TestEvaluateValueConstraints:
    def test_true_when_all_hold(self):
        constraints = property_shape(datatype=Datatype.STRING, min_length=2)
        assert evaluate_value_constraints("ok", constraints)

    def test_false_when_any_fails(self):
        constraints = property_shape(datatype=Datatype.STRING, min_length=2)
        assert not evaluate_value_constraints("x", constraints)
        assert not evaluate_value_constraints(12, constraints)

    def test_cardinality_not_evaluated(self):
        assert evaluate_value_constraints([], property_shape(min_count=1))

    def test_empty_set_holds(self):
        assert evaluate_value_constraints({"anything": True}, property_shape())


# ---------------------------------------------------------------------------
# Results and batches
# ---------------------------------------------------------------------------

class TestResults:
    def test_summary(self):
        result = validate(_person_shape(), {"@type": "ex:Project"})
        text = result.summary()
        assert "DOES NOT CONFORM" in text
        assert "CARDINALITY_REQUIRED" in text
        assert "TYPE_MISMATCH" in text

    def test_summary_conforming(self):
        assert "No violations found." in ShapeValidationResult().summary()

    def test_validate_batch(self):
        results = validate_batch(
            _person_shape(),
            [{"email": "a@b.com"}, {}, "not a node"],
        )
        assert [r.ok for r in results] == [True, False, False]
        assert _codes(results[2]) == [ViolationCode.UNKNOWN]

    def test_validation_logged(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="semshape.validation"):
            validate(_person_shape(), {"@id": "ex:alice", "email": "a@b.com"})
        assert "ex:alice" in caplog.text
