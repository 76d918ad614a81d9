"""Core types for semshape: identifiers, vocabulary constants and ontology declarations.

Ontology declarations (OntoClass, OntoProperty, Ontology) are plain frozen
records. They carry no behaviour of their own; the inference module derives
an InferenceContext from them.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, NewType

from rdflib.namespace import OWL, RDF, RDFS, SH, XSD

if TYPE_CHECKING:
    from .inference import InferenceContext, InferenceRules


# ---------------------------------------------------------------------------
# IRI — opaque identifier
# ---------------------------------------------------------------------------

IRI = NewType("IRI", str)


def iri(value: str) -> IRI:
    """Wrap a string (prefixed name or absolute URI) as an IRI."""
    return IRI(str(value))


# Standard prefixes, used to expand prefixed names when exporting to RDF.
STANDARD_PREFIXES: dict[str, str] = {
    "rdf": str(RDF),
    "rdfs": str(RDFS),
    "xsd": str(XSD),
    "owl": str(OWL),
    "sh": str(SH),
}


def namespace(base: str) -> Callable[[str], IRI]:
    """Return a function minting IRIs under base, e.g. ``FOAF("name")``.

    IRIs stay plain strings: rdflib terms compare unequal to str.
    """
    if not base.endswith(("/", "#")):
        base = f"{base}/"

    def make(local_name: str) -> IRI:
        return IRI(f"{base}{local_name}")

    make.base = base
    return make


FOAF = namespace("http://xmlns.com/foaf/0.1/")
SCHEMA = namespace("https://schema.org/")


# ---------------------------------------------------------------------------
# XSD datatypes
# ---------------------------------------------------------------------------

class Datatype:
    """Prefixed XSD datatype names enforced by the datatype evaluator.

    Other datatypes may still be named on a property shape; the evaluator
    only rejects objects for them.
    """
    STRING = IRI("xsd:string")
    INTEGER = IRI("xsd:integer")
    DECIMAL = IRI("xsd:decimal")
    BOOLEAN = IRI("xsd:boolean")


# ---------------------------------------------------------------------------
# NodeKind — sh:nodeKind values supported by the lite engine
# ---------------------------------------------------------------------------

class NodeKind(Enum):
    IRI = "IRI"
    LITERAL = "Literal"
    BLANK_NODE = "BlankNode"


# ---------------------------------------------------------------------------
# ViolationCode — stable codes carried by every ShapeViolation
# ---------------------------------------------------------------------------

class ViolationCode(str, Enum):
    CARDINALITY_MIN = "CARDINALITY_MIN"              # min count not satisfied
    CARDINALITY_MAX = "CARDINALITY_MAX"              # max count exceeded
    CARDINALITY_REQUIRED = "CARDINALITY_REQUIRED"    # required property missing
    RANGE_MISMATCH = "RANGE_MISMATCH"                # class, string or numeric bound failed
    TYPE_MISMATCH = "TYPE_MISMATCH"                  # @type lacks the target class
    DATATYPE_MISMATCH = "DATATYPE_MISMATCH"
    SHAPE_REFERENCE_INVALID = "SHAPE_REFERENCE_INVALID"
    NODE_KIND = "NODE_KIND"
    IN = "IN"
    HAS_VALUE = "HAS_VALUE"
    OR = "OR"
    XONE = "XONE"
    UNKNOWN = "UNKNOWN"


# ---------------------------------------------------------------------------
# OntoClass / OntoProperty — ontology declarations
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class OntoClass:
    """An RDFS/OWL class declaration.

    Only ``sub_class_of`` and ``equivalent_class`` feed the inference
    context; the remaining fields are descriptive metadata.
    """
    iri: IRI
    label: str | None = None
    comment: str | None = None
    sub_class_of: tuple[IRI, ...] = ()
    equivalent_class: tuple[IRI, ...] = ()
    disjoint_with: tuple[IRI, ...] = ()

    def __repr__(self) -> str:
        return f"Class({self.iri})"


@dataclass(frozen=True)
class OntoProperty:
    """An RDF/OWL property declaration with its OWL characteristics."""
    iri: IRI
    label: str | None = None
    comment: str | None = None
    domain: tuple[IRI, ...] = ()
    range: tuple[IRI, ...] = ()
    sub_property_of: tuple[IRI, ...] = ()
    inverse_of: IRI | None = None

    # OWL characteristics
    functional: bool = False
    inverse_functional: bool = False
    transitive: bool = False
    symmetric: bool = False
    asymmetric: bool = False
    reflexive: bool = False
    irreflexive: bool = False

    def __repr__(self) -> str:
        return f"Property({self.iri})"


@dataclass(frozen=True)
class Ontology:
    """An ontology container: its own IRI, imports and member declarations."""
    iri: IRI
    imports: tuple[IRI, ...] = ()
    classes: tuple[OntoClass, ...] = ()
    properties: tuple[OntoProperty, ...] = ()

    def inference_context(self, rules: InferenceRules | None = None) -> InferenceContext:
        """Build an InferenceContext from this ontology's declarations."""
        from .inference import DEFAULT_RULES, build_inference_context

        return build_inference_context(
            self.classes, self.properties, rules=rules or DEFAULT_RULES
        )

    def __repr__(self) -> str:
        return (
            f"Ontology({self.iri}: "
            f"{len(self.classes)} classes, "
            f"{len(self.properties)} properties, "
            f"{len(self.imports)} imports)"
        )


# ---------------------------------------------------------------------------
# ShapeViolation — a single reported constraint failure
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ShapeViolation:
    """One constraint failure on a node.

    ``constraint`` names the keyword that failed (``"minLength"``,
    ``"class"``, ``"and"`` ...), which disambiguates codes shared by several
    constraint families such as RANGE_MISMATCH.
    """
    path: str
    code: ViolationCode
    message: str
    expected: Any = None
    actual: Any = None
    constraint: str = ""

    def __repr__(self) -> str:
        return f"ShapeViolation({self.path}: {self.code.value} {self.message})"
