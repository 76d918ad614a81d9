"""SHACL Bridge — exports semshape shapes as SHACL RDF and cross-checks with pySHACL.

This bridge translates:
  1. NodeShape      → sh:NodeShape with sh:targetClass, sh:closed, sh:ignoredProperties
  2. PropertyShape  → blank-node property shape with sh:path and every set constraint
  3. Combinators    → sh:or / sh:xone / sh:and as RDF lists, sh:not as a nested shape
  4. JSON-LD node   → RDF data graph, using the shape's property paths

The in-process validator in semshape.validation stays the reference;
shacl_validate() runs the same shape through pySHACL so the two can be
compared on the constraints both understand.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Mapping

from rdflib import BNode, Graph, Literal, Namespace, RDF, RDFS, URIRef, XSD
from rdflib.collection import Collection
from rdflib.namespace import SH

from .constraints import is_blank_node_id, is_iri, node_types
from .shape import NodeShape, PropertyShape
from .types import IRI, STANDARD_PREFIXES

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# IRI expansion
# ---------------------------------------------------------------------------

def _prefixes(prefixes: Mapping[str, str] | None) -> dict[str, str]:
    merged = dict(STANDARD_PREFIXES)
    if prefixes:
        merged.update(prefixes)
    return merged


def expand_iri(value: str, prefixes: Mapping[str, str]) -> URIRef:
    """Expand ``prefix:local`` with a known prefix; anything else is used as is."""
    prefix, sep, local = str(value).partition(":")
    if sep and prefix in prefixes and not local.startswith("//"):
        return URIRef(prefixes[prefix] + local)
    return URIRef(str(value))


def _to_literal(value: Any) -> Literal:
    """Convert a Python value to an RDF Literal with appropriate datatype."""
    if isinstance(value, bool):
        return Literal(value, datatype=XSD.boolean)
    if isinstance(value, int):
        return Literal(value, datatype=XSD.integer)
    if isinstance(value, float):
        return Literal(value, datatype=XSD.decimal)
    return Literal(str(value), datatype=XSD.string)


def _bind_all(g: Graph, prefixes: Mapping[str, str]) -> None:
    for prefix, uri in prefixes.items():
        g.bind(prefix, Namespace(uri), override=True)


# ---------------------------------------------------------------------------
# Shapes → SHACL graph
# ---------------------------------------------------------------------------

def _add_list(g: Graph, subject, predicate, items: list) -> None:
    head = BNode()
    Collection(g, head, items)
    g.add((subject, predicate, head))


def _constraint_node(
    g: Graph,
    prop: PropertyShape,
    prefixes: Mapping[str, str],
    name: str | None = None,
    nested: bool = False,
) -> BNode:
    """Write one constraint set as a blank node.

    Nested sets (members of sh:or, sh:xone, sh:and, sh:not) are node shapes
    without sh:path, so their min/max counts are left out.
    """
    node = BNode()

    if prop.path is not None:
        g.add((node, SH.path, expand_iri(prop.path, prefixes)))
    if name is not None:
        g.add((node, SH.name, Literal(name)))
    if prop.description:
        g.add((node, RDFS.comment, Literal(prop.description)))

    if prop.datatype is not None:
        g.add((node, SH.datatype, expand_iri(prop.datatype, prefixes)))
    if prop.class_ is not None:
        g.add((node, SH["class"], expand_iri(prop.class_, prefixes)))
    if prop.node is not None:
        g.add((node, SH.node, expand_iri(prop.node, prefixes)))
    if prop.node_kind is not None:
        g.add((node, SH.nodeKind, SH[prop.node_kind.value]))

    if not nested:
        for predicate, count in ((SH.minCount, prop.min_count), (SH.maxCount, prop.max_count)):
            if count is not None:
                g.add((node, predicate, _to_literal(count)))
    for predicate, bound in (
        (SH.minLength, prop.min_length),
        (SH.maxLength, prop.max_length),
        (SH.minInclusive, prop.min_inclusive),
        (SH.maxInclusive, prop.max_inclusive),
        (SH.minExclusive, prop.min_exclusive),
        (SH.maxExclusive, prop.max_exclusive),
    ):
        if bound is not None:
            g.add((node, predicate, _to_literal(bound)))
    if prop.pattern is not None:
        g.add((node, SH.pattern, Literal(prop.pattern)))

    if prop.in_ is not None:
        _add_list(g, node, SH["in"], [_term_for(v, prefixes) for v in prop.in_])
    if prop.has_value is not None:
        g.add((node, SH.hasValue, _term_for(prop.has_value, prefixes)))

    for predicate, alternatives in ((SH["or"], prop.or_), (SH.xone, prop.xone), (SH["and"], prop.and_)):
        if alternatives:
            _add_list(g, node, predicate,
                      [_constraint_node(g, alt, prefixes, nested=True) for alt in alternatives])
    if prop.not_ is not None:
        g.add((node, SH["not"], _constraint_node(g, prop.not_, prefixes, nested=True)))

    return node


def _term_for(value: Any, prefixes: Mapping[str, str]):
    if is_iri(value):
        return expand_iri(value, prefixes)
    return _to_literal(value)


def _shape_uri(shape: NodeShape, prefixes: Mapping[str, str]) -> URIRef:
    target = expand_iri(shape.target_class, prefixes)
    return URIRef(f"{target}Shape")


def shapes_to_shacl(
    shapes: NodeShape | Iterable[NodeShape],
    prefixes: Mapping[str, str] | None = None,
) -> Graph:
    """Translate one or more NodeShapes into a SHACL shapes graph.

    Each NodeShape becomes ``<targetClass>Shape a sh:NodeShape``. Property
    shapes are blank nodes named after their key in the NodeShape.
    """
    prefixes = _prefixes(prefixes)
    if isinstance(shapes, NodeShape):
        shapes = [shapes]

    sg = Graph()
    _bind_all(sg, prefixes)

    for shape in shapes:
        shape_uri = _shape_uri(shape, prefixes)
        sg.add((shape_uri, RDF.type, SH.NodeShape))
        sg.add((shape_uri, SH.targetClass, expand_iri(shape.target_class, prefixes)))
        if shape.description:
            sg.add((shape_uri, RDFS.comment, Literal(shape.description)))
        if shape.closed is not None:
            sg.add((shape_uri, SH.closed, Literal(shape.closed)))
        if shape.ignored_properties:
            _add_list(sg, shape_uri, SH.ignoredProperties,
                      [expand_iri(p, prefixes) for p in shape.ignored_properties])

        for name, prop in shape.properties.items():
            if prop.path is None:
                # sh:path is mandatory on a property shape; fall back to the key
                prop = replace(prop, path=IRI(name))
            sg.add((shape_uri, SH.property, _constraint_node(sg, prop, prefixes, name=name)))

    logger.debug("exported shapes graph with %d triple(s)", len(sg))
    return sg


def shapes_to_jsonld(
    shapes: NodeShape | Iterable[NodeShape],
    prefixes: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Serialize the SHACL shapes graph as a JSON-LD document.

    The prefixes (standard ones included) become the ``@context``.
    """
    context = _prefixes(prefixes)
    sg = shapes_to_shacl(shapes, context)
    document = json.loads(sg.serialize(format="json-ld", context=context, auto_compact=True))
    return document


# ---------------------------------------------------------------------------
# JSON-LD node → RDF data graph
# ---------------------------------------------------------------------------

def _subject_for(node: Mapping[str, Any], prefixes: Mapping[str, str]):
    node_id = node.get("@id")
    if isinstance(node_id, str) and not is_blank_node_id(node_id):
        return expand_iri(node_id, prefixes)
    return BNode(node_id[2:]) if isinstance(node_id, str) else BNode()


def _object_for(value: Any, prop: PropertyShape, g: Graph, prefixes: Mapping[str, str]):
    if isinstance(value, Mapping):
        return _add_node(g, value, prefixes, {})
    if is_blank_node_id(value):
        return BNode(value[2:])
    if is_iri(value) and (prop.datatype is None or prop.class_ is not None or prop.node is not None):
        return expand_iri(value, prefixes)
    return _to_literal(value)


def _add_node(
    g: Graph,
    node: Mapping[str, Any],
    prefixes: Mapping[str, str],
    properties: Mapping[str, PropertyShape],
):
    subject = _subject_for(node, prefixes)
    for type_iri in node_types(node):
        g.add((subject, RDF.type, expand_iri(type_iri, prefixes)))

    for key, value in node.items():
        if key.startswith("@") or value is None:
            continue
        prop = properties.get(key) or PropertyShape(path=key)
        predicate = expand_iri(prop.path or key, prefixes)
        items = value if isinstance(value, (list, tuple)) else [value]
        for item in items:
            g.add((subject, predicate, _object_for(item, prop, g, prefixes)))
    return subject


def node_to_rdf(
    shape: NodeShape,
    data: Mapping[str, Any],
    prefixes: Mapping[str, str] | None = None,
    graph: Graph | None = None,
) -> Graph:
    """Translate a JSON-LD style node into RDF triples.

    Keys declared in the shape map to their sh:path; other keys are expanded
    as IRIs themselves. Embedded nodes become nested resources. Strings that
    look like IRIs become IRI references unless the property declares a
    datatype without a class.
    """
    if not isinstance(data, Mapping):
        raise ValueError(f"Expected a mapping for RDF conversion, got {type(data).__name__}")
    prefixes = _prefixes(prefixes)
    dg = graph if graph is not None else Graph()
    _bind_all(dg, prefixes)
    _add_node(dg, data, prefixes, shape.properties)
    return dg


# ---------------------------------------------------------------------------
# pySHACL cross-check
# ---------------------------------------------------------------------------

def shacl_validate(
    shape: NodeShape,
    data: Mapping[str, Any] | Iterable[Mapping[str, Any]],
    prefixes: Mapping[str, str] | None = None,
) -> SHACLValidationResult:
    """Run pySHACL over the exported shape and the node(s) converted to RDF.

    Returns a structured result with conformance status and violation details.
    """
    from pyshacl import validate as pyshacl_validate

    prefixes = _prefixes(prefixes)
    shapes_graph = shapes_to_shacl(shape, prefixes)
    data_graph = Graph()
    nodes = [data] if isinstance(data, Mapping) else list(data)
    for node in nodes:
        node_to_rdf(shape, node, prefixes, graph=data_graph)

    conforms, results_graph, results_text = pyshacl_validate(
        data_graph,
        shacl_graph=shapes_graph,
        inference="none",
        abort_on_first=False,
    )

    violations = []
    for result in results_graph.subjects(RDF.type, SH.ValidationResult):
        focus = results_graph.value(result, SH.focusNode)
        path = results_graph.value(result, SH.resultPath)
        message = results_graph.value(result, SH.resultMessage)
        severity = results_graph.value(result, SH.resultSeverity)
        component = results_graph.value(result, SH.sourceConstraintComponent)

        violations.append(SHACLViolation(
            focus_node=str(focus) if focus else "",
            path=str(path) if path else "",
            message=str(message) if message else "",
            severity=str(severity) if severity else "",
            component=str(component) if component else "",
        ))

    logger.debug("pySHACL checked %d node(s): conforms=%s, %d violation(s)",
                 len(nodes), conforms, len(violations))
    return SHACLValidationResult(
        conforms=bool(conforms),
        violations=violations,
        results_text=results_text,
        shapes_graph=shapes_graph,
        data_graph=data_graph,
    )


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

def _local(iri: str) -> str:
    for sep in ("#", "/", ":"):
        if sep in iri:
            iri = iri.rsplit(sep, 1)[-1]
    return iri


@dataclass
class SHACLViolation:
    """A single SHACL validation violation."""
    focus_node: str
    path: str
    message: str
    severity: str
    component: str = ""

    @property
    def component_name(self) -> str:
        """Local name of the constraint component, e.g. ``MinCountConstraintComponent``."""
        return _local(self.component)

    def __repr__(self) -> str:
        return f"SHACLViolation({_local(self.focus_node)}.{_local(self.path)}: {self.message})"


@dataclass
class SHACLValidationResult:
    """Result of SHACL validation through the semshape→SHACL bridge."""
    conforms: bool
    violations: list[SHACLViolation] = field(default_factory=list)
    results_text: str = ""
    shapes_graph: Graph | None = None
    data_graph: Graph | None = None

    def summary(self) -> str:
        lines = []
        status = "CONFORMS" if self.conforms else "DOES NOT CONFORM"
        lines.append(f"SHACL Validation: {status}")
        lines.append("-" * 50)
        if self.violations:
            lines.append(f"  Violations ({len(self.violations)}):")
            for v in self.violations:
                lines.append(f"    - {_local(v.focus_node)}.{_local(v.path)}: {v.message}")
        else:
            lines.append("  No violations found.")
        return "\n".join(lines)

    def shapes_as_turtle(self) -> str:
        """Serialize the SHACL shapes graph as Turtle for inspection."""
        if self.shapes_graph is None:
            return ""
        return self.shapes_graph.serialize(format="turtle")

    def data_as_turtle(self) -> str:
        """Serialize the RDF data graph as Turtle for inspection."""
        if self.data_graph is None:
            return ""
        return self.data_graph.serialize(format="turtle")
