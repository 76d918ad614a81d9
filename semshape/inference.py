"""Inference — lightweight RDFS / OWL-Lite closure for class-aware validation.

This is not a reasoner. The context is a precomputed snapshot of:

  - rdfs:subClassOf    closed under transitivity
  - rdfs:subPropertyOf closed under transitivity
  - rdfs:domain/range  inherited by every subproperty from its superproperties
  - owl:equivalentClass seeded symmetrically, resolved by BFS at query time
  - owl:inverseOf      looked up in both directions

The context is built once from declarations and never mutated; rebuild it
when the declarations change.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterable, Mapping

from .types import IRI, OntoClass, OntoProperty

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Rule configuration
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class InferenceRules:
    """Which closure rules build_inference_context applies."""
    # RDFS
    sub_class_of_transitive: bool = True
    sub_property_of_transitive: bool = True
    domain_range_inference: bool = True
    # OWL Lite
    equivalent_class: bool = True
    inverse_of: bool = True


DEFAULT_RULES = InferenceRules()


# ---------------------------------------------------------------------------
# InferenceContext
# ---------------------------------------------------------------------------

def _freeze(relations: dict[str, set[str]]) -> Mapping[IRI, frozenset[IRI]]:
    return MappingProxyType({k: frozenset(v) for k, v in relations.items()})


@dataclass(frozen=True)
class InferenceContext:
    """Immutable closure snapshot keyed by IRI."""
    classes: Mapping[IRI, frozenset[IRI]] = field(default_factory=lambda: MappingProxyType({}))
    properties: Mapping[IRI, frozenset[IRI]] = field(default_factory=lambda: MappingProxyType({}))
    domains: Mapping[IRI, frozenset[IRI]] = field(default_factory=lambda: MappingProxyType({}))
    ranges: Mapping[IRI, frozenset[IRI]] = field(default_factory=lambda: MappingProxyType({}))
    equivalent_classes: Mapping[IRI, frozenset[IRI]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    inverse_properties: Mapping[IRI, IRI] = field(default_factory=lambda: MappingProxyType({}))
    rules: InferenceRules = DEFAULT_RULES

    def __repr__(self) -> str:
        return (
            f"InferenceContext("
            f"{len(self.classes)} classes, "
            f"{len(self.properties)} properties, "
            f"{len(self.equivalent_classes)} equivalences, "
            f"{len(self.inverse_properties)} inverses)"
        )


# ---------------------------------------------------------------------------
# Declaration normalisation
# ---------------------------------------------------------------------------

def _field(decl: Any, attr: str, key: str, default: Any = ()) -> Any:
    """Read a declaration field from a dataclass attribute or a mapping key."""
    if isinstance(decl, Mapping):
        value = decl.get(key, default)
    else:
        value = getattr(decl, attr, default)
    return default if value is None else value


def _class_decl(decl: OntoClass | Mapping[str, Any]) -> tuple[str, set[str], set[str]]:
    iri = str(_field(decl, "iri", "iri", ""))
    supers = {str(c) for c in _field(decl, "sub_class_of", "super_classes")}
    equivalents = {str(c) for c in _field(decl, "equivalent_class", "equivalent_classes")}
    return iri, supers, equivalents


def _property_decl(decl: OntoProperty | Mapping[str, Any]) -> tuple[str, set[str], set[str], set[str], str | None]:
    iri = str(_field(decl, "iri", "iri", ""))
    supers = {str(p) for p in _field(decl, "sub_property_of", "super_properties")}
    domain = {str(c) for c in _field(decl, "domain", "domain")}
    range_ = {str(c) for c in _field(decl, "range", "range")}
    inverse = _field(decl, "inverse_of", "inverse_of", None)
    return iri, supers, domain, range_, (str(inverse) if inverse else None)


# ---------------------------------------------------------------------------
# Closure
# ---------------------------------------------------------------------------

def close_transitive(relations: dict[str, set[str]]) -> int:
    """Close an IRI -> set-of-IRI map under transitivity, in place.

    Repeats full passes over every entry, unioning in the related sets of
    already-related IRIs, until a pass adds nothing. Set growth is monotone
    and bounded by the number of IRIs, so this terminates on cycles too.

    Returns the number of members added (0 for an already closed map).
    """
    added = 0
    passes = 0
    changed = True
    while changed:
        changed = False
        passes += 1
        for iri, related in relations.items():
            new_members: set[str] = set()
            for other in related:
                deeper = relations.get(other)
                if deeper:
                    new_members.update(deeper - related)
            if new_members:
                related.update(new_members)
                added += len(new_members)
                changed = True
    logger.debug("transitive closure converged after %d pass(es), %d member(s) added",
                 passes, added)
    return added


def build_inference_context(
    classes: Iterable[OntoClass | Mapping[str, Any]] = (),
    properties: Iterable[OntoProperty | Mapping[str, Any]] = (),
    rules: InferenceRules = DEFAULT_RULES,
) -> InferenceContext:
    """Build an InferenceContext from class and property declarations.

    Declarations are OntoClass / OntoProperty records or mappings with the
    keys ``iri``, ``super_classes``, ``equivalent_classes`` (classes) and
    ``iri``, ``super_properties``, ``domain``, ``range``, ``inverse_of``
    (properties). Missing fields yield empty relation sets; nothing is
    raised for malformed input.
    """
    class_map: dict[str, set[str]] = {}
    property_map: dict[str, set[str]] = {}
    domains: dict[str, set[str]] = {}
    ranges: dict[str, set[str]] = {}
    equivalents: dict[str, set[str]] = {}
    inverses: dict[str, str] = {}

    # 1. Seed from direct declarations
    for decl in classes:
        iri, supers, equivalent = _class_decl(decl)
        class_map.setdefault(iri, set()).update(supers)
        if equivalent:
            equivalents.setdefault(iri, set()).update(equivalent)
            for eq in equivalent:
                equivalents.setdefault(eq, set()).add(iri)

    for decl in properties:
        iri, supers, domain, range_, inverse = _property_decl(decl)
        property_map.setdefault(iri, set()).update(supers)
        if domain:
            domains.setdefault(iri, set()).update(domain)
        if range_:
            ranges.setdefault(iri, set()).update(range_)
        if inverse:
            inverses[iri] = inverse
            inverses[inverse] = iri

    # 2. Transitivity
    if rules.sub_class_of_transitive:
        close_transitive(class_map)
    if rules.sub_property_of_transitive:
        close_transitive(property_map)

    # 3. Subproperties inherit domain and range of their superproperties
    if rules.domain_range_inference:
        for prop, supers in property_map.items():
            domain_set = set(domains.get(prop, ()))
            range_set = set(ranges.get(prop, ()))
            for super_prop in supers:
                domain_set.update(domains.get(super_prop, ()))
                range_set.update(ranges.get(super_prop, ()))
            if domain_set:
                domains[prop] = domain_set
            if range_set:
                ranges[prop] = range_set

    context = InferenceContext(
        classes=_freeze(class_map),
        properties=_freeze(property_map),
        domains=_freeze(domains),
        ranges=_freeze(ranges),
        equivalent_classes=_freeze(equivalents),
        inverse_properties=MappingProxyType(dict(inverses)),
        rules=rules,
    )
    logger.debug("built %r", context)
    return context


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

def is_sub_class_of(context: InferenceContext, sub_class: str, super_class: str) -> bool:
    """True if sub_class is super_class or lists it in its closed superclass set."""
    sub_class, super_class = str(sub_class), str(super_class)
    if sub_class == super_class:
        return True
    return super_class in context.classes.get(sub_class, ())


def is_sub_property_of(context: InferenceContext, sub_property: str, super_property: str) -> bool:
    sub_property, super_property = str(sub_property), str(super_property)
    if sub_property == super_property:
        return True
    return super_property in context.properties.get(sub_property, ())


def are_equivalent_classes(context: InferenceContext, class_a: str, class_b: str) -> bool:
    """Breadth-first search over the declared equivalence edges."""
    class_a, class_b = str(class_a), str(class_b)
    if class_a == class_b:
        return True
    if not context.rules.equivalent_class:
        return False

    visited: set[str] = set()
    queue = deque([class_a])
    while queue:
        current = queue.popleft()
        if current in visited:
            continue
        visited.add(current)
        for eq in context.equivalent_classes.get(current, ()):
            if eq == class_b:
                return True
            if eq not in visited:
                queue.append(eq)
    return False


def get_all_super_classes(context: InferenceContext, class_iri: str) -> set[str]:
    """Return class_iri together with every (transitive) superclass.

    Walks the superclass sets with an explicit worklist, so declared
    cycles terminate. With transitivity disabled only the directly declared superclasses
    are returned, matching is_sub_class_of.
    """
    class_iri = str(class_iri)
    if not context.rules.sub_class_of_transitive:
        return {class_iri} | set(context.classes.get(class_iri, ()))
    result = {class_iri}
    pending = [class_iri]
    while pending:
        current = pending.pop()
        for super_class in context.classes.get(current, ()):
            if super_class not in result:
                result.add(super_class)
                pending.append(super_class)
    return result


def get_inverse_property(context: InferenceContext, property_iri: str) -> IRI | None:
    if not context.rules.inverse_of:
        return None
    return context.inverse_properties.get(str(property_iri))


def matches_range(context: InferenceContext, property_iri: str, value_type: str) -> bool:
    """True if value_type satisfies the (inherited) range of property_iri.

    A property with no known range accepts any type.
    """
    ranges = context.ranges.get(str(property_iri))
    if not ranges:
        return True
    return any(is_sub_class_of(context, value_type, r) for r in ranges)
