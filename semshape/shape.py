"""Shape model — SHACL-lite NodeShape and PropertyShape declarations.

Shapes are pure data. Nothing here checks that a shape is coherent (a
property may carry both ``class_`` and ``datatype``); the evaluators simply
compute whatever the fields that are set imply.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Sequence

from .types import IRI, NodeKind


@dataclass(frozen=True)
class Cardinality:
    """Occurrence bounds for a property's values."""
    min: int = 0
    max: int | None = None
    required: bool = False

    def __repr__(self) -> str:
        upper = "*" if self.max is None else self.max
        req = ", required" if self.required else ""
        return f"Cardinality({self.min}..{upper}{req})"


@dataclass(frozen=True)
class PropertyShape:
    """A sh:PropertyShape, or a nested constraint set inside a combinator.

    Nested sets in ``or_``, ``xone``, ``and_`` and ``not_`` are value-level
    predicates: their ``min_count`` / ``max_count`` are never evaluated.
    """
    path: IRI | None = None
    datatype: IRI | None = None
    class_: IRI | None = None
    node: IRI | None = None  # reference to another shape (sh:node)
    min_count: int | None = None
    max_count: int | None = None
    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None
    min_inclusive: float | None = None
    max_inclusive: float | None = None
    min_exclusive: float | None = None
    max_exclusive: float | None = None
    node_kind: NodeKind | None = None
    in_: tuple[Any, ...] | None = None
    has_value: Any = None
    or_: tuple[PropertyShape, ...] = ()
    xone: tuple[PropertyShape, ...] = ()
    and_: tuple[PropertyShape, ...] = ()
    not_: PropertyShape | None = None
    description: str | None = None

    @property
    def cardinality(self) -> Cardinality:
        minimum = self.min_count or 0
        return Cardinality(min=minimum, max=self.max_count, required=minimum >= 1)

    @property
    def has_cardinality(self) -> bool:
        return self.min_count is not None or self.max_count is not None

    def __repr__(self) -> str:
        return f"PropertyShape({self.path})"


@dataclass(frozen=True)
class NodeShape:
    """A sh:NodeShape: a target class plus named property shapes."""
    target_class: IRI
    properties: Mapping[str, PropertyShape] = field(default_factory=dict)
    closed: bool | None = None
    ignored_properties: tuple[IRI, ...] = ()
    description: str | None = None

    def __repr__(self) -> str:
        return f"NodeShape({self.target_class}: {len(self.properties)} properties)"


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

PropertyLike = PropertyShape | Mapping[str, Any]


def _as_property(entry: PropertyLike) -> PropertyShape:
    if isinstance(entry, PropertyShape):
        return entry
    return property_shape(**entry)


def property_shape(path: str | None = None, **options: Any) -> PropertyShape:
    """Build a PropertyShape.

    Combinator entries (``or_``, ``xone``, ``and_`` sequences and the single
    ``not_``) may be PropertyShapes or option mappings; mappings are built
    recursively with this function.

    Example::

        property_shape(
            "foaf:name",
            datatype=Datatype.STRING,
            min_count=1,
            max_count=1,
            pattern="^[A-Z]",
        )
    """
    for key in ("or_", "xone", "and_"):
        if key in options:
            options[key] = tuple(_as_property(e) for e in options[key] or ())
    if options.get("not_") is not None:
        options["not_"] = _as_property(options["not_"])
    if options.get("node_kind") is not None and not isinstance(options["node_kind"], NodeKind):
        options["node_kind"] = NodeKind(options["node_kind"])
    if options.get("in_") is not None:
        options["in_"] = tuple(options["in_"])
    return PropertyShape(path=IRI(path) if path is not None else None, **options)


def define_shape(
    target_class: str,
    properties: Mapping[str, PropertyLike],
    closed: bool | None = None,
    ignored_properties: Sequence[str] = (),
    description: str | None = None,
) -> NodeShape:
    """Build a NodeShape for ``target_class``.

    Example::

        PersonShape = define_shape(
            "ex:Person",
            {
                "name": property_shape("foaf:name", datatype=Datatype.STRING, min_count=1),
                "email": {"path": "foaf:mbox", "max_count": 1},
            },
            closed=True,
        )
    """
    return NodeShape(
        target_class=IRI(target_class),
        properties=MappingProxyType({name: _as_property(p) for name, p in properties.items()}),
        closed=closed,
        ignored_properties=tuple(IRI(p) for p in ignored_properties),
        description=description,
    )
