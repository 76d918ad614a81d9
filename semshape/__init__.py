"""semshape — SHACL-lite shape validation for JSON-LD style records.

Applications declare node and property shapes for graph-structured records
(plain mappings identified by ``@id`` / ``@type``) and validate data against
them, optionally with a lightweight RDFS / OWL-Lite inference context:

- Types (semshape.types): IRIs, XSD datatypes, ontology declarations, violation codes
- Inference (semshape.inference): transitive closure of class/property hierarchies
- Shapes (semshape.shape): NodeShape / PropertyShape declarations and builders
- Constraints (semshape.constraints): one evaluator per constraint family
- Validation (semshape.validation): validate(), check(), validate_batch()

The validation flow:

  build_inference_context()  (optional)  →  define_shape()  →  validate(shape, data, context)

The SHACL bridge (semshape.shacl_bridge) exports shapes as SHACL RDF and
JSON-LD via rdflib, and cross-checks nodes with pySHACL. Validation itself is
pure and synchronous; shapes and contexts are immutable and safe to share.
"""
