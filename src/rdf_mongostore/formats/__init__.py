"""
RDF serialization formats.
"""

from rdf_mongostore.formats.nquads import (
    NQuadsParser,
    NQuadsSerializer,
    NQuadsSyntaxError,
    parse_nquads,
    serialize_nquads,
)

__all__ = [
    "NQuadsParser",
    "NQuadsSerializer",
    "NQuadsSyntaxError",
    "parse_nquads",
    "serialize_nquads",
]
