"""
Pydantic schemas describing how dump markup maps onto target rows.

Schemas:
    entity: FieldSpec, ListSpec, RecordSchema, DumpSchema
    catalog: The release, label, artist and master dump schemas

Usage:
    from schemas.catalog import RELEASES, resolve_schema

Example:
    schema = resolve_schema("releases")
    assert schema.tables() == ["release", "release_label", "release_video"]

Validation:
    Schemas are validated once at import time:
    - a scalar field reads either an attribute or a child element
    - child records end their path with their own element and name a
      foreign key column
    - column names are unique within a record
"""

from schemas.entity import DumpSchema, FieldSpec, ListSpec, RecordSchema

__all__ = [
    "DumpSchema",
    "FieldSpec",
    "ListSpec",
    "RecordSchema",
]
