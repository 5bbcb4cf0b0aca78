"""
Pydantic schemas describing how one dump's markup maps onto table rows
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import List, Optional, Tuple
from models.base import EntityKind


class FieldSpec(BaseModel):
    """
    One scalar column of a record.

    The value comes either from an attribute of the record element
    (``attribute``) or from the text of a descendant element addressed by
    ``path`` relative to the record element.
    """

    column: str = Field(..., min_length=1)
    path: Tuple[str, ...] = ()
    attribute: Optional[str] = None
    numeric: bool = False

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def check_single_source(self):
        """Exactly one of path / attribute"""
        if bool(self.path) == bool(self.attribute):
            raise ValueError(
                f"Field '{self.column}' needs exactly one of path or attribute"
            )
        return self


class ListSpec(BaseModel):
    """A list column: every occurrence of ``path`` appends its text"""

    column: str = Field(..., min_length=1)
    path: Tuple[str, ...] = Field(..., min_length=1)

    model_config = ConfigDict(frozen=True)


class RecordSchema(BaseModel):
    """
    Shape of one record kind: an entity, or a child record nested in one.

    Child records are addressed by ``path`` relative to the parent record
    element (the last path item is the child's own element) and receive
    the parent's identifier in ``foreign_key``.
    """

    table: str = Field(..., min_length=1)
    element: str = Field(..., min_length=1)
    path: Tuple[str, ...] = ()
    foreign_key: Optional[str] = None
    id_column: Optional[str] = "id"
    scalars: List[FieldSpec] = Field(default_factory=list)
    lists: List[ListSpec] = Field(default_factory=list)
    children: List["RecordSchema"] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @field_validator("children")
    @classmethod
    def check_children(cls, v):
        for child in v:
            if not child.path or child.path[-1] != child.element:
                raise ValueError(
                    f"Child '{child.table}' path must end with its element '{child.element}'"
                )
            if not child.foreign_key:
                raise ValueError(f"Child '{child.table}' needs a foreign_key column")
        return v

    @model_validator(mode="after")
    def check_columns(self):
        """Column names are unique within a record"""
        columns = self.columns()
        duplicates = {c for c in columns if columns.count(c) > 1}
        if duplicates:
            raise ValueError(f"Duplicate columns in '{self.table}': {sorted(duplicates)}")
        return self

    def columns(self) -> List[str]:
        """Row columns in declaration order (foreign key first)"""
        columns = [self.foreign_key] if self.foreign_key else []
        columns.extend(f.column for f in self.scalars)
        columns.extend(l.column for l in self.lists)
        return columns

    def tables(self) -> List[str]:
        """This table followed by every descendant table, parents first"""
        tables = [self.table]
        for child in self.children:
            tables.extend(child.tables())
        return tables


class DumpSchema(BaseModel):
    """One dump file kind: its root element and the entity it repeats"""

    kind: EntityKind
    root: str = Field(..., min_length=1)
    record: RecordSchema

    model_config = ConfigDict(frozen=True)

    def tables(self) -> List[str]:
        return self.record.tables()


RecordSchema.model_rebuild()
