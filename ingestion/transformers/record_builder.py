"""
Record builder: a finite-state machine that rebuilds one entity at a time
from the flat markup event stream.

States:
    IDLE                   outside any entity
    BUILDING_ENTITY        inside a record, not inside a tracked field
    IN_SCALAR_FIELD        inside an element whose text becomes a column
    IN_LIST_FIELD          inside an element whose text is appended to a list
    BUILDING_CHILD_RECORD  inside a nested child record
    ENTITY_COMPLETE        transient, while the finished entity is emitted

Nested child records are handled with an explicit stack of frames, one per
open record, so the Python call stack never grows with the input's nesting.
"""

import enum
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple
from core.config import settings
from core.exceptions import FieldParseFailure, TruncatedInput
from ingestion.extractors.markup_events import EventKind, MarkupEvent
from schemas.entity import FieldSpec, ListSpec, RecordSchema
import logging

logger = logging.getLogger(__name__)

FIELD_PARSE_POLICIES = ("null", "abort")

# Numeric columns are int4
INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")
INT4_MIN = -2 ** 31
INT4_MAX = 2 ** 31 - 1


class BuilderState(str, enum.Enum):
    IDLE = "idle"
    BUILDING_ENTITY = "building_entity"
    IN_SCALAR_FIELD = "in_scalar_field"
    IN_LIST_FIELD = "in_list_field"
    BUILDING_CHILD_RECORD = "building_child_record"
    ENTITY_COMPLETE = "entity_complete"


@dataclass
class EntityRecord:
    """
    A completed record: one row for ``table`` plus its child records.

    Ownership passes to the caller on emission; the builder keeps no
    reference to it.
    """
    table: str
    values: Dict[str, Any]
    children: List["EntityRecord"] = field(default_factory=list)

    def iter_rows(self) -> Iterator[Tuple[str, Dict[str, Any]]]:
        """(table, row) for this record and every descendant, parents first"""
        stack = [self]
        while stack:
            record = stack.pop()
            yield record.table, record.values
            stack.extend(reversed(record.children))


class _CompiledRecord:
    """Path lookups for one RecordSchema, built once per builder"""

    def __init__(self, schema: RecordSchema):
        self.schema = schema
        self.scalars_by_path: Dict[Tuple[str, ...], FieldSpec] = {
            f.path: f for f in schema.scalars if f.path
        }
        self.scalars_by_attribute: Dict[str, FieldSpec] = {
            f.attribute: f for f in schema.scalars if f.attribute
        }
        self.lists_by_path: Dict[Tuple[str, ...], ListSpec] = {
            l.path: l for l in schema.lists
        }
        self.children_by_path: Dict[Tuple[str, ...], "_CompiledRecord"] = {
            child.path: _CompiledRecord(child) for child in schema.children
        }


@dataclass
class _Frame:
    """One open record on the builder stack"""
    compiled: _CompiledRecord
    record: EntityRecord
    # element names opened below the record element, innermost last
    path: List[str] = field(default_factory=list)
    # field currently capturing text and the path length it was opened at
    open_field: Optional[Any] = None
    open_field_depth: int = 0


class RecordBuilder:
    """
    Rebuild entities described by one RecordSchema from markup events.

    Usage:
        builder = RecordBuilder(schema.record)
        for event in events:
            record = builder.feed(event)
            if record is not None:
                ...
        builder.finish()

    Args:
        schema: Entity record schema (children included)
        entity_depth: Depth of entity elements (1: children of the dump root)
        field_parse_policy: "null" to null unparsable numeric fields,
            "abort" to raise FieldParseFailure
    """

    def __init__(
        self,
        schema: RecordSchema,
        entity_depth: int = 1,
        field_parse_policy: Optional[str] = None
    ):
        policy = field_parse_policy or settings.FIELD_PARSE_POLICY
        if policy not in FIELD_PARSE_POLICIES:
            raise ValueError(f"Unknown field parse policy: {policy}")

        self.schema = schema
        self.entity_depth = entity_depth
        self.field_parse_policy = policy
        self._compiled = _CompiledRecord(schema)
        self._stack: List[_Frame] = []
        self._state = BuilderState.IDLE

        self.entities_built = 0
        self.field_parse_failures = 0

    @property
    def state(self) -> BuilderState:
        return self._state

    # ------------------------------------------------------------------
    # Event handling
    # ------------------------------------------------------------------

    def feed(self, event: MarkupEvent) -> Optional[EntityRecord]:
        """
        Advance the machine by one event.

        Returns:
            The completed entity when this event closes one, else None
        """
        if event.kind == EventKind.START:
            self._on_start(event)
            return None
        return self._on_end(event)

    def finish(self):
        """
        Signal end of stream.

        Raises:
            TruncatedInput: The stream ended inside an entity
        """
        if self._state != BuilderState.IDLE:
            open_records = [frame.compiled.schema.table for frame in self._stack]
            state = self._state
            self._reset()
            raise TruncatedInput(
                "Event stream ended inside an entity",
                context={
                    "builder_state": state.value,
                    "open_records": "/".join(open_records),
                    "entities_built": self.entities_built
                }
            )

    def _reset(self):
        self._stack = []
        self._state = BuilderState.IDLE

    def _on_start(self, event: MarkupEvent):
        if not self._stack:
            if event.depth == self.entity_depth and event.name == self.schema.element:
                self._push(self._compiled, event)
                self._state = BuilderState.BUILDING_ENTITY
            return

        frame = self._stack[-1]
        frame.path.append(event.name)

        # Anything nested in a tracked field is captured and discarded
        if frame.open_field is not None:
            return

        path = tuple(frame.path)

        child = frame.compiled.children_by_path.get(path)
        if child is not None:
            self._push(child, event)
            self._state = BuilderState.BUILDING_CHILD_RECORD
            return

        spec = frame.compiled.scalars_by_path.get(path)
        if spec is not None:
            frame.open_field = spec
            frame.open_field_depth = len(frame.path)
            self._state = BuilderState.IN_SCALAR_FIELD
            return

        spec = frame.compiled.lists_by_path.get(path)
        if spec is not None:
            frame.open_field = spec
            frame.open_field_depth = len(frame.path)
            self._state = BuilderState.IN_LIST_FIELD

    def _on_end(self, event: MarkupEvent) -> Optional[EntityRecord]:
        if not self._stack:
            return None

        frame = self._stack[-1]

        if frame.path:
            if frame.open_field is not None and len(frame.path) == frame.open_field_depth:
                self._close_field(frame, event.text)
            frame.path.pop()
            return None

        # The record element itself closed
        self._stack.pop()
        if self._stack:
            parent = self._stack[-1]
            parent.record.children.append(frame.record)
            parent.path.pop()
            self._state = self._frame_state(parent)
            return None

        self._state = BuilderState.ENTITY_COMPLETE
        record = frame.record
        self._resolve_foreign_keys(record, frame.compiled)
        self.entities_built += 1
        self._state = BuilderState.IDLE
        return record

    # ------------------------------------------------------------------
    # Frames and fields
    # ------------------------------------------------------------------

    def _push(self, compiled: _CompiledRecord, event: MarkupEvent):
        schema = compiled.schema
        values: Dict[str, Any] = {}
        if schema.foreign_key:
            values[schema.foreign_key] = None
        for spec in schema.scalars:
            values[spec.column] = None
        for spec in schema.lists:
            values[spec.column] = []

        frame = _Frame(compiled=compiled, record=EntityRecord(schema.table, values))
        for name, value in event.attributes.items():
            spec = compiled.scalars_by_attribute.get(name)
            if spec is not None:
                values[spec.column] = self._convert(frame, spec, value)

        self._stack.append(frame)

    def _close_field(self, frame: _Frame, text: Optional[str]):
        spec = frame.open_field
        text = text if text is not None else ""
        if isinstance(spec, ListSpec):
            frame.record.values[spec.column].append(text)
        else:
            frame.record.values[spec.column] = self._convert(frame, spec, text)
        frame.open_field = None
        frame.open_field_depth = 0
        self._state = self._frame_state(frame)

    def _frame_state(self, frame: _Frame) -> BuilderState:
        if frame.open_field is not None:
            if isinstance(frame.open_field, ListSpec):
                return BuilderState.IN_LIST_FIELD
            return BuilderState.IN_SCALAR_FIELD
        if len(self._stack) > 1:
            return BuilderState.BUILDING_CHILD_RECORD
        return BuilderState.BUILDING_ENTITY

    def _convert(self, frame: _Frame, spec: FieldSpec, text: str) -> Any:
        """
        Verbatim text, or an integer for numeric fields.

        Numeric text must be ASCII digits with an optional sign and fit a
        32-bit column; anything else is a field parse failure.
        """
        if not spec.numeric:
            return text

        digits = text.strip()
        if INTEGER_PATTERN.fullmatch(digits):
            value = int(digits)
            if INT4_MIN <= value <= INT4_MAX:
                return value
            reason = "out of 32-bit integer range"
        else:
            reason = "not an integer"

        self.field_parse_failures += 1
        failure = FieldParseFailure(
            f"Cannot parse '{spec.column}' as integer: {reason}",
            context={
                "table_name": frame.compiled.schema.table,
                "column_name": spec.column,
                "field_value": text[:100]
            }
        )
        if self.field_parse_policy == "abort":
            self._reset()
            raise failure
        logger.debug(f"Nulling field: {failure}")
        return None

    def _resolve_foreign_keys(self, record: EntityRecord, compiled: _CompiledRecord):
        """
        Give every held child row its parent's identifier.

        Children may close before the parent's id element is read, so the
        keys are only filled in once the whole entity is complete.
        """
        pending = [(record, compiled)]
        while pending:
            parent, parent_compiled = pending.pop()
            parent_id_column = parent_compiled.schema.id_column
            parent_id = parent.values.get(parent_id_column) if parent_id_column else None
            by_table = {
                c.schema.table: c for c in parent_compiled.children_by_path.values()
            }
            for child in parent.children:
                child_compiled = by_table[child.table]
                child.values[child_compiled.schema.foreign_key] = parent_id
                pending.append((child, child_compiled))
