"""
Entity schemas of the four Discogs monthly dumps.

Element names follow the dump layout:

    <releases><release id=".." status=".."> ... </release></releases>
    <labels><label><id>..</id> ... </label></labels>
    <artists><artist><id>..</id> ... </artist></artists>
    <masters><master id=".."> ... </master></masters>
"""

from typing import Dict, Optional
from models.base import EntityKind
from schemas.entity import DumpSchema, FieldSpec, ListSpec, RecordSchema
from core.exceptions import UnknownEntityKind


def _text(column: str, *path: str, numeric: bool = False) -> FieldSpec:
    return FieldSpec(column=column, path=path or (column,), numeric=numeric)


def _attr(column: str, attribute: str, numeric: bool = False) -> FieldSpec:
    return FieldSpec(column=column, attribute=attribute, numeric=numeric)


RELEASES = DumpSchema(
    kind=EntityKind.RELEASE,
    root="releases",
    record=RecordSchema(
        table="release",
        element="release",
        scalars=[
            _attr("id", "id", numeric=True),
            _attr("status", "status"),
            _text("title"),
            _text("country"),
            _text("released"),
            _text("notes"),
            _text("master_id", numeric=True),
            _text("data_quality"),
        ],
        lists=[
            ListSpec(column="genres", path=("genres", "genre")),
            ListSpec(column="styles", path=("styles", "style")),
        ],
        children=[
            RecordSchema(
                table="release_label",
                element="label",
                path=("labels", "label"),
                foreign_key="release_id",
                id_column=None,
                scalars=[
                    _attr("label_id", "id", numeric=True),
                    _attr("label", "name"),
                    _attr("catno", "catno"),
                ],
            ),
            RecordSchema(
                table="release_video",
                element="video",
                path=("videos", "video"),
                foreign_key="release_id",
                id_column=None,
                scalars=[
                    _attr("duration", "duration", numeric=True),
                    _attr("src", "src"),
                    _text("title"),
                ],
            ),
        ],
    ),
)

LABELS = DumpSchema(
    kind=EntityKind.LABEL,
    root="labels",
    record=RecordSchema(
        table="label",
        element="label",
        scalars=[
            _text("id", numeric=True),
            _text("name"),
            _text("contactinfo"),
            _text("profile"),
            _text("parent_label"),
            _text("data_quality"),
        ],
        lists=[
            ListSpec(column="sublabels", path=("sublabels", "label")),
            ListSpec(column="urls", path=("urls", "url")),
        ],
    ),
)

ARTISTS = DumpSchema(
    kind=EntityKind.ARTIST,
    root="artists",
    record=RecordSchema(
        table="artist",
        element="artist",
        scalars=[
            _text("id", numeric=True),
            _text("name"),
            _text("real_name", "realname"),
            _text("profile"),
            _text("data_quality"),
        ],
        lists=[
            ListSpec(column="name_variations", path=("namevariations", "name")),
            ListSpec(column="urls", path=("urls", "url")),
            ListSpec(column="aliases", path=("aliases", "name")),
            ListSpec(column="members", path=("members", "name")),
        ],
    ),
)

MASTERS = DumpSchema(
    kind=EntityKind.MASTER,
    root="masters",
    record=RecordSchema(
        table="master",
        element="master",
        scalars=[
            _attr("id", "id", numeric=True),
            _text("title"),
            _text("release_id", "main_release", numeric=True),
            _text("year", numeric=True),
            _text("notes"),
            _text("data_quality"),
        ],
        lists=[
            ListSpec(column="genres", path=("genres", "genre")),
            ListSpec(column="styles", path=("styles", "style")),
        ],
        children=[
            RecordSchema(
                table="master_artist",
                element="artist",
                path=("artists", "artist"),
                foreign_key="master_id",
                id_column=None,
                scalars=[
                    _text("artist_id", "id", numeric=True),
                    _text("name"),
                    _text("anv"),
                    _text("role"),
                ],
            ),
        ],
    ),
)

SCHEMAS_BY_KIND: Dict[EntityKind, DumpSchema] = {
    schema.kind: schema for schema in (RELEASES, LABELS, ARTISTS, MASTERS)
}

SCHEMAS_BY_ROOT: Dict[str, DumpSchema] = {
    schema.root: schema for schema in SCHEMAS_BY_KIND.values()
}


def resolve_schema(root_element: str, declared_kind: Optional[EntityKind] = None) -> DumpSchema:
    """
    Pick the dump schema for a file.

    The declared kind wins when given, but it must agree with the root
    element actually found in the dump.
    """
    schema = SCHEMAS_BY_ROOT.get(root_element)

    if declared_kind is not None:
        declared = SCHEMAS_BY_KIND[EntityKind(declared_kind)]
        if schema is not declared:
            raise UnknownEntityKind(
                f"Dump root <{root_element}> does not hold {declared.kind.value} entities",
                context={"root_element": root_element, "declared_kind": declared.kind.value}
            )
        return declared

    if schema is None:
        raise UnknownEntityKind(
            f"No entity schema for dump root <{root_element}>",
            context={"root_element": root_element, "known_roots": sorted(SCHEMAS_BY_ROOT)}
        )
    return schema
