"""
SQLAlchemy ORM models for the target tables.

The table shapes are a fixed contract owned by the target store; the loader
maps its rows onto them and never alters them. The models exist so the
loader can build INSERT statements and so a development database can be
bootstrapped (scripts/init_db.py).

Models:
    base: Base declarative class and shared enums (EntityKind, ETLStatus)
    release: release, release_label, release_video
    label: label
    artist: artist
    master: master, master_artist
    indexes: post-load index DDL

Usage:
    from models import Base, Release, ReleaseLabel
    from models.base import EntityKind

Relationships:
    - Release → ReleaseLabel, ReleaseVideo (release_id, not enforced)
    - Master → MasterArtist (master_id, not enforced)
"""

from models.base import Base, EntityKind, ETLStatus
from models.release import Release, ReleaseLabel, ReleaseVideo
from models.label import Label
from models.artist import Artist
from models.master import Master, MasterArtist

__all__ = [
    "Base",
    "EntityKind",
    "ETLStatus",
    "Release",
    "ReleaseLabel",
    "ReleaseVideo",
    "Label",
    "Artist",
    "Master",
    "MasterArtist",
]
