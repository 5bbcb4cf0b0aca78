from sqlalchemy.orm import declarative_base
import enum

Base = declarative_base()


# ============================================================================
# ENUMS
# ============================================================================

class EntityKind(str, enum.Enum):
    """Entity kinds carried by the Discogs monthly dumps"""
    RELEASE = "release"
    LABEL = "label"
    ARTIST = "artist"
    MASTER = "master"


class ETLStatus(str, enum.Enum):
    """Per-file load status"""
    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"
