from sqlalchemy import Column, Integer, Text, ARRAY
from models.base import Base


class Release(Base):
    """
    One row per <release> of the releases dump.
    
    Field Mapping:
    - @id -> id
    - @status -> status
    - title, country, released, notes, data_quality -> same name
    - master_id -> master_id
    - genres/genre -> genres (array)
    - styles/style -> styles (array)
    """
    __tablename__ = "release"
    
    id = Column(Integer, primary_key=True, autoincrement=False)
    status = Column(Text, nullable=True)
    title = Column(Text, nullable=True)
    country = Column(Text, nullable=True)
    released = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    genres = Column(ARRAY(Text), nullable=True)
    styles = Column(ARRAY(Text), nullable=True)
    master_id = Column(Integer, nullable=True)
    data_quality = Column(Text, nullable=True)


class ReleaseLabel(Base):
    """labels/label of a release (attributes name, catno, id)"""
    __tablename__ = "release_label"
    
    id = Column(Integer, primary_key=True, autoincrement=True)
    release_id = Column(Integer, nullable=False)
    label_id = Column(Integer, nullable=True)
    label = Column(Text, nullable=True)
    catno = Column(Text, nullable=True)


class ReleaseVideo(Base):
    """videos/video of a release (attributes src, duration; child title)"""
    __tablename__ = "release_video"
    
    id = Column(Integer, primary_key=True, autoincrement=True)
    release_id = Column(Integer, nullable=False)
    duration = Column(Integer, nullable=True)
    src = Column(Text, nullable=True)
    title = Column(Text, nullable=True)
