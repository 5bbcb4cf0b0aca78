from sqlalchemy import Column, Integer, Text, ARRAY
from models.base import Base


class Master(Base):
    """One row per <master> of the masters dump (main_release -> release_id)"""
    __tablename__ = "master"
    
    id = Column(Integer, primary_key=True, autoincrement=False)
    title = Column(Text, nullable=True)
    release_id = Column(Integer, nullable=False)
    year = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)
    genres = Column(ARRAY(Text), nullable=True)
    styles = Column(ARRAY(Text), nullable=True)
    data_quality = Column(Text, nullable=True)


class MasterArtist(Base):
    """artists/artist of a master"""
    __tablename__ = "master_artist"
    
    id = Column(Integer, primary_key=True, autoincrement=True)
    artist_id = Column(Integer, nullable=False)
    master_id = Column(Integer, nullable=False)
    name = Column(Text, nullable=True)
    anv = Column(Text, nullable=True)
    role = Column(Text, nullable=True)
