from sqlalchemy import Column, Integer, Text, ARRAY
from models.base import Base


class Artist(Base):
    """One row per <artist> of the artists dump (realname -> real_name)"""
    __tablename__ = "artist"
    
    id = Column(Integer, primary_key=True, autoincrement=False)
    name = Column(Text, nullable=True)
    real_name = Column(Text, nullable=True)
    profile = Column(Text, nullable=True)
    data_quality = Column(Text, nullable=True)
    name_variations = Column(ARRAY(Text), nullable=True)
    urls = Column(ARRAY(Text), nullable=True)
    aliases = Column(ARRAY(Text), nullable=True)
    members = Column(ARRAY(Text), nullable=True)
