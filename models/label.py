from sqlalchemy import Column, Integer, Text, ARRAY
from models.base import Base


class Label(Base):
    """
    One row per top-level <label> of the labels dump.
    
    Nested <label> elements under <sublabels> are list items, not rows.
    """
    __tablename__ = "label"
    
    id = Column(Integer, primary_key=True, autoincrement=False)
    name = Column(Text, nullable=True)
    contactinfo = Column(Text, nullable=True)
    profile = Column(Text, nullable=True)
    parent_label = Column(Text, nullable=True)
    sublabels = Column(ARRAY(Text), nullable=True)
    urls = Column(ARRAY(Text), nullable=True)
    data_quality = Column(Text, nullable=True)
