"""
站点级键值存储（datalist）

用于保存站点密钥等少量全局配置。
"""
from datetime import datetime
from sqlalchemy import Column, String, Text, DateTime

from app.database import Base


class Datalist(Base):
    """站点键值对"""
    __tablename__ = "datalists"

    name = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)
