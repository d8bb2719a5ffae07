from sqlalchemy import Column, Integer, String, Text
from ..db.database import Base

class ServerSetting(Base):
    """Runtime switch, toggled without restarting the API."""
    __tablename__ = "server_settings"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, index=True, nullable=False)
    value = Column(Text, nullable=False) # Stored as text, parsed by the settings loader
    description = Column(Text, nullable=True)
