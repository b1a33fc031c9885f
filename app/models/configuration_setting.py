"""
Configuration setting model for the editable numeric settings table.
"""
from sqlalchemy import Column, Integer, String, Numeric

from app.core.database import Base

KEY_MAX_LENGTH = 50


class ConfigurationSetting(Base):
    """Named numeric setting; the key is the stable identity of a row."""

    __tablename__ = "configuration_settings"

    id = Column("config_id", Integer, primary_key=True, index=True)
    key = Column("config_description", String(KEY_MAX_LENGTH), unique=True, nullable=False)
    value = Column("config_value", Numeric(10, 2, asdecimal=True), nullable=False)
