import logging
from typing import Any, Dict

from sqlalchemy.orm import Session

from ..models.db_server_setting import ServerSetting
from .settings import DEFAULT_SETTINGS

logger = logging.getLogger(__name__)

# Parsed runtime switches, replaced wholesale on every load
db_settings_cache: Dict[str, Any] = {}


def _infer_and_parse_value(value_to_parse_str: str, type_reference_str: str):
    """
    Infers the data type from type_reference_str and parses value_to_parse_str
    into that type.
    Supported types: int, bool, str.
    """
    if type_reference_str.lower() in ["true", "false"]:
        return value_to_parse_str.strip().lower() in ["true", "1", "yes", "on"]
    elif type_reference_str.isdigit():
        return int(value_to_parse_str)
    return value_to_parse_str


def _get_type_description_string(default_value_str: str) -> str:
    if default_value_str.lower() in ["true", "false"]:
        return "boolean"
    elif default_value_str.isdigit():
        return "integer"
    return "string"


def load_settings_from_db(db: Session) -> Dict[str, Any]:
    """
    Loads the server_settings table into the cache.
    Missing rows fall back to DEFAULT_SETTINGS.
    """
    global db_settings_cache
    temp_cache: Dict[str, Any] = {}

    db_settings_map: Dict[str, str] = {
        str(setting.name): str(setting.value) for setting in db.query(ServerSetting).all()
    }

    for key, default_value_str in DEFAULT_SETTINGS.items():
        raw_value = db_settings_map.get(key, default_value_str)
        try:
            temp_cache[key] = _infer_and_parse_value(raw_value, default_value_str)
        except ValueError as e:
            logger.warning(
                "Could not parse setting '%s' value '%s' as %s (%s). Using the default.",
                key, raw_value, _get_type_description_string(default_value_str), e,
            )
            temp_cache[key] = _infer_and_parse_value(default_value_str, default_value_str)

    db_settings_cache = temp_cache
    return db_settings_cache


def get_setting(name: str):
    """
    Retrieves a runtime switch from the cache.
    Raises RuntimeError if settings are not loaded.
    Raises KeyError if the setting name is not defined in DEFAULT_SETTINGS.
    """
    if not db_settings_cache:
        raise RuntimeError("Settings not loaded from DB. Application might not have initialized correctly.")

    try:
        return db_settings_cache[name]
    except KeyError as exc:
        raise KeyError(f"Setting '{name}' not found. Ensure it is defined in DEFAULT_SETTINGS.") from exc


def set_setting(db: Session, name: str, value: str) -> None:
    """
    Writes a runtime switch and refreshes the cache.

    Operator hook for toggling features without a restart, e.g. from a shell
    session. No HTTP endpoint exposes it.
    """
    if name not in DEFAULT_SETTINGS:
        raise KeyError(f"Setting '{name}' is not a known runtime setting.")
    row = db.query(ServerSetting).filter(ServerSetting.name == name).first()
    if row is None:
        row = ServerSetting(name=name, value=value)
        db.add(row)
    else:
        row.value = value
    db.commit()
    load_settings_from_db(db)


def initialize_db_with_default_settings(db: Session) -> None:
    """
    Populates the server_settings table with default values if they don't exist.
    """
    existing = {name for (name,) in db.query(ServerSetting.name).all()}
    for name, value_str in DEFAULT_SETTINGS.items():
        if name in existing:
            continue
        description = f"Default value for {name}. Inferred type: {_get_type_description_string(value_str)}."
        db.add(ServerSetting(name=name, value=value_str, description=description))
        logger.info("Seeded runtime setting %s=%s", name, value_str)
    db.commit()
