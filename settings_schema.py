import os
from typing import Optional
from pydantic import BaseModel, Field, ValidationError

from config import YamlConfig


def _default_secret() -> str:
    return os.environ.get("SESSION_SECRET", "fitlife-secret")


class SettingsSchema(BaseModel):
    session_cookie_name: str = "fitlife_session"
    session_max_age: int = Field(86400, gt=0)
    session_secret: str = Field(default_factory=_default_secret)
    cookie_secure: bool = False
    seed_demo_data: bool = True
    log_level: str = "INFO"
    rate_limit: Optional[int] = Field(None, gt=0)
    rate_window: int = Field(60, gt=0)


def validate_settings(data: dict) -> None:
    try:
        SettingsSchema(**data)
    except ValidationError as e:
        raise ValueError(str(e))


def load_settings(path: str = "settings.yaml") -> SettingsSchema:
    """Read ``path`` and return validated settings, defaults filling the gaps."""
    data = YamlConfig(path).load()
    validate_settings(data)
    return SettingsSchema(**data)
