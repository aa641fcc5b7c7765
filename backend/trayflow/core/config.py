from functools import lru_cache
from typing import Annotated, Any, Literal

from pydantic import BeforeValidator, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


def parse_list(v: Any) -> list[str] | str:
    if isinstance(v, str) and not v.startswith("["):
        return [i.strip() for i in v.split(",") if i.strip()]
    elif isinstance(v, list | str):
        return v
    raise ValueError(v)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TRAYFLOW_",
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    ENVIRONMENT: Literal["local", "staging", "production"] = "local"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: Literal["json", "console"] = "console"
    LOG_SQL: bool = False

    # Persistence
    DATABASE_URL: str = "sqlite://"

    # Routing
    DEFAULT_DEPARTMENT_ORDER: Annotated[
        list[str] | str, BeforeValidator(parse_list)
    ] = ["Frizerii", "Saloane", "Horeca", "Reparatii"]
    SALES_TRAY_PREFIXES: Annotated[list[str] | str, BeforeValidator(parse_list)] = [
        "vanzare",
        "vânzare",
    ]
    # Departments whose items carry no serial tracking
    EXEMPT_DEPARTMENTS: Annotated[list[str] | str, BeforeValidator(parse_list)] = []
    NEW_STAGE_NAMES: Annotated[list[str] | str, BeforeValidator(parse_list)] = [
        "noua",
        "new",
    ]
    RETURN_STAGE_NAME: str = "retur"

    # Real-tray split
    MIN_SPLIT_TRAYS: int = 2
    MAX_SPLIT_TRAYS: int = 3

    SYSTEM_ACTOR: str = "system"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def exempt_department_keys(self) -> set[str]:
        return {name.strip().lower() for name in self.EXEMPT_DEPARTMENTS}


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
