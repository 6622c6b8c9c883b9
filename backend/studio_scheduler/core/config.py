from typing import Annotated, Any, Literal

from pydantic import BeforeValidator
from pydantic_settings import BaseSettings, SettingsConfigDict


def parse_statuses(v: Any) -> list[str] | str:
    if isinstance(v, str) and not v.startswith("["):
        return [i.strip() for i in v.split(",") if i.strip()]
    elif isinstance(v, list | str):
        return v
    raise ValueError(v)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Use top level .env file (one level above ./backend/)
        env_file="../.env",
        env_ignore_empty=True,
        extra="ignore",
    )
    PROJECT_NAME: str = "Studio Scheduler"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: Literal["json", "console"] = "console"

    # Display names for the sentinel section and the implicit category bucket
    UNCATEGORIZED_SECTION_NAME: str = "Sin Categoría"
    UNCATEGORIZED_CATEGORY_LABEL: str = "Sin categoría"

    # Structure recompute memoization
    STRUCTURE_CACHE_MAX_ENTRIES: int = 128

    # Collaborator calls (catalog, job detail, sync, reclassify)
    COLLABORATOR_TIMEOUT_SECONDS: float = 10.0

    APPROVED_ORDER_STATUSES: Annotated[
        list[str] | str, BeforeValidator(parse_statuses)
    ] = ["autorizada", "aprobada", "approved"]

    @property
    def approved_statuses(self) -> frozenset[str]:
        return frozenset(s.lower() for s in self.APPROVED_ORDER_STATUSES)


settings = Settings()  # type: ignore
