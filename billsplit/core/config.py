from pydantic import Field, AliasChoices
from pydantic_settings import BaseSettings, SettingsConfigDict

from billsplit.models.bill import SplitMode


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="BILLSPLIT_",
        extra="ignore",
    )

    cors_origins: str = "http://localhost:3000"
    default_tax_mode: SplitMode = SplitMode.proportional
    default_tip_mode: SplitMode = SplitMode.proportional
    # people without items still pay their part of an even split unless disabled
    include_zero_people: bool = True
    log_level: str = Field(default="INFO", validation_alias=AliasChoices("billsplit_log_level", "log_level"))
    log_timing: bool = True

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


settings = Settings()
