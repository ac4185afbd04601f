from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Loads keys from process env, and also from a local .env file.
    model_config = SettingsConfigDict(env_prefix="", extra="ignore", env_file=".env", env_file_encoding="utf-8")

    # Fonts (missing files fall back to a platform/default font)
    fonts_dir: str = "assets/fonts"
    font_bold_file: str = "Inter-Bold.ttf"
    font_regular_file: str = "Inter-Regular.ttf"

    # Rendering
    canvas_presets: dict[str, tuple[int, int]] = {
        "feed": (1080, 1350),
        "story": (1080, 1920),
    }

    log_level: str = "INFO"

    # HTTP surface
    max_upload_bytes: int = 20 * 1024 * 1024

    # Export: variations rendered at once
    export_workers: int = 4


settings = Settings()
