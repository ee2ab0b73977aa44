from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "dam"
    db_username: str = "dam"
    db_password: str = "secret"

    storage_root: str = "."
    default_storage_tier: str = "DAM_STORAGE1"

    max_job_attempts: int = 3
    job_backoff_delay_ms: int = 5000
    job_poll_interval_seconds: int = 5
    stale_job_seconds: int = 3600

    image_workers: int = 2
    video_workers: int = 1
    document_workers: int = 1
    maintenance_workers: int = 1

    thumbnail_max_size: int = 300
    video_frame_fraction: float = 0.3
    video_frame_width: int = 640
    video_frame_height: int = 360

    pdf_engine: str = "pymupdf"
    pdf_render_dpi: int = 72

    ffmpeg_binary: str = "ffmpeg"
    ffprobe_binary: str = "ffprobe"
    soffice_binary: str = "soffice"
    external_tool_timeout_seconds: int = 120
