"""
Configuration Management for the GlucoBites Report Service

Environment-based configuration using Pydantic Settings.
"""
from typing import Optional, List
from pydantic_settings import BaseSettings
from pydantic import Field, ConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra fields from .env file
    )
    
    # Application
    app_name: str = "GlucoBites Report Service"
    app_version: str = "0.1.0"
    debug: bool = Field(default=False, description="Enable debug mode")
    
    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_prefix: str = "/api/v1"
    cors_origins: List[str] = ["*"]
    
    # Database
    database_url: str = "sqlite:///./glucobites.db"
    create_schema_on_startup: bool = Field(default=False, description="Create tables at startup (local development)")
    
    # Mail delivery
    mail_transport: str = Field(default="ses", description="'ses' or 'smtp'")
    mail_sender: str = '"GlucoBites" <glucobites.org@gmail.com>'
    aws_region: Optional[str] = None
    ses_access_key: Optional[str] = None
    ses_secret_key: Optional[str] = None
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 465
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    
    # Scheduler (cron fields, APScheduler day_of_week uses mon..sun names)
    enable_scheduler: bool = Field(default=True, description="Start the automated report scheduler")
    scheduler_timezone: str = "UTC"
    weekly_report_day_of_week: str = "sun"
    weekly_report_hour: int = 7
    monthly_report_day: int = 1
    monthly_report_hour: int = 7
    question_reset_day_of_week: str = "sun"
    question_reset_hour: int = 0


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
