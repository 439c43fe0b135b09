"""
Sales Warehouse Analytics
Centralized Configuration Management

This module provides configuration management using Pydantic settings with
environment variable support, validation, and type safety.
"""

from functools import lru_cache
from pathlib import Path
from typing import List, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Warehouse Database Configuration"""

    model_config = SettingsConfigDict(env_prefix="WAREHOUSE_DB_")

    url: Optional[str] = Field(default=None, description="Full SQLAlchemy URL (overrides path)")
    path: str = Field(default="./data/warehouse.db", description="SQLite database file")
    name: str = Field(default="DataWarehouseAnalytics", description="Catalog name reported by metadata queries")
    echo: bool = Field(default=False, description="Echo SQL queries")
    pool_timeout: int = Field(default=30, description="Pool timeout in seconds")

    @property
    def sync_url(self) -> str:
        """Database URL - uses url if set, otherwise a SQLite file at path"""
        if self.url:
            return self.url
        return f"sqlite:///{self.path}"


class SourceSettings(BaseSettings):
    """Delimited Source File Configuration"""

    model_config = SettingsConfigDict(env_prefix="SOURCE_")

    data_dir: str = Field(default="./data", description="Directory holding the source files")
    customers_file: str = Field(default="gold.dim_customers.csv", description="Customers source file")
    products_file: str = Field(default="gold.dim_products.csv", description="Products source file")
    sales_file: str = Field(default="gold.fact_sales.csv", description="Sales source file")

    delimiter: str = Field(default=",", description="Field terminator")
    encoding: str = Field(default="utf8", description="Source encoding")
    null_values: List[str] = Field(default=[""], description="Values read as null")
    chunk_size: int = Field(default=5000, description="Rows per insert batch")

    @field_validator("delimiter")
    @classmethod
    def validate_delimiter(cls, v: str) -> str:
        """Delimiter must be a single character"""
        if len(v) != 1:
            raise ValueError("Delimiter must be a single character")
        return v

    def path_for(self, file_name: str) -> Path:
        """Resolve a source file name against data_dir"""
        return Path(self.data_dir) / file_name


class ReportingSettings(BaseSettings):
    """Report Execution Configuration"""

    model_config = SettingsConfigDict(env_prefix="REPORT_")

    parallel: bool = Field(default=False, description="Run catalogue entries concurrently")
    max_workers: int = Field(default=4, description="Worker threads for parallel runs")
    output_format: str = Field(default="table", description="Output format: table or json")
    max_column_width: int = Field(default=60, description="Max characters per rendered cell")

    @field_validator("output_format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate output format"""
        allowed = ["table", "json"]
        if v.lower() not in allowed:
            raise ValueError(f"Output format must be one of: {allowed}")
        return v.lower()


class MonitoringSettings(BaseSettings):
    """Logging Configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="text", description="Log format: json or text")


class Settings(BaseSettings):
    """
    Main Application Settings

    Aggregates all configuration sections and provides a single entry point
    for accessing application configuration.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="sales-warehouse", description="Application name")
    app_env: str = Field(default="development", description="Environment")
    debug: bool = Field(default=False, description="Debug mode")

    # Version
    version: str = Field(default="1.0.0", description="Application version")

    # Subsystem configurations
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    sources: SourceSettings = Field(default_factory=SourceSettings)
    reporting: ReportingSettings = Field(default_factory=ReportingSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
