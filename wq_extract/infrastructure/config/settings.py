"""Application settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from wq_extract.domain.entities import SourceTemplates
from wq_extract.domain.enums import DeploymentFailurePolicy

AODN_THREDDS_URL = "https://thredds.aodn.org.au/thredds"
FLNTU_PATH = "AIMS/Marine_Monitoring_Program/FLNTU_timeseries"


class Settings(BaseSettings):
    """Application settings."""

    # Yearly catalogs live under {catalog_base_url}/{year}/catalog.xml
    catalog_base_url: str = f"{AODN_THREDDS_URL}/catalog/{FLNTU_PATH}"
    # OPeNDAP endpoint of the deployment files
    dataset_base_url: str = f"{AODN_THREDDS_URL}/dodsC/{FLNTU_PATH}"

    request_timeout_seconds: float = Field(60.0, gt=0)
    retry_attempts: int = Field(3, ge=1)
    max_concurrent_requests: int = Field(4, ge=1)
    deployment_failure_policy: DeploymentFailurePolicy = DeploymentFailurePolicy.ABORT

    log_level: str = "INFO"
    json_logs: bool = True
    prometheus_port: int | None = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="WQ_",
        extra="ignore",
    )

    def source_templates(self) -> SourceTemplates:
        """Catalog and dataset URL templates."""
        return SourceTemplates(
            catalog_base_url=self.catalog_base_url,
            dataset_base_url=self.dataset_base_url,
        )
