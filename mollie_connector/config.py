from functools import lru_cache
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConnectorSettings(BaseModel):
    """Options recognised by MollieConnector."""

    apikey: str
    endpoint: str = "https://api.mollie.nl"
    version: str = "v1"
    debug: bool = False
    mock: bool = False
    reject_unauthorized: bool = Field(default=True, alias="rejectUnauthorized")
    # inline PEM text, a CA file path, or True for the bundled CA set
    cert: Optional[Union[bool, str]] = None

    # legacy pay-link generation, see https://www.mollie.com/nl/docs/paylinks
    paylink: str = "https://www.mollie.com/xml/ideal"
    partnerid: Optional[str] = None
    profile_key: Optional[str] = None

    mock_redirect_url: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class Settings(BaseSettings):
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    env: str = "development"

    service_api_key: str

    mollie_apikey: str
    mollie_endpoint: str = "https://api.mollie.nl"
    mollie_version: str = "v1"
    mollie_debug: bool = False
    mollie_mock: bool = False
    mollie_reject_unauthorized: bool = True
    mollie_cert: Optional[str] = None
    mollie_paylink: str = "https://www.mollie.com/xml/ideal"
    mollie_partnerid: Optional[str] = None
    mollie_profile_key: Optional[str] = None
    mollie_mock_redirect_url: Optional[str] = None

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    def connector_settings(self) -> ConnectorSettings:
        cert: Optional[Union[bool, str]] = self.mollie_cert
        if cert is not None and cert.lower() in ("true", "1", "yes"):
            cert = True
        elif cert is not None and cert.lower() in ("", "false", "0", "no"):
            cert = None
        return ConnectorSettings(
            apikey=self.mollie_apikey,
            endpoint=self.mollie_endpoint,
            version=self.mollie_version,
            debug=self.mollie_debug,
            mock=self.mollie_mock,
            reject_unauthorized=self.mollie_reject_unauthorized,
            cert=cert,
            paylink=self.mollie_paylink,
            partnerid=self.mollie_partnerid,
            profile_key=self.mollie_profile_key,
            mock_redirect_url=self.mollie_mock_redirect_url,
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
