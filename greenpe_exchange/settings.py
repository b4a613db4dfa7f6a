from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="GREENPE_", extra="ignore"
    )

    ENVIRONMENT: str = "LOCAL"
    LOG_LEVEL: str = "INFO"

    # Identity
    ACCOUNT_DOMAIN: str = "greenpe"
    DEFAULT_DISPLAY_NAME: str = "user"
    DEFAULT_IDENTITY_NUMBER: str = "0000"

    # Meter simulator
    METER_INTERVAL_SECONDS: float = 3.0
    METER_MIN_KWH: float = 0.1
    METER_MAX_KWH: float = 1.2
    METER_SEED: int | None = None

    # Tokenization: 1 kWh -> 0.001 credit and 0.8 kg CO2e
    CREDITS_PER_KWH: float = 0.001
    CARBON_KG_PER_KWH: float = 0.8

    # Score
    SCORE_CAP: int = 1000
    ELIGIBILITY_THRESHOLD: int = 300

    # Marketplace
    SETTLEMENT_DELAY_SECONDS: float = 3.0
    MARKETPLACE_FEE_RATE: float = 0.01
    SEED_DEMO_ORDERS: bool = True
    SUBSIDY_AMOUNT: float = 500.0

    # Certificates
    CERTIFICATE_ISSUER: str = "GreenPe:CERTv1"
    CERTIFICATE_EXPORT_DIR: str = "certificates"

    # Real-time driver for the API process
    CLOCK_TICK_SECONDS: float = 0.5

    @property
    def anonymous_account_id(self) -> str:
        return f"anonymous@{self.ACCOUNT_DOMAIN}"


settings = Settings()
