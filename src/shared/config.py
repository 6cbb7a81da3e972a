from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="KUBECERTS_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Application
    APP_NAME: str = "kubecerts"
    LOG_LEVEL: str = "WARNING"

    # Certificate authority (a leading "~" is expanded to the home directory)
    CA_CERT_PATH: str = "~/.minikube/ca.crt"
    CA_KEY_PATH: str = "~/.minikube/ca.key"

    # File-pair output
    CERT_OUT: str = "./cert.pem"
    KEY_OUT: str = "./key.pem"

    # Issuance policy
    VALIDITY_DAYS: int = 365
    KEY_SIZE: int = 2048
    SERIAL_STRATEGY: str = "timestamp"  # "timestamp" or "random"

    # Telemetry: export logs, spans and metrics to the console
    TELEMETRY_CONSOLE: bool = False


settings = Settings()
