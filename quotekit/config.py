from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./quotes.db"
    COMPANY_NAME: str = "Premium Window Furnishings"
    COMPANY_EMAIL: str = "quotes@example.com"
    COMPANY_PHONE: str = ""
    GST_RATE_DEFAULT: float = 10.0
    PAYMENT_TERMS_DEFAULT: str = "Net 30 days"
    QUOTE_VALID_DAYS: int = 30
    LOG_LEVEL: str = "INFO"

    # Outbound mail. Leave SMTP_HOST empty to log emails instead of sending them.
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM_EMAIL: str = "quotes@example.com"
    SMTP_FROM_NAME: str = "Quotations"

    class Config:
        env_file = ".env"


settings = Settings()
