"""Application configuration via environment variables.

``Settings`` is the only place that reads the environment.  Components get
the small config objects built from it, so nothing below the wiring layer
looks up collaborator addresses on its own.
"""
from decimal import Decimal

from pydantic import BaseModel
from pydantic_settings import BaseSettings


class TopicConfig(BaseModel):
    order_events: str = "order.events"
    bill_events: str = "bill.events"


class ConsumerConfig(BaseModel):
    group: str
    topics: list[str]
    poll_interval_seconds: float = 0.5
    backoff_seconds: float = 1.0
    max_backoff_seconds: float = 30.0


class CatalogConfig(BaseModel):
    base_url: str
    timeout_seconds: float = 5.0


class UserDirectoryConfig(BaseModel):
    base_url: str
    timeout_seconds: float = 5.0


class SmtpConfig(BaseModel):
    host: str = "localhost"
    port: int = 587
    username: str = ""
    password: str = ""
    sender: str = "noreply@restman.com"
    timeout_seconds: float = 10.0


class BillingConfig(BaseModel):
    tax_rate: Decimal = Decimal("0.10")


class Settings(BaseSettings):
    """App settings loaded from .env or environment."""

    DATABASE_URL: str = "sqlite:///./orderflow.db"
    CORS_ORIGINS: str = "http://localhost:3000"
    LOG_LEVEL: str = "INFO"

    ORDER_TOPIC: str = "order.events"
    BILL_TOPIC: str = "bill.events"
    BUS_PARTITIONS: int = 8

    ORDER_CONSUMER_GROUP: str = "order-service-group"
    KITCHEN_CONSUMER_GROUP: str = "kitchen-service-group"
    BILLING_CONSUMER_GROUP: str = "billing-service-group"
    ANALYTICS_CONSUMER_GROUP: str = "analytics-service-group"
    CONSUMER_POLL_INTERVAL_SECONDS: float = 0.5
    CONSUMER_BACKOFF_SECONDS: float = 1.0

    RESTAURANT_SERVICE_URL: str = "http://localhost:8002"
    AUTH_SERVICE_URL: str = "http://localhost:8001"
    HTTP_TIMEOUT_SECONDS: float = 5.0

    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM: str = "noreply@restman.com"

    TAX_RATE: Decimal = Decimal("0.10")
    NOTIFICATION_WORKERS: int = 4

    class Config:
        env_file = ".env"

    def topics(self) -> TopicConfig:
        return TopicConfig(order_events=self.ORDER_TOPIC, bill_events=self.BILL_TOPIC)

    def consumer(self, group: str, topics: list[str]) -> ConsumerConfig:
        return ConsumerConfig(
            group=group,
            topics=topics,
            poll_interval_seconds=self.CONSUMER_POLL_INTERVAL_SECONDS,
            backoff_seconds=self.CONSUMER_BACKOFF_SECONDS,
        )

    def catalog(self) -> CatalogConfig:
        return CatalogConfig(base_url=self.RESTAURANT_SERVICE_URL, timeout_seconds=self.HTTP_TIMEOUT_SECONDS)

    def user_directory(self) -> UserDirectoryConfig:
        return UserDirectoryConfig(base_url=self.AUTH_SERVICE_URL, timeout_seconds=self.HTTP_TIMEOUT_SECONDS)

    def smtp(self) -> SmtpConfig:
        return SmtpConfig(
            host=self.SMTP_HOST,
            port=self.SMTP_PORT,
            username=self.SMTP_USERNAME,
            password=self.SMTP_PASSWORD,
            sender=self.SMTP_FROM,
        )

    def billing(self) -> BillingConfig:
        return BillingConfig(tax_rate=self.TAX_RATE)


settings = Settings()
