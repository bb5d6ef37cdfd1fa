"""
Purchase Configuration - typed provider configuration and environment settings.

FAIL FAST - A blank API key is rejected before any backend call is made.
"""

from dataclasses import dataclass, field
from enum import Enum

from pydantic_settings import BaseSettings, SettingsConfigDict

from purchasekit.exceptions import InvalidAPIKeyError


class StoreKitVersion(str, Enum):
    """StoreKit version preference forwarded to the RevenueCat backend."""

    STORE_KIT_1 = "storekit1"
    STORE_KIT_2 = "storekit2"


@dataclass(frozen=True)
class PurchaseConfiguration:
    """
    Configuration for the purchase provider.

    Example:
        config = PurchaseConfiguration(
            api_key="appl_xxx",
            entitlement_identifiers=frozenset({"premium", "pro"}),
        )
        await manager.configure(config)
    """

    api_key: str
    user_id: str | None = None
    debug_logging_enabled: bool = False
    store_kit_version: StoreKitVersion = StoreKitVersion.STORE_KIT_2
    entitlement_identifiers: frozenset[str] = field(default_factory=frozenset)

    def validate(self) -> None:
        """
        Validate the configuration.

        Raises:
            InvalidAPIKeyError: If the API key is empty or whitespace-only
        """
        if not self.api_key.strip():
            raise InvalidAPIKeyError()


class Settings(BaseSettings):
    """Purchase settings loaded from environment variables (PURCHASES_*)."""

    # Provider credentials
    api_key: str = ""
    user_id: str | None = None
    debug_logging: bool = False
    store_kit_version: StoreKitVersion = StoreKitVersion.STORE_KIT_2
    entitlement_identifiers: str = ""  # Comma-separated, e.g. "premium,pro"

    # RevenueCat REST backend
    api_base_url: str = "https://api.revenuecat.com/v1"
    request_timeout: float = 30.0

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"  # json or console

    model_config = SettingsConfigDict(
        env_prefix="PURCHASES_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def tracked_entitlements(self) -> frozenset[str]:
        """Parse the comma-separated entitlement identifiers."""
        ids = set()
        for entitlement_id in self.entitlement_identifiers.split(","):
            entitlement_id = entitlement_id.strip()
            if entitlement_id:
                ids.add(entitlement_id)
        return frozenset(ids)

    def to_configuration(self) -> PurchaseConfiguration:
        """Build a PurchaseConfiguration from these settings."""
        return PurchaseConfiguration(
            api_key=self.api_key,
            user_id=self.user_id or None,
            debug_logging_enabled=self.debug_logging,
            store_kit_version=self.store_kit_version,
            entitlement_identifiers=self.tracked_entitlements,
        )


settings = Settings()


def get_settings() -> Settings:
    """Get settings instance."""
    return settings
