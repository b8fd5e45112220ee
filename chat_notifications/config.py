from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configuration settings for the chat notification function"""

    # Application settings
    service_name: str = "chat-notifications"
    log_level: str = "INFO"
    environment: str = "dev"

    # Firebase settings
    # Service account JSON; Application Default Credentials are used when unset
    firebase_secret: Optional[str] = None

    # Firestore layout
    users_collection: str = "Users"
    chat_rooms_collection: str = "Chat_rooms"
    messages_collection: str = "Messages"
    token_field: str = "token"

    # FCM delivery hints
    click_action: str = "FLUTTER_NOTIFICATION_CLICK"
    notification_sound: str = "default"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )


# Create settings instance
settings = Settings()
