"""Configuration schema using Pydantic."""

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


class AssistantConfig(BaseModel):
    """How the assistant presents itself."""
    name: str = "Parley"
    show_welcome: bool = True  # Greet the user when the conversation starts


class PolicyConfig(BaseModel):
    """Permission store configuration."""
    store_path: str = "~/.parley/permissions.jsonl"
    persist: bool = True  # False keeps granted rules in memory only


class LoggingConfig(BaseModel):
    level: str = "WARNING"


class OwnerConfig(BaseModel):
    """The local user, as remote principals see them."""
    identity: str = ""  # e.g. "email:alice@example.com"
    display_name: str = ""


class Config(BaseSettings):
    """Root configuration for parley."""
    assistant: AssistantConfig = Field(default_factory=AssistantConfig)
    policy: PolicyConfig = Field(default_factory=PolicyConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    owner: OwnerConfig = Field(default_factory=OwnerConfig)

    class Config:
        env_prefix = "PARLEY_"
        env_nested_delimiter = "__"
