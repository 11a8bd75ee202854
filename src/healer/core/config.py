import os
from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import Field, validator
from dotenv import load_dotenv

# Credentials live in a dotenv file; AI_DOTENV_PATH points at a custom one.
load_dotenv(os.getenv("AI_DOTENV_PATH") or ".env")


class Settings(BaseSettings):
    # Project layout
    AI_DOTENV_PATH: Optional[str] = Field(default=None, description="Location of the credentials dotenv file")
    AI_PROJECT_NAME: str = Field(default="demo1", description="Name of the test project")
    AI_WORKSPACE_DIR: Optional[str] = Field(default=None, description="Project workspace; defaults to ./projects/<project>")

    # Healing switches
    AI_HEALING: bool = Field(default=True, description="Enable/disable self-healing of failed steps")
    AI_DEBUG_MODE: bool = Field(default=False, description="Interactive debug mode; healing is suppressed while set")
    HEAL_CONFIG_PATH: str = Field(default="heal.yaml", description="Path of the heal plugin YAML config")

    # LLM Configuration
    MODEL_PROVIDER: str = "online"  # "online" for Gemini, "local" for Ollama
    GEMINI_API_KEY: str | None = None
    ONLINE_MODEL: str = "gemini/gemini-2.5-flash"
    LOCAL_MODEL: str = "llama3"

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="Console log level")
    LOG_DIR: str = Field(default="logs", description="Directory for rotating log files")

    @validator('MODEL_PROVIDER')
    def validate_model_provider(cls, v):
        """Validate that MODEL_PROVIDER is either 'online' or 'local'."""
        if v.lower() not in ['online', 'local']:
            raise ValueError(f"MODEL_PROVIDER must be 'online' or 'local', got '{v}'")
        return v.lower()

    @validator('LOG_LEVEL')
    def validate_log_level(cls, v):
        """Validate that LOG_LEVEL names a standard logging level."""
        if v.upper() not in ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']:
            raise ValueError(f"LOG_LEVEL must be a standard logging level, got '{v}'")
        return v.upper()

    @property
    def project_name(self) -> str:
        return Path(self.AI_PROJECT_NAME).name

    @property
    def workspace_dir(self) -> Path:
        if self.AI_WORKSPACE_DIR:
            return Path(self.AI_WORKSPACE_DIR).resolve()
        return (Path.cwd() / "projects" / self.project_name).resolve()

    @property
    def features_dir(self) -> Path:
        return self.workspace_dir / "features"

    @property
    def model_name(self) -> str:
        return self.LOCAL_MODEL if self.MODEL_PROVIDER == "local" else self.ONLINE_MODEL

    class Config:
        env_file = ".env"
        env_file_encoding = 'utf-8'
        extra = 'allow'  # Allow extra fields from .env file

settings = Settings()
