from __future__ import annotations
from pathlib import Path
from pydantic import BaseModel, ConfigDict, Field
from typing import Mapping, Optional
import logging, os

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"
API_KEY_ENV = "GEMINI_API_KEY"
HOME_ENV = "CODE_PLANNER_HOME"

class MissingApiKeyError(RuntimeError):
    """Raised when neither the config file nor the environment holds a Gemini key."""

class PlannerConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    gemini_api_key: Optional[str] = Field(None, alias="geminiApiKey", description="Gemini API key for AI planning")
    default_output_dir: str = Field(default_factory=os.getcwd, alias="defaultOutputDir", description="Where generated projects go")
    max_plans: int = Field(50, alias="maxPlans", description="Soft cap on stored plans")

    # Gemini endpoint, OpenAI-compatible
    gemini_base_url: str = Field(GEMINI_BASE_URL, alias="geminiBaseUrl", description="Gemini OpenAI-compatible base URL")
    gemini_model: str = Field("gemini-2.0-flash", alias="geminiModel", description="Gemini model to use")

def default_app_dir() -> Path:
    override = os.environ.get(HOME_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".code-planner"

def resolve_api_key(config: PlannerConfig, env: Mapping[str, str] = os.environ) -> Optional[str]:
    """Config value wins; the environment variable is only consulted when it is unset."""
    if config.gemini_api_key:
        return config.gemini_api_key
    return env.get(API_KEY_ENV) or None

class ConfigManager:
    def __init__(self, store):
        self.store = store

    def load_config(self) -> PlannerConfig:
        return self.store.load_config()

    def save_config(self, config: PlannerConfig) -> None:
        self.store.save_config(config)

    def ensure_api_key(self, env: Mapping[str, str] = os.environ) -> str:
        config = self.load_config()
        key = resolve_api_key(config, env)
        if not key:
            raise MissingApiKeyError("Gemini API key is required for AI-powered planning")
        if not config.gemini_api_key:
            logging.info("Using Gemini API key from %s", API_KEY_ENV)
        return key

    def set_api_key(self, api_key: str) -> PlannerConfig:
        config = self.load_config()
        config.gemini_api_key = api_key
        self.save_config(config)
        return config

    def init_config(self) -> PlannerConfig:
        config = self.load_config()
        if not config.default_output_dir:
            config.default_output_dir = os.getcwd()
        if not config.max_plans:
            config.max_plans = 50
        self.save_config(config)
        return config

    def reset_config(self) -> PlannerConfig:
        config = PlannerConfig()
        self.save_config(config)
        return config
