"""Configuration management for the Feast meal-sourcing service."""
import os
from typing import Final, Optional
from pathlib import Path

from dotenv import load_dotenv

env_path = Path(__file__).parent.parent / '.env'
if env_path.exists():
    load_dotenv(env_path)

# Structured recipe source
SPOONACULAR_API_KEY: Final[str] = os.getenv('SPOONACULAR_API_KEY', '')
SPOONACULAR_BASE_URL: Final[str] = os.getenv('SPOONACULAR_BASE_URL', 'https://api.spoonacular.com')
SEARCH_RESULT_LIMIT: Final[int] = int(os.getenv('SEARCH_RESULT_LIMIT', '10'))

# Generative text collaborator (any OpenAI-compatible endpoint)
LLM_API_KEY: Final[str] = os.getenv('LLM_API_KEY', os.getenv('OPENAI_API_KEY', ''))
LLM_BASE_URL: Final[Optional[str]] = os.getenv('LLM_BASE_URL') or None
LLM_MODEL: Final[str] = os.getenv('LLM_MODEL', 'gpt-4o-mini')
LLM_MEAL_MAX_TOKENS: Final[int] = int(os.getenv('LLM_MEAL_MAX_TOKENS', '800'))
LLM_SUGGESTIONS_MAX_TOKENS: Final[int] = int(os.getenv('LLM_SUGGESTIONS_MAX_TOKENS', '2000'))

# Exchange rates
EXCHANGE_RATE_API_URL: Final[str] = os.getenv('EXCHANGE_RATE_API_URL', 'https://api.exchangerate-api.com/v4/latest')
DEFAULT_CURRENCY: Final[str] = os.getenv('DEFAULT_CURRENCY', 'USD')
REFRESH_RATES_ON_STARTUP: Final[bool] = os.getenv('REFRESH_RATES_ON_STARTUP', 'false').lower() in ('1', 'true', 'yes')

# Sourcing behaviour
TIER_TIMEOUT_SECONDS: Final[float] = float(os.getenv('TIER_TIMEOUT_SECONDS', '5'))

# Application Settings
APP_HOST: Final[str] = os.getenv('APP_HOST', '0.0.0.0')
APP_PORT: Final[int] = int(os.getenv('APP_PORT', '8000'))
LOG_LEVEL: Final[str] = os.getenv('LOG_LEVEL', 'INFO').upper()

# File Paths
BASE_DIR: Final[Path] = Path(__file__).parent.parent
DATA_DIR: Final[Path] = Path(os.getenv('DATA_DIR', str(BASE_DIR / 'data')))
