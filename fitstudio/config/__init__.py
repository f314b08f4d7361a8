"""Application configuration module.

- **settings.py**: Environment-based settings (Pydantic BaseSettings)
  - Database URL, batch capacity, default plan day
  - Loaded from .env file via pydantic-settings

- **plan_templates.py**: Domain constants for plan generation
  - Macro profiles per diet category, meal slots and names
  - Package plan tags used to match clients to live sessions
"""
from fitstudio.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
