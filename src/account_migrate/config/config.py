"""Configuration management for the account migration tool."""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator


class ObjectTypeConfig(BaseModel):
    """Configuration for one migrated object type."""

    provider: str = Field(
        ..., description='Provider factory import path (package.module:factory)'
    )
    depends_on: List[str] = Field(
        default_factory=list, description='Object types that must be migrated first'
    )
    enabled: bool = Field(default=True, description='Migrate this object type')
    options: Dict[str, Any] = Field(
        default_factory=dict, description='Keyword arguments for the provider factory'
    )

    @field_validator('provider')
    @classmethod
    def validate_provider(cls, v):
        """Validate provider import path format."""
        module, _, attr = v.partition(':')
        if not module or not attr:
            raise ValueError('provider must look like "package.module:factory"')
        return v


class MigrationConfig(BaseModel):
    """Migration-specific configuration."""

    concurrency: int = Field(
        default=10, description='Maximum concurrent items per object type'
    )
    object_types: Dict[str, ObjectTypeConfig] = Field(
        default_factory=dict, description='Object types to migrate, by name'
    )

    @field_validator('concurrency')
    @classmethod
    def validate_concurrency(cls, v):
        """Validate concurrency is positive."""
        if v <= 0:
            raise ValueError('Concurrency must be positive')
        return v


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default='INFO', description='Log level')
    file: Optional[str] = Field(default=None, description='Log file path')
    format: Optional[str] = Field(default=None, description='Console log format')

    @field_validator('level')
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ['DEBUG', 'INFO', 'SUCCESS', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'Log level must be one of: {valid_levels}')
        return v.upper()


class Config(BaseModel):
    """Main configuration class for the account migration tool."""

    model_config = ConfigDict(extra='forbid')

    migration: MigrationConfig = Field(
        default_factory=MigrationConfig, description='Migration settings'
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description='Logging settings'
    )

    @classmethod
    def from_file(cls, config_path: str) -> 'Config':
        """Load configuration from YAML file."""
        config_file = Path(config_path)

        if not config_file.exists():
            raise FileNotFoundError(f'Configuration file not found: {config_path}')

        with open(config_file, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f) or {}

        return cls(**config_data)

    @classmethod
    def from_env(cls) -> 'Config':
        """Load configuration from environment variables.

        Object types cannot be described through the environment, so the
        result only carries tuning and logging settings.
        """
        load_dotenv()

        config_data = {
            'migration': {
                'concurrency': os.getenv('MIGRATION_CONCURRENCY'),
            },
            'logging': {
                'level': os.getenv('LOG_LEVEL'),
                'file': os.getenv('LOG_FILE'),
            },
        }

        config_data = cls._remove_none_values(config_data)

        return cls(**config_data)

    @staticmethod
    def _remove_none_values(data: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively remove None values from dictionary."""
        if isinstance(data, dict):
            return {
                k: Config._remove_none_values(v)
                for k, v in data.items()
                if v is not None
            }
        return data

    def enabled_object_types(self) -> Dict[str, ObjectTypeConfig]:
        return {
            name: object_type
            for name, object_type in self.migration.object_types.items()
            if object_type.enabled
        }

    def to_file(self, config_path: str) -> None:
        """Save configuration to YAML file."""
        config_file = Path(config_path)
        config_file.parent.mkdir(parents=True, exist_ok=True)

        with open(config_file, 'w', encoding='utf-8') as f:
            yaml.dump(
                self.model_dump(exclude_none=True),
                f,
                default_flow_style=False,
                indent=2,
                sort_keys=False,
            )

    @staticmethod
    def create_template(output_path: str) -> None:
        """Create a configuration template file."""
        template_config = {
            'migration': {
                'concurrency': 10,
                'object_types': {
                    'products': {
                        'provider': 'my_providers.products:create_provider',
                        'options': {'api_key_env': 'SOURCE_API_KEY'},
                    },
                    'customers': {
                        'provider': 'my_providers.customers:create_provider',
                    },
                    'subscriptions': {
                        'provider': 'my_providers.subscriptions:create_provider',
                        'depends_on': ['products', 'customers'],
                    },
                },
            },
            'logging': {
                'level': 'INFO',
                'file': 'migration.log',
            },
        }

        config_file = Path(output_path)
        config_file.parent.mkdir(parents=True, exist_ok=True)

        with open(config_file, 'w', encoding='utf-8') as f:
            yaml.dump(
                template_config, f, default_flow_style=False, indent=2, sort_keys=False
            )
