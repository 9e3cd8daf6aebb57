"""Handles loading configuration from YAML files and the environment."""

import copy
import yaml
import os
import logging
from dotenv import load_dotenv
from typing import Optional

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.yaml"

DEFAULT_CONFIG = {
    'temp_dir': 'tmp',
    'log_dir': 'logs',
    'log_file': 'syncscribe.log',
    'output_format': 'srt',
    'max_line_width': 42,
    'audio_format': 'mp3',
    'ffmpeg_path': None,
    'ffprobe_path': None,
    'transcription_backend': 'openai',   # 'openai' or 'whisper'
    'transcription_model': 'whisper-1',
    'max_upload_mb': 25,
    'whisper_model': 'medium',
    'whisper_fp16': True,
    'device': 'cuda',
    'translation_backend': 'openai',     # 'openai' or 'huggingface'
    'translation_model': 'gpt-4o-mini',
    'translation_temperature': 0.3,
    'translation_strict': False,
    'huggingface_model_template': 'Helsinki-NLP/opus-mt-{source}-{target}',
    'target_languages': [],
    'sync_enabled': False,
    'ffsubsync_path': 'ffsubsync',
    'api_retry_attempts': 3,
    'api_timeout_seconds': 600,
}

class ConfigLoader:
    """Loads configuration settings from a YAML file."""

    def load_config(self, config_path: Optional[str] = None) -> dict:
        """
        Loads configuration from the specified YAML file path.

        Values from the file override DEFAULT_CONFIG. When no path is given and
        the default config.yaml is absent, the defaults are used as-is.

        Args:
            config_path: The path to the YAML configuration file.

        Returns:
            A dictionary containing the merged configuration settings.

        Raises:
            FileNotFoundError: If an explicitly given configuration file does not exist.
            ConfigurationError: If the file cannot be parsed as YAML or
                              if there are other reading errors.
        """
        load_dotenv()
        config = copy.deepcopy(DEFAULT_CONFIG)

        if config_path is None:
            if not os.path.exists(DEFAULT_CONFIG_PATH):
                logger.info(f"No {DEFAULT_CONFIG_PATH} found; using built-in defaults.")
                return config
            config_path = DEFAULT_CONFIG_PATH

        logger.info(f"Attempting to load configuration from: {config_path}")
        if not os.path.exists(config_path):
            logger.error(f"Configuration file not found at path: {config_path}")
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        if not os.path.isfile(config_path):
             logger.error(f"Configuration path is not a file: {config_path}")
             raise ConfigurationError(f"Configuration path is not a file: {config_path}")

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.error(f"Error parsing YAML configuration file {config_path}: {e}")
            raise ConfigurationError(f"Invalid YAML format in {config_path}: {e}") from e
        except OSError as e:
            logger.error(f"Error reading configuration file {config_path}: {e}")
            raise ConfigurationError(f"Could not read configuration file {config_path}: {e}") from e

        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            # Handle cases where YAML loads something other than a dictionary (e.g., just a string)
            logger.error(f"Configuration file {config_path} did not load as a dictionary (root object).")
            raise ConfigurationError(f"Invalid YAML structure in {config_path}. Root must be a mapping (dictionary).")

        config.update(loaded)
        logger.info(f"Configuration loaded successfully from {config_path}")
        return config


def require_api_key(config: dict) -> str:
    """
    Returns the OpenAI API key from config or the OPENAI_API_KEY variable.

    Raises:
        ConfigurationError: If no key is available.
    """
    api_key = config.get('openai_api_key') or os.environ.get('OPENAI_API_KEY')
    if not api_key:
        raise ConfigurationError(
            "OPENAI_API_KEY not found in environment variables. "
            "Please add it to your .env file or set it as an environment variable."
        )
    return api_key
