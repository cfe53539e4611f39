"""
Prompt Manager - loads JSON prompt configurations for the generative-text calls
Prompts live next to this module in configs/<name>.json
"""

import json
import logging
import re
from pathlib import Path
from typing import Dict, Any, List, Optional, Tuple

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ('model_name', 'prompt_template')


class PromptManager:
    """
    Loads, validates and formats prompt configurations

    A config carries `model_name`, `prompt_template` (str.format placeholders,
    literal braces doubled), optional `system_instruction` and `parameters`
    (temperature, max_output_tokens, ...).
    """

    def __init__(self, configs_dir: Optional[Path] = None):
        """
        Args:
            configs_dir: Directory holding the JSON configs
                        (defaults to flightrisk/prompts/configs/)
        """
        self.configs_dir = Path(configs_dir) if configs_dir else Path(__file__).parent / "configs"

        if not self.configs_dir.exists():
            raise FileNotFoundError(f"Prompts config directory not found: {self.configs_dir}")

        self._cache: Dict[str, Dict[str, Any]] = {}

    def load_config(self, config_name: str) -> Dict[str, Any]:
        """
        Load a prompt configuration (cached after the first read)

        Raises:
            FileNotFoundError: If the config file doesn't exist
            ValueError: If the JSON is invalid or a required field is missing
        """
        if config_name in self._cache:
            return self._cache[config_name]

        config_path = self.configs_dir / f"{config_name}.json"
        if not config_path.exists():
            raise FileNotFoundError(f"Prompt config not found: {config_path}")

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {config_path}: {str(e)}")

        missing = [field for field in REQUIRED_FIELDS if field not in config]
        if missing:
            raise ValueError(f"Missing required field(s) {missing} in {config_name}.json")

        self._cache[config_name] = config
        logger.debug(f"Loaded prompt config '{config_name}' ({config['model_name']})")
        return config

    def format_prompt(self, config_name: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        """
        Load a config and inject variables into its template

        Returns:
            Dictionary with the formatted prompt and the model settings

        Example:
            manager = PromptManager()
            prompt_data = manager.format_prompt(
                'security_intel',
                {'airport_code': 'JFK', 'airport_name': 'John F Kennedy Intl', 'headlines': '- ...'}
            )
        """
        config = self.load_config(config_name)

        valid, missing = self.validate_variables(config_name, variables)
        if not valid:
            raise ValueError(f"Missing required variable(s) {missing} for prompt '{config_name}'")

        safe_variables = {
            key: str(value) if value is not None else "N/A"
            for key, value in variables.items()
        }

        formatted_prompt = config['prompt_template'].format(**safe_variables)

        return {
            'prompt': formatted_prompt,
            'system_instruction': config.get('system_instruction', ''),
            'model_name': config['model_name'],
            'parameters': config.get('parameters', {}),
            'response_format': config.get('response_format', 'text'),
            'metadata': config.get('metadata', {})
        }

    def validate_variables(self, config_name: str, variables: Dict[str, Any]) -> Tuple[bool, List[str]]:
        """
        Check that every template placeholder has a value

        Doubled braces are literal text, not placeholders.

        Returns:
            Tuple of (is_valid, sorted list of missing variable names)
        """
        template = self.load_config(config_name)['prompt_template']
        stripped = template.replace('{{', '').replace('}}', '')
        required_vars = set(re.findall(r'\{(\w+)\}', stripped))
        missing_vars = sorted(required_vars - set(variables.keys()))
        return (not missing_vars, missing_vars)


_default_manager: Optional[PromptManager] = None


def get_prompt_manager(configs_dir: Optional[Path] = None) -> PromptManager:
    """Get singleton PromptManager instance"""
    global _default_manager
    if _default_manager is None or configs_dir is not None:
        _default_manager = PromptManager(configs_dir)
    return _default_manager

