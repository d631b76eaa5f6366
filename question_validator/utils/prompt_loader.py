import json
from pathlib import Path
from string import Template
from typing import Any, Dict, List, Optional

REQUIRED_OPERATIONS = ["extract_question", "extract_rubric", "extract_and_classify_batch", "analyze"]
REQUIRED_KEYS = ["system", "user_text", "user_file"]


class PromptLoader:
    """Load and manage versioned prompt templates for the model operations."""

    def __init__(self, prompts_dir: Optional[str] = None, version: str = "v1.0.0") -> None:
        """
        Initialize the prompt loader.

        - If `prompts_dir` is None, resolve to the `prompts` directory shipped
          inside the package.
        - If `prompts_dir` is provided and not found relative to the CWD,
          also try resolving it relative to the package root.
        """
        package_root = Path(__file__).resolve().parents[1]

        if prompts_dir is None:
            self.prompts_dir: Path = package_root / "prompts"
        else:
            candidate = Path(prompts_dir)
            self.prompts_dir = candidate if candidate.exists() else (package_root / candidate)

        self.version = version
        self._prompts_cache: Dict[str, Dict[str, str]] = {}
        self._load_prompts()

    def _load_prompts(self) -> None:
        """Load all prompts from the versioned directory."""
        version_dir = self.prompts_dir / self.version

        if not version_dir.exists():
            raise FileNotFoundError(
                f"Prompts directory not found: {version_dir}. "
                f"Please ensure the prompts are properly set up in {version_dir}"
            )

        for operation in REQUIRED_OPERATIONS:
            json_file = version_dir / f"{operation}.json"
            if not json_file.exists():
                raise FileNotFoundError(f"Required prompt file not found: {json_file}")

            try:
                with open(json_file, "r", encoding="utf-8") as file:
                    prompts_data: Dict[str, str] = json.load(file)
            except Exception as exc:  # noqa: BLE001
                raise RuntimeError(f"Error loading prompts from {json_file}: {exc}") from exc

            required_keys = REQUIRED_KEYS + (["example"] if operation == "analyze" else [])
            missing = [key for key in required_keys if key not in prompts_data]
            if missing:
                raise ValueError(f"Missing keys {missing} in {json_file}")

            self._prompts_cache[operation] = prompts_data

    def load_prompt(self, operation: str, key: str) -> str:
        """Return the raw template `key` ("system", "user_text", ...) for an operation."""
        if operation not in self._prompts_cache:
            available = list(self._prompts_cache.keys())
            raise ValueError(
                f"No prompts found for operation: '{operation}'. "
                f"Available operations: {available}"
            )

        templates = self._prompts_cache[operation]
        if key not in templates:
            raise ValueError(
                f"No template '{key}' for operation '{operation}'. "
                f"Available templates: {list(templates.keys())}"
            )
        return templates[key]

    def render(self, operation: str, key: str, **params: Any) -> str:
        """Render a template with `$name` placeholders.

        `string.Template` is used because prompt text may contain braces that
        would break `str.format`.
        """
        return Template(self.load_prompt(operation, key)).substitute(**params)

    def get_available_operations(self) -> List[str]:
        return list(self._prompts_cache.keys())

    def reload_prompts(self) -> None:
        """Reload prompts from files (useful for development/testing)."""
        self._prompts_cache.clear()
        self._load_prompts()
