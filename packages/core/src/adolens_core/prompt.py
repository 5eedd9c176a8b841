"""Prompt selection and assembly.

Precedence, first match wins: inline prompt input > prompt file input >
bundled default. Custom text is merged into a fixed instruction template by
replacing a single placeholder. The result always goes to a file that
Copilot reads; prompts are never spliced into a command line string.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from adolens_core.errors import ValidationError

logger = logging.getLogger(__name__)

PROMPTS_DIR = Path(__file__).parent / "prompts"
DEFAULT_PROMPT = PROMPTS_DIR / "prompt.txt"
CUSTOM_TEMPLATE = PROMPTS_DIR / "prompt-custom.txt"
PLACEHOLDER = "%CUSTOMPROMPT%"
PROMPT_OUTPUT_FILE = "_copilot_prompt.txt"


@dataclass(frozen=True)
class Prompt:
    text: str
    source: str  # "default" | "inline" | "file"


def is_prompt_file_set(prompt_file: str | None) -> bool:
    # filePath inputs left empty resolve to the working directory, not "".
    if not prompt_file:
        return False
    path = Path(prompt_file)
    if not path.exists():
        logger.warning("Prompt file %s does not exist; ignoring it.", prompt_file)
        return False
    return path.is_file()


def validate_prompt(text: str) -> str:
    if '"' in text:
        raise ValidationError(
            "Prompt text must not contain double quotes (\"). Use single quotes or backticks instead."
        )
    return text


def merge_custom_prompt(custom_text: str, template_path: Path = CUSTOM_TEMPLATE) -> str:
    template = template_path.read_text(encoding="utf-8")
    return template.replace(PLACEHOLDER, custom_text, 1)


def read_prompt_file(prompt_file: str) -> str:
    try:
        content = Path(prompt_file).read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        raise ValidationError(f"Could not read prompt file {prompt_file}: {e}")
    if not content:
        raise ValidationError(f"Prompt file is empty: {prompt_file}")
    return content


def select_prompt(prompt: str | None = None, prompt_file: str | None = None) -> Prompt:
    """Resolve and validate the prompt for this run."""
    if prompt and prompt.strip():
        custom, source = prompt.strip(), "inline"
    elif is_prompt_file_set(prompt_file):
        custom, source = read_prompt_file(prompt_file), "file"
    else:
        return Prompt(text=validate_prompt(DEFAULT_PROMPT.read_text(encoding="utf-8")), source="default")

    validate_prompt(custom)
    return Prompt(text=merge_custom_prompt(custom), source=source)


def write_prompt(prompt: Prompt, directory: str | Path) -> Path:
    path = Path(directory) / PROMPT_OUTPUT_FILE
    path.write_text(prompt.text, encoding="utf-8")
    return path
