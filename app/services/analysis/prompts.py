"""Prompt template loading and filling."""

import re
from pathlib import Path

import structlog
import yaml

from app.core.exceptions import PromptTemplateError

logger = structlog.get_logger(__name__)

_PLACEHOLDER_PATTERN = re.compile(r"\{(title|transcript|videoId)\}")


def load_prompt_template(path: str | Path, name: str) -> str:
    """Read `<name>.prompt` from a YAML prompt library.

    Raises:
        PromptTemplateError: file missing or unreadable, key missing, or template empty
    """
    library_path = Path(path)
    try:
        library = yaml.safe_load(library_path.read_text(encoding="utf-8"))
    except OSError as e:
        raise PromptTemplateError(f"Cannot read prompt library {library_path}: {e}") from e
    except yaml.YAMLError as e:
        raise PromptTemplateError(f"Invalid YAML in prompt library {library_path}: {e}") from e

    entry = library.get(name) if isinstance(library, dict) else None
    template = entry.get("prompt") if isinstance(entry, dict) else None
    if not isinstance(template, str) or not template.strip():
        raise PromptTemplateError(f"{name}.prompt not found in {library_path}")

    logger.info("prompt_template_loaded", path=str(library_path), name=name, length=len(template))
    return template


def fill_prompt(template: str, title: str, transcript: str, video_id: str) -> str:
    """Replace every {title}, {transcript} and {videoId} placeholder.

    Substitution happens in one pass, so placeholder-like text inside the
    inserted values is left untouched.
    """
    values = {"title": title, "transcript": transcript, "videoId": video_id}
    return _PLACEHOLDER_PATTERN.sub(lambda match: values[match.group(1)], template)
