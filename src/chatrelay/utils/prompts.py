"""
System prompt templates for analysis and voice replies.

Templates are the `<name>_system.md` files shipped in `chatrelay.prompts`.
They are read once per process and may contain `str.format` placeholders
that the orchestrator fills per request.
"""

from collections.abc import Iterable
from functools import lru_cache
from pathlib import Path
from string import Formatter

from chatrelay.utils.logging import get_logger

logger = get_logger(__name__)

PROMPTS_DIR = Path(__file__).parent.parent / "prompts"


def template_fields(template: str) -> set[str]:
    """Names of the `{placeholders}` in a template."""
    return {field for _, field, _, _ in Formatter().parse(template) if field}


@lru_cache(maxsize=None)
def _read(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        return None


def load_prompt(
    name: str,
    fallback: str | None = None,
    required: Iterable[str] = (),
    directory: Path = PROMPTS_DIR,
) -> str:
    """
    Load the system prompt template `name`.

    Args:
        name: Template name, e.g. `analysis` for `analysis_system.md`
        fallback: Template used when the file is missing or unusable
        required: Placeholders the caller will fill; a file that lacks any
            of them, or has placeholders the caller cannot fill, is unusable
        directory: Where the templates live

    Returns:
        The template text

    Raises:
        FileNotFoundError: If the file is missing or unusable and there is no fallback
    """
    path = directory / f"{name}_system.md"
    template = _read(path)
    needed = set(required)

    if template is not None:
        try:
            fields = template_fields(template)
        except ValueError as exc:
            logger.warning(f"Prompt {name} has malformed placeholders", extra={"error": str(exc)})
        else:
            if fields == needed:
                logger.debug(f"Loaded prompt {name}", extra={"path": str(path)})
                return template
            logger.warning(
                f"Prompt {name} placeholders do not match",
                extra={"found": sorted(fields), "expected": sorted(needed)},
            )

    if fallback is None:
        raise FileNotFoundError(f"No usable prompt template at {path}")
    logger.warning(f"Using built-in prompt for {name}", extra={"path": str(path)})
    return fallback
