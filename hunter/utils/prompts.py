"""Helpers for loading prompt template overrides."""

from __future__ import annotations

from pathlib import Path
from string import Template
from typing import Optional

from hunter.utils.logging import get_logger

logger = get_logger(__name__)


def load_prompt_template(path: Optional[Path], default: Template) -> Template:
    """Return the template stored at ``path``, or ``default`` when unusable.

    An override file that is missing or empty is logged and ignored; the
    built-in template always remains a valid answer.
    """
    if path is None:
        return default

    try:
        content = path.read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        logger.warning("prompt_template_missing", path=str(path))
        return default
    except OSError as exc:  # pragma: no cover - filesystem issues
        logger.error("prompt_template_error", path=str(path), error=str(exc))
        return default

    if not content:
        logger.warning("prompt_template_empty", path=str(path))
        return default
    return Template(content)


__all__ = ["load_prompt_template"]
