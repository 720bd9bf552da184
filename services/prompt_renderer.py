# ============================================================================
# PROMPT RENDERER
# ============================================================================
# EPOCH: 1 - DIALECTIC ORCHESTRATION
# STATUS: Core - Seed prompt rendering with Jinja2
# PURPOSE: Render stage system prompts with overlay values and prior outputs
# CREATED: 18 OCT 2026
# ============================================================================
"""
Prompt Renderer

Renders a stage's system prompt template into the seed prompt of the next
stage.

Context variables:
- {{ user_objective }} - the project's initial user prompt
- {{ prior_stage_ai_outputs }} - concatenated model outputs of the stage
- {{ prior_stage_user_feedback }} - consolidated user feedback
- {{ current_stage_user_feedback }} - same text, kept for older templates
- {{ <overlay key> }} - every key of the merged domain overlay values

Undefined variables are errors: a template that references a key no overlay
provides fails to render rather than producing a prompt with holes.
"""

from typing import Any, Dict, List

from jinja2 import BaseLoader, Environment, StrictUndefined, TemplateSyntaxError, UndefinedError

from core.errors import DialecticConfigurationError
from core.logging import get_logger, ComponentType
from core.models import DomainOverlay

logger = get_logger(__name__, component=ComponentType.TRANSITIONER)


def merge_overlay_values(overlays: List[DomainOverlay]) -> Dict[str, Any]:
    """Merge overlay values in row order; later rows win on key conflicts."""
    merged: Dict[str, Any] = {}
    for overlay in overlays:
        merged.update(overlay.overlay_values or {})
    return merged


class PromptRenderer:
    """
    Jinja2-based seed prompt renderer.

    Thread-safe, can be reused across renders.
    """

    def __init__(self):
        self._env = Environment(
            loader=BaseLoader(),
            autoescape=False,
            undefined=StrictUndefined,
            keep_trailing_newline=True,
        )

    def render(self, template_text: str, context: Dict[str, Any]) -> str:
        """
        Render a prompt template.

        Raises:
            DialecticConfigurationError: STAGE_CONFIG_RENDER_FAILED when the
                template is invalid or references an undefined variable
        """
        try:
            template = self._env.from_string(template_text)
            return template.render(context)
        except (TemplateSyntaxError, UndefinedError) as e:
            logger.warning(f"Prompt render failed: {e}")
            raise DialecticConfigurationError(
                f"Failed to render the next stage prompt: {e}",
                code="STAGE_CONFIG_RENDER_FAILED",
                details=str(e),
            ) from e


__all__ = ["PromptRenderer", "merge_overlay_values"]
