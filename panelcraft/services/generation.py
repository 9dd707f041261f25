"""
Storyboard generation driver.

Wires composition, model optimization and quality presets to an external
image backend. The backend and the optional quality analyzer are
capabilities supplied by the caller; nothing here talks to a provider.
"""

from __future__ import annotations

import logging
import time
from typing import Protocol, Sequence

from panelcraft.config.loaders import get_quality_preset
from panelcraft.core.exceptions import EmptyPromptError, GenerationError, NotFoundError, UnsupportedModelError
from panelcraft.core.metrics import track_backend_call
from panelcraft.core.request_context import log_context
from panelcraft.core.settings import settings as app_settings
from panelcraft.core.telemetry import trace_span
from panelcraft.schemas import (
    DEFAULT_QUALITY,
    CharacterEntity,
    EnhancementFlags,
    GenerationResult,
    GenerationSettings,
    Panel,
    PanelOutcome,
    StyleGuide,
)
from panelcraft.services.characters import CharacterRegistry
from panelcraft.services.model_optimization import optimize_for_model
from panelcraft.services.prompt_composer import PromptComposer

logger = logging.getLogger(__name__)

# Failures that abort a single panel of a batch.
PANEL_ERRORS = (NotFoundError, EmptyPromptError, GenerationError)


class GenerationBackend(Protocol):
    def generate(
        self,
        prompt: str,
        negative_prompt: str,
        settings: GenerationSettings,
        seed: int | None,
    ) -> str:
        """Render one image and return its URL or handle."""
        ...


class QualityAnalyzer(Protocol):
    def score_image(self, image_url: str) -> float: ...

    def score_consistency(self, image_url: str, characters: Sequence[CharacterEntity]) -> float: ...


def apply_quality_preset(settings: GenerationSettings, quality: str) -> GenerationSettings:
    """Fill steps, guidance scale and size from the quality preset.

    Values already set on ``settings`` win over the preset.
    """
    preset = get_quality_preset(quality)
    return settings.model_copy(
        update={
            "steps": settings.steps if settings.steps is not None else preset.steps,
            "guidance_scale": (
                settings.guidance_scale if settings.guidance_scale is not None else preset.guidance_scale
            ),
            "size": settings.size or preset.size,
        }
    )


def _chunks(items: Sequence[Panel], size: int):
    for start in range(0, len(items), size):
        yield items[start : start + size]


class StoryboardGenerator:
    def __init__(
        self,
        composer: PromptComposer,
        registry: CharacterRegistry,
        backend: GenerationBackend,
        analyzer: QualityAnalyzer | None = None,
    ):
        self.composer = composer
        self.registry = registry
        self.backend = backend
        self.analyzer = analyzer

    def generate_panel(
        self,
        panel: Panel,
        style_guide: StyleGuide | None = None,
        flags: EnhancementFlags | None = None,
        settings: GenerationSettings | None = None,
    ) -> GenerationResult:
        """Compose, optimize and render one panel.

        Raises:
            NotFoundError: If the panel references an unknown character
            EmptyPromptError: If the panel has nothing to compose
            GenerationError: If the backend call fails
        """
        settings = settings or GenerationSettings()
        characters = self.registry.resolve(panel.character_ids)

        with log_context(panel_id=panel.id), trace_span("generate_panel", panel_id=panel.id, model=settings.model):
            composition = self.composer.compose(panel, characters, style_guide, flags, settings)

            try:
                enhanced_prompt = optimize_for_model(composition.prompt, settings.model)
            except UnsupportedModelError:
                logger.warning("model_unsupported model=%s using_unoptimized_prompt=true", settings.model)
                enhanced_prompt = composition.prompt

            quality = style_guide.technical_specs.quality if style_guide else DEFAULT_QUALITY
            resolved = apply_quality_preset(settings, quality)

            started = time.perf_counter()
            try:
                with track_backend_call(resolved.model):
                    image_url = self.backend.generate(
                        enhanced_prompt,
                        composition.negative_prompt,
                        resolved,
                        composition.seed,
                    )
            except GenerationError:
                raise
            except Exception as exc:
                raise GenerationError(
                    f"Backend failed for panel {panel.id}: {exc}",
                    detail="Generation backend error",
                ) from exc
            duration = time.perf_counter() - started

            quality_score, consistency_score = self._score(image_url, characters)

            logger.info(
                "panel_generated model=%s seed=%s duration_s=%.3f quality_score=%s",
                resolved.model,
                composition.seed,
                duration,
                quality_score,
            )

        return GenerationResult(
            panel_id=panel.id,
            prompt=composition.prompt,
            enhanced_prompt=enhanced_prompt,
            negative_prompt=composition.negative_prompt,
            image_url=image_url,
            seed=composition.seed,
            model=resolved.model,
            settings=resolved,
            duration_seconds=duration,
            quality_score=quality_score,
            consistency_score=consistency_score,
        )

    def _score(
        self,
        image_url: str,
        characters: Sequence[CharacterEntity],
    ) -> tuple[float | None, float | None]:
        """Quality and consistency scores, or ``None`` where unavailable.

        The image already exists at this point, so an analyzer failure is
        logged and leaves the scores unset instead of failing the panel.
        """
        if self.analyzer is None:
            return None, None
        try:
            quality_score = self.analyzer.score_image(image_url)
            consistency_score = self.analyzer.score_consistency(image_url, characters) if characters else None
        except Exception as exc:
            logger.warning(
                "quality_analysis_failed image_url=%s error_type=%s error=%s",
                image_url,
                type(exc).__name__,
                exc,
            )
            return None, None
        return quality_score, consistency_score

    def generate_batch(
        self,
        panels: Sequence[Panel],
        style_guide: StyleGuide | None = None,
        flags: EnhancementFlags | None = None,
        settings: GenerationSettings | None = None,
        quality_check: bool = False,
    ) -> list[PanelOutcome]:
        """Generate panels in chunks; one panel's failure never aborts the rest.

        With ``quality_check``, results scoring below the configured quality
        threshold are returned but marked rejected.
        """
        if quality_check and self.analyzer is None:
            logger.warning("quality_check_skipped reason=no_analyzer")

        outcomes: list[PanelOutcome] = []
        chunk_size = app_settings.batch_chunk_size
        for chunk_index, chunk in enumerate(_chunks(panels, chunk_size)):
            logger.info("batch_chunk_started chunk=%s size=%s", chunk_index, len(chunk))
            for panel in chunk:
                outcomes.append(self._generate_outcome(panel, style_guide, flags, settings, quality_check))

        failed = sum(1 for outcome in outcomes if not outcome.ok)
        logger.info("batch_complete panels=%s failed_or_rejected=%s", len(outcomes), failed)
        return outcomes

    def _generate_outcome(
        self,
        panel: Panel,
        style_guide: StyleGuide | None,
        flags: EnhancementFlags | None,
        settings: GenerationSettings | None,
        quality_check: bool,
    ) -> PanelOutcome:
        try:
            result = self.generate_panel(panel, style_guide, flags, settings)
        except PANEL_ERRORS as exc:
            with log_context(panel_id=panel.id):
                logger.warning("panel_failed error_type=%s error=%s", type(exc).__name__, exc)
            return PanelOutcome(panel_id=panel.id, error=str(exc), error_type=type(exc).__name__)

        rejected = (
            quality_check
            and result.quality_score is not None
            and result.quality_score < app_settings.quality_threshold
        )
        if rejected:
            with log_context(panel_id=panel.id):
                logger.info(
                    "panel_rejected quality_score=%s threshold=%s",
                    result.quality_score,
                    app_settings.quality_threshold,
                )
        return PanelOutcome(panel_id=panel.id, result=result, rejected=rejected)
