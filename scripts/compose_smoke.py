"""Compose prompts for a sample storyboard and print them for quick checks.

Usage: python scripts/compose_smoke.py [model]
"""

import sys

from panelcraft.core.exceptions import UnsupportedModelError
from panelcraft.core.logging import configure_logging
from panelcraft.schemas import CharacterTraits, EnhancementFlags, GenerationSettings, Panel
from panelcraft.services.batch_planner import ConsistencyBatchPlanner
from panelcraft.services.characters import CharacterRegistry
from panelcraft.services.model_optimization import optimize_for_model
from panelcraft.services.prompt_composer import PromptComposer
from panelcraft.services.scene_consistency import validate_consistency
from panelcraft.services.style_guides import StyleGuideCatalog

PANELS = [
    Panel(
        id="p1",
        description="Aria walks through a dark alley at night",
        shot_type="Wide Shot",
        camera_angle="Low",
        camera_movement="Tracking",
    ),
    Panel(
        id="p2",
        description="Aria looks up, tense, as the rain starts",
        shot_type="Close-Up",
        camera_angle="Eye Level",
        camera_movement="Static",
    ),
]


def main():
    configure_logging(level="WARNING")
    model = sys.argv[1] if len(sys.argv) > 1 else "stable-diffusion-xl"

    registry = CharacterRegistry()
    aria = registry.create(
        "Aria",
        traits=CharacterTraits(age="25", gender="female", hair_color="silver", eye_color="green"),
    )
    guide = StyleGuideCatalog().create("Smoke Noir", preset_key="noir-thriller")
    seeds = ConsistencyBatchPlanner(registry).plan(aria.id, len(PANELS))

    composer = PromptComposer()
    flags = EnhancementFlags.all_enabled()
    for panel, panel_seed in zip(PANELS, seeds):
        panel.character_ids = [aria.id]
        result = composer.compose(
            panel,
            [aria],
            guide,
            flags,
            GenerationSettings(model=model, seed=panel_seed.seed),
        )
        try:
            prompt = optimize_for_model(result.prompt, model)
        except UnsupportedModelError:
            prompt = result.prompt
        report = composer.analyze_prompt_quality(prompt)
        print(f"[{panel.id}] seed={result.seed} score={report.score}")
        print(f"  prompt:   {prompt}")
        print(f"  negative: {result.negative_prompt}")

    consistency = validate_consistency(PANELS, [aria])
    print(f"consistency: ok={consistency.is_consistent} issues={len(consistency.issues)}")
    for issue in consistency.issues:
        print(f"  - {issue}")


if __name__ == "__main__":
    main()
