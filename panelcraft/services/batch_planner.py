from __future__ import annotations

from panelcraft.schemas import PanelSeed
from panelcraft.services.characters import PANEL_SEED_STRIDE, CharacterRegistry

__all__ = ["PANEL_SEED_STRIDE", "ConsistencyBatchPlanner"]


class ConsistencyBatchPlanner:
    """Plans per-panel seeds for one character across a storyboard."""

    def __init__(self, registry: CharacterRegistry):
        self.registry = registry

    def plan(self, character_id: str, panel_count: int) -> list[PanelSeed]:
        """``panel_count`` seeds spaced by ``PANEL_SEED_STRIDE`` from the character seed.

        Assigns the character a seed first when it has none.
        """
        return self.registry.batch_seeds(character_id, panel_count)
