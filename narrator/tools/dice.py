"""Dice tools."""

from __future__ import annotations

import logging
import random
from typing import Any

from narrator.tools.base import Tool

logger = logging.getLogger(__name__)

SUCCESS_THRESHOLD = 5


class RollD6Tool(Tool):
    """
    Rolls one six-sided die.  A 5 or 6 is a success.

    Pass a seeded ``random.Random`` (or any object with ``randint``) as
    *rng* to make rolls reproducible.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.SystemRandom()

    @property
    def name(self) -> str:
        return "roll_d6"

    @property
    def description(self) -> str:
        return (
            "Roll a d6 and return the face value and whether it is a "
            "success (5 or 6)."
        )

    async def execute(self, **kwargs) -> dict[str, Any]:
        value = self._rng.randint(1, 6)
        payload = {"die": 6, "value": value, "success": value >= SUCCESS_THRESHOLD}
        logger.info("roll_d6 %s", payload)
        return payload
