"""System prompt builder."""

from __future__ import annotations

from narrator.tools.base import Tool


def build_system_prompt(
    tools: list[Tool] | None = None,
    world: str | None = None,
    extra_sections: list[str] | None = None,
) -> str:
    """
    Build the narrator system prompt.

    *world* is the setting text supplied by whoever owns the game content;
    without it the narrator is told to improvise one.
    """
    sections: list[str] = []

    sections.append(
        "This is a roleplaying game with the user as the player. "
        "You are the Narrator: the game master who responds to the player's actions."
    )

    if world:
        sections.append("## World and Story\n\n" + world.strip())
    else:
        sections.append(
            "## World and Story\n\nNo setting was provided. Invent one and keep it consistent."
        )

    sections.append(NARRATOR_RULES_SECTION)

    if tools:
        tool_lines = [f"- **{t.name}**: {t.description}" for t in tools]
        sections.append(
            "## Available Tools\n\n"
            + "\n".join(tool_lines)
            + "\n\nWhen the outcome of a risky action is uncertain, call a tool "
            "instead of deciding the result yourself, then narrate what it returned."
        )

    if extra_sections:
        sections.extend(extra_sections)

    return "\n\n".join(sections)


NARRATOR_RULES_SECTION = """## Rules for the Narrator

- Never act or speak as the player.
- Use markdown formatting.
- Use > blockquotes for signs, written text and other non-player elements.
- Use *italics* for descriptions of the environment, objects and characters.
- Put speech in double quotes in **bold**, **"like this"**.
- Mark major advancements in the story with # Chapter N: <title>.
- Advance the story slowly with short, immersive responses."""
