from __future__ import annotations

import random


DEFAULT_PROMPTS = [
    "Why does Kaige Omen REALLY want to destroy Waterdeep?",
    "What is Oberon actually doing as a beggar in the city?",
    "The TRUTH behind why all the Masked Lords keep getting assassinated",
    "What Dusara al'Abhook's real plan is now that she can walk in sunlight",
    "Why the Stone of Golorr is causing so much chaos between the guilds",
    "The secret reason Captain Maverick keeps getting promoted",
    "What Thorn is ACTUALLY planning with Deepwater Mercantile",
    "Why Mielikki's power has been waning recently",
    "The real reason Duncan betrayed the party",
    "What Winter's Herald is ACTUALLY testing the party for",
    "Why Sprig looks exactly like Oberon (and it's not what you think)",
    "The truth about what happened to Apoch's creator Meepo",
]


def pick_prompt(prompts: list[str], previous: str = "", rng: random.Random | None = None) -> str:
    """Pick a prompt uniformly, skipping the one used last round.

    A deck whose only entry is ``previous`` repeats it.
    """
    if not prompts:
        raise ValueError("prompt deck is empty")

    choices = [p for p in prompts if p != previous] or list(prompts)
    return (rng or random).choice(choices)
