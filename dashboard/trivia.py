"""Short messages the jobs dashboard shows while a run is in progress."""

from __future__ import annotations

import random
from typing import Optional

TRIVIA_MESSAGES: tuple[str, ...] = (
    # Testing facts
    "Did you know? Automated regression runs can cut manual testing time by up to 90%.",
    "Fun fact: the first recorded computer bug was a moth found in a Harvard Mark II in 1947.",
    "Playwright drives Chromium, Firefox and WebKit through one API.",
    "The cost of fixing a bug grows with every stage it survives.",
    # Practice
    "Pro tip: run tests in isolated browser contexts to avoid false positives from cached sessions.",
    "Flaky tests are worse than no tests: they erode trust in the whole suite.",
    "Good tests are fast, independent, repeatable, self-validating and timely (FIRST).",
    "Test early, test often: a bug caught in QA is far cheaper than one caught in production.",
    # Storefront
    "The storefront serves customers across 7 regions, each with its own language and currency.",
    "Every region has its own translations, so sign-in messages are checked per locale.",
    "Testing both QA and live catches environment-specific issues before customers do.",
    # Motivation
    "Good tests are the safety net that lets you refactor with confidence.",
    "Every test you write is a bug you are preventing in production.",
    "Automated tests never get tired and never skip a step.",
    "Your tests are running so your users don't find the bugs first!",
    # Technical
    "The Page Object Model keeps UI details out of the test logic.",
    "Parallel workers can bring a long link-validation run down from hours to minutes.",
    "The term 'smoke testing' comes from hardware: if it doesn't catch fire, it passes.",
    # Auth and e-commerce
    "Password reset flows are critical: one bug can lock customers out of their accounts.",
    "Sign-out tests make sure sessions are really cleared.",
    "A smooth login is crucial for conversion; cart abandonment often happens at sign-in.",
    "Tests running... time for a coffee break!",
)


def get_random_trivia(rng: Optional[random.Random] = None) -> str:
    return (rng or random).choice(TRIVIA_MESSAGES)


def get_multiple_trivia(count: int = 5, rng: Optional[random.Random] = None) -> list[str]:
    count = max(0, min(count, len(TRIVIA_MESSAGES)))
    return (rng or random).sample(TRIVIA_MESSAGES, count)
