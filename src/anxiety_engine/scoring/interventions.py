"""Relief interventions — a fixed catalogue of short guided exercises.

Each exercise carries a step-by-step guide (instruction, seconds, cue).
:func:`recommend` orders the catalogue for a score: at high or very high
anxiety the quick-relief breathing exercises come first, otherwise the
catalogue is ordered by rating.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from anxiety_engine.scoring.models import AnxietyLevel, AnxietyScore

_URGENT_LEVELS = (AnxietyLevel.HIGH, AnxietyLevel.VERY_HIGH)


class GuideStep(BaseModel):
    model_config = ConfigDict(frozen=True)

    instruction: str
    seconds: int
    cue: str


class Intervention(BaseModel):
    """One exercise from the catalogue."""

    model_config = ConfigDict(frozen=True)

    key: str
    title: str
    subtitle: str
    category: str
    effect: str
    minutes: int
    rating: float  # mean user rating, 1-5
    quick_relief: bool = False
    summary: str = ""
    steps: tuple[GuideStep, ...] = ()

    @property
    def cycle_seconds(self) -> int:
        """Length of one pass through the guide."""
        return sum(s.seconds for s in self.steps)


def _steps(*rows: tuple[str, int, str]) -> tuple[GuideStep, ...]:
    return tuple(GuideStep(instruction=i, seconds=s, cue=c) for i, s, c in rows)


CATALOGUE: tuple[Intervention, ...] = (
    Intervention(
        key="breathing_478",
        title="4-7-8 Breathing",
        subtitle="Inhale 4s, hold 7s, exhale 8s",
        category="breathwork",
        effect="Calms sympathetic arousal",
        minutes=5,
        rating=4.2,
        quick_relief=True,
        summary="Inhale quietly for 4s, hold for 7s, slow exhale for 8s.",
        steps=_steps(
            ("Inhale", 4, "Belly expands"),
            ("Hold", 7, "Keep shoulders relaxed"),
            ("Exhale", 8, "Pursed lips, slow release"),
        ),
    ),
    Intervention(
        key="box_breathing",
        title="Box Breathing",
        subtitle="Inhale, hold, exhale, hold for 4s each",
        category="breathwork",
        effect="Steady rhythm to reset",
        minutes=4,
        rating=4.5,
        quick_relief=True,
        summary="Steady 4-4-4-4 rhythm to reset your nervous system.",
        steps=_steps(
            ("Inhale", 4, "Count 1-2-3-4"),
            ("Hold", 4, "Keep chest soft"),
            ("Exhale", 4, "Slow and even"),
            ("Hold", 4, "Stay still"),
        ),
    ),
    Intervention(
        key="grounding_54321",
        title="5-4-3-2-1 Grounding",
        subtitle="Notice 5 senses to anchor",
        category="grounding",
        effect="Interrupts racing thoughts",
        minutes=3,
        rating=4.0,
        summary="Name items for each sense to anchor attention.",
        steps=_steps(
            ("5 things you see", 20, "Scan the room"),
            ("4 things you feel", 20, "Feet on the floor"),
            ("3 things you hear", 20, "Near and far sounds"),
            ("2 things you smell", 20, "Deep breaths"),
            ("1 thing you taste", 20, "Notice lingering taste"),
        ),
    ),
    Intervention(
        key="short_walk",
        title="Short Walk",
        subtitle="Brief outdoor reset",
        category="movement",
        effect="Reduce cortisol spike",
        minutes=5,
        rating=4.3,
        summary="Reset with gentle movement; breathe through the nose.",
        steps=_steps(
            ("Stand & stretch", 20, "Roll shoulders"),
            ("Easy pace", 60, "Nose breathing"),
            ("Notice surroundings", 60, "Name colors and shapes"),
        ),
    ),
    Intervention(
        key="anxiety_dump",
        title="Anxiety Dump",
        subtitle="Write down everything on your mind",
        category="reflection",
        effect="Label and diffuse",
        minutes=3,
        rating=3.8,
        summary="Write without editing to clear the mental backlog.",
        steps=_steps(
            ("Write freely", 90, "No filtering"),
            ("Circle priorities", 40, "Pick 1-2 items"),
            ("Choose one action", 40, "Small next step"),
        ),
    ),
    Intervention(
        key="soundscape",
        title="Calming Soundscape",
        subtitle="Lo-fi or binaural beats",
        category="audio",
        effect="Lower arousal through tempo",
        minutes=10,
        rating=3.9,
        summary="Low tempo audio to downshift arousal.",
        steps=_steps(
            ("Press play", 15, "Volume low"),
            ("Close eyes", 45, "Slow exhales"),
            ("Notice breath", 60, "Match beat"),
        ),
    ),
)

_BY_KEY = {item.key: item for item in CATALOGUE}


def get_intervention(key: str) -> Intervention | None:
    return _BY_KEY.get(key)


def quick_relief() -> list[Intervention]:
    return [item for item in CATALOGUE if item.quick_relief]


def recommend(score: AnxietyScore, limit: int | None = None) -> list[Intervention]:
    """Order the catalogue for the current score.

    High and very high levels put quick-relief items first (catalogue
    order), then the rest by rating.  Lower levels rank everything by
    rating.  Ties keep catalogue order.
    """
    by_rating = sorted(CATALOGUE, key=lambda item: -item.rating)
    if score.level in _URGENT_LEVELS:
        ranked = quick_relief() + [item for item in by_rating if not item.quick_relief]
    else:
        ranked = by_rating
    return ranked if limit is None else ranked[:limit]
