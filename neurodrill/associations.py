"""Match-among-distractors drills.

Every drill here shows a cue, then asks for the one option that belongs with
it. They differ only in content, scoring constants and pacing.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from .clock import Clock
from .core import SeededRng, Trial, shuffled_options
from .engine import CompletionCallback, SequencerConfig, TrialSequencer
from .pool import CatalogPool, TrialBuilder
from .scoring import (
    ANALOGY_SCORING,
    GESTALT_SCORING,
    GRID_SCORING,
    RAPID_SCORING,
    SpeedWeightedScoring,
)


@dataclass(frozen=True, slots=True)
class Analogy:
    a: str
    b: str
    c: str
    options: tuple[str, str, str, str]
    correct_index: int
    relationship: str


@dataclass(frozen=True, slots=True)
class MatchSet:
    """A cue, the option that belongs with it, and options that don't."""

    cue: tuple[str, ...]
    match: str
    distractors: tuple[str, ...]


ANALOGIES: tuple[Analogy, ...] = (
    Analogy("dog", "bone", "cat", ("fish", "tree", "car", "guitar"), 0, "pet -> food"),
    Analogy("sun", "sunrise", "moon", ("night sky", "sunflower", "fire", "star"), 0, "celestial -> time"),
    Analogy("baby", "child", "hatching egg", ("hen", "egg", "chick", "eagle"), 2, "baby -> child"),
    Analogy("pencil", "memo", "brush", ("painting", "books", "laptop", "wrench"), 0, "tool -> result"),
    Analogy("rain", "umbrella", "snow", ("coat", "sun", "rainbow", "wind"), 0, "weather -> protection"),
    Analogy("eye", "glasses", "ear", ("headphones", "nose", "mouth", "hand"), 0, "sense -> aid"),
    Analogy("key", "door", "ticket", ("theatre", "circus", "stadium", "cinema"), 0, "opens -> place"),
    Analogy("book", "library", "note", ("song", "guitar", "microphone", "piano"), 0, "single -> collection"),
    Analogy("seedling", "tree", "caterpillar", ("butterfly", "ant", "bee", "beetle"), 0, "young -> mature"),
    Analogy("grapes", "wine", "apple", ("juice", "beer", "coffee", "milk"), 0, "fruit -> drink"),
    Analogy("fire", "hot", "ice", ("cold", "water", "thermometer", "snowflake"), 0, "element -> feeling"),
    Analogy("piano", "music", "painting", ("sight", "palette", "camera", "brush"), 0, "creates -> perception"),
)

WORD_PUZZLES: tuple[MatchSet, ...] = (
    MatchSet(("Snow", "Cone", "Cream"), "Ice", ("Cold", "White", "Water")),
    MatchSet(("Light", "Day", "Moon"), "Sun", ("Star", "Sky", "Night")),
    MatchSet(("Work", "Book", "News"), "Paper", ("Read", "Office", "Print")),
    MatchSet(("Coat", "Bow", "Drop"), "Rain", ("Storm", "Water", "Cloud")),
    MatchSet(("Worm", "Mark", "Shelf"), "Book", ("Read", "Page", "Word")),
    MatchSet(("Ball", "Work", "Print"), "Foot", ("Hand", "Step", "Walk")),
    MatchSet(("Box", "Code", "Card"), "Post", ("Mail", "Send", "Pack")),
    MatchSet(("Cake", "Day", "Card"), "Birth", ("Party", "Gift", "Happy")),
    MatchSet(("Berry", "Bird", "Bell"), "Blue", ("Red", "Color", "Sky")),
    MatchSet(("Chair", "Rest", "Band"), "Arm", ("Leg", "Hand", "Body")),
    MatchSet(("Storm", "Bolt", "Bug"), "Lightning", ("Thunder", "Flash", "Strike")),
    MatchSet(("Fly", "Milk", "Scotch"), "Butter", ("Bread", "Cream", "Sweet")),
)

RAPID_SETS: tuple[MatchSet, ...] = (
    MatchSet(("fire",), "chili", ("ice", "water", "snowflake")),
    MatchSet(("sleep",), "moon", ("sun", "lightning", "runner")),
    MatchSet(("heartbreak",), "tears", ("grin", "party", "muscle")),
    MatchSet(("party",), "celebration", ("yawn", "tears", "anger")),
    MatchSet(("lightning",), "sprint", ("turtle", "sofa", "yawn")),
    MatchSet(("rain",), "gloom", ("party", "muscle", "grin")),
    MatchSet(("sunshine",), "smile", ("tears", "yawn", "anger")),
    MatchSet(("snowflake",), "shiver", ("sweat", "fire", "sun")),
    MatchSet(("music",), "dance", ("books", "briefcase", "wrench")),
    MatchSet(("muscle",), "trophy", ("sofa", "yawn", "books")),
    MatchSet(("books",), "nerd", ("runner", "dance", "video game")),
    MatchSet(("wave",), "surfer", ("mountain", "cactus", "snowflake")),
    MatchSet(("pizza",), "yum", ("nausea", "yawn", "tears")),
    MatchSet(("video game",), "thrill", ("yawn", "books", "briefcase")),
    MatchSet(("money",), "greed", ("tears", "yawn", "anger")),
)

VIBE_SETS: tuple[MatchSet, ...] = (
    MatchSet(("sunrise", "mountain dawn", "sunset"), "city dusk", ("house", "phone", "guitar")),
    MatchSet(("saxophone", "trumpet", "violin"), "piano", ("football", "car", "books")),
    MatchSet(("wave", "surfer", "shell"), "beach", ("mountain", "video game", "laptop")),
    MatchSet(("candle", "moon", "sparkles"), "shooting star", ("sun", "loudspeaker", "runner")),
    MatchSet(("fallen leaf", "maple leaf", "wheat"), "pumpkin", ("snowflake", "blossom", "sun")),
    MatchSet(("snowflake", "snowman", "ice"), "snow cloud", ("palm tree", "fire", "hibiscus")),
    MatchSet(("blossom", "tulip", "rose"), "hibiscus", ("video game", "phone", "wrench")),
    MatchSet(("circus tent", "ferris wheel", "roller coaster"), "carousel", ("book", "briefcase", "microscope")),
    MatchSet(("castle", "crown", "swords"), "shield", ("phone", "car", "headphones")),
    MatchSet(("rocket", "star", "flying saucer"), "astronaut", ("house", "tree", "dog")),
    MatchSet(("meditation", "herb", "peace sign"), "om", ("explosion", "loudspeaker", "race car")),
    MatchSet(("theatre masks", "clapperboard", "projector"), "movie camera", ("carrot", "hammer", "ruler")),
    MatchSet(("coffee", "book", "scarf"), "fireplace", ("swimmer", "guitar", "cyclist")),
    MatchSet(("palm tree", "coconut", "hibiscus"), "island", ("snowflake", "mountain", "rain cloud")),
    MatchSet(("guitar", "rock hand", "loudspeaker"), "microphone", ("books", "meditation", "herb")),
)

COLOR_SETS: tuple[MatchSet, ...] = (
    MatchSet(("#FF6B6B", "#FF8E8E", "#FFB4B4"), "#FFD4D4", ("#00FF00", "#0000FF", "#FFFF00")),
    MatchSet(("#4ECDC4", "#45B7AA", "#3CA99E"), "#339B92", ("#FF0000", "#FF00FF", "#FFA500")),
    MatchSet(("#667EEA", "#764BA2", "#6B8DD6"), "#5C6BC0", ("#00FF00", "#FFFF00", "#FF6600")),
    MatchSet(("#F093FB", "#F5576C", "#FA709A"), "#FF85A2", ("#00FF00", "#006400", "#32CD32")),
    MatchSet(("#43E97B", "#38F9D7", "#4FFFB0"), "#72FFB8", ("#FF0000", "#8B0000", "#DC143C")),
    MatchSet(("#FA709A", "#FEE140", "#FFA07A"), "#FFB347", ("#0000FF", "#000080", "#4169E1")),
    MatchSet(("#A8EDEA", "#FED6E3", "#D4FCF6"), "#E8F8F5", ("#8B0000", "#FF4500", "#FF0000")),
    MatchSet(("#2C3E50", "#34495E", "#2E4053"), "#1C2833", ("#FFFF00", "#00FF00", "#FF00FF")),
    MatchSet(("#E74C3C", "#C0392B", "#D35400"), "#E67E22", ("#00CED1", "#00FFFF", "#40E0D0")),
    MatchSet(("#9B59B6", "#8E44AD", "#7D3C98"), "#6C3483", ("#ADFF2F", "#7FFF00", "#00FF7F")),
)

GESTALT_SETS: tuple[MatchSet, ...] = (
    MatchSet(("left half-triangle", "right half-triangle"), "down triangle", ("up triangle", "diamond", "circle")),
    MatchSet(("upper arc", "lower arc"), "circle", ("square", "triangle", "diamond")),
    MatchSet(("/", "\\"), "X", ("check mark", "circle", "square")),
    MatchSet(("|-", "-|"), "+", ("|", "-", "T")),
    MatchSet(("left half-disc", "right half-disc"), "filled circle", ("half-moon", "ring", "oval")),
    MatchSet(("top bar", "right bar"), "corner", ("L shape", "line", "T")),
    MatchSet(("(", ")"), "circle", ("square", "triangle", "diamond")),
    MatchSet(("<", ">"), "diamond", ("circle", "square", "triangle")),
    MatchSet(("top-left corner", "bottom-right corner"), "square", ("circle", "triangle", "diamond")),
    MatchSet(
        ("double top-left corner", "double bottom-right corner"),
        "framed square",
        ("circle", "triangle", "diamond"),
    ),
    MatchSet(("^", "v"), "diamond", ("circle", "square", "triangle")),
    MatchSet(("[", "]"), "rectangle", ("circle", "triangle", "star")),
)


def build_analogy_trial(item: Analogy, rng: SeededRng) -> Trial:
    _ = rng
    return Trial(
        prompt=f"{item.a} : {item.b} :: {item.c} : ?",
        answer=item.correct_index,
        options=item.options,
        payload=item,
    )


def _match_trial_builder(prompt: str, joiner: str = " ") -> TrialBuilder[MatchSet]:
    def build(item: MatchSet, rng: SeededRng) -> Trial:
        options, index = shuffled_options(rng, item.match, item.distractors)
        return Trial(
            prompt=f"{prompt}\n{joiner.join(item.cue)}",
            answer=index,
            options=options,
            payload=item,
        )

    return build


def _catalog_drill(
    *,
    title: str,
    items: Sequence[object],
    build: TrialBuilder,
    scoring: SpeedWeightedScoring,
    trials: int,
    dwell_s: float,
    clock: Clock,
    seed: int,
    time_limit_s: int,
    on_complete: CompletionCallback | None,
) -> TrialSequencer:
    return TrialSequencer(
        title=title,
        source=CatalogPool(items, build=build, rng=SeededRng(seed)),
        scoring=scoring,
        clock=clock,
        config=SequencerConfig(time_limit_s=time_limit_s, trials_target=trials, feedback_dwell_s=dwell_s),
        on_complete=on_complete,
    )


def build_analogy_match_drill(
    *, clock: Clock, seed: int, time_limit_s: int = 30, on_complete: CompletionCallback | None = None
) -> TrialSequencer:
    return _catalog_drill(
        title="Analogy Match",
        items=ANALOGIES,
        build=build_analogy_trial,
        scoring=ANALOGY_SCORING,
        trials=8,
        dwell_s=1.0,
        clock=clock,
        seed=seed,
        time_limit_s=time_limit_s,
        on_complete=on_complete,
    )


def build_word_association_drill(
    *, clock: Clock, seed: int, time_limit_s: int = 30, on_complete: CompletionCallback | None = None
) -> TrialSequencer:
    return _catalog_drill(
        title="Word Association",
        items=WORD_PUZZLES,
        build=_match_trial_builder("Which word links all three?", " / "),
        scoring=ANALOGY_SCORING,
        trials=10,
        dwell_s=1.0,
        clock=clock,
        seed=seed,
        time_limit_s=time_limit_s,
        on_complete=on_complete,
    )


def build_rapid_association_drill(
    *, clock: Clock, seed: int, time_limit_s: int = 30, on_complete: CompletionCallback | None = None
) -> TrialSequencer:
    return _catalog_drill(
        title="Rapid Association",
        items=RAPID_SETS,
        build=_match_trial_builder("What goes with"),
        scoring=RAPID_SCORING,
        trials=15,
        dwell_s=0.4,
        clock=clock,
        seed=seed,
        time_limit_s=time_limit_s,
        on_complete=on_complete,
    )


def build_visual_vibe_drill(
    *, clock: Clock, seed: int, time_limit_s: int = 30, on_complete: CompletionCallback | None = None
) -> TrialSequencer:
    return _catalog_drill(
        title="Visual Vibe",
        items=VIBE_SETS,
        build=_match_trial_builder("Which one shares the vibe?", ", "),
        scoring=GRID_SCORING,
        trials=12,
        dwell_s=0.6,
        clock=clock,
        seed=seed,
        time_limit_s=time_limit_s,
        on_complete=on_complete,
    )


def build_color_harmony_drill(
    *, clock: Clock, seed: int, time_limit_s: int = 30, on_complete: CompletionCallback | None = None
) -> TrialSequencer:
    return _catalog_drill(
        title="Color Harmony",
        items=COLOR_SETS,
        build=_match_trial_builder("Which colour completes the palette?"),
        scoring=GRID_SCORING,
        trials=12,
        dwell_s=0.5,
        clock=clock,
        seed=seed,
        time_limit_s=time_limit_s,
        on_complete=on_complete,
    )


def build_gestalt_completion_drill(
    *, clock: Clock, seed: int, time_limit_s: int = 30, on_complete: CompletionCallback | None = None
) -> TrialSequencer:
    return _catalog_drill(
        title="Gestalt Completion",
        items=GESTALT_SETS,
        build=_match_trial_builder("What shape do the parts make?", joiner=" + "),
        scoring=GESTALT_SCORING,
        trials=12,
        dwell_s=0.5,
        clock=clock,
        seed=seed,
        time_limit_s=time_limit_s,
        on_complete=on_complete,
    )
