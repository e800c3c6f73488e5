from __future__ import annotations

import logging
import os
import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

from .associations import (
    build_analogy_match_drill,
    build_color_harmony_drill,
    build_gestalt_completion_drill,
    build_rapid_association_drill,
    build_visual_vibe_drill,
    build_word_association_drill,
)
from .clock import Clock
from .core import DifficultyTier, DrillEngine
from .dot_target import build_dot_target_drill
from .engine import CompletionCallback
from .go_no_go import build_go_no_go_drill
from .memory_span import (
    build_digit_span_drill,
    build_memory_matrix_drill,
    build_pattern_sequence_drill,
)
from .mental_rotation import build_mental_rotation_drill
from .n_back import build_n_back_drill
from .odd_one_out import build_odd_one_out_drill
from .one_back import build_location_match_drill, build_shape_match_drill
from .open_reflection import build_open_reflection_drill, parse_duration_s
from .sequence_logic import build_sequence_logic_drill
from .stroop import build_stroop_drill
from .switching import build_category_switch_drill, build_rule_switch_drill
from .visual_search import build_visual_search_drill

logger = logging.getLogger(__name__)

TIME_LIMIT_ENV = "NEURODRILL_TIME_LIMIT_S"


class DrillType(StrEnum):
    DOT_TARGET = "dot_target"
    ODD_ONE_OUT = "odd_one_out"
    SHAPE_MATCH = "shape_match"
    VISUAL_SEARCH = "visual_search"
    GO_NO_GO = "go_no_go"
    STROOP = "stroop"
    LOCATION_MATCH = "location_match"
    DIGIT_SPAN = "digit_span"
    N_BACK = "n_back"
    PATTERN_SEQUENCE = "pattern_sequence"
    MEMORY_MATRIX = "memory_matrix"
    MENTAL_ROTATION = "mental_rotation"
    CATEGORY_SWITCH = "category_switch"
    RULE_SWITCH = "rule_switch"
    ANALOGY_MATCH = "analogy_match"
    SEQUENCE_LOGIC = "sequence_logic"
    WORD_ASSOCIATION = "word_association"
    VISUAL_VIBE = "visual_vibe"
    COLOR_HARMONY = "color_harmony"
    GESTALT_COMPLETION = "gestalt_completion"
    RAPID_ASSOCIATION = "rapid_association"
    OPEN_REFLECTION = "open_reflection"


@dataclass(frozen=True, slots=True)
class DrillDefaults:
    time_limit_s: int
    tier: DifficultyTier


_E, _M, _H = DifficultyTier.EASY, DifficultyTier.MEDIUM, DifficultyTier.HARD

DRILL_DEFAULTS: dict[DrillType, DrillDefaults] = {
    DrillType.DOT_TARGET: DrillDefaults(30, _E),
    DrillType.ODD_ONE_OUT: DrillDefaults(30, _E),
    DrillType.SHAPE_MATCH: DrillDefaults(30, _M),
    DrillType.VISUAL_SEARCH: DrillDefaults(30, _M),
    DrillType.GO_NO_GO: DrillDefaults(30, _E),
    DrillType.STROOP: DrillDefaults(30, _M),
    DrillType.LOCATION_MATCH: DrillDefaults(30, _M),
    DrillType.DIGIT_SPAN: DrillDefaults(45, _M),
    DrillType.N_BACK: DrillDefaults(45, _H),
    DrillType.PATTERN_SEQUENCE: DrillDefaults(30, _M),
    DrillType.MEMORY_MATRIX: DrillDefaults(30, _M),
    DrillType.MENTAL_ROTATION: DrillDefaults(30, _H),
    DrillType.CATEGORY_SWITCH: DrillDefaults(30, _M),
    DrillType.RULE_SWITCH: DrillDefaults(30, _M),
    DrillType.ANALOGY_MATCH: DrillDefaults(30, _M),
    DrillType.SEQUENCE_LOGIC: DrillDefaults(30, _M),
    DrillType.WORD_ASSOCIATION: DrillDefaults(30, _E),
    DrillType.VISUAL_VIBE: DrillDefaults(30, _E),
    DrillType.COLOR_HARMONY: DrillDefaults(30, _E),
    DrillType.GESTALT_COMPLETION: DrillDefaults(30, _E),
    DrillType.RAPID_ASSOCIATION: DrillDefaults(30, _E),
    DrillType.OPEN_REFLECTION: DrillDefaults(180, _M),
}


# Exercise-number routing: (inclusive upper bound, drill). A number past every
# bound, or no number at all, routes to the fallback.
_Route = tuple[tuple[tuple[int, DrillType], ...], DrillType]

_FOCUS_FAST: _Route = (
    (
        (5, DrillType.DOT_TARGET),
        (10, DrillType.ODD_ONE_OUT),
        (15, DrillType.SHAPE_MATCH),
        (20, DrillType.VISUAL_SEARCH),
        (25, DrillType.GO_NO_GO),
        (30, DrillType.STROOP),
        (35, DrillType.LOCATION_MATCH),
        (40, DrillType.CATEGORY_SWITCH),
        (45, DrillType.PATTERN_SEQUENCE),
    ),
    DrillType.RULE_SWITCH,
)
_FOCUS_SLOW: _Route = (
    (
        (5, DrillType.RULE_SWITCH),
        (10, DrillType.STROOP),
        (15, DrillType.GO_NO_GO),
        (20, DrillType.CATEGORY_SWITCH),
        (25, DrillType.N_BACK),
        (30, DrillType.ODD_ONE_OUT),
        (35, DrillType.SHAPE_MATCH),
        (40, DrillType.VISUAL_SEARCH),
        (45, DrillType.PATTERN_SEQUENCE),
    ),
    DrillType.RULE_SWITCH,
)
_MEMORY: _Route = (
    ((10, DrillType.DIGIT_SPAN), (20, DrillType.MEMORY_MATRIX), (30, DrillType.N_BACK)),
    DrillType.LOCATION_MATCH,
)
_CONTROL: _Route = (
    ((15, DrillType.GO_NO_GO), (30, DrillType.STROOP)),
    DrillType.RULE_SWITCH,
)
_REASONING_FAST: _Route = (
    (
        (10, DrillType.SEQUENCE_LOGIC),
        (20, DrillType.ANALOGY_MATCH),
        (30, DrillType.PATTERN_SEQUENCE),
        (40, DrillType.ODD_ONE_OUT),
    ),
    DrillType.CATEGORY_SWITCH,
)
_REASONING: _Route = (
    ((15, DrillType.SEQUENCE_LOGIC), (30, DrillType.ANALOGY_MATCH)),
    DrillType.PATTERN_SEQUENCE,
)
_CREATIVE_FAST: _Route = (
    (
        (10, DrillType.VISUAL_VIBE),
        (20, DrillType.RAPID_ASSOCIATION),
        (30, DrillType.COLOR_HARMONY),
        (40, DrillType.GESTALT_COMPLETION),
    ),
    DrillType.VISUAL_VIBE,
)
_CREATIVE: _Route = (
    ((15, DrillType.ODD_ONE_OUT), (30, DrillType.WORD_ASSOCIATION)),
    DrillType.ANALOGY_MATCH,
)
_NEURO: _Route = (
    (
        (3, DrillType.DOT_TARGET),
        (6, DrillType.N_BACK),
        (9, DrillType.GO_NO_GO),
        (12, DrillType.VISUAL_SEARCH),
    ),
    DrillType.STROOP,
)

_KEYWORDS: tuple[tuple[tuple[str, ...], DrillType], ...] = (
    (("DOT", "TARGET", "REACTION"), DrillType.DOT_TARGET),
    (("ODD", "DIFFERENT"), DrillType.ODD_ONE_OUT),
    (("SHAPE", "MATCH"), DrillType.SHAPE_MATCH),
    (("SEARCH", "FIND"), DrillType.VISUAL_SEARCH),
    (("GO", "STOP", "INHIBIT"), DrillType.GO_NO_GO),
    (("STROOP", "COLOR"), DrillType.STROOP),
    (("LOCATION", "POSITION"), DrillType.LOCATION_MATCH),
    (("DIGIT", "SPAN", "SEQUENCE"), DrillType.DIGIT_SPAN),
    (("NBACK", "N-BACK", "BACK"), DrillType.N_BACK),
    (("PATTERN",), DrillType.PATTERN_SEQUENCE),
    (("MATRIX", "GRID"), DrillType.MEMORY_MATRIX),
    (("ROTATE", "ROTATION"), DrillType.MENTAL_ROTATION),
    (("SWITCH", "CATEGORY"), DrillType.CATEGORY_SWITCH),
    (("RULE",), DrillType.RULE_SWITCH),
    (("ANALOGY",), DrillType.ANALOGY_MATCH),
    (("LOGIC",), DrillType.SEQUENCE_LOGIC),
    (("WORD", "ASSOCIATION"), DrillType.WORD_ASSOCIATION),
)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def _leading_int(text: str) -> int | None:
    m = _LEADING_INT.match(text)
    return int(m.group(1)) if m else None


def _route(num: int | None, route: _Route) -> DrillType:
    buckets, fallback = route
    if num is None:
        return fallback
    for upper, drill in buckets:
        if num <= upper:
            return drill
    return fallback


def _third_field(exercise_id: str) -> int | None:
    parts = exercise_id.split("_")
    return _leading_int(parts[2]) if len(parts) > 2 else None


def _last_field(exercise_id: str) -> int | None:
    return _leading_int(exercise_id.split("_")[-1])


def drill_type_for_exercise(exercise_id: str) -> DrillType:
    """Route a content exercise ID (``FA_FAST_007``, ``MC_12``, ``N004``...) to a drill."""

    eid = str(exercise_id).upper()

    if eid.startswith("FA_FAST_"):
        return _route(_third_field(eid), _FOCUS_FAST)
    if eid.startswith("FA_S2_"):
        return _route(_third_field(eid), _FOCUS_SLOW)
    if eid.startswith(("MC_", "MEMORY_")):
        return _route(_last_field(eid), _MEMORY)
    if eid.startswith(("CL_", "CONTROL_")):
        return _route(_last_field(eid), _CONTROL)
    if eid.startswith("CR_FAST_"):
        return _route(_third_field(eid), _REASONING_FAST)
    if eid.startswith("CR_SLOW_"):
        return DrillType.OPEN_REFLECTION
    if eid.startswith(("CR_", "REASONING_")):
        return _route(_last_field(eid), _REASONING)
    if eid.startswith("CH_FAST_"):
        return _route(_third_field(eid), _CREATIVE_FAST)
    if eid.startswith(("CH_", "CREATIVE_")):
        return _route(_last_field(eid), _CREATIVE)
    if eid.startswith(("N0", "N1")):
        return _route(_leading_int(eid[1:]), _NEURO)

    for keywords, drill in _KEYWORDS:
        if any(k in eid for k in keywords):
            return drill

    logger.debug("no route for exercise %r; using %s", exercise_id, DrillType.DOT_TARGET.value)
    return DrillType.DOT_TARGET


def time_limit_from_env(default: int) -> int:
    """``NEURODRILL_TIME_LIMIT_S`` overrides every drill's time limit when set."""

    raw = os.environ.get(TIME_LIMIT_ENV, "").strip()
    if not raw:
        return int(default)
    try:
        value = int(raw)
    except ValueError:
        logger.warning("ignoring %s=%r: not an integer", TIME_LIMIT_ENV, raw)
        return int(default)
    if value <= 0:
        logger.warning("ignoring %s=%r: must be > 0", TIME_LIMIT_ENV, raw)
        return int(default)
    return value


DrillBuilder = Callable[..., DrillEngine]

_BUILDERS: dict[DrillType, DrillBuilder] = {
    DrillType.DOT_TARGET: build_dot_target_drill,
    DrillType.ODD_ONE_OUT: build_odd_one_out_drill,
    DrillType.SHAPE_MATCH: build_shape_match_drill,
    DrillType.VISUAL_SEARCH: build_visual_search_drill,
    DrillType.GO_NO_GO: build_go_no_go_drill,
    DrillType.STROOP: build_stroop_drill,
    DrillType.LOCATION_MATCH: build_location_match_drill,
    DrillType.DIGIT_SPAN: build_digit_span_drill,
    DrillType.N_BACK: build_n_back_drill,
    DrillType.PATTERN_SEQUENCE: build_pattern_sequence_drill,
    DrillType.MEMORY_MATRIX: build_memory_matrix_drill,
    DrillType.MENTAL_ROTATION: build_mental_rotation_drill,
    DrillType.CATEGORY_SWITCH: build_category_switch_drill,
    DrillType.RULE_SWITCH: build_rule_switch_drill,
    DrillType.ANALOGY_MATCH: build_analogy_match_drill,
    DrillType.SEQUENCE_LOGIC: build_sequence_logic_drill,
    DrillType.WORD_ASSOCIATION: build_word_association_drill,
    DrillType.VISUAL_VIBE: build_visual_vibe_drill,
    DrillType.COLOR_HARMONY: build_color_harmony_drill,
    DrillType.GESTALT_COMPLETION: build_gestalt_completion_drill,
    DrillType.RAPID_ASSOCIATION: build_rapid_association_drill,
    DrillType.OPEN_REFLECTION: build_open_reflection_drill,
}


def build_drill(
    drill_type: DrillType | str,
    *,
    clock: Clock,
    seed: int,
    on_complete: CompletionCallback | None = None,
    time_limit_s: int | None = None,
    tier: DifficultyTier | None = None,
    duration: str | None = None,
) -> DrillEngine:
    """Build a ready-to-start drill engine with its defaults applied.

    ``duration`` is an exercise label such as ``"5min"``; only open reflection
    takes its limit from it. An explicit ``time_limit_s`` still wins.
    """

    kind = DrillType(drill_type)
    defaults = DRILL_DEFAULTS[kind]
    if time_limit_s is not None:
        limit = int(time_limit_s)
    elif duration is not None and kind is DrillType.OPEN_REFLECTION:
        limit = parse_duration_s(duration)
    else:
        limit = time_limit_from_env(defaults.time_limit_s)

    kwargs: dict[str, object] = {
        "clock": clock,
        "seed": int(seed),
        "time_limit_s": limit,
        "on_complete": on_complete,
    }
    if kind is DrillType.SEQUENCE_LOGIC:
        kwargs["tier"] = DifficultyTier(tier or defaults.tier)

    logger.debug("building %s (limit %ds, seed %d)", kind.value, limit, int(seed))
    return _BUILDERS[kind](**kwargs)
