# Match stage constants
from typing import Dict, List, Tuple

GROUP_STAGE: str = "Group"

KNOCKOUT_STAGES: List[str] = ["R32", "R16", "QF", "SF", "Third", "Final"]

STAGE_SORT_ORDER: Dict[str, int] = {
    "Group": 1,
    "R32": 2,
    "R16": 3,
    "QF": 4,
    "SF": 5,
    "Third": 6,
    "Final": 7,
}

# Match status
STATUS_SCHEDULED: str = "SCHEDULED"
STATUS_IN_PROGRESS: str = "IN_PROGRESS"
STATUS_FINISHED: str = "FINISHED"

MATCH_STATUSES: List[str] = [STATUS_SCHEDULED, STATUS_IN_PROGRESS, STATUS_FINISHED]

# Sides
HOME: str = "HOME"
AWAY: str = "AWAY"
SIDES: Tuple[str, str] = (HOME, AWAY)

# How a finished match was decided
DECIDED_REGULAR: str = "REGULAR"
DECIDED_EXTRA_TIME: str = "ET"
DECIDED_PENALTIES: str = "PENS"

# Decisions that make the knockout winner bonus available
TIE_BREAK_DECISIONS: List[str] = [DECIDED_EXTRA_TIME, DECIDED_PENALTIES]

# Older feeds use these spellings
LEGACY_ALIASES: Dict[str, str] = {
    "IN_PLAY": STATUS_IN_PROGRESS,
    "REG": DECIDED_REGULAR,
}

# Predicted / actual outcome relative to the home team
OUTCOME_WIN: str = "WIN"
OUTCOME_DRAW: str = "DRAW"
OUTCOME_LOSS: str = "LOSS"
OUTCOMES: List[str] = [OUTCOME_WIN, OUTCOME_DRAW, OUTCOME_LOSS]

# Scoring categories used in breakdowns
CATEGORY_EXACT: str = "exact"
CATEGORY_RESULT: str = "result"
CATEGORY_KNOCKOUT: str = "knockout"

# Data modes
MODE_DEFAULT: str = "default"
MODE_DEMO: str = "demo"
DATA_MODES: List[str] = [MODE_DEFAULT, MODE_DEMO]

# Social badge thresholds (percent of members backing the same side)
CONTRARIAN_THRESHOLD: int = 20
UNDERDOG_THRESHOLD: int = 35

# Group standings
POINTS_FOR_WIN: int = 3
POINTS_FOR_DRAW: int = 1
