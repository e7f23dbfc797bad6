from __future__ import annotations

# Wave generation defaults (overridable per level through waves.json "waveGeneration")
MAX_SELECTION_ATTEMPTS = 200
DIFFICULTY_TOLERANCE = 0.10
MAX_PREPOPULATION_PER_TYPE = float("inf")
MIN_ENEMY_TYPES = 1

DELAY_BETWEEN_ENEMIES_MS = 500
MAX_WAVE = 30

# ratios outside this band are clamped for display / plotting only
DISPLAY_RATIO_CAP = 1e9

# below this |T1*B2 - T2*B1| the flat-start solver refuses to answer
SOLVER_EPS = 1e-9
# wear projection: |w + d_n| below this switches to the linear R(t) solution
WEAR_EPS = 1e-9

# default output file names (next to the level data unless WAVEBALANCE_OUT is set)
RESULTS_FILE = "analysis-results.json"
RESULTS_CSV = "analysis-results.csv"
PARAMS_FILE = "analysis-params.json"
SUMMARY_FILE = "analysis-summary.md"
CHART_FILE = "analysis-ratio.png"
WEAR_RESULTS_FILE = "analysis-depreciation-results.json"

# chart
CHART_W = 960
CHART_H = 540
CHART_MARGIN = 56
CHART_RATIO_MAX = 5.0

C_BG      = (15, 18, 25)
C_UI_BG   = (30, 35, 40)
C_GRID    = (40, 45, 50)
C_TEXT    = (240, 240, 240)
C_RATIO   = (0, 200, 120)
C_DURATION = (0, 110, 210)
C_TARGET  = (255, 215, 0)
C_CLAMPED = (255, 120, 120)
