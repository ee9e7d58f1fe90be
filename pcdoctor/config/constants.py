"""
Centralized constants for PC Doctor.

The scoring weights and cost rates are heuristics. They are kept exactly
so reports stay comparable between versions; they are not benchmarks.
"""

# --- Telemetry ---
DEFAULT_TELEMETRY_TIMEOUT_S = 10.0
EVENT_LOG_TIMEOUT_S = 30.0          # WHEA scans walk the System event log
ERROR_WINDOW_DAYS = 7               # Trailing window for fatal memory events
STALE_DRIVER_DAYS = 365

# --- Performance Scores ---
CPU_SCORE_PER_CORE = 10
CPU_SCORE_PER_EXTRA_THREAD = 5
GAMING_CPU_WEIGHT = 0.3
GAMING_GPU_WEIGHT = 0.7
RECORDING_CPU_WEIGHT = 0.5
RECORDING_RAM_WEIGHT = 0.3
RECORDING_ENCODER_WEIGHT = 0.2
MULTITASK_CPU_WEIGHT = 0.4
MULTITASK_RAM_WEIGHT = 0.6
RAM_SCORE_PER_GB = 2
ENCODER_BONUS_NVIDIA = 20
ENCODER_BONUS_OTHER = 10
SCORE_MIN = 0.0
SCORE_MAX = 100.0

# --- Bottleneck Thresholds ---
RAM_RECORDING_MIN_GB = 16.0
RAM_RECORDING_TARGET_GB = 32.0
RAM_GAMING_TARGET_GB = 16.0
CPU_HIGH_END_GPU_MIN_CORES = 6
CPU_RECORDING_MIN_CORES = 8
MEMORY_PRESSURE_PERCENT = 90.0
LOW_DISK_FREE_PERCENT = 10.0

# --- RAM Upgrade Pricing (USD per GB) ---
RAM_ADD_COST_PER_GB = 3.0
RAM_KIT_COST_PER_GB = 4.5
RAM_FALLBACK_MODULE_GB = 8

# --- Storage ---
HDD_SUSTAINED_WRITE_MBPS = 100.0
# Recording bitrate (kbps) assumed for a target frame rate when none is given
BITRATE_BY_FPS = {30: 25000, 60: 50000, 120: 100000, 240: 150000}

# --- PSU Sizing ---
PSU_HEADROOM = 1.2
PSU_ROUND_WATTS = 50
RAM_MODULE_WATTS = 3
DISK_WATTS = 10
MOTHERBOARD_WATTS = 50
PERIPHERAL_WATTS = 25
DEFAULT_RAM_MODULES = 2
DEFAULT_CPU_CORES_FOR_POWER = 8

# --- Cooling ---
TEMP_CRITICAL_C = 85.0
TEMP_HIGH_C = 75.0
