"""
Configuration settings for the ROI feature extraction pipeline.
"""

# =============================================================================
# PROCESSING PARAMETERS
# =============================================================================

# Default feature extraction parameters
DEFAULT_FEATURE_PARAMS = {
    'features_methods': None,
    'features_probability_mode': "LEGACY_UNIFORM",
    'features_num_workers': "auto",
    'features_batch_size': None,
    'features_report': "all",
}

# =============================================================================
# THRESHOLDS AND LIMITS
# =============================================================================

# Value written for a feature whose ROI is degenerate or unusable
BAD_ROI_FVAL = 0.0

# NGTDM per-level probability definitions
#   LEGACY_UNIFORM: P[i] = Ng / (height * width), identical for every level
#   EMPIRICAL:      P[i] = N[i] / sum(N)
PROBABILITY_MODES = ['LEGACY_UNIFORM', 'EMPIRICAL']
DEFAULT_PROBABILITY_MODE = "LEGACY_UNIFORM"

# Valid number of workers range
MIN_WORKERS = 1
MAX_WORKERS = 32

# Upper bound used when num_workers is "auto"
AUTO_WORKERS_CAP = 8

# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================

# Map report mode to the lowest level shown on the console and kept in memory
LOG_LEVEL_MAP = {
    "none": None,  # No logs
    "error": "ERROR",  # Errors only
    "warning": "WARNING",  # Warnings and errors
    "info": "INFO",  # Info only
    "all": "INFO",  # All (INFO, WARNING, ERROR)
}

# roi_context is "[<method> ROI <label>] " for per-label records, empty otherwise
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(roi_context)s%(message)s"
