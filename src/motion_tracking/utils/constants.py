"""
Constants used throughout the motion tracking engine
"""

# Performance and monitoring
STATUS_REPORT_INTERVAL = 500  # Log status every N processed frames

# Region filtering
MIN_ASPECT_RATIO = 0.1  # width / height
MAX_ASPECT_RATIO = 10.0
MIN_REGION_CONFIDENCE = 0.3
COMPONENT_CONFIDENCE = 0.8  # Base confidence for connected-component regions

# Gaussian mixture model
GMM_INITIAL_VARIANCE = 100.0
GMM_INITIAL_WEIGHT = 1.0
GMM_VARIANCE_FLOOR = 10.0
GMM_MAHALANOBIS_THRESHOLD = 2.5  # Standard deviations

# Optical flow (block matching)
FLOW_MIN_CONFIDENCE = 0.3

# Hybrid / AI-enhanced detection
CONSENSUS_CONFIDENCE_FLOOR = 0.4
AI_MIN_VELOCITY = 1.0
AI_MIN_COMPACTNESS = 0.2

# Tracking
TRACKING_HISTORY_LIMIT = 100  # Positions kept per tracker
LOST_TRACKS_LIMIT = 100  # Retired tracker ids kept
PREDICTION_CONFIDENCE_DECAY = 0.2  # Per second of horizon
PREDICTION_CONFIDENCE_FLOOR = 0.1

# Pattern analysis
VELOCITY_HISTOGRAM_BINS = 10
DIRECTIONAL_ANGLE_TOLERANCE_DEG = 45.0
DIRECTIONAL_MIN_FRACTION = 0.7
RANDOM_MIN_REGIONS = 3
SUDDEN_VELOCITY = 20.0
SUDDEN_FRAME_WINDOW = 10  # Frames since session start
UNUSUAL_VELOCITY = 50.0
PATTERN_WINDOW_SIZE = 64  # Frames of motion history for temporal patterns
PERIODIC_MIN_SAMPLES = 16
PERIODIC_MIN_POWER_SHARE = 0.5
OSCILLATION_WINDOW = 10
OSCILLATION_MIN_REVERSALS = 3
OSCILLATION_REVERSAL_DEG = 135.0

# Overall event confidence
CONSISTENCY_BONUS_WEIGHT = 0.2

# Environment variables
ENV_ALGORITHM = "MOTION_ALGORITHM"
ENV_THRESHOLD = "MOTION_THRESHOLD"

# Video source reconnection (CLI)
MAX_SOURCE_OPEN_ATTEMPTS = 2
SOURCE_OPEN_RETRY_DELAY = 2.0  # Seconds between attempts
