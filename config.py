"""Central configuration for image-to-note OCR.

All tunable parameters are defined here with descriptive names.
These values seed PreprocessConfig and the persisted settings file; adjust
them to change the behavior of a fresh install.
"""

# =============================================================================
# PREPROCESSING DEFAULTS
# =============================================================================

# Master switch for the preprocessing block (everything after upscaling)
PREPROCESS_ENABLED = True

# Upscaling is the first geometric step; small handwriting benefits from it
UPSCALE_ENABLED = False
UPSCALE_FACTOR = 2.0
MIN_UPSCALE_FACTOR = 1.0
MAX_UPSCALE_FACTOR = 4.0

GRAYSCALE_ENABLED = True

# Contrast/brightness are always applied inside the preprocessing block.
# brightness 1.0 adds no offset; the contrast curve is steep even at 1.0
CONTRAST = 1.0
BRIGHTNESS = 1.0
CONTRAST_RANGE = (0.5, 3.0)
BRIGHTNESS_RANGE = (0.5, 2.0)

# The contrast factor 259*(c*100+255) / (255*(259-c*100)) has a pole at c=2.59
CONTRAST_SINGULARITY = 2.59

SHARPEN_ENABLED = False
DENOISE_ENABLED = False

# =============================================================================
# BINARIZATION
# =============================================================================

BINARIZE_ENABLED = True

# One of "fixed", "otsu", "adaptive"
BINARIZE_MODE = "otsu"

# Fixed-threshold mode: intensity > threshold becomes white
BINARIZE_THRESHOLD = 128
BINARIZE_THRESHOLD_RANGE = (50, 200)

# Adaptive (Bradley) mode: window side in pixels, must be odd
ADAPTIVE_WINDOW_SIZE = 15
ADAPTIVE_WINDOW_RANGE = (5, 50)

# Pixel is white when it exceeds this fraction of its local window mean
ADAPTIVE_MEAN_FACTOR = 0.85

# =============================================================================
# MORPHOLOGY
# =============================================================================

MORPHOLOGY_ENABLED = False
MORPH_KERNEL_SIZE = 2
MORPH_KERNEL_RANGE = (1, 5)

# =============================================================================
# SKEW CORRECTION
# =============================================================================

DESKEW_ENABLED = False

# Candidate angles searched by projection-profile variance (degrees)
SKEW_SEARCH_MIN_ANGLE = -15.0
SKEW_SEARCH_MAX_ANGLE = 15.0
SKEW_SEARCH_STEP = 0.5

# Rotations at or below this magnitude only add blur
MIN_ROTATION_ANGLE = 0.5

# =============================================================================
# PREVIEW
# =============================================================================

# Width of the unmodified side-by-side preview image
PREVIEW_MAX_WIDTH = 400

# =============================================================================
# TEXT RECOGNITION
# =============================================================================

# Recognizer backend: "tesseract" or "easyocr"
RECOGNIZER_BACKEND = "tesseract"

# Tesseract language code (easyocr codes are derived from it)
OCR_LANGUAGE = "eng"

# Tesseract page segmentation mode (3 = fully automatic, no OSD)
OCR_PAGE_SEG_MODE = 3

# Tesseract OCR engine mode (1 = LSTM only)
OCR_ENGINE_MODE = 1

# =============================================================================
# NOTES
# =============================================================================

DEFAULT_NOTE_TITLE = "Meeting Notes"

# Folder (relative to the vault root) for new notes; empty means the root
DEFAULT_NOTE_FOLDER = ""

# Settings file location (relative to the user's home directory)
SETTINGS_FILENAME = ".ocrnote.json"
