"""Fixed render constants for the composition pipeline."""

# Output geometry (vertical 9:16)
OUTPUT_WIDTH = 1080
OUTPUT_HEIGHT = 1920
FPS = 30

# Pan/zoom runs on a canvas this many times larger than the output to keep
# per-frame crop offsets from snapping to whole output pixels.
UPSCALE_FACTOR = 4
CANVAS_WIDTH = OUTPUT_WIDTH * UPSCALE_FACTOR
CANVAS_HEIGHT = OUTPUT_HEIGHT * UPSCALE_FACTOR

ZOOM_START = 1.0
ZOOM_END = 1.15

# Timeline (seconds)
TRANSITION_OVERLAP_SECONDS = 0.5
TRANSITION_NAME = "fade"
OUTPUT_DURATION_PAD_SECONDS = 0.1

# Scene planning: one image per this many seconds of narration, never fewer than the minimum
SECONDS_PER_SCENE = 5.0
MIN_SCENE_COUNT = 3

# Encoding
VIDEO_CODEC = "libx264"
AUDIO_CODEC = "aac"
PIXEL_FORMAT = "yuv420p"

# Caption style (ASS force_style values, colours are &HAABBGGRR)
CAPTION_FONT_NAME = "Arial"
CAPTION_FONT_SIZE = 14
CAPTION_PRIMARY_COLOUR = "&H00FFFFFF"
CAPTION_BACK_COLOUR = "&H80000000"
CAPTION_BORDER_STYLE = 3  # opaque box behind the text
CAPTION_OUTLINE = 1
CAPTION_SHADOW = 0
CAPTION_ALIGNMENT = 2  # bottom centre
CAPTION_MARGIN_H = 40
CAPTION_MARGIN_V = 60

# File naming inside a workspace
AUDIO_FILE_STEM = "narration"
CAPTION_FILE_NAME = "captions.srt"
IMAGE_FILE_PREFIX = "image_"
OUTPUT_FILE_NAME = "output.mp4"
