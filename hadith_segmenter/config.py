import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Chunk cache layout
CACHE_ROOT = os.getenv(
    "HADITH_CACHE_ROOT",
    os.path.join(
        os.path.dirname(os.path.dirname(os.path.abspath(__file__))),
        "pages-cache"
    )
)
CHUNK_FILE_PATTERN = r"^chunk-(\d+)\.json$"
EXTRACTED_SUFFIX = ".extracted.json"
REPORT_FILE = "parse-report.json"

# Page export configuration
DEFAULT_CHUNK_SIZE = int(os.getenv("CHUNK_SIZE", "50"))  # Pages per chunk file
CHUNK_OVERLAP = int(os.getenv("CHUNK_OVERLAP", "2"))  # Pages shared by adjacent chunks
MIN_PAGE_CHARS = int(os.getenv("MIN_PAGE_CHARS", "50"))  # Shorter pages count as front matter

# Segmentation heuristics
ORDINAL_PREFIX_LIMIT = int(os.getenv("ORDINAL_PREFIX_LIMIT", "30"))
TRANSITION_CUTOFF = float(os.getenv("TRANSITION_CUTOFF", "0.7"))
ITEM_LOOKAHEAD_CHARS = int(os.getenv("ITEM_LOOKAHEAD_CHARS", "500"))
CHAPTER_TITLE_MAX_CHARS = int(os.getenv("CHAPTER_TITLE_MAX_CHARS", "100"))
HEADING_LOOKAHEAD_CHARS = int(os.getenv("HEADING_LOOKAHEAD_CHARS", "80"))
CROSS_REFERENCE_MAX_CHARS = int(os.getenv("CROSS_REFERENCE_MAX_CHARS", "200"))
CROSS_REFERENCE_SHORT_CHARS = int(os.getenv("CROSS_REFERENCE_SHORT_CHARS", "60"))

# Logging
LOG_FILE = os.getenv("LOG_FILE", "hadith_segmenter.log")
