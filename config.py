"""Configuration module for the script expander."""
import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# API Configuration
ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY")
ANTHROPIC_MODEL = os.getenv("ANTHROPIC_MODEL", "claude-opus-4-5-20251101")
EXPANSION_MODEL = os.getenv("EXPANSION_MODEL", ANTHROPIC_MODEL)
EXPANSION_TEMPERATURE = float(os.getenv("EXPANSION_TEMPERATURE", "0.7"))

# Gap analysis policy
UNDERDEVELOPED_THRESHOLD = float(os.getenv("UNDERDEVELOPED_THRESHOLD", "0.4"))
DESCRIPTION_BLOCK_WORDS = int(os.getenv("DESCRIPTION_BLOCK_WORDS", "150"))
TAGS_BLOCK_WORDS = int(os.getenv("TAGS_BLOCK_WORDS", "50"))
MIN_GENERAL_EXPANSION_WORDS = int(os.getenv("MIN_GENERAL_EXPANSION_WORDS", "50"))

# Prompt building
MAX_GAPS_PER_REQUEST = int(os.getenv("MAX_GAPS_PER_REQUEST", "3"))
MAX_REFERENCE_SOURCES = int(os.getenv("MAX_REFERENCE_SOURCES", "5"))
REFERENCE_EXCERPT_CHARS = int(os.getenv("REFERENCE_EXCERPT_CHARS", "200"))

# Output sizing
OUTPUT_TOKENS_PER_WORD = float(os.getenv("OUTPUT_TOKENS_PER_WORD", "2.0"))
MAX_OUTPUT_TOKENS = int(os.getenv("MAX_OUTPUT_TOKENS", "8192"))

# Generation call
GENERATION_TIMEOUT_SECONDS = float(os.getenv("GENERATION_TIMEOUT_SECONDS", "60"))
GENERATION_MAX_ATTEMPTS = int(os.getenv("GENERATION_MAX_ATTEMPTS", "1"))  # 1 = single call, no retry
RETRY_BACKOFF_MULTIPLIER = 2

# Script length
WORDS_PER_MINUTE = int(os.getenv("WORDS_PER_MINUTE", "150"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
