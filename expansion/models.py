"""Pydantic models for script expansion."""
from enum import Enum
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from structure.models import MajorBlock
import config


class GapKind(str, Enum):
    """What kind of shortfall a gap describes; drives prompt wording and merge placement."""
    MISSING_SECTION = "missing_section"
    UNDERDEVELOPED_SECTION = "underdeveloped_section"
    MISSING_MAJOR_BLOCK = "missing_major_block"
    GENERAL_EXPANSION = "general_expansion"
    CONTENT_EXPANSION = "content_expansion"


class GapPriority(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    GapPriority.CRITICAL: 0,
    GapPriority.HIGH: 1,
    GapPriority.MEDIUM: 2,
    GapPriority.LOW: 3,
}


# ==================== Inputs ====================

class ContentPoint(BaseModel):
    """A required topic the script must cover."""
    title: str = Field(default="", validation_alias=AliasChoices("title", "name"))
    description: Optional[str] = None


class ChunkInfo(BaseModel):
    """Position of the script part being expanded within a multi-part script."""
    chunk_number: int
    total_chunks: int
    start_time: Optional[float] = None  # minutes
    end_time: Optional[float] = None  # minutes
    is_first: bool = False
    is_last: bool = False
    previously_covered_sections: List[str] = Field(default_factory=list)


class ReferenceSource(BaseModel):
    """A research source the caller wants the generator to draw on."""
    title: str = Field(default="Untitled", validation_alias=AliasChoices("title", "source_title"))
    excerpt: str = Field(default="", validation_alias=AliasChoices("excerpt", "source_content"))


class ReferenceContext(BaseModel):
    sources: List[ReferenceSource] = Field(default_factory=list)


# ==================== Gap analysis ====================

class Gap(BaseModel):
    """A detected shortfall between required and present content."""
    kind: GapKind
    title: str
    description: str = ""
    priority: GapPriority
    estimated_words: int  # word budget for generated content
    section_count: Optional[int] = None  # general_expansion: sections to spread the budget over
    block: Optional[MajorBlock] = None  # missing_major_block: which one


class GapAnalysisResult(BaseModel):
    """Ordered gaps plus the word arithmetic they were derived from."""
    gaps: List[Gap] = Field(default_factory=list)
    words_needed: int
    current_words: int
    target_words: int

    @property
    def gap_count(self) -> int:
        return len(self.gaps)

    def has_kind(self, *kinds: GapKind) -> bool:
        return any(gap.kind in kinds for gap in self.gaps)

    def top_gaps(self, limit: int) -> List[Gap]:
        return self.gaps[:max(limit, 0)]


# ==================== Generation ====================

class GenerationParams(BaseModel):
    model: str = config.EXPANSION_MODEL
    max_output_tokens: int = config.MAX_OUTPUT_TOKENS
    temperature: float = config.EXPANSION_TEMPERATURE


class GenerationRequest(BaseModel):
    """Prompt plus parameters for a single generation call."""
    model_config = ConfigDict(protected_namespaces=())

    prompt_text: str
    word_target: int
    model_params: GenerationParams
    gaps: List[Gap] = Field(default_factory=list)  # the gaps this request addresses


class ExpansionPolicy(BaseModel):
    """Tunable constants of the expansion pipeline (defaults from config)."""
    model: str = config.EXPANSION_MODEL
    temperature: float = config.EXPANSION_TEMPERATURE
    underdeveloped_threshold: float = Field(default=config.UNDERDEVELOPED_THRESHOLD, gt=0, le=1)
    description_block_words: int = config.DESCRIPTION_BLOCK_WORDS
    tags_block_words: int = config.TAGS_BLOCK_WORDS
    min_general_expansion_words: int = config.MIN_GENERAL_EXPANSION_WORDS
    max_gaps_per_request: int = Field(default=config.MAX_GAPS_PER_REQUEST, ge=1)
    max_reference_sources: int = config.MAX_REFERENCE_SOURCES
    reference_excerpt_chars: int = config.REFERENCE_EXCERPT_CHARS
    output_tokens_per_word: float = config.OUTPUT_TOKENS_PER_WORD
    max_output_tokens: int = config.MAX_OUTPUT_TOKENS
    generation_timeout_seconds: float = Field(default=config.GENERATION_TIMEOUT_SECONDS, gt=0)

    def block_budget(self, block: MajorBlock) -> int:
        if block is MajorBlock.DESCRIPTION:
            return self.description_block_words
        return self.tags_block_words


# ==================== Outcome ====================

class ExpansionState(str, Enum):
    """Terminal states of one expansion run."""
    SUFFICIENT = "sufficient"
    NO_GAPS_FOUND = "no_gaps_found"
    GENERATION_FAILED = "generation_failed"
    MERGED = "merged"


class ExpansionResult(BaseModel):
    state: ExpansionState
    document: str
    analysis: GapAnalysisResult
    request: Optional[GenerationRequest] = None
    final_words: int
