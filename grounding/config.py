"""
Grounding configuration.

Settings come from a project config file (YAML or JSON, camelCase keys as in
grounding-config.json) and can be overridden by environment variables:

    GROUNDING_CONFIG        Path to the config file
    GROUNDING_CHUNK_SIZE    Lines per chunk
    GROUNDING_CHUNK_OVERLAP Overlap lines between chunks
    GROUNDING_STEMMER       "suffix" | "snowball"
    GROUNDING_MAX_CHUNKS    Max results per query
    GROUNDING_MIN_SCORE     Min relevance score

`.env.local` (highest priority) or `.env` is loaded first, as in local dev.

Range validation (chunk size within [20, 500], overlap below chunk size,
reliability scores in [0, 1], ...) happens here; the index and registry
trust the values they are given. Agent names in agentBoosts are matched
case-insensitively.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .bm25.boosts import BoostFactors

logger = logging.getLogger(__name__)

DEFAULT_AGENT_BOOSTS = {
    "scriptgenerator": ["locator", "selector", "getByRole", "getByText", "click", "fill"],
    "testgenie": ["feature", "scenario", "user", "verify"],
    "buggenie": ["error", "fail", "timeout", "bug"],
    "codereviewer": ["pattern", "import", "require", "expect"],
}


class _Settings(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class IndexSettings(_Settings):
    chunk_size: int = Field(default=80, ge=20, le=500, description="Lines per chunk")
    chunk_overlap: int = Field(default=20, ge=0, description="Overlap lines between chunks")
    class_aware_chunking: bool = True
    dialect: str = "javascript"
    stemmer: str = "suffix"

    @model_validator(mode="after")
    def _overlap_below_size(self) -> "IndexSettings":
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError(
                f"chunkOverlap ({self.chunk_overlap}) must be less than chunkSize ({self.chunk_size})"
            )
        return self


class RetrievalSettings(_Settings):
    max_chunks_per_query: int = Field(default=10, ge=1)
    min_relevance_score: float = Field(default=0.12, ge=0.0)
    k1: float = Field(default=1.5, gt=0.0)
    b: float = Field(default=0.6, ge=0.0, le=1.0)
    boost_factors: BoostFactors = Field(default_factory=lambda: BoostFactors(
        exact_match=3.0,
        file_name_match=2.0,
        method_name_match=2.5,
        locator_match=2.0,
    ))
    agent_boosts: Dict[str, List[str]] = Field(default_factory=lambda: dict(DEFAULT_AGENT_BOOSTS))

    @field_validator("agent_boosts")
    @classmethod
    def _lowercase_agent_names(cls, boosts: Dict[str, List[str]]) -> Dict[str, List[str]]:
        return {agent.lower(): terms for agent, terms in boosts.items()}


class SelectorRegistrySettings(_Settings):
    priority_order: Optional[List[str]] = None
    reliability_scores: Dict[str, float] = Field(default_factory=dict)

    @field_validator("reliability_scores")
    @classmethod
    def _scores_in_range(cls, scores: Dict[str, float]) -> Dict[str, float]:
        for selector_type, score in scores.items():
            if not 0.0 <= score <= 1.0:
                raise ValueError(f"Reliability for {selector_type} must be within [0, 1], got {score}")
        return scores


class FeatureEntry(_Settings):
    """Feature map entry: feature → pages → page objects / business functions"""
    name: str
    description: str = ""
    keywords: List[str] = Field(default_factory=list)
    pages: List[Any] = Field(default_factory=list)
    page_objects: List[str] = Field(default_factory=list)
    business_functions: List[str] = Field(default_factory=list)


class GroundingSettings(_Settings):
    index_settings: IndexSettings = Field(default_factory=IndexSettings)
    retrieval_settings: RetrievalSettings = Field(default_factory=RetrievalSettings)
    selector_registry: SelectorRegistrySettings = Field(default_factory=SelectorRegistrySettings)
    feature_map: List[FeatureEntry] = Field(default_factory=list)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "GroundingSettings":
        """
        Load settings from a YAML or JSON file.

        A missing file yields defaults. Syntax errors and out-of-range values
        raise (yaml.YAMLError / pydantic.ValidationError).
        """
        config_path = Path(path)
        if not config_path.exists():
            logger.warning(f"Grounding config not found: {config_path} - using defaults")
            return cls()

        with open(config_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}

        logger.info(f"Loaded grounding config from {config_path}")
        return cls.model_validate(data)

    @classmethod
    def from_env(cls, env_dir: Optional[Union[str, Path]] = None) -> "GroundingSettings":
        """
        Load settings from GROUNDING_CONFIG plus GROUNDING_* overrides.

        Args:
            env_dir: Directory holding .env.local / .env (default: cwd)
        """
        base = Path(env_dir) if env_dir else Path.cwd()
        env_local = base / ".env.local"
        env_file = base / ".env"

        if env_local.exists():
            load_dotenv(env_local, override=True)
        elif env_file.exists():
            load_dotenv(env_file, override=True)

        config_path = os.getenv("GROUNDING_CONFIG")
        settings = cls.from_file(config_path) if config_path else cls()

        overrides = {
            ("index_settings", "chunk_size"): os.getenv("GROUNDING_CHUNK_SIZE"),
            ("index_settings", "chunk_overlap"): os.getenv("GROUNDING_CHUNK_OVERLAP"),
            ("index_settings", "stemmer"): os.getenv("GROUNDING_STEMMER"),
            ("retrieval_settings", "max_chunks_per_query"): os.getenv("GROUNDING_MAX_CHUNKS"),
            ("retrieval_settings", "min_relevance_score"): os.getenv("GROUNDING_MIN_SCORE"),
        }

        data = settings.model_dump()
        for (section, key), value in overrides.items():
            if value is not None:
                data[section][key] = value

        # Re-validate so env values are type-checked and range-checked
        return cls.model_validate(data)

    def feature_boost_terms(self, query_text: str) -> List[str]:
        """
        Page object and business function names of every feature the query
        mentions (by name or keyword), with file extensions stripped.
        """
        query_lower = query_text.lower()
        boost_terms = []

        for feature in self.feature_map:
            matched = any(k.lower() in query_lower for k in feature.keywords)
            if matched or feature.name.lower() in query_lower:
                boost_terms.extend(Path(p).stem for p in feature.page_objects)
                boost_terms.extend(Path(b).stem for b in feature.business_functions)

        return boost_terms
