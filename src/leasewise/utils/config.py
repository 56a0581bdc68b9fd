"""
Configuration utilities.
"""

import json
from pathlib import Path
from typing import Literal, Optional

import yaml

from pydantic import BaseModel, Field


class Config(BaseModel):
    """Base configuration class."""

    @classmethod
    def from_yaml(cls, path: Path) -> "Config":
        """Load configuration from YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)

    @classmethod
    def from_file(cls, path: str | Path) -> "Config":
        """Load configuration from file (YAML or JSON)."""
        path = Path(path)

        if path.suffix in (".yaml", ".yml"):
            return cls.from_yaml(path)
        elif path.suffix == ".json":
            with open(path) as f:
                data = json.load(f)
            return cls(**data)
        else:
            raise ValueError(f"Unsupported config file format: {path.suffix}")


class RAGConfig(Config):
    """Configuration for a lease RAG system."""

    # Chunking
    chunk_size: int = Field(default=800, gt=0)
    overlap: int = Field(default=150, ge=0)
    min_chunk_length: int = Field(default=50, ge=0)
    sentence_window: int = Field(default=100, ge=0)

    # Embeddings
    use_embeddings: bool = True
    embedding_provider: Literal["openai", "local", "fake", "none"] = "openai"
    # For "local" this must be a sentence-transformers model name
    embedding_model: str = "text-embedding-3-small"
    embedding_dimension: Optional[int] = Field(default=None, gt=0)
    batch_size: int = Field(default=100, gt=0)
    batch_delay: float = Field(default=0.1, ge=0)

    # Retrieval
    default_top_k: int = Field(default=5, gt=0)

    log_level: str = "INFO"


def load_config(path: str | Path = "leasewise.yaml") -> RAGConfig:
    """
    Load RAG configuration from file.

    Args:
        path: Path to config file

    Returns:
        RAGConfig instance (defaults if the file does not exist)
    """
    path = Path(path)

    if not path.exists():
        return RAGConfig()

    return RAGConfig.from_file(path)
