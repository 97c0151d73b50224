"""
Embedding Provider Interface

This module defines the interface that embedding providers implement so the
vector search adapter can turn query text into a vector.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List


@dataclass
class EmbeddingResult:
    """
    Result of an embedding request.

    Attributes:
        embedding: Query vector
        dimension: Vector dimension
        model_name: Model that produced the embedding
    """
    embedding: List[float]
    dimension: int
    model_name: str


class EmbeddingProvider(ABC):
    """
    Abstract base class for embedding providers.
    """

    @abstractmethod
    async def generate_embedding(self, text: str) -> EmbeddingResult:
        """
        Generate an embedding for a single piece of text.

        Raises:
            EmbeddingGenerationError: If the embedding generation fails
        """
        pass

    @abstractmethod
    def get_dimension(self) -> int:
        """Get the dimension of the embeddings."""
        pass

    @abstractmethod
    def get_model_name(self) -> str:
        """Get the name of the embedding model."""
        pass
