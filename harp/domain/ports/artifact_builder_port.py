"""
Artifact Builder Port

Architectural Intent:
- Port interface for the local build step producing the deployed artifact
"""

from abc import ABC, abstractmethod
from pathlib import Path
from harp.domain.entities.application import ApplicationSpec


class ArtifactBuilderPort(ABC):
    @abstractmethod
    def build(self, app: ApplicationSpec, output: Path) -> Path:
        """
        Builds the application into output and returns the artifact path.
        Raises BuildError on failure.
        """
        pass
