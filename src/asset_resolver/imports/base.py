from abc import ABC, abstractmethod
from typing import List

from ..models import Dependency, File


class ImportFinder(ABC):
    """
    Import graph collaborator.

    Given a file, returns its transitive dependencies in a deterministic order where every file
    comes after the files it requires. The file itself is the last element.
    """

    @abstractmethod
    def all(self, file: File) -> List[Dependency]:
        pass
