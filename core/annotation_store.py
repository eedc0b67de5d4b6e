from __future__ import annotations
from typing import Iterator, List, Set, Tuple
import logging
import threading

from models.annotation import Annotation

logger = logging.getLogger(__name__)


class AnnotationStore:
    """
    Append-only, insertion-ordered collection of annotation records.

    Insertion order is paint order: later annotations are drawn on top.
    Appends are serialized by a lock; snapshots are immutable tuples that
    can be handed to another thread.
    """

    def __init__(self):
        self._annotations: List[Annotation] = []
        self._known_ids: Set[str] = set()
        self._lock = threading.Lock()

    def append(self, annotation: Annotation) -> str:
        """
        Add an annotation to the tail of the collection.

        Args:
            annotation: Immutable annotation record in document space.

        Returns:
            The annotation's identifier.

        Raises:
            ValueError: If an annotation with the same identifier was already appended.
        """
        with self._lock:
            if annotation.annotation_id in self._known_ids:
                raise ValueError(f"Duplicate annotation id: {annotation.annotation_id}")
            self._annotations.append(annotation)
            self._known_ids.add(annotation.annotation_id)
            count = len(self._annotations)

        logger.debug(f"Appended annotation {annotation.describe()} (total={count})")
        return annotation.annotation_id

    def snapshot(self) -> Tuple[Annotation, ...]:
        """Return a read-only copy of the annotations in insertion order."""
        with self._lock:
            return tuple(self._annotations)

    def __len__(self) -> int:
        with self._lock:
            return len(self._annotations)

    def __iter__(self) -> Iterator[Annotation]:
        return iter(self.snapshot())

    @property
    def is_empty(self) -> bool:
        return len(self) == 0
