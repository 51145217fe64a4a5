"""Step Normalizer: rebuilds the execution forest from flat step records.

Records arrive in arbitrary order and reference their parent by id. The forest
is built in two passes (index, then link) so that a child may appear before
its parent, and every level is then ordered by sequence number.
"""

from typing import Any, Dict, Iterable, List

from stepgraph.core.hierarchy import StepHierarchy
from stepgraph.core.records import StepRecord
from stepgraph.errors import CircularStepReferenceError
from stepgraph.logging import get_logger

logger = get_logger(__name__)


class StepNormalizer:
    """Builds a sequence-ordered forest of StepRecords.

    Unresolvable parents are promoted to roots; cycles in the parent links
    are reported as CircularStepReferenceError.
    """

    def __init__(self):
        self.hierarchy = StepHierarchy()
        self.index: Dict[Any, StepRecord] = {}
        self.records: List[StepRecord] = []

    def normalize(self, raw_steps: Iterable[Dict[str, Any]]) -> List[StepRecord]:
        """Build the forest.

        Args:
            raw_steps: Step records, in any order

        Returns:
            Root records, each with ``children`` filled in and ordered

        Raises:
            CircularStepReferenceError: If parent references loop
        """
        records = [StepRecord(raw) for raw in raw_steps]
        self.records = records
        self.hierarchy = StepHierarchy()
        self.index = self._build_index(records)

        roots = self._link(records)
        self._check_cycles()
        self._sort(roots)

        logger.debug(
            f"Normalized {len(records)} steps into {len(roots)} root step(s)"
        )
        return roots

    def _build_index(self, records: List[StepRecord]) -> Dict[Any, StepRecord]:
        index: Dict[Any, StepRecord] = {}
        for record in records:
            self.hierarchy.add_step(id(record), record.step_id)
            # Steps without an id cannot be referenced as a parent
            if record.step_id is None:
                continue
            if record.step_id in index:
                logger.warning(
                    f"Duplicate step id {record.step_id!r}: "
                    f"'{record.name}' replaces '{index[record.step_id].name}'"
                )
            index[record.step_id] = record
        return index

    def _link(self, records: List[StepRecord]) -> List[StepRecord]:
        roots: List[StepRecord] = []
        for record in records:
            parent = self.index.get(record.parent_id) if record.parent_id else None
            if parent is None:
                if record.parent_id:
                    logger.debug(
                        f"Step {record.step_id!r} references missing parent "
                        f"{record.parent_id!r}; promoting to root"
                    )
                roots.append(record)
                continue
            parent.children.append(record)
            self.hierarchy.add_link(id(parent), id(record))
        return roots

    def _check_cycles(self) -> None:
        cycle = self.hierarchy.find_cycle()
        if cycle:
            raise CircularStepReferenceError(cycle)

    def _sort(self, records: List[StepRecord]) -> None:
        # list.sort is stable, so equal sequences keep their input order
        records.sort(key=lambda record: record.sort_key)
        for record in records:
            self._sort(record.children)


def build_forest(raw_steps: Iterable[Dict[str, Any]]) -> List[StepRecord]:
    """Convenience wrapper around StepNormalizer.normalize."""
    return StepNormalizer().normalize(raw_steps)
