"""
Feature graph construction, validation and traversal.

Features are held in an id-keyed arena and reference their parents by id,
so they can be inserted in any order and missing parents are detected
instead of dereferenced. A reverse index (parent id -> child ids) is
maintained incrementally on insert and remove.

Features:
- Strict or partial resolution of parent references
- Cycle detection with cycle reporting
- Feature set membership and reference-space checks
- Descendant/ancestor traversal visiting each feature once
- Topological ordering (parents before children)
- Region overlap queries and DataFrame export

Lifecycle:
    BUILDING  -> validate() succeeds -> VALIDATED
    VALIDATED -> insert()/remove()   -> BUILDING
"""

import heapq
import logging
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional, Set, Tuple

import pandas as pd

from ..config import GraphConfig
from ..utils.locking import NullLock, ReadWriteLock
from .coordinates import Path
from .errors import (
    AnnotationError,
    CycleDetectedError,
    DanglingReferenceError,
    DuplicateIdError,
    FeatureNotFoundError,
    FeatureSetMismatchError,
    ReferenceSpaceError,
)
from .records import Feature

logger = logging.getLogger(__name__)

# Maps a path to the id of the reference set it belongs to, or None if unknown
ReferenceResolver = Callable[[Path], Optional[str]]

FRAME_COLUMNS = [
    "id",
    "feature_set_id",
    "parent_ids",
    "reference_name",
    "start",
    "end",
    "strand",
    "feature_type_id",
    "feature_type_term",
]


class GraphState(str, Enum):
    """Lifecycle state of a FeatureGraph."""
    BUILDING = "building"
    VALIDATED = "validated"


class ViolationType(str, Enum):
    """Kinds of structural problems reported by FeatureGraph.validate."""
    CYCLE = "cycle"
    DANGLING_REFERENCE = "dangling_reference"
    FEATURE_SET_MISMATCH = "feature_set_mismatch"
    REFERENCE_SPACE = "reference_space"


@dataclass
class GraphViolation:
    """
    Represents a single feature graph violation.

    Attributes:
        violation_type: Kind of violation
        feature_id: Feature the violation was found on
        related_ids: Other ids involved (cycle members, missing parent, set id)
        message: Detailed violation message
        error: Exception describing the violation
    """
    violation_type: ViolationType
    feature_id: str
    related_ids: List[str] = field(default_factory=list)
    message: str = ""
    error: Optional[AnnotationError] = field(default=None, repr=False, compare=False)

    @classmethod
    def from_error(cls, violation_type: ViolationType, feature_id: str,
                   related_ids: List[str], error: AnnotationError) -> "GraphViolation":
        return cls(violation_type, feature_id, related_ids, str(error), error)

    def to_dict(self) -> Dict[str, Any]:
        """Convert violation to dictionary."""
        return {
            "violation_type": self.violation_type.value,
            "feature_id": self.feature_id,
            "related_ids": list(self.related_ids),
            "message": self.message,
        }


@dataclass
class GraphValidationResult:
    """
    Structured validation result with pass/fail status and details.

    Attributes:
        passed: Whether validation passed overall
        total_features_checked: Number of features in the graph
        violations: Violations found (at most one unless exhaustive)
    """
    passed: bool
    total_features_checked: int
    violations: List[GraphViolation] = field(default_factory=list)

    def add_violation(self, violation: GraphViolation) -> None:
        """Add a violation to the result."""
        self.violations.append(violation)
        self.passed = False

    def get_violation_count(self) -> int:
        return len(self.violations)

    def get_violations_by_type(self) -> Dict[str, int]:
        """Get count of violations by type."""
        counts: Dict[str, int] = {}
        for violation in self.violations:
            key = violation.violation_type.value
            counts[key] = counts.get(key, 0) + 1
        return counts

    def first_error(self) -> Optional[AnnotationError]:
        """Exception for the first violation, or None if validation passed."""
        return self.violations[0].error if self.violations else None

    def raise_if_failed(self) -> None:
        """
        Raise the first violation's exception.

        Raises:
            CycleDetectedError, DanglingReferenceError: If validation failed
        """
        error = self.first_error()
        if error is not None:
            raise error

    def to_dict(self) -> Dict[str, Any]:
        """Convert result to dictionary for serialization."""
        return {
            "passed": self.passed,
            "total_features_checked": self.total_features_checked,
            "total_violations": self.get_violation_count(),
            "violations_by_type": self.get_violations_by_type(),
            "violations": [v.to_dict() for v in self.violations],
        }

    def __bool__(self) -> bool:
        return self.passed

    def __str__(self) -> str:
        if self.passed:
            return f"Validation passed ({self.total_features_checked} features)"
        msg = (
            f"Validation failed ({self.get_violation_count()} violations, "
            f"{self.total_features_checked} features)"
        )
        return msg + f"\n  By type: {self.get_violations_by_type()}"


class FeatureGraph:
    """
    Collection of features answering structural queries.

    Mutation (insert, remove) requires exclusive access. With
    thread_safe=True an internal read-write lock enforces that; otherwise the
    caller must ensure no reader runs concurrently with a writer.

    children_of and descendants return features in insertion order of the
    children; parents_of follows the order of parent_ids.
    """

    def __init__(
        self,
        feature_set_id: Optional[str] = None,
        reference_set_id: Optional[str] = None,
        partial: Optional[bool] = None,
        exhaustive: Optional[bool] = None,
        thread_safe: Optional[bool] = None,
        config: Optional[GraphConfig] = None,
    ):
        """
        Initialize an empty feature graph.

        Args:
            feature_set_id: Id of the owning feature set; when given,
                validate() checks every feature belongs to it
            reference_set_id: Reference coordinate space of the owning set
            partial: Tolerate parent ids that do not resolve
            exhaustive: Make validate() report every violation
            thread_safe: Guard operations with a read-write lock
            config: Defaults for the three flags above
        """
        config = config or GraphConfig()
        self.feature_set_id = feature_set_id
        self.reference_set_id = reference_set_id
        self.partial = config.partial if partial is None else partial
        self.exhaustive = config.exhaustive if exhaustive is None else exhaustive
        self.thread_safe = config.thread_safe if thread_safe is None else thread_safe

        self._features: Dict[str, Feature] = {}
        self._children: Dict[str, List[str]] = {}
        self._state = GraphState.BUILDING
        self._generation = 0
        self._lock = ReadWriteLock() if self.thread_safe else NullLock()

    @property
    def state(self) -> GraphState:
        return self._state

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def insert(self, feature: Feature) -> None:
        """
        Add a feature to the graph.

        The graph is left unchanged if the insert fails.

        Raises:
            DuplicateIdError: If a feature with the same id is present
        """
        with self._lock.write():
            if feature.id in self._features:
                raise DuplicateIdError(feature.id)

            self._features[feature.id] = feature
            for parent_id in dict.fromkeys(feature.parent_ids):
                self._children.setdefault(parent_id, []).append(feature.id)
            self._state = GraphState.BUILDING
            self._generation += 1

        logger.debug(f"Inserted feature {feature.id} ({len(feature.parent_ids)} parents)")

    def remove(self, feature_id: str) -> Feature:
        """
        Remove a feature from the graph.

        Children keep their parent id; resolving it afterwards fails in
        strict mode and is skipped in partial mode.

        Returns:
            The removed feature

        Raises:
            FeatureNotFoundError: If the id is absent
        """
        with self._lock.write():
            feature = self._features.pop(feature_id, None)
            if feature is None:
                raise FeatureNotFoundError(feature_id)

            for parent_id in dict.fromkeys(feature.parent_ids):
                siblings = self._children.get(parent_id)
                if siblings is None:
                    continue
                siblings.remove(feature_id)
                if not siblings:
                    del self._children[parent_id]
            self._state = GraphState.BUILDING
            self._generation += 1

        logger.debug(f"Removed feature {feature_id}")
        return feature

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def _require(self, feature_id: str) -> Feature:
        feature = self._features.get(feature_id)
        if feature is None:
            raise FeatureNotFoundError(feature_id)
        return feature

    def get(self, feature_id: str) -> Feature:
        """
        Raises:
            FeatureNotFoundError: If the id is absent
        """
        with self._lock.read():
            return self._require(feature_id)

    def features(self) -> List[Feature]:
        """All features in insertion order."""
        with self._lock.read():
            return list(self._features.values())

    def roots(self) -> List[Feature]:
        """Features without parent ids."""
        with self._lock.read():
            return [f for f in self._features.values() if f.is_root]

    def __contains__(self, feature_id: object) -> bool:
        with self._lock.read():
            return feature_id in self._features

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._features)

    def __iter__(self) -> Iterator[Feature]:
        return iter(self.features())

    # ------------------------------------------------------------------
    # Structural queries
    # ------------------------------------------------------------------

    def _resolve_parents(self, feature: Feature) -> List[Feature]:
        parents = []
        for parent_id in dict.fromkeys(feature.parent_ids):
            parent = self._features.get(parent_id)
            if parent is None:
                if self.partial:
                    continue
                raise DanglingReferenceError(feature.id, parent_id)
            parents.append(parent)
        return parents

    def parents_of(self, feature_id: str) -> List[Feature]:
        """
        Resolve the parents of a feature.

        Args:
            feature_id: Id of the child feature

        Returns:
            Parent features in parent_ids order. In partial mode unresolved
            ids are skipped.

        Raises:
            FeatureNotFoundError: If feature_id is absent
            DanglingReferenceError: If a parent id is absent (strict mode)
        """
        with self._lock.read():
            return self._resolve_parents(self._require(feature_id))

    def children_of(self, feature_id: str) -> List[Feature]:
        """
        Get the direct children of a feature, in their insertion order.

        Raises:
            FeatureNotFoundError: If feature_id is absent
        """
        with self._lock.read():
            self._require(feature_id)
            return [self._features[c] for c in self._children.get(feature_id, [])]

    def descendants(self, feature_id: str) -> List[Feature]:
        """
        Get all transitive children of a feature (breadth-first).

        Each feature is returned once, also when reachable over several
        parents. The start feature is never included.

        Raises:
            FeatureNotFoundError: If feature_id is absent
        """
        with self._lock.read():
            self._require(feature_id)
            visited: Set[str] = {feature_id}
            queue = deque(self._children.get(feature_id, []))
            result = []

            while queue:
                current = queue.popleft()
                if current in visited:
                    continue
                visited.add(current)
                result.append(self._features[current])
                queue.extend(self._children.get(current, []))

            return result

    def ancestors(self, feature_id: str) -> List[Feature]:
        """
        Get all transitive parents of a feature (breadth-first).

        Raises:
            FeatureNotFoundError: If feature_id is absent
            DanglingReferenceError: If a parent id on the way is absent
                (strict mode)
        """
        with self._lock.read():
            start = self._require(feature_id)
            visited: Set[str] = {feature_id}
            queue = deque(self._resolve_parents(start))
            result = []

            while queue:
                current = queue.popleft()
                if current.id in visited:
                    continue
                visited.add(current.id)
                result.append(current)
                queue.extend(self._resolve_parents(current))

            return result

    def overlapping(self, reference_name: str, start: int, end: int) -> List[Feature]:
        """
        Get features whose path overlaps the half-open region [start, end).

        Returns:
            Matching features ordered by start, end, then id
        """
        with self._lock.read():
            hits = [
                f for f in self._features.values()
                if f.path.overlaps(reference_name, start, end)
            ]
        return sorted(hits, key=lambda f: (f.path.start, f.path.end, f.id))

    # ------------------------------------------------------------------
    # Cycles and ordering
    # ------------------------------------------------------------------

    def _find_cycles(self, first_only: bool = False) -> List[List[str]]:
        """Depth-first search over parent edges; returns cycles as id lists."""
        visited: Set[str] = set()
        visiting: Set[str] = set()
        cycles: List[List[str]] = []

        for root in self._features:
            if root in visited:
                continue

            # Explicit stack of (node, remaining parent ids) frames
            visited.add(root)
            visiting.add(root)
            path = [root]
            stack = [(root, iter(dict.fromkeys(self._features[root].parent_ids)))]

            while stack:
                node, parents = stack[-1]
                descended = False

                for parent_id in parents:
                    if parent_id not in self._features:
                        continue
                    if parent_id in visiting:
                        cycles.append(path[path.index(parent_id):])
                        if first_only:
                            return cycles
                    elif parent_id not in visited:
                        visited.add(parent_id)
                        visiting.add(parent_id)
                        path.append(parent_id)
                        stack.append(
                            (parent_id, iter(dict.fromkeys(self._features[parent_id].parent_ids)))
                        )
                        descended = True
                        break

                if not descended:
                    stack.pop()
                    path.pop()
                    visiting.discard(node)

        return cycles

    def detect_cycles(self) -> List[List[str]]:
        """
        Detect cycles in the parent relation.

        Returns:
            List of cycles, each a list of feature ids where every feature
            has the next one as a parent (the last has the first)
        """
        with self._lock.read():
            return self._find_cycles()

    def topological_order(self) -> List[Feature]:
        """
        Order features so every resolved parent precedes its children.

        Ties are broken by id for a deterministic order. Unresolved parent
        ids are ignored.

        Raises:
            CycleDetectedError: If the parent relation has a cycle
        """
        with self._lock.read():
            in_degree = {
                fid: sum(1 for p in dict.fromkeys(f.parent_ids) if p in self._features)
                for fid, f in self._features.items()
            }

            # Kahn's algorithm
            heap = [fid for fid, degree in in_degree.items() if degree == 0]
            heapq.heapify(heap)
            result = []

            while heap:
                node = heapq.heappop(heap)
                result.append(self._features[node])
                for child in self._children.get(node, []):
                    in_degree[child] -= 1
                    if in_degree[child] == 0:
                        heapq.heappush(heap, child)

            if len(result) != len(self._features):
                raise CycleDetectedError(self._find_cycles(first_only=True)[0])

            return result

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(
        self,
        reference_resolver: Optional[ReferenceResolver] = None,
        exhaustive: Optional[bool] = None,
    ) -> GraphValidationResult:
        """
        Validate the graph structure.

        Checks, in order:
        1. No feature is its own ancestor
        2. Every parent id resolves (skipped in partial mode)
        3. Every feature belongs to the owning feature set (if known)
        4. Every path lies in the owning set's reference space (only when a
           resolver is given and the reference set is known)

        Features are never modified. On success the graph moves to
        GraphState.VALIDATED, unless it was mutated while the resolver ran.

        The resolver is called without holding the graph lock, so it may
        query the graph.

        Args:
            reference_resolver: Maps a path to its reference set id, or None
                when it cannot tell
            exhaustive: Override the graph's exhaustive setting

        Returns:
            GraphValidationResult with the first violation, or all of them
            when exhaustive
        """
        exhaustive = self.exhaustive if exhaustive is None else exhaustive
        check_paths = reference_resolver is not None and self.reference_set_id is not None

        with self._lock.read():
            generation = self._generation
            result = GraphValidationResult(
                passed=True,
                total_features_checked=len(self._features),
            )
            for violation in self._structural_violations(first_only=not exhaustive):
                result.add_violation(violation)
                if not exhaustive:
                    break
            paths = [(f.id, f.path) for f in self._features.values()] if check_paths else []

        if exhaustive or result.passed:
            for violation in self._reference_violations(paths, reference_resolver):
                result.add_violation(violation)
                if not exhaustive:
                    break

        with self._lock.write():
            if result.passed and generation == self._generation:
                self._state = GraphState.VALIDATED
            else:
                self._state = GraphState.BUILDING

        if not result.passed:
            logger.info(f"Feature graph validation failed: {result.violations[0].message}")
        elif self._state is GraphState.VALIDATED:
            logger.info(f"Feature graph validated ({result.total_features_checked} features)")
        else:
            logger.info("Feature graph changed during validation; state left BUILDING")

        return result

    def _structural_violations(self, first_only: bool) -> Iterator[GraphViolation]:
        for cycle in self._find_cycles(first_only=first_only):
            yield GraphViolation.from_error(
                ViolationType.CYCLE, cycle[0], cycle, CycleDetectedError(cycle)
            )

        if not self.partial:
            for feature in self._features.values():
                for parent_id in dict.fromkeys(feature.parent_ids):
                    if parent_id not in self._features:
                        yield GraphViolation.from_error(
                            ViolationType.DANGLING_REFERENCE,
                            feature.id,
                            [parent_id],
                            DanglingReferenceError(feature.id, parent_id),
                        )

        if self.feature_set_id is not None:
            for feature in self._features.values():
                if feature.feature_set_id != self.feature_set_id:
                    yield GraphViolation.from_error(
                        ViolationType.FEATURE_SET_MISMATCH,
                        feature.id,
                        [feature.feature_set_id],
                        FeatureSetMismatchError(
                            feature.id, feature.feature_set_id, self.feature_set_id
                        ),
                    )

    def _reference_violations(
        self,
        paths: List[Tuple[str, Path]],
        reference_resolver: Optional[ReferenceResolver],
    ) -> Iterator[GraphViolation]:
        for feature_id, path in paths:
            resolved = reference_resolver(path)
            if resolved is not None and resolved != self.reference_set_id:
                yield GraphViolation.from_error(
                    ViolationType.REFERENCE_SPACE,
                    feature_id,
                    [resolved],
                    ReferenceSpaceError(feature_id, resolved, self.reference_set_id),
                )

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def to_frame(self) -> pd.DataFrame:
        """
        Tabulate features, one row per feature in insertion order.

        Returns:
            DataFrame with columns FRAME_COLUMNS
        """
        rows = [
            {
                "id": f.id,
                "feature_set_id": f.feature_set_id,
                "parent_ids": list(f.parent_ids),
                "reference_name": f.path.reference_name,
                "start": f.path.start,
                "end": f.path.end,
                "strand": f.path.strand.value,
                "feature_type_id": f.feature_type.id,
                "feature_type_term": f.feature_type.term,
            }
            for f in self.features()
        ]
        return pd.DataFrame(rows, columns=FRAME_COLUMNS)

    def __repr__(self) -> str:
        mode = "partial" if self.partial else "strict"
        return (
            f"FeatureGraph(features={len(self._features)}, "
            f"state={self._state.value}, mode={mode})"
        )
