"""External collaborators — occurrence, controller and solvency oracles.

The settlement layer owns none of this state. It reads it through the
Protocols below so the escrows can run against live registries in
production and deterministic in-memory fakes everywhere else.

- OccurrenceOracle: did action X with fingerprint H happen on asset A at
  sequence N, who performed it, and what result was produced.
- ControllerRegistry: who currently controls asset A. An asset nobody
  controls reports the registry's own identity.
- SolvencyOracle: is the controller current on the asset's holding cost.
"""

from __future__ import annotations

import logging
import time
from collections import defaultdict
from typing import Dict, Optional, Protocol, Tuple, Union, runtime_checkable

from orbsettle.crypto.fingerprint import content_fingerprint, normalize_fingerprint
from orbsettle.errors import NotKeeper, rejected
from orbsettle.models.settlement import ZERO_FINGERPRINT, Occurrence, OccurrenceResult

logger = logging.getLogger(__name__)

_NOT_RECORDED = Occurrence(actor="", fingerprint=ZERO_FINGERPRINT, timestamp=0)
_NO_RESULT = OccurrenceResult(fingerprint=ZERO_FINGERPRINT, timestamp=0)


@runtime_checkable
class OccurrenceOracle(Protocol):
    """Read access to recorded occurrences and their results.

    Unrecorded entries come back with a zero fingerprint and timestamp.
    """

    def get_occurrence(self, asset_id: int, seq: int) -> Occurrence:
        ...

    def get_result(self, asset_id: int, seq: int) -> OccurrenceResult:
        ...


@runtime_checkable
class ControllerRegistry(Protocol):
    """Maps an asset to its current controller."""

    @property
    def identity(self) -> str:
        """Reserved identity reported for assets nobody controls."""
        ...

    def current_controller(self, asset_id: int) -> str:
        ...


@runtime_checkable
class SolvencyOracle(Protocol):
    """Reports whether an asset's controller is current on holding cost."""

    def is_solvent(self, asset_id: int) -> bool:
        ...


def require_solvent_keeper(
    controllers: ControllerRegistry,
    solvency: SolvencyOracle,
    asset_id: int,
    caller: str,
) -> None:
    """Raise NotKeeper unless caller is the current, solvent controller."""
    if controllers.current_controller(asset_id) != caller:
        raise rejected(logger, NotKeeper(
            f"{caller} is not the controller of asset {asset_id}"
        ))
    if not solvency.is_solvent(asset_id):
        raise rejected(logger, NotKeeper(f"Controller of asset {asset_id} is not solvent"))


class InMemoryInvocationRegistry:
    """Deterministic OccurrenceOracle.

    Sequence numbers start at 1 per asset; 0 is never assigned.

    Usage:
        registry = InMemoryInvocationRegistry()
        seq = registry.invoke(1, "actor", content="What is the answer?")
        registry.respond(1, seq, content="42")
    """

    def __init__(self) -> None:
        self._occurrences: Dict[Tuple[int, int], Occurrence] = {}
        self._results: Dict[Tuple[int, int], OccurrenceResult] = {}
        self._counts: Dict[int, int] = defaultdict(int)

    def invoke(
        self,
        asset_id: int,
        actor: str,
        content: Optional[str] = None,
        fingerprint: Union[str, bytes, None] = None,
        timestamp: Optional[int] = None,
    ) -> int:
        """Record an occurrence and return its sequence number.

        Exactly one of content (hashed here) or fingerprint is required.
        """
        digest = self._fingerprint(content, fingerprint)
        self._counts[asset_id] += 1
        seq = self._counts[asset_id]
        self._occurrences[(asset_id, seq)] = Occurrence(
            actor=actor,
            fingerprint=digest,
            timestamp=timestamp if timestamp is not None else int(time.time()),
        )
        return seq

    def respond(
        self,
        asset_id: int,
        seq: int,
        content: Optional[str] = None,
        fingerprint: Union[str, bytes, None] = None,
        timestamp: Optional[int] = None,
    ) -> None:
        """Record the result of an existing occurrence. Results are final."""
        if (asset_id, seq) not in self._occurrences:
            raise ValueError(f"No occurrence {seq} on asset {asset_id}")
        if (asset_id, seq) in self._results:
            raise ValueError(f"Occurrence {seq} on asset {asset_id} already has a result")
        self._results[(asset_id, seq)] = OccurrenceResult(
            fingerprint=self._fingerprint(content, fingerprint),
            timestamp=timestamp if timestamp is not None else int(time.time()),
        )

    def get_occurrence(self, asset_id: int, seq: int) -> Occurrence:
        return self._occurrences.get((asset_id, seq), _NOT_RECORDED)

    def get_result(self, asset_id: int, seq: int) -> OccurrenceResult:
        return self._results.get((asset_id, seq), _NO_RESULT)

    def occurrence_count(self, asset_id: int) -> int:
        return self._counts.get(asset_id, 0)

    @staticmethod
    def _fingerprint(
        content: Optional[str],
        fingerprint: Union[str, bytes, None],
    ) -> str:
        if (content is None) == (fingerprint is None):
            raise ValueError("Provide exactly one of content or fingerprint")
        if content is not None:
            return content_fingerprint(content)
        return normalize_fingerprint(fingerprint)


class InMemoryControllerRegistry:
    """Deterministic ControllerRegistry backed by a dict."""

    def __init__(self, identity: str = "registry") -> None:
        self._identity = identity
        self._controllers: Dict[int, str] = {}

    @property
    def identity(self) -> str:
        return self._identity

    def assign(self, asset_id: int, controller: str) -> None:
        self._controllers[asset_id] = controller

    def release(self, asset_id: int) -> None:
        """Return the asset to the registry (unclaimed)."""
        self._controllers.pop(asset_id, None)

    def current_controller(self, asset_id: int) -> str:
        return self._controllers.get(asset_id, self._identity)


class StaticSolvencyOracle:
    """SolvencyOracle with per-asset overrides and a default answer."""

    def __init__(self, default: bool = True) -> None:
        self._default = default
        self._overrides: Dict[int, bool] = {}

    def set_solvent(self, asset_id: int, solvent: bool) -> None:
        self._overrides[asset_id] = solvent

    def is_solvent(self, asset_id: int) -> bool:
        return self._overrides.get(asset_id, self._default)
