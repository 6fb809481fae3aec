"""Decrypt every encrypted leaf of a measurement tree in one pass.

A measurement tree is ``{patient_id: {date: [[sensor_id, value], ...]}}``.
Leaves are numbered in a fixed walk order (patient keys, date keys, list
order); encrypted leaves are gathered into one ordered worklist, handed to a
``DecryptStrategy`` in a single call, and written back by position. The
returned tree always has the same keys, list lengths and sensor ids as the
input.
"""

import asyncio
import logging
from dataclasses import dataclass, field

from .codec import is_encrypted
from .decrypt_client import DecryptClient
from .decryptor import (
    DecryptionOutcome,
    Failed,
    outcome_value,
    parse_plaintext,
    plain_outcome,
    try_decrypt_value,
)
from .encryption import KeyHandle
from .errors import DecryptionError, FormatError, TransportError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LeafRef:
    position: int
    patient_id: str
    date: str
    index: int
    sensor_id: object
    value: object
    malformed: bool = False


@dataclass(frozen=True)
class LeafFailure:
    patient_id: str
    date: str
    index: int
    sensor_id: object
    reason: str


@dataclass
class DecryptedTree:
    tree: dict
    failures: list[LeafFailure] = field(default_factory=list)
    degraded: bool = False

    @property
    def failed_patients(self) -> set[str]:
        return {f.patient_id for f in self.failures}


def _is_reading(reading) -> bool:
    return isinstance(reading, (list, tuple)) and len(reading) == 2


def _copy_reading(reading):
    # malformed readings are returned as received
    return list(reading) if _is_reading(reading) else reading


def collect_leaves(tree: dict) -> list[LeafRef]:
    """Number every reading in walk order.

    A reading that is not a ``[sensor_id, value]`` pair becomes a leaf marked
    ``malformed``; it is reported as a format failure and left untouched.
    """
    leaves: list[LeafRef] = []
    for patient_id, dates in tree.items():
        for date, readings in dates.items():
            for index, reading in enumerate(readings):
                if _is_reading(reading):
                    sensor_id, value, malformed = reading[0], reading[1], False
                else:
                    sensor_id = reading[0] if isinstance(reading, (list, tuple)) and reading else None
                    value, malformed = None, True
                leaves.append(
                    LeafRef(
                        position=len(leaves),
                        patient_id=patient_id,
                        date=date,
                        index=index,
                        sensor_id=sensor_id,
                        value=value,
                        malformed=malformed,
                    )
                )
    return leaves


# ── Strategies ──────────────────────────────────────────


class DecryptStrategy:
    """Decrypts an ordered worklist; returns one outcome per input, in order."""

    async def decrypt_many(self, wires: list[str]) -> list[DecryptionOutcome]:
        raise NotImplementedError


class LocalStrategy(DecryptStrategy):
    """In-process decryption with the shared key handle."""

    def __init__(self, key: KeyHandle):
        self.key = key

    async def decrypt_many(self, wires: list[str]) -> list[DecryptionOutcome]:
        return [try_decrypt_value(w, self.key) for w in wires]


class RemoteBatchStrategy(DecryptStrategy):
    """One round trip to the decrypting boundary for the whole worklist."""

    def __init__(self, client: DecryptClient):
        self.client = client

    async def decrypt_many(self, wires: list[str]) -> list[DecryptionOutcome]:
        results = await self.client.decrypt_batch(wires)
        return [parse_plaintext(r) for r in results]


class RemotePerItemStrategy(DecryptStrategy):
    """One call per value, fan-out bounded by ``concurrency``.

    Only for boundaries without a batch endpoint. If any call exhausts its
    transport retries the whole worklist is treated as unavailable.
    """

    def __init__(self, client: DecryptClient, concurrency: int = 8):
        self.client = client
        self.concurrency = max(1, concurrency)

    async def decrypt_many(self, wires: list[str]) -> list[DecryptionOutcome]:
        semaphore = asyncio.Semaphore(self.concurrency)

        async def one(wire: str) -> DecryptionOutcome:
            async with semaphore:
                try:
                    text = await self.client.decrypt_one(wire)
                except DecryptionError as e:
                    return Failed(e.reason)
            return parse_plaintext(text)

        tasks = [asyncio.create_task(one(w)) for w in wires]
        try:
            return list(await asyncio.gather(*tasks))
        finally:
            # a failed call must not leave its siblings running
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)


# ── Tree decryption ─────────────────────────────────────


async def decrypt_tree(tree: dict, strategy: DecryptStrategy) -> DecryptedTree:
    """Decrypt all leaves of ``tree`` with a single strategy call.

    Never raises for per-leaf failures: a failed leaf gets FAILURE_SENTINEL
    and an entry in ``failures``. If the strategy raises TransportError every
    encrypted leaf fails with reason "transport" and the result is marked
    ``degraded``. Cancellation propagates; no partial tree is returned.
    """
    leaves = collect_leaves(tree)
    outcomes: list[DecryptionOutcome | None] = [None] * len(leaves)
    worklist: list[LeafRef] = []

    for leaf in leaves:
        if leaf.malformed:
            outcomes[leaf.position] = Failed(FormatError.reason)
        elif is_encrypted(leaf.value):
            worklist.append(leaf)
        else:
            outcomes[leaf.position] = plain_outcome(leaf.value)

    degraded = False
    if worklist:
        try:
            results = await strategy.decrypt_many([leaf.value for leaf in worklist])
        except TransportError as e:
            logger.error(f"Decrypting boundary unavailable for {len(worklist)} values: {e}")
            results = [Failed(TransportError.reason)] * len(worklist)
            degraded = True
        if len(results) != len(worklist):
            raise RuntimeError(
                f"Strategy returned {len(results)} outcomes for {len(worklist)} values"
            )
        for leaf, outcome in zip(worklist, results):
            outcomes[leaf.position] = outcome

    out = {
        patient_id: {date: [_copy_reading(r) for r in readings] for date, readings in dates.items()}
        for patient_id, dates in tree.items()
    }
    failures: list[LeafFailure] = []
    for leaf, outcome in zip(leaves, outcomes):
        if not leaf.malformed:
            out[leaf.patient_id][leaf.date][leaf.index][1] = outcome_value(outcome)
        if isinstance(outcome, Failed):
            failures.append(
                LeafFailure(
                    patient_id=leaf.patient_id,
                    date=leaf.date,
                    index=leaf.index,
                    sensor_id=leaf.sensor_id,
                    reason=outcome.reason,
                )
            )

    if failures and not degraded:
        logger.warning(
            f"{len(failures)} of {len(leaves)} measurements failed to decrypt: "
            + ", ".join(sorted({f.reason for f in failures}))
        )
    return DecryptedTree(tree=out, failures=failures, degraded=degraded)
