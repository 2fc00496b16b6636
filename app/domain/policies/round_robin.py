"""RoundRobinPolicy — deterministic load-balanced manager selection."""

from __future__ import annotations

from app.domain.entities.manager import Manager

POOL_SIZE = 2


def pick_next(candidates: list[Manager], counter: int) -> tuple[Manager, int]:
    """Deterministic round-robin pick from the candidate pool.

    1. Sort candidates by (current_load ASC, id ASC) for stable ordering.
    2. Use *counter mod len(candidates)* to select the index.

    Near-ties therefore alternate instead of always favouring index 0.

    Args:
        candidates: non-empty candidate pool.
        counter: rotation counter value read for this decision.

    Returns:
        (chosen_manager, picked_index)

    Raises:
        ValueError: if candidates list is empty.
    """
    if not candidates:
        raise ValueError("Cannot pick from an empty candidate list")

    ordered = sorted(candidates, key=lambda m: (m.current_load, m.id))
    index = counter % len(ordered)
    return ordered[index], index


def describe_pick(
    pool: list[Manager],
    picked_index: int,
    counter: int,
) -> str:
    """Human-readable audit trail of a round-robin decision."""
    ordered = sorted(pool, key=lambda m: (m.current_load, m.id))
    members = " vs ".join(
        f"{m.name} (load {m.current_load}){' <- selected' if i == picked_index else ''}"
        for i, m in enumerate(ordered)
    )
    return (
        f"Round robin among top-{len(ordered)} least loaded: {members}. "
        f"RR counter={counter} -> index {picked_index}."
    )
