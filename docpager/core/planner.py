"""
Greedy, block-atomic page break planning.

The planner is a pure state machine: `place` and `finish` take a
`PlannerState` and return a new one, together with the page group that was
closed by that step (if any). Nothing here renders or measures.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from docpager.core.measure import RenderedBlock


class PlannerPhase(str, Enum):
    EMPTY = "empty"
    ACCUMULATING = "accumulating"
    CLOSED = "closed"


@dataclass(frozen=True)
class PageGroup:
    """Blocks committed to one page, before compositing."""
    number: int
    blocks: Tuple[RenderedBlock, ...]
    usable_height: float

    @property
    def height(self) -> float:
        return sum(block.height for block in self.blocks)

    @property
    def elements(self) -> Tuple[str, ...]:
        return tuple(block.node.markup for block in self.blocks)

    @property
    def overflows(self) -> bool:
        """Only a lone block taller than the page can make this true."""
        return self.height > self.usable_height


@dataclass(frozen=True)
class PlannerState:
    usable_height: float
    closed_count: int = 0
    current: Tuple[RenderedBlock, ...] = ()
    running_height: float = 0.0
    finished: bool = False

    @property
    def phase(self) -> PlannerPhase:
        if self.finished:
            return PlannerPhase.CLOSED
        if self.current:
            return PlannerPhase.ACCUMULATING
        return PlannerPhase.EMPTY

    def _close(self) -> PageGroup:
        return PageGroup(number=self.closed_count + 1, blocks=self.current, usable_height=self.usable_height)


def start(usable_height: float) -> PlannerState:
    if usable_height <= 0:
        raise ValueError(f"usable height must be positive, got {usable_height}")
    return PlannerState(usable_height=usable_height)


def place(state: PlannerState, block: RenderedBlock) -> Tuple[PlannerState, Optional[PageGroup]]:
    """
    Place the next block in document order.

    The current page is closed first when the block would overflow it and
    the page already holds something. A block that exactly fills the
    remaining space stays on the current page.
    """
    if state.finished:
        raise RuntimeError("Planner already finished")

    closed = None
    if state.running_height + block.height > state.usable_height and state.current:
        closed = state._close()
        state = PlannerState(usable_height=state.usable_height, closed_count=closed.number)

    state = PlannerState(
        usable_height=state.usable_height,
        closed_count=state.closed_count,
        current=state.current + (block,),
        running_height=state.running_height + block.height,
    )
    return state, closed


def finish(state: PlannerState) -> Tuple[PlannerState, Optional[PageGroup]]:
    """Close the last page if it holds any blocks."""
    if state.finished:
        return state, None
    closed = state._close() if state.current else None
    count = closed.number if closed else state.closed_count
    return PlannerState(usable_height=state.usable_height, closed_count=count, finished=True), closed


def plan_pages(blocks: Iterable[RenderedBlock], usable_height: float) -> List[PageGroup]:
    """Run the planner over already-measured blocks."""
    state = start(usable_height)
    groups = []
    for block in blocks:
        state, closed = place(state, block)
        if closed:
            groups.append(closed)
    state, closed = finish(state)
    if closed:
        groups.append(closed)
    return groups
