"""
Carry-state management between consecutive chunks of one collection.
"""

import dataclasses
from typing import List

from .data_models import CarryState, Heading, ParsedUnit


class CarryStateManager:
    """
    Threads CarryState from one chunk to the next.

    This component is responsible for:
    1. Creating the initial state for the first chunk
    2. Deriving the next state from a chunk's last emitted unit
    3. Carrying heading changes from chunks that emit no units

    Chunks must be folded in ascending chunk order; the state is an explicit
    value, never stored on the manager.
    """

    def create_initial_state(self) -> CarryState:
        """
        Create the state for the first chunk of a collection.

        Returns:
            Empty carry state
        """
        return CarryState(last_unit_number=0, last_heading=Heading(), last_page=0)

    def update_state(
        self,
        units: List[ParsedUnit],
        previous_state: CarryState,
        last_heading: Heading,
    ) -> CarryState:
        """
        Derive the state handed to the next chunk.

        Args:
            units: Units emitted by the current chunk
            previous_state: State the current chunk started from
            last_heading: Heading active at the end of the current chunk

        Returns:
            Updated state. Without units, number and page stay and only the
            heading moves.
        """
        if not units:
            if last_heading == previous_state.last_heading:
                return previous_state
            return dataclasses.replace(previous_state, last_heading=last_heading)

        last_unit = units[-1]
        return CarryState(
            last_unit_number=last_unit.sequential_number,
            last_heading=last_heading,
            last_page=last_unit.page_end,
        )
