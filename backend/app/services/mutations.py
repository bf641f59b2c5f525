"""
YelpCamp Backend - Mutation Lifecycle
=======================================

What:  Tracks one mutating request through its states and refuses any store
       write before the request is both validated and authorized.
How:   MutationRun is a context manager wrapping a handler body:

    received ─▶ validated ─▶ authorized ─▶ persisted ─▶ cascaded ─▶ responded
                 (validated / authorized follow the endpoint's own order)
    any state ──(exception)──▶ error_responded

    persisted() raises MutationStateError unless both validated and
    authorized were reached. Endpoints without a body (deletes) call
    validated() with no schema. An exception inside the block moves the run
    to error_responded, is logged with the state it failed in, and
    propagates unchanged. No state is ever retried.

Example:
    with MutationRun("DELETE /campgrounds/{id}") as run:
        run.validated()
        await enforce([...], ctx, store)
        run.authorized()
        run.persisted()
        report = await cascade.delete_campground(store, campground_id)
        run.cascaded()
"""

import logging
from enum import Enum
from typing import List, Optional

from app.exceptions import RedirectError, ValidationError

logger = logging.getLogger(__name__)


class MutationState(str, Enum):
    RECEIVED = "received"
    VALIDATED = "validated"
    AUTHORIZED = "authorized"
    PERSISTED = "persisted"
    CASCADED = "cascaded"
    RESPONDED = "responded"
    ERROR_RESPONDED = "error_responded"


TERMINAL_STATES = {MutationState.RESPONDED, MutationState.ERROR_RESPONDED}


class MutationStateError(RuntimeError):
    """A handler tried to skip a required state (a programming error)."""


class MutationRun:
    def __init__(self, endpoint: str):
        self.endpoint = endpoint
        self.state = MutationState.RECEIVED
        self.history: List[MutationState] = [MutationState.RECEIVED]
        self.error: Optional[BaseException] = None

    # ── Transitions ───────────────────────────────────────────────────────

    def _advance(self, state: MutationState) -> None:
        if self.state in TERMINAL_STATES:
            raise MutationStateError(
                f"{self.endpoint}: cannot enter {state.value} after {self.state.value}"
            )
        self.state = state
        self.history.append(state)
        logger.debug("%s -> %s", self.endpoint, state.value)

    def reached(self, state: MutationState) -> bool:
        return state in self.history

    def validated(self) -> None:
        self._advance(MutationState.VALIDATED)

    def authorized(self) -> None:
        self._advance(MutationState.AUTHORIZED)

    def assert_writable(self) -> None:
        missing = [
            s.value
            for s in (MutationState.VALIDATED, MutationState.AUTHORIZED)
            if not self.reached(s)
        ]
        if missing:
            raise MutationStateError(
                f"{self.endpoint}: store write attempted before {', '.join(missing)}"
            )

    def persisted(self) -> None:
        self.assert_writable()
        self._advance(MutationState.PERSISTED)

    def cascaded(self) -> None:
        if not self.reached(MutationState.PERSISTED):
            raise MutationStateError(f"{self.endpoint}: cascade before persist")
        self._advance(MutationState.CASCADED)

    def responded(self) -> None:
        self._advance(MutationState.RESPONDED)

    # ── Context manager ───────────────────────────────────────────────────

    def __enter__(self) -> "MutationRun":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc is None:
            if self.state not in TERMINAL_STATES:
                self.responded()
            return False

        failed_in = self.state
        self.error = exc
        if self.state is not MutationState.ERROR_RESPONDED:
            self.state = MutationState.ERROR_RESPONDED
            self.history.append(MutationState.ERROR_RESPONDED)

        if isinstance(exc, (RedirectError, ValidationError)):
            logger.info(
                "%s rejected in state %s: %s", self.endpoint, failed_in.value, exc
            )
        else:
            logger.warning(
                "%s failed in state %s: %s: %s",
                self.endpoint,
                failed_in.value,
                type(exc).__name__,
                exc,
            )
        return False
