"""
YelpCamp Backend - Mutation State Machine Tests
=================================================

What:  Tests for MutationRun transitions and its write barrier.
"""

import pytest

from app.exceptions import AuthorizationDenied
from app.services.mutations import MutationRun, MutationState, MutationStateError


class TestMutationRun:
    """Tests for state tracking."""

    def test_happy_path_ends_responded(self):
        """A clean exit auto-responds."""
        with MutationRun("POST /campgrounds") as run:
            run.authorized()
            run.validated()
            run.persisted()
        assert run.state is MutationState.RESPONDED
        assert run.history == [
            MutationState.RECEIVED,
            MutationState.AUTHORIZED,
            MutationState.VALIDATED,
            MutationState.PERSISTED,
            MutationState.RESPONDED,
        ]

    def test_persist_requires_validation(self):
        """Writing before validation is refused."""
        run = MutationRun("PUT /campgrounds/{id}")
        run.authorized()
        with pytest.raises(MutationStateError, match="validated"):
            run.persisted()

    def test_persist_requires_authorization(self):
        """Writing before authorization is refused."""
        run = MutationRun("PUT /campgrounds/{id}")
        run.validated()
        with pytest.raises(MutationStateError, match="authorized"):
            run.assert_writable()

    def test_cascade_requires_persist(self):
        """The cascade step only follows a persisted primary write."""
        run = MutationRun("DELETE /campgrounds/{id}")
        run.validated()
        run.authorized()
        with pytest.raises(MutationStateError):
            run.cascaded()

    def test_exception_moves_to_error_responded(self):
        """Any exception ends the run in error_responded and propagates."""
        with pytest.raises(AuthorizationDenied):
            with MutationRun("DELETE /campgrounds/{id}") as run:
                run.validated()
                raise AuthorizationDenied(redirect_to="/campgrounds/x")
        assert run.state is MutationState.ERROR_RESPONDED
        assert not run.reached(MutationState.AUTHORIZED)
        assert isinstance(run.error, AuthorizationDenied)

    def test_no_transition_after_terminal(self):
        """A finished run cannot be advanced."""
        with MutationRun("POST /campgrounds/{id}/reviews") as run:
            pass
        with pytest.raises(MutationStateError):
            run.validated()
