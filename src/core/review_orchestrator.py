"""
Review Orchestrator - Session driver for the project review state machine.

This is the central coordinator for a review session. It feeds external
events (session start, presentation upload, spoken answer) into the phase
functions, merges the deltas they return, and keeps running phases until
the session needs the next input or finishes.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable

from src.core import phases
from src.core.phases import Delta, ReviewCollaborators
from src.models.presentation import PresentationUpload
from src.models.review import ReviewCandidate, ReviewPhase, ReviewSession
from src.prompts.reviewer import NO_ANSWER_HEARD

logger = logging.getLogger(__name__)


class StateTransitionError(Exception):
    """Raised when a phase function produces an invalid phase change."""
    pass


class ReviewEventError(Exception):
    """Raised when an event does not fit the session's current phase."""
    pass


class ReviewOrchestrator:
    """
    Drives review sessions through their phases.

    States:
        INIT → UPLOAD → PARSING → AI_DETECTION → QUESTION_GENERATION → QUESTIONING
                  ↑        |                               |               |
                  └────────┘                             ERROR    REPORT_GENERATION
                                                                    ↓         ↓
                                                               COMPLETED    ERROR

    Events for one session are handled one at a time; different sessions
    never share state.
    """

    VALID_TRANSITIONS: dict[ReviewPhase, list[ReviewPhase]] = {
        ReviewPhase.INIT: [ReviewPhase.UPLOAD],
        ReviewPhase.UPLOAD: [ReviewPhase.PARSING],
        ReviewPhase.PARSING: [ReviewPhase.UPLOAD, ReviewPhase.AI_DETECTION],
        ReviewPhase.AI_DETECTION: [ReviewPhase.QUESTION_GENERATION],
        ReviewPhase.QUESTION_GENERATION: [ReviewPhase.QUESTIONING, ReviewPhase.ERROR],
        ReviewPhase.QUESTIONING: [ReviewPhase.REPORT_GENERATION],
        ReviewPhase.REPORT_GENERATION: [ReviewPhase.COMPLETED, ReviewPhase.ERROR],
        ReviewPhase.COMPLETED: [],  # Terminal state
        ReviewPhase.ERROR: [],  # Terminal state
    }

    def __init__(
        self,
        collaborators: ReviewCollaborators,
        ai_reasoning: Any = None,  # AIReasoningLayer, for session tracing
        finished_session_ttl_seconds: float = 3600.0,
    ):
        """
        Initialize the orchestrator.

        Args:
            collaborators: Parser, detector, generator and evaluator used by the phases
            ai_reasoning: Reasoning layer whose Langfuse client traces sessions
            finished_session_ttl_seconds: How long completed or failed sessions
                stay readable before they are dropped
        """
        self.collaborators = collaborators
        self.ai_reasoning = ai_reasoning
        self.finished_session_ttl = timedelta(seconds=finished_session_ttl_seconds)

        # Session storage (in-memory)
        self._sessions: dict[str, ReviewSession] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._finished_at: dict[str, datetime] = {}

        # Event callbacks
        self._phase_change_callbacks: list[Callable[[str, ReviewPhase, ReviewPhase], Awaitable[None]]] = []
        self._message_callbacks: list[Callable[[str, str], Awaitable[None]]] = []

    # =========================================================================
    # SESSION MANAGEMENT
    # =========================================================================

    def get_session(self, session_id: str) -> ReviewSession | None:
        """Get a session by ID."""
        return self._sessions.get(session_id)

    def _require(self, session_id: str) -> ReviewSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise KeyError(f"Session not found: {session_id}")
        return session

    def _lock_for(self, session_id: str) -> asyncio.Lock:
        self._require(session_id)
        return self._locks.setdefault(session_id, asyncio.Lock())

    def _release_if_finished(self, session_id: str) -> None:
        """Drop the lock of a session that will take no more events."""
        if session_id in self._finished_at:
            self._locks.pop(session_id, None)

    def evict_finished_sessions(self, now: datetime | None = None) -> int:
        """
        Drop completed or failed sessions older than the retention window.

        Returns:
            Number of sessions removed
        """
        cutoff = (now or datetime.utcnow()) - self.finished_session_ttl
        expired = [sid for sid, finished in self._finished_at.items() if finished <= cutoff]
        for session_id in expired:
            self._sessions.pop(session_id, None)
            self._locks.pop(session_id, None)
            del self._finished_at[session_id]

        if expired:
            logger.info(f"Evicted {len(expired)} finished review sessions")
        return len(expired)

    # =========================================================================
    # EVENTS
    # =========================================================================

    async def create_session(
        self,
        candidate: ReviewCandidate,
        room_name: str = "",
    ) -> dict[str, Any]:
        """
        Create a session and greet the candidate.

        Returns:
            Event result; the session then waits for an upload
        """
        self.evict_finished_sessions()

        session = ReviewSession(candidate=candidate, room_name=room_name)
        self._sessions[session.session_id] = session
        self._locks[session.session_id] = asyncio.Lock()

        logger.info(f"Created review session: {session.session_id} for {candidate.id}")

        if self.ai_reasoning:
            self.ai_reasoning.start_review_trace(
                session_id=session.session_id,
                metadata={
                    "candidate_id": candidate.id,
                    "project_title": candidate.project_title,
                    "room_name": room_name,
                },
            )

        async with self._locks[session.session_id]:
            messages: list[str] = []
            delta = await phases.initialize_session(session, self.collaborators)
            session = await self._apply(session, delta, messages)
            return self._result(session, messages)

    async def upload_presentation(
        self,
        session_id: str,
        upload: PresentationUpload | None,
    ) -> dict[str, Any]:
        """
        Accept the presentation and run analysis through to the first question.

        A missing or unreadable file sends the session back to waiting
        for an upload.

        Raises:
            KeyError: If the session does not exist
            ReviewEventError: If the session is not waiting for an upload
        """
        try:
            async with self._lock_for(session_id):
                session = self._require(session_id)
                if session.phase != ReviewPhase.UPLOAD:
                    raise ReviewEventError(
                        f"Session {session_id} is not waiting for an upload "
                        f"(phase: {session.phase.value})"
                    )

                messages: list[str] = []
                session = await self._apply(session, {"phase": ReviewPhase.PARSING}, messages)

                delta = await phases.parse_presentation(session, self.collaborators, upload)
                session = await self._apply(session, delta, messages)

                session = await self._run_until_input(session, messages)
                return self._result(session, messages)
        finally:
            self._release_if_finished(session_id)

    async def submit_answer(self, session_id: str, transcript: str) -> dict[str, Any]:
        """
        Evaluate an answer and move on to the next question or the report.

        A blank transcript only re-prompts the candidate.

        Raises:
            KeyError: If the session does not exist
            ReviewEventError: If no question is being asked
        """
        try:
            async with self._lock_for(session_id):
                session = self._require(session_id)
                if session.phase != ReviewPhase.QUESTIONING:
                    raise ReviewEventError(
                        f"Session {session_id} is not taking answers "
                        f"(phase: {session.phase.value})"
                    )

                messages: list[str] = []

                if not transcript or not transcript.strip():
                    logger.info(f"Empty answer received for session {session_id}")
                    session = await self._apply(session, {"last_ai_message": NO_ANSWER_HEARD}, messages)
                    return self._result(session, messages)

                session = await self._apply(session, {"last_user_message": transcript}, messages)

                delta = await phases.evaluate_answer(session, self.collaborators)
                session = await self._apply(session, delta, messages)

                delta = await phases.transition_level(session, self.collaborators)
                session = await self._apply(session, delta, messages)

                session = await self._run_until_input(session, messages)
                return self._result(session, messages)
        finally:
            self._release_if_finished(session_id)

    # =========================================================================
    # STATE MACHINE
    # =========================================================================

    async def _run_until_input(
        self,
        session: ReviewSession,
        messages: list[str],
    ) -> ReviewSession:
        """Run phases until the session waits for the candidate or is finished."""
        while True:
            phase = session.phase

            if phase == ReviewPhase.AI_DETECTION:
                delta = await phases.detect_ai_content(session, self.collaborators)
            elif phase == ReviewPhase.QUESTION_GENERATION:
                delta = await phases.generate_questions(session, self.collaborators)
            elif phase == ReviewPhase.QUESTIONING:
                if session.current_question is not None:
                    break  # Waiting for the answer
                delta = await phases.ask_question(session, self.collaborators)
                if not delta:
                    delta = await phases.transition_level(session, self.collaborators)
                    if not delta:
                        raise StateTransitionError(
                            f"Level {session.current_level.value} has no questions left "
                            "but is not complete"
                        )
            elif phase == ReviewPhase.REPORT_GENERATION:
                delta = await phases.generate_report(session, self.collaborators)
            elif phase == ReviewPhase.COMPLETED and session.time.ended_at is None:
                delta = await phases.close_session(session, self.collaborators)
            else:
                break

            session = await self._apply(session, delta, messages)

        return session

    async def _apply(
        self,
        session: ReviewSession,
        delta: Delta,
        messages: list[str],
    ) -> ReviewSession:
        """
        Merge a phase delta into the session and store it.

        Fields in the delta replace the session's; sequences are never
        concatenated here.

        Raises:
            StateTransitionError: If the delta's phase change is invalid
        """
        if not delta:
            return session

        old_phase = session.phase
        new_phase = delta.get("phase", old_phase)

        if new_phase != old_phase:
            valid_next_phases = self.VALID_TRANSITIONS.get(old_phase, [])
            if new_phase not in valid_next_phases:
                raise StateTransitionError(
                    f"Invalid transition from {old_phase} to {new_phase}. "
                    f"Valid transitions: {valid_next_phases}"
                )

        session = session.model_copy(update=delta)
        self._sessions[session.session_id] = session

        if new_phase != old_phase:
            logger.info(f"Session {session.session_id}: {old_phase.value} → {new_phase.value}")
            if new_phase.is_terminal:
                self._finished_at[session.session_id] = datetime.utcnow()
                self._end_trace(session)
            for callback in self._phase_change_callbacks:
                try:
                    await callback(session.session_id, old_phase, new_phase)
                except Exception as e:
                    logger.error(f"Phase change callback error: {e}")

        if "last_ai_message" in delta:
            messages.append(session.last_ai_message)
            for callback in self._message_callbacks:
                try:
                    await callback(session.session_id, session.last_ai_message)
                except Exception as e:
                    logger.error(f"Message callback error: {e}")

        return session

    def _end_trace(self, session: ReviewSession) -> None:
        if not self.ai_reasoning:
            return
        metadata = {
            "final_phase": session.phase.value,
            "questions_asked": len(session.questions_asked),
            "error_count": session.error_count,
        }
        if session.phase == ReviewPhase.ERROR:
            metadata["error"] = session.last_error
        elif session.final_report:
            metadata["recommendation"] = session.final_report.recommendation.value
            metadata["average_score"] = session.final_report.average_score
        self.ai_reasoning.end_review_trace(session_id=session.session_id, metadata=metadata)

    def _result(self, session: ReviewSession, messages: list[str]) -> dict[str, Any]:
        """Summarize an event's outcome for the transport layer."""
        question = session.current_question
        return {
            "session_id": session.session_id,
            "phase": session.phase.value,
            "messages": messages,
            "question_id": question.id if question else None,
            "question": question.text if question else None,
            "level": session.current_level.value,
            "questions_asked": len(session.questions_asked),
            "error": session.last_error,
        }

    # =========================================================================
    # EVENT HANDLERS
    # =========================================================================

    def on_phase_change(
        self,
        callback: Callable[[str, ReviewPhase, ReviewPhase], Awaitable[None]]
    ) -> None:
        """Register callback for phase changes."""
        self._phase_change_callbacks.append(callback)

    def on_message(
        self,
        callback: Callable[[str, str], Awaitable[None]]
    ) -> None:
        """Register callback for every line spoken to the candidate."""
        self._message_callbacks.append(callback)
