"""Finite State Machine for the play/training session."""

from enum import Enum, auto
from typing import Dict, Callable, Optional


class SessionState(Enum):
    """Who drives the seeker, and whether anything is running."""
    HUMAN = auto()
    AI_PLAY = auto()
    TRAINING = auto()
    PAUSED = auto()


class SessionStateMachine:
    """State machine for switching between human play, AI play and training."""

    def __init__(self, initial: SessionState = SessionState.HUMAN):
        self.current_state = initial
        self.resume_state: Optional[SessionState] = None
        self._enter_callbacks: Dict[SessionState, Callable[[Optional[Dict]], None]] = {}
        self._exit_callbacks: Dict[SessionState, Callable[[Optional[Dict]], None]] = {}

        self._valid_transitions = {
            SessionState.HUMAN: {SessionState.AI_PLAY, SessionState.TRAINING, SessionState.PAUSED},
            SessionState.AI_PLAY: {SessionState.HUMAN, SessionState.TRAINING, SessionState.PAUSED},
            SessionState.TRAINING: {SessionState.HUMAN, SessionState.AI_PLAY, SessionState.PAUSED},
            SessionState.PAUSED: {SessionState.HUMAN, SessionState.AI_PLAY, SessionState.TRAINING},
        }

    def on_state_enter(self, state: SessionState, callback: Callable[[Optional[Dict]], None]):
        self._enter_callbacks[state] = callback

    def on_state_exit(self, state: SessionState, callback: Callable[[Optional[Dict]], None]):
        self._exit_callbacks[state] = callback

    def can_transition(self, to_state: SessionState) -> bool:
        return to_state in self._valid_transitions.get(self.current_state, set())

    def transition(self, to_state: SessionState, context: Optional[Dict] = None) -> bool:
        """Attempt to transition to target state."""
        if not self.can_transition(to_state):
            return False

        from_state = self.current_state
        if from_state in self._exit_callbacks:
            self._exit_callbacks[from_state](context)

        if to_state == SessionState.PAUSED:
            self.resume_state = from_state
        elif from_state == SessionState.PAUSED:
            self.resume_state = None

        self.current_state = to_state

        if to_state in self._enter_callbacks:
            self._enter_callbacks[to_state](context)

        return True

    def pause(self, context: Optional[Dict] = None) -> bool:
        return self.transition(SessionState.PAUSED, context)

    def resume(self, context: Optional[Dict] = None) -> bool:
        """Return to whatever was running before the pause."""
        if self.current_state != SessionState.PAUSED or self.resume_state is None:
            return False
        return self.transition(self.resume_state, context)

    def is_human(self) -> bool:
        return self.current_state == SessionState.HUMAN

    def is_training(self) -> bool:
        return self.current_state == SessionState.TRAINING

    def is_paused(self) -> bool:
        return self.current_state == SessionState.PAUSED

    def is_agent_driven(self) -> bool:
        """Check if the learner picks the seeker's actions."""
        return self.current_state in {SessionState.AI_PLAY, SessionState.TRAINING}

    def get_state_description(self) -> str:
        descriptions = {
            SessionState.HUMAN: "Human play - arrows/WASD to move, space to stop",
            SessionState.AI_PLAY: "AI playing with its learned policy",
            SessionState.TRAINING: "Training agent with Q-Learning",
            SessionState.PAUSED: "Paused",
        }
        return descriptions.get(self.current_state, "Unknown state")
