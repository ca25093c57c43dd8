"""
Main application controller for dictr.

This module provides DictationApp, the state machine that ties the hotkey
edges, the recorder and the transcription backend together. It consumes
HotkeyEvent values from a queue on the main thread; one press/release cycle
is processed at a time and transcription runs synchronously.

Example:
    >>> app = DictationApp(recorder, backend, events, min_duration_ms=300)
    >>> app.on_transcription_ready = lambda text: print(f"Transcribed: {text}")
    >>> app.run(stop_event)
"""

import logging
import queue
import threading
import time
from enum import Enum
from typing import Callable, Optional

import numpy as np

from .audio import AudioRecorder
from .hotkey import HotkeyEvent
from .transcription import TranscribeBackend

logger = logging.getLogger(__name__)

# How often the loop checks for a shutdown request while idle
POLL_INTERVAL = 0.2

DEFAULT_MIN_DURATION_MS = 300


class AppState(Enum):
    """
    Application states for the dictation state machine.

    State transitions:
        IDLE -> RECORDING (hotkey pressed)
        RECORDING -> TRANSCRIBING (hotkey released, long enough, audio captured)
        RECORDING -> IDLE (too short, no audio, or capture failure)
        TRANSCRIBING -> IDLE (text delivered, no speech, or backend failure)
    """

    IDLE = "idle"
    RECORDING = "recording"
    TRANSCRIBING = "transcribing"


class DictationApp:
    """
    Push-to-talk orchestrator.

    State is owned by the thread running ``run``/``handle_event``; nothing
    else reads or writes it.

    Callbacks:
        on_state_changed: Called on every state transition.
                         Signature: (old_state: AppState, new_state: AppState) -> None
        on_transcription_ready: Called with non-empty transcribed text.
                               Signature: (text: str) -> None
        on_error: Called when a cycle fails.
                 Signature: (error: Exception) -> None
    """

    def __init__(
        self,
        recorder: AudioRecorder,
        backend: TranscribeBackend,
        events: "queue.Queue[HotkeyEvent]",
        min_duration_ms: int = DEFAULT_MIN_DURATION_MS,
        language: Optional[str] = None,
        initial_prompt: Optional[str] = None,
        clock: Callable[[], float] = time.monotonic
    ) -> None:
        """
        Args:
            recorder: Capture device wrapper.
            backend: Speech-to-text backend.
            events: Queue of hotkey edges produced by the listener thread.
            min_duration_ms: Presses shorter than this are discarded.
            language: Language hint passed to the backend.
            initial_prompt: Vocabulary prompt passed to the backend.
            clock: Monotonic time source in seconds.
        """
        self._recorder = recorder
        self._backend = backend
        self._events = events
        self.min_duration_ms = min_duration_ms
        self.language = language
        self.initial_prompt = initial_prompt
        self._clock = clock

        self._state = AppState.IDLE
        self._press_time: Optional[float] = None

        self.on_state_changed: Optional[Callable[[AppState, AppState], None]] = None
        self.on_transcription_ready: Optional[Callable[[str], None]] = None
        self.on_error: Optional[Callable[[Exception], None]] = None

    @property
    def state(self) -> AppState:
        """Get the current application state."""
        return self._state

    def _set_state(self, new_state: AppState) -> None:
        old_state = self._state
        if old_state == new_state:
            return

        self._state = new_state
        logger.debug(f"State transition: {old_state.name} -> {new_state.name}")

        if self.on_state_changed:
            try:
                self.on_state_changed(old_state, new_state)
            except Exception as e:
                logger.error(f"Error in on_state_changed callback: {e}")

    def _handle_error(self, error: Exception) -> None:
        """Log the error, return to IDLE and notify the callback."""
        logger.error(f"Dictation cycle failed: {error}")
        self._set_state(AppState.IDLE)

        if self.on_error:
            try:
                self.on_error(error)
            except Exception as e:
                logger.error(f"Error in on_error callback: {e}")

    def handle_event(self, event: HotkeyEvent) -> None:
        """Advance the state machine by one hotkey edge."""
        if event == HotkeyEvent.PRESSED:
            self._on_pressed()
        elif event == HotkeyEvent.RELEASED:
            self._on_released()
        else:
            logger.warning(f"Ignoring unknown event: {event!r}")

    def _on_pressed(self) -> None:
        if self._state != AppState.IDLE:
            logger.debug(f"Press ignored in state {self._state.name}")
            return

        self._press_time = self._clock()
        try:
            self._recorder.start()
        except Exception as e:
            self._press_time = None
            self._handle_error(e)
            return

        self._set_state(AppState.RECORDING)

    def _on_released(self) -> None:
        if self._state != AppState.RECORDING:
            logger.debug(f"Release ignored in state {self._state.name}")
            return

        press_time, self._press_time = self._press_time, None

        try:
            samples = self._recorder.stop()
        except Exception as e:
            self._handle_error(e)
            return

        elapsed_ms = (self._clock() - press_time) * 1000.0
        if elapsed_ms < self.min_duration_ms:
            logger.debug(
                f"Press too short ({elapsed_ms:.0f}ms < {self.min_duration_ms}ms), discarded"
            )
            self._set_state(AppState.IDLE)
            return

        if np.asarray(samples).size == 0:
            logger.debug("No audio captured")
            self._set_state(AppState.IDLE)
            return

        self._set_state(AppState.TRANSCRIBING)
        try:
            self._transcribe(samples)
        finally:
            self._set_state(AppState.IDLE)

    def _transcribe(self, samples: np.ndarray) -> None:
        start = self._clock()
        try:
            text = self._backend.transcribe(
                samples,
                language=self.language,
                initial_prompt=self.initial_prompt,
            )
        except Exception as e:
            self._handle_error(e)
            return

        logger.info(f"Transcribed in {self._clock() - start:.2f}s: {text!r}")

        if not text:
            logger.debug("No speech detected")
            return

        if self.on_transcription_ready:
            try:
                self.on_transcription_ready(text)
            except Exception as e:
                # Text delivery failures end the cycle like backend failures
                self._handle_error(e)

    def run(self, stop_event: threading.Event) -> None:
        """
        Process hotkey events until ``stop_event`` is set.

        Per-cycle failures are reported through ``on_error`` and never end
        the loop.
        """
        logger.info("Dictation loop started")

        while not stop_event.is_set():
            try:
                event = self._events.get(timeout=POLL_INTERVAL)
            except queue.Empty:
                continue

            try:
                self.handle_event(event)
            except Exception as e:
                self._handle_error(e)

        logger.info("Dictation loop stopped")
