"""
dictr - push-to-talk voice dictation for Linux desktops.

Hold a hotkey to record from the microphone, release it to transcribe the
captured audio and type the text into the focused window.

Modules:
    audio: Microphone capture, device lookup and resampling
    hotkey: Global hotkey listener producing press/release edges
    transcription: Local (faster-whisper) and remote speech-to-text backends
    input: Typing or pasting text into the active window
    app: Orchestrator state machine tying the pieces together
"""

__version__ = "0.3.0"
