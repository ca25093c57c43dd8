"""
Text output for dictr.

Types or pastes transcribed text into the focused window.
"""

from .terminal import TerminalInput

__all__ = ['TerminalInput']
