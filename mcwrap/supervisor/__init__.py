"""
The Supervisor package.
Manages the lifecycle of the single wrapped process.

This package contains the Supervisor class and its helper modules, which
together launch the process, relay console input to it and shut it down in
escalating stages when asked to.
"""
from .supervisor import Supervisor
from .stages import ShutdownStage, StageAction, stage_action
from .escalation import EscalationState, ShutdownEscalator

__all__ = ['Supervisor', 'ShutdownStage', 'StageAction', 'stage_action', 'EscalationState', 'ShutdownEscalator']
