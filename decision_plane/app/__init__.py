"""Orchestration layer: decision cycle and command-line runner."""

from decision_plane.app.pipeline import BrainSkip, CycleResult, DecisionCycle, apply_cooldowns

__all__ = ["BrainSkip", "CycleResult", "DecisionCycle", "apply_cooldowns"]
