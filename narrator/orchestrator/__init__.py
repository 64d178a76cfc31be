from narrator.orchestrator.core import InferenceLoop, InferenceRound, LoopState

__all__ = ["InferenceLoop", "InferenceRound", "LoopState"]
