from generation.engine.base import GenerationEngine
from generation.engine.mock_engine import MockGenerationEngine, ScriptedGenerationEngine

__all__ = ["GenerationEngine", "MockGenerationEngine", "ScriptedGenerationEngine"]
