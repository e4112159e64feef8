from studio.service.generation_client import GenerationClient
from studio.service.chat_service import ChatService
from studio.service.tool_service import ToolService
from studio.service.wizard import WizardService

__all__ = ["ChatService", "GenerationClient", "ToolService", "WizardService"]
