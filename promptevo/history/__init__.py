from .manager import VersionLedger
from .models import PromptHistory, PromptVersion, VersionStore

__all__ = ["VersionLedger", "PromptHistory", "PromptVersion", "VersionStore"]
