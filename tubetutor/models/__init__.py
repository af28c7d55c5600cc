from tubetutor.models.video import Video
from tubetutor.models.ai_content import AIContent

__all__ = ["Video", "AIContent"]
