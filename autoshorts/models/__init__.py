# Models module
from autoshorts.models.segment import Segment
from autoshorts.models.clip import ClipDefinition, VideoMetadata
from autoshorts.models.options import ProcessingOptions

__all__ = ["Segment", "ClipDefinition", "VideoMetadata", "ProcessingOptions"]
