import enum

# Enums
class ThemeEnum(str, enum.Enum):
    light = "light"
    dark = "dark"

class RoadmapDepthEnum(str, enum.Enum):
    basic = "basic"
    detailed = "detailed"
    comprehensive = "comprehensive"

class VideoLengthEnum(str, enum.Enum):
    short = "short"
    medium = "medium"
    long = "long"

class RoadmapPolicyEnum(str, enum.Enum):
    """How `upsert_roadmap` treats a topic that already has a roadmap."""

    replace = "replace"  # overwrite the current roadmap in place
    version = "version"  # insert a new roadmap row; newest row is current
