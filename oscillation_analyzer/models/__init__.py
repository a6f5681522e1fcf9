from .catalog import DatasetCatalog
from .frames import SkippedLine, SourceRecords
from .profile import AnalysisProfile
from .records import Record, SegmentMapEntry
from .results import BlockedSpectrum, ShapeReport, WeightedAccumulation

__all__ = [
    "AnalysisProfile",
    "BlockedSpectrum",
    "DatasetCatalog",
    "Record",
    "SegmentMapEntry",
    "ShapeReport",
    "SkippedLine",
    "SourceRecords",
    "WeightedAccumulation",
]
