"""Package an Electron app into per-platform, per-architecture bundles."""

__version__ = "0.1.0"

from .errors import PackagerError
from .models import PackagingRequest, PipelineResult, RunReport
from .pipeline import CombinationPipeline, Packager, Stage, package
from .targets import SupportedTargets

__all__ = [
    "CombinationPipeline",
    "Packager",
    "PackagerError",
    "PackagingRequest",
    "PipelineResult",
    "RunReport",
    "Stage",
    "SupportedTargets",
    "package",
]
