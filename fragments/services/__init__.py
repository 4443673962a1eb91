from fragments.services.fragment_service import FragmentService, RenderedContent
from fragments.services.versions import VersionContent, VersionManager

__all__ = [
    "FragmentService",
    "RenderedContent",
    "VersionContent",
    "VersionManager",
]
