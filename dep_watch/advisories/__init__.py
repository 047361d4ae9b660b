"""Advisory sources of compromised packages for DepWatch."""

from .extractors import EXTRACTORS, get_extractor, strip_html
from .online import AdvisoryFetcher
from .offline import load_advisory_file, load_registry, registry_document

__all__ = [
    "EXTRACTORS",
    "get_extractor",
    "strip_html",
    "AdvisoryFetcher",
    "load_advisory_file",
    "load_registry",
    "registry_document",
]
