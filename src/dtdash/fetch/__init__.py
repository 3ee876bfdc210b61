"""Upstream fetchers: registry manifests and published file listings."""

from dtdash.fetch.files import FileLister, flatten_tree
from dtdash.fetch.http import HostQueues, HttpClient
from dtdash.fetch.models import Manifest, Packument
from dtdash.fetch.registry import RegistryClient, ResolvedManifest, pick_version

__all__ = [
    "FileLister",
    "HostQueues",
    "HttpClient",
    "Manifest",
    "Packument",
    "RegistryClient",
    "ResolvedManifest",
    "flatten_tree",
    "pick_version",
]
