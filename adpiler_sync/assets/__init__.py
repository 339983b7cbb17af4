"""
Asset package — attachment models, dimension probing, classification.
"""

from adpiler_sync.assets.classifier import AssetClassifier
from adpiler_sync.assets.models import AssetCandidate, Attachment, ClassifiedAssets
from adpiler_sync.assets.probe import DimensionProbe, pillow_probe

__all__ = [
    "AssetCandidate",
    "AssetClassifier",
    "Attachment",
    "ClassifiedAssets",
    "DimensionProbe",
    "pillow_probe",
]
