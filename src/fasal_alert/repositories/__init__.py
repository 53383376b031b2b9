"""
DynamoDB-backed collaborator stores for farmers, crop batches and advisories.
"""

from .advisories import AdvisoriesRepository
from .crop_batches import CropBatchesRepository
from .farmers import FarmersRepository

__all__ = [
    "AdvisoriesRepository",
    "CropBatchesRepository",
    "FarmersRepository",
]
