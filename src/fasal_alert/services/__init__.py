from .advisory_service import AdvisoryService

__all__ = ["AdvisoryService"]
