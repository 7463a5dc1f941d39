from wiwebb_data.services.data_service import DataService

__all__ = ["DataService"]
