"""Architecture rules: layering and dependency boundaries."""

from .no_mongo_in_controller import MongoUsage, NoMongoInControllerRule

__all__ = ["MongoUsage", "NoMongoInControllerRule"]
