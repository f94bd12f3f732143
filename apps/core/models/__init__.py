from .base import AuditModel, BaseModel, User

__all__ = ["AuditModel", "BaseModel", "User"]
