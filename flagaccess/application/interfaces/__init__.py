"""Ports (Protocols) the use cases depend on."""

from flagaccess.application.interfaces.repositories import IRecordStore, RecordLike
from flagaccess.application.interfaces.services import IAuditEmitter, IPermissionResolver

__all__ = ["IRecordStore", "RecordLike", "IPermissionResolver", "IAuditEmitter"]
