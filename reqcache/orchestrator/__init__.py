from .interceptors import InterceptorLayer, InterceptorPipeline, InterceptorSlot
from .orchestrator import RequestOrchestrator, RequestPhase
from .pending import CallGroup, CallHandle, PendingCallRegistry
from .store import RequestsStore

__all__ = [
    'CallGroup',
    'CallHandle',
    'InterceptorLayer',
    'InterceptorPipeline',
    'InterceptorSlot',
    'PendingCallRegistry',
    'RequestOrchestrator',
    'RequestPhase',
    'RequestsStore',
]
