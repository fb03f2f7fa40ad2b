"""Action types and sentinels shared by the orchestrator and the reducers."""

ABORT_REQUESTS = 'ABORT_REQUESTS'
RESET_REQUESTS = 'RESET_REQUESTS'

SUCCESS_SUFFIX = '_SUCCESS'
ERROR_SUFFIX = '_ERROR'
ABORT_SUFFIX = '_ABORT'

INCORRECT_PAYLOAD_ERROR = "request action must carry 'request' as a mapping or a non-empty list of mappings"


class _RequestAborted:
    """Singleton marking a call that ended because it was cancelled."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return 'REQUEST_ABORTED'

    def __reduce__(self):
        return (_RequestAborted, ())


REQUEST_ABORTED = _RequestAborted()

__all__ = [
    'ABORT_REQUESTS',
    'RESET_REQUESTS',
    'SUCCESS_SUFFIX',
    'ERROR_SUFFIX',
    'ABORT_SUFFIX',
    'INCORRECT_PAYLOAD_ERROR',
    'REQUEST_ABORTED',
]
