"""Request orchestration middleware.

A request action is turned into driver calls and then walked through a small state
machine::

    REQUESTING -> EXECUTING -> RESOLVING ------------------------> DONE
                      |            ^
                      v            | (an error interceptor resolved)
                 ERRORING/ABORTING +-----> DONE (error or abort action)

Each error-path stage returns a ``StageResult``: either keep erroring with a
(possibly replaced) cause, or divert to the success branch with a response.
"""

import asyncio
import inspect
from dataclasses import dataclass, field
from enum import Enum
from functools import partial
from typing import Any, Awaitable, Callable, Dict, List, Optional

import structlog

from reqcache.actions import (
    Action,
    create_abort_action,
    create_error_action,
    create_success_action,
    get_action_payload,
    get_dedup_key,
    get_keys,
    get_request_key,
    is_action_rehydrated,
    is_batch_request,
)
from reqcache.common.request_context import RequestContext, set_request_context
from reqcache.config.log import get_logger
from reqcache.config.models import RequestsConfig
from reqcache.constants import ABORT_REQUESTS, INCORRECT_PAYLOAD_ERROR, REQUEST_ABORTED, RESET_REQUESTS
from reqcache.drivers.interfaces import Driver
from reqcache.drivers.registry import DriverRegistry
from reqcache.exceptions import IncorrectPayloadError, RequestAbortedError, RequestFailedError, TransformError
from reqcache.orchestrator.batch import merge_batch_responses
from reqcache.orchestrator.interceptors import InterceptorPipeline, InterceptorSlot, invoke
from reqcache.orchestrator.pending import CallGroup, CallHandle, PendingCallRegistry
from reqcache.orchestrator.store import RequestsStore
from reqcache.reducers.selectors import get_query

logger = get_logger(__name__)

Dispatch = Callable[[Action], Any]


class RequestPhase(str, Enum):
    REQUESTING = 'requesting'
    EXECUTING = 'executing'
    RESOLVING = 'resolving'
    ERRORING = 'erroring'
    ABORTING = 'aborting'
    DONE = 'done'


@dataclass(frozen=True)
class StageResult:
    divert: bool
    value: Any


@dataclass(frozen=True)
class CallOutcome:
    ok: bool
    value: Any


@dataclass
class RequestRun:
    """Mutable state of one request action while it is being orchestrated."""

    action: Action
    store: RequestsStore
    context: RequestContext
    phase: RequestPhase = RequestPhase.REQUESTING
    driver: Optional[Driver] = None
    group: Optional[CallGroup] = None
    handles: List[CallHandle] = field(default_factory=list)

    @property
    def key(self) -> str:
        return get_dedup_key(self.action)

    @property
    def rehydrated(self) -> bool:
        return is_action_rehydrated(self.action)

    @property
    def batch(self) -> bool:
        return is_batch_request(self.action)

    @property
    def silent(self) -> bool:
        return bool((self.action.meta or {}).get('silent'))


def _validate_payload(action: Action) -> None:
    request = get_action_payload(action).get('request')
    if isinstance(request, dict):
        return
    if isinstance(request, list) and request and all(isinstance(r, dict) for r in request):
        return
    raise IncorrectPayloadError(f"{INCORRECT_PAYLOAD_ERROR} (action '{action.type}')")


def _consume_exception(task: asyncio.Future) -> None:
    # Marks the outcome as retrieved for fire-and-forget dispatches; awaiting still raises.
    if not task.cancelled():
        task.exception()


def _as_response(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {'data': value}


class RequestOrchestrator:
    """Store middleware executing request actions through drivers and interceptors.

    Usage with a redux-like store::

        orchestrator = RequestOrchestrator(config)
        dispatch = orchestrator(store)(next_dispatch)

    Request actions must be dispatched from a running event loop; their dispatch
    returns an ``asyncio.Task`` resolving to ``{'action': success_action, **response}``
    or raising ``RequestFailedError`` / ``RequestAbortedError``.
    """

    def __init__(self, config: RequestsConfig):
        self.config = config
        self.drivers = DriverRegistry(config.driver)
        self.pending = PendingCallRegistry()
        self.interceptors = InterceptorPipeline(config)

    def __call__(self, store: Any) -> Callable[[Dispatch], Dispatch]:
        def wrap(next_: Dispatch) -> Dispatch:
            return partial(self.handle, store=store, next_=next_)

        return wrap

    def handle(self, action: Action, store: Any, next_: Dispatch) -> Any:
        payload = get_action_payload(action)

        if action.type == ABORT_REQUESTS or (action.type == RESET_REQUESTS and payload.get('abort_pending')):
            self.abort_pending_requests(action)
            return next_(action)

        if self.config.is_request_action(action):
            return self._start(action, store, next_)

        return next_(action)

    def abort_pending_requests(self, action: Action) -> int:
        """Cancel the pending requests named by the action's key list, or all of them."""
        requests = get_action_payload(action).get('requests')
        if requests is None:
            cancelled = self.pending.cancel_all()
        else:
            cancelled = self.pending.cancel_keys(get_keys(requests))

        logger.info('Pending calls cancelled', trigger=action.type, cancelled=cancelled)
        return cancelled

    async def close(self):
        await self.drivers.close_all()

    def _start(self, action: Action, store: Any, next_: Dispatch) -> asyncio.Task:
        """Run everything up to the issued calls within dispatch, then hand over to a task.

        Synchronous on-request hooks, the forwarded request action, the take-latest
        cancellation and the registry entry are all in place when dispatch returns,
        so an abort dispatched right after reaches this request. The registry slot is
        reserved before any asynchronous hook suspends.
        """
        _validate_payload(action)
        run = RequestRun(action=action, store=RequestsStore(store), context=RequestContext(action_type=action.type, request_key=get_request_key(action)))
        if not run.rehydrated:
            run.context.driver_name, run.driver = self.drivers.resolve(action)
        loop = asyncio.get_running_loop()

        with structlog.contextvars.bound_contextvars(**run.context.log_fields()):
            self._reserve(run)
            try:
                prepared = self.interceptors.run_request(run.action, run.store)
                if not inspect.isawaitable(prepared):
                    run.action = prepared
                    self._forward(run, next_)
                    self._issue(run)
                    prepared = None
            except Exception:
                self._release(run)
                raise

        task = loop.create_task(self._run(run, next_, prepared), name=f'reqcache:{action.type}')
        task.add_done_callback(_consume_exception)
        return task

    def _reserve(self, run: RequestRun) -> None:
        if run.rehydrated:
            return
        key = run.key
        if self.config.resolve_take_latest(run.action) and key in self.pending:
            cancelled = self.pending.cancel(key)
            logger.debug('Superseded pending calls cancelled', key=key, cancelled=cancelled)
        if run.driver.cancellable:
            run.group = CallGroup()
            self.pending.register(key, run.group)

    def _release(self, run: RequestRun) -> None:
        if run.group is not None:
            self.pending.release(run.key, run.group)

    def _forward(self, run: RequestRun, next_: Dispatch) -> None:
        if not run.silent:
            next_(run.action)
        run.phase = RequestPhase.EXECUTING

    def _issue(self, run: RequestRun) -> None:
        if run.rehydrated:
            return
        if run.group is not None and run.group.cancelled:
            logger.info('Request cancelled before issue', key=run.key)
            return

        request = get_action_payload(run.action)['request']
        requests = request if run.batch else [request]
        if run.batch:
            run.context.batch_size = len(requests)

        loop = asyncio.get_running_loop()
        for descriptor in requests:
            task = loop.create_task(run.driver.execute(descriptor, run.action))
            task.add_done_callback(_consume_exception)
            handle = CallHandle(task, cancellable=run.driver.cancellable)
            run.handles.append(handle)
            if run.group is not None:
                run.group.add(handle)

        logger.info('Request issued', key=run.key, driver=run.context.driver_name, calls=len(run.handles))

    async def _run(self, run: RequestRun, next_: Dispatch, prepared: Optional[Awaitable[Action]]) -> Dict[str, Any]:
        set_request_context(run.context)

        with structlog.contextvars.bound_contextvars(**run.context.log_fields()):
            try:
                if prepared is not None:
                    run.action = await prepared
                    self._forward(run, next_)
                    self._issue(run)
                outcome = await self._execute(run)
            finally:
                self._release(run)

            diverted = False
            value = outcome.value
            if not outcome.ok:
                result = await self._run_error_stages(run, value)
                if not result.divert:
                    self._emit_failure(run, result.value)
                diverted, value = True, result.value

            try:
                return await self._resolve(run, value, diverted)
            except TransformError as e:
                self._emit_failure(run, e)

    async def _execute(self, run: RequestRun) -> CallOutcome:
        meta = run.action.meta or {}
        if meta.get('cache_response'):
            return CallOutcome(True, [meta['cache_response']])
        if meta.get('ssr_response'):
            return CallOutcome(True, [meta['ssr_response']])
        if meta.get('ssr_error'):
            return CallOutcome(False, meta['ssr_error'])
        if not run.handles:
            return CallOutcome(False, REQUEST_ABORTED)

        tasks = [handle.task for handle in run.handles]
        try:
            await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        except asyncio.CancelledError:
            for task in tasks:
                task.cancel()
            raise

        return self._collect(run.handles)

    @staticmethod
    def _collect(handles: List[CallHandle]) -> CallOutcome:
        tasks = [handle.task for handle in handles]
        failure = None
        if any(handle.cancelled for handle in handles):
            failure = REQUEST_ABORTED
        else:
            for task in tasks:
                if not task.done():
                    continue
                if task.cancelled():
                    failure = REQUEST_ABORTED
                    break
                if task.exception() is not None:
                    failure = task.exception()
                    break

        if failure is None:
            return CallOutcome(True, [task.result() for task in tasks])

        for task in tasks:
            if not task.done():
                task.cancel()
        return CallOutcome(False, failure)

    def _error_stages(self, run: RequestRun) -> List[Callable[..., Any]]:
        stages = [self._apply_get_error]
        stages += [partial(self._apply_on_error, slot=slot) for slot in self.interceptors.slots('on_error', run.action)]
        stages += [partial(self._apply_on_abort, slot=slot) for slot in self.interceptors.slots('on_abort', run.action)]
        return stages

    async def _run_error_stages(self, run: RequestRun, cause: Any) -> StageResult:
        for stage in self._error_stages(run):
            run.phase = RequestPhase.ABORTING if cause is REQUEST_ABORTED else RequestPhase.ERRORING
            result = await stage(run, cause)
            if result.divert:
                return result
            cause = result.value
        return StageResult(False, cause)

    async def _apply_get_error(self, run: RequestRun, cause: Any) -> StageResult:
        get_error = (run.action.meta or {}).get('get_error')
        if cause is REQUEST_ABORTED or run.rehydrated or get_error is None:
            return StageResult(False, cause)
        try:
            return StageResult(False, await invoke(get_error, cause))
        except Exception as e:
            return StageResult(False, e)

    async def _apply_on_error(self, run: RequestRun, cause: Any, slot: InterceptorSlot) -> StageResult:
        if cause is REQUEST_ABORTED or not slot.active:
            return StageResult(False, cause)
        try:
            value = await invoke(slot.hook, cause, run.action, run.store)
        except Exception as e:
            return StageResult(False, e)

        logger.info('Error resolved by interceptor', layer=slot.layer.value)
        return StageResult(True, value)

    async def _apply_on_abort(self, run: RequestRun, cause: Any, slot: InterceptorSlot) -> StageResult:
        if cause is not REQUEST_ABORTED or not slot.active:
            return StageResult(False, cause)
        try:
            await invoke(slot.hook, run.action, run.store)
        except Exception as e:
            return StageResult(False, e)
        return StageResult(False, cause)

    async def _call_transform(self, stage: str, hook: Callable[..., Any], *args: Any) -> Any:
        try:
            return await invoke(hook, *args)
        except Exception as e:
            raise TransformError(f'{stage} failed: {e}', stage=stage) from e

    async def _resolve(self, run: RequestRun, value: Any, diverted: bool) -> Dict[str, Any]:
        run.phase = RequestPhase.RESOLVING
        if diverted:
            response = _as_response(value)
        elif run.batch and not run.rehydrated:
            response = merge_batch_responses(value)
        else:
            response = value[0]

        get_data = (run.action.meta or {}).get('get_data')
        if get_data is not None and not run.rehydrated:
            query = get_query(run.store.get_state(), run.action.type, get_request_key(run.action))
            data = await self._call_transform('get_data', get_data, response.get('data'), query['data'])
            response = {**response, 'data': data}

        for slot in self.interceptors.active_slots('on_success', run.action):
            result = await self._call_transform(f'on_success[{slot.layer.value}]', slot.hook, response, run.action, run.store)
            if not run.rehydrated:
                response = result

        success_action = create_success_action(run.action, response)
        if not run.silent:
            run.store.dispatch(success_action)

        run.phase = RequestPhase.DONE
        logger.info('Request succeeded', rehydrated=run.rehydrated)
        return {'action': success_action, **response}

    def _emit_failure(self, run: RequestRun, cause: Any) -> None:
        run.phase = RequestPhase.DONE
        correlation_id = run.context.correlation_id

        if cause is REQUEST_ABORTED:
            abort_action = create_abort_action(run.action)
            if not run.silent:
                run.store.dispatch(abort_action)
            logger.info('Request aborted')
            raise RequestAbortedError(f"Request '{run.action.type}' aborted", action=abort_action, correlation_id=correlation_id)

        error_action = create_error_action(run.action, cause)
        if not run.silent:
            run.store.dispatch(error_action)
        logger.warning('Request failed', error=str(cause), error_type=type(cause).__name__)

        failure = RequestFailedError(f"Request '{run.action.type}' failed: {cause}", action=error_action, error=cause, correlation_id=correlation_id)
        if isinstance(cause, BaseException):
            raise failure from cause
        raise failure
