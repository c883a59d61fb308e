import asyncio
import logging
import sys
from itertools import count
from typing import Any, Coroutine, NamedTuple, Optional

from MoveTogether.share.enums.ApiPriority import ApiPriority

logger = logging.getLogger(__name__)


class APIRequest(NamedTuple):
    """
    优先级队列中的一个 API 请求。
    - priority: 优先级，数字越小越高。
    - count: 入队序号，同优先级时保证先进先出。
    - coro: 需要被执行的协程对象 (例如 member.move_to(...))。
    - future: 协程执行完毕后用于返回结果或异常。
    """

    priority: int
    count: int
    coro: Optional[Coroutine[Any, Any, Any]]
    future: Optional[asyncio.Future]

    @property
    def is_sentinel(self) -> bool:
        return self.coro is None


class APIScheduler:
    """
    带优先级的中央 API 请求调度器。

    交互响应、发起人的移动等请求会先于批量移动和通知执行，
    并使用 Semaphore 保证同时发往 Discord 的请求数不超过上限。
    """

    def __init__(self, concurrent_requests: int = 5):
        """
        :param concurrent_requests: 允许同时发往 Discord API 的最大并发请求数。
        """
        self._queue: asyncio.PriorityQueue[APIRequest] = asyncio.PriorityQueue()
        self._semaphore = asyncio.Semaphore(concurrent_requests)
        self._task: asyncio.Task | None = None
        self._workers: set[asyncio.Task] = set()
        self._is_running = False
        self._counter = count()

    @property
    def is_running(self) -> bool:
        return self._is_running

    async def _dispatcher_loop(self):
        """从队列中按优先级取出请求并交给 worker。"""
        logger.info("API 调度器主循环已启动。")
        while True:
            await self._semaphore.acquire()
            try:
                request = await self._queue.get()
            except asyncio.CancelledError:
                self._semaphore.release()
                logger.info("API 调度器主循环被取消。")
                raise

            self._queue.task_done()
            if request.is_sentinel:
                # 哨兵对象，退出循环
                self._semaphore.release()
                break

            worker = asyncio.create_task(self._worker(request))
            self._workers.add(worker)
            worker.add_done_callback(self._workers.discard)

    async def _worker(self, request: APIRequest):
        """执行单个请求，并把结果或异常交还给提交者。"""
        assert request.coro is not None and request.future is not None
        try:
            result = await request.coro
            if not request.future.done():
                request.future.set_result(result)
        except asyncio.CancelledError:
            if not request.future.done():
                request.future.cancel()
            raise
        except Exception as e:
            # 异常交给提交者处理，这里只记录调试信息
            logger.debug(f"执行协程 (优先级: {request.priority}) 时发生错误: {e!r}")
            if not request.future.done():
                request.future.set_exception(e)
        finally:
            self._semaphore.release()

    async def submit(
        self, coro: Coroutine, priority: int = ApiPriority.MESSAGE
    ) -> Any:
        """
        向调度器提交一个 API 请求并等待其结果。
        这是外部代码与调度器交互的唯一入口。

        :param coro: 要执行的 API 调用协程。
        :param priority: 请求的优先级，参见 ApiPriority。
        :return: API 调用协程的返回结果；协程抛出的异常会原样抛出。
        """
        if not self._is_running:
            coro.close()
            raise RuntimeError("API 调度器没有在运行")

        future = asyncio.get_running_loop().create_future()
        request = APIRequest(
            priority=int(priority), count=next(self._counter), coro=coro, future=future
        )
        await self._queue.put(request)
        return await future

    def start(self):
        """启动调度器后台任务。"""
        if self._is_running:
            return
        self._is_running = True
        self._task = asyncio.create_task(self._dispatcher_loop())

    async def stop(self):
        """
        停止调度器。已经开始执行的请求会等待其结束，
        仍在队列中的请求会被取消。
        """
        if not self._is_running or not self._task:
            return

        logger.info("即将停止 API 调度器...")
        self._is_running = False

        # 先清空尚未派发的请求
        while not self._queue.empty():
            request = self._queue.get_nowait()
            self._queue.task_done()
            if request.coro is not None:
                request.coro.close()
            if request.future is not None and not request.future.done():
                request.future.cancel()

        # 哨兵的 priority 为最大值，排在所有请求之后
        await self._queue.put(
            APIRequest(priority=sys.maxsize, count=next(self._counter), coro=None, future=None)
        )
        await self._task
        self._task = None

        if self._workers:
            await asyncio.gather(*self._workers, return_exceptions=True)

        logger.info("API 调度器已停止。")
