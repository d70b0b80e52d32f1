"""키별 단일 실행(single-flight). 같은 키의 동시 호출을 진행 중인 하나의 태스크로 합친다."""

import asyncio
from collections.abc import Callable, Coroutine, Hashable
from functools import partial
from typing import Any, Generic, TypeVar

K = TypeVar("K", bound=Hashable)
T = TypeVar("T")


class SingleFlight(Generic[K, T]):
    """
    프로세스 내 in-flight 맵(key → asyncio.Task).
    시작 시 등록, 태스크 완료(성공/실패 무관) 시 제거. 프로세스 간 상호배제는 제공하지 않는다.
    """

    def __init__(self) -> None:
        self._inflight: dict[K, asyncio.Task[T]] = {}

    def __contains__(self, key: object) -> bool:
        return key in self._inflight

    def __len__(self) -> int:
        return len(self._inflight)

    async def run(self, key: K, factory: Callable[[], Coroutine[Any, Any, T]]) -> T:
        """key로 진행 중인 태스크가 있으면 합류, 없으면 factory()로 새로 시작."""
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.create_task(factory())
            self._inflight[key] = task
            task.add_done_callback(partial(self._forget, key))
        # 대기자 하나가 취소돼도 공유 태스크는 계속 진행.
        return await asyncio.shield(task)

    def _forget(self, key: K, task: asyncio.Task[T]) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
