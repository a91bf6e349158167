"""연결 단위로 부분 수신 데이터를 누적하는 가변 크기 바이트 버퍼."""

from __future__ import annotations

_MIN_CAPACITY = 32


class GrowableBuffer:
    """앞부분 소비를 지원하는 append 전용 바이트 누적기.

    읽지 않은 바이트는 항상 storage[0:length) 에 위치한다.
    용량은 2배씩(최소 32) 늘어나며 소비 시에도 줄어들지 않는다.
    한 연결이 단독으로 소유하며 연결 간에 공유하지 않는다.
    """

    __slots__ = ("_storage", "_length")

    def __init__(self) -> None:
        self._storage = bytearray()
        self._length  = 0

    def __len__(self) -> int:
        return self._length

    def __bool__(self) -> bool:
        return self._length > 0

    @property
    def capacity(self) -> int:
        return len(self._storage)

    def view(self) -> memoryview:
        """읽지 않은 영역에 대한 memoryview를 반환한다 (복사 없음)."""
        return memoryview(self._storage)[: self._length]

    def find(self, needle: bytes) -> int:
        """읽지 않은 영역에서 needle의 첫 위치를 찾는다. 없으면 -1."""
        return self._storage.find(needle, 0, self._length)

    def append(self, data: bytes) -> None:
        """data를 끝에 추가한다. 필요하면 용량을 2배씩 늘린다."""
        new_len = self._length + len(data)
        if len(self._storage) < new_len:
            cap = max(len(self._storage), _MIN_CAPACITY)
            while cap < new_len:
                cap *= 2
            grown = bytearray(cap)
            grown[: self._length] = self._storage[: self._length]
            self._storage = grown
        self._storage[self._length:new_len] = data
        self._length = new_len

    def consume_prefix(self, n: int) -> None:
        """앞쪽 n 바이트를 버리고 나머지를 0번 위치로 당긴다."""
        if n < 0 or n > self._length:
            raise ValueError(f"cannot consume {n} bytes from buffer of length {self._length}")
        self._storage[0:self._length - n] = self._storage[n:self._length]
        self._length -= n

    def pop_prefix(self, n: int) -> bytes:
        """앞쪽 n 바이트를 독립된 bytes 사본으로 꺼내고 소비한다."""
        if n < 0 or n > self._length:
            raise ValueError(f"cannot pop {n} bytes from buffer of length {self._length}")
        data = bytes(self._storage[:n])
        self.consume_prefix(n)
        return data
