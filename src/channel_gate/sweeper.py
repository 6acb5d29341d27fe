# src/channel_gate/sweeper.py

import asyncio
import traceback
from typing import Optional, Tuple

from .stores import SessionStore, TokenStore


class ExpirySweeper:
    """
    Periodically drops expired tokens and sessions to reclaim memory.
    Enforcement never depends on it: the stores reject expired entries on their own.
    """

    def __init__(self, token_store: TokenStore, session_store: SessionStore, interval_seconds: float):
        self.token_store = token_store
        self.session_store = session_store
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None

    def run_once(self) -> Tuple[int, int]:
        now = self.session_store.clock()
        tokens_removed = self.token_store.sweep(now)
        sessions_removed = self.session_store.sweep(now)
        if tokens_removed or sessions_removed:
            print(f"SWEEPER: Removed {tokens_removed} expired token(s) and {sessions_removed} expired session(s).")
        return tokens_removed, sessions_removed

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                self.run_once()
            except Exception as e:
                print(f"SWEEPER: Sweep pass failed: {e}")
                traceback.print_exc()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        print(f"SWEEPER: Started, interval {self.interval_seconds}s.")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        print("SWEEPER: Stopped.")
