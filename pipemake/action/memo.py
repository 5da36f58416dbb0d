"""Memoizing combinators for Actions."""

import threading

from .action import Action
from .models import ActionContext, Outcome


def memo(act: Action) -> Action:
    """Run ``act`` once and return its stored outcome afterwards.

    Access is serialized: if several steps call the memoized action in
    parallel, one runs it and the rest wait for the stored outcome.
    """
    lock = threading.Lock()
    memoized: list[Outcome] = []

    def run(ctx: ActionContext) -> Outcome:
        with lock:
            if not memoized:
                memoized.append(act(ctx))
            return memoized[0]

    return Action(run)


def memo_race(act: Action) -> Action:
    """Like memo, but without mutual exclusion.

    Callers racing before a result is stored each run ``act``; once a
    result has been stored it is returned immediately.
    """
    memoized: list[Outcome] = []

    def run(ctx: ActionContext) -> Outcome:
        if memoized:
            return memoized[0]
        result = act(ctx)
        if not memoized:
            memoized.append(result)
        return memoized[0]

    return Action(run)
