"""Async driver of the simulator.

The loop is the only place where effects are performed and engine events
are fed back into the simulator. It never blocks on the engine: it sends
requests and then consumes whatever events arrive, in whatever order,
until the engine has nothing left to say.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from rule_simulator.bridge.engine import EngineBridge, IEngine
from rule_simulator.bridge.messages import Effect, Message, RememberSituation, UserAction
from rule_simulator.runtime.persistence import SituationPersistence
from rule_simulator.runtime.simulator import Simulator

logger = logging.getLogger(__name__)


class SimulatorLoop:
    """Routes effects to the bridge or the persistence collaborator."""

    def __init__(
        self,
        simulator: Simulator,
        bridge: EngineBridge,
        persistence: Optional[SituationPersistence] = None,
    ):
        self.simulator = simulator
        self.bridge = bridge
        self.persistence = persistence

    def start(self) -> None:
        self.perform(self.simulator.start())

    def submit(self, message: Message) -> None:
        self.perform(self.simulator.dispatch(message))

    def perform(self, effects: List[Effect]) -> None:
        for effect in effects:
            if isinstance(effect, RememberSituation):
                self._remember(effect)
            else:
                self.bridge.send(effect)

    async def run_until_idle(self) -> int:
        """Consume engine events until no request is in flight. Returns the event count."""
        handled = 0
        while True:
            event = await self.bridge.next_event()
            if event is None:
                break
            self.submit(event)
            handled += 1
        logger.debug("Loop idle after %d engine event(s)", handled)
        return handled

    def _remember(self, effect: RememberSituation) -> None:
        if self.persistence is None:
            return
        try:
            self.persistence.remember(effect.situation)
        except IOError as exc:
            logger.warning("Could not remember situation: %s", exc)


async def settle(
    simulator: Simulator,
    engine: IEngine,
    actions: Iterable[UserAction] = (),
    persistence: Optional[SituationPersistence] = None,
    start: bool = False,
    fail_on_error: bool = False,
) -> Simulator:
    """
    Run one burst of interaction to quiescence.

    Opens a bridge to the engine, optionally issues the startup effects,
    submits the user actions in order, then drains engine events until the
    engine is idle.
    """
    async with EngineBridge(engine, fail_on_error=fail_on_error) as bridge:
        loop = SimulatorLoop(simulator, bridge, persistence)
        if start:
            loop.start()
        for action in actions:
            loop.submit(action)
        await loop.run_until_idle()
    return simulator
