#!/usr/bin/env python3
"""
Headless swarm runner.

Runs the simulation at frame cadence, optionally attaches the live-device
relay and a periodic AI threat advisor, and logs a metrics line periodically.

Run:
    python -m swarm_sim.main --duration 30 --live
    python -m swarm_sim.main --duration 60 --advise 10
"""

import argparse
import asyncio
import logging
from typing import Optional

from .ai_assistant import SwarmAssistant
from .config import SwarmConfig
from .live_control import LiveControlAdapter
from .simulation import SwarmSimulation


logger = logging.getLogger("swarm_sim")


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


async def _report_metrics(sim: SwarmSimulation, period_s: float) -> None:
    while True:
        await asyncio.sleep(period_s)
        m = sim.get_metrics()
        logger.info(
            "t=%.1fs active=%d jammed=%d mesh=%.1f%% battery=%.1f resilience=%.1f%% progress=%.0f%%",
            sim.state.time_elapsed, m.active_drones, m.jammed_drones, m.mesh_connectivity,
            m.avg_battery, m.network_resilience, m.mission_progress,
        )


async def _advise(sim: SwarmSimulation, assistant: SwarmAssistant, period_s: float) -> None:
    # the request blocks on the network, so it runs in a worker thread off the tick path
    while True:
        await asyncio.sleep(period_s)
        analysis = await asyncio.to_thread(assistant.analyze_threat, sim.snapshot())
        if analysis is None:
            continue
        logger.info(
            "AI threat level %s: %s | action: %s",
            analysis.threat_level, analysis.assessment, analysis.recommended_action,
        )


async def run(
    sim: SwarmSimulation,
    duration_s: float,
    report_period_s: float,
    live: bool,
    assistant: Optional[SwarmAssistant] = None,
    advise_period_s: float = 0.0,
) -> None:
    sim.start()
    side_tasks = [asyncio.create_task(_report_metrics(sim, report_period_s))]

    adapter = None
    if live:
        adapter = LiveControlAdapter(sim, sim.config.ws_url, sim.config.reconnect_delay_s)
        side_tasks.append(asyncio.create_task(adapter.run()))

    if assistant is not None and advise_period_s > 0:
        side_tasks.append(asyncio.create_task(_advise(sim, assistant, advise_period_s)))

    loop_task = asyncio.create_task(sim.run_frame_loop())
    await asyncio.sleep(duration_s)
    sim.pause()
    ticks = await loop_task

    if adapter is not None:
        adapter.stop()
    for t in side_tasks:
        t.cancel()
    await asyncio.gather(*side_tasks, return_exceptions=True)

    logger.info("Stopped after %d ticks, %d decisions logged", ticks, len(sim.decision_log))


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="Drone swarm simulation under GPS denial and jamming")
    parser.add_argument("--duration", type=float, default=30.0, help="seconds to run")
    parser.add_argument("--report-every", type=float, default=2.0, help="seconds between metric lines")
    parser.add_argument("--live", action="store_true", help="connect to the live-device relay")
    parser.add_argument("--no-gps", action="store_true", help="start with GPS disabled")
    parser.add_argument("--no-jamming", action="store_true", help="start with jamming disabled")
    parser.add_argument("--advise", type=float, default=0.0, metavar="N",
                        help="request an AI threat analysis every N seconds (0 disables)")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)

    _setup_logging(args.verbose)

    config = SwarmConfig.from_env()
    sim = SwarmSimulation(config)
    if args.no_gps:
        sim.toggle_gps()
    if args.no_jamming:
        sim.toggle_jamming()

    assistant = SwarmAssistant(config) if args.advise > 0 else None

    asyncio.run(run(sim, args.duration, args.report_every, args.live, assistant, args.advise))


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        pass
