"""
Periodic Sweeper

호스트가 제어하는 백그라운드 루프
interval마다 engine.sweep() 실행 (재시도 큐 처리 + 감쇠)
"""

import threading
from typing import Optional

from loguru import logger

from . import config as settings


def run_periodic(engine, interval: Optional[float] = None, stop_event: Optional[threading.Event] = None) -> int:
    """
    stop_event가 set될 때까지 sweep 반복

    Args:
        engine: TasteEngine
        interval: 실행 간격(초), 기본값은 sweep.SWEEP_INTERVAL_SECONDS 설정
        stop_event: 종료 신호

    Returns:
        실행한 sweep 횟수
    """
    interval = interval if interval is not None else settings.sweep.SWEEP_INTERVAL_SECONDS
    stop_event = stop_event or threading.Event()

    runs = 0
    logger.info(f"Sweeper started (interval={interval}s)")
    while not stop_event.is_set():
        engine.sweep()
        runs += 1
        if stop_event.wait(interval):
            break
    logger.info(f"Sweeper stopped after {runs} runs")
    return runs


def start_background(engine, interval: Optional[float] = None) -> threading.Event:
    """
    데몬 스레드에서 run_periodic 시작

    Returns:
        종료할 때 set() 할 이벤트
    """
    stop_event = threading.Event()
    thread = threading.Thread(
        target=run_periodic,
        args=(engine, interval, stop_event),
        name="taste-engine-sweeper",
        daemon=True,
    )
    thread.start()
    return stop_event
