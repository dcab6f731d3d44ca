"""Tests for the streaming pipeline."""

import asyncio
from datetime import timedelta

import pytest

from anxiety_engine.scoring.session import ScoringSession
from anxiety_engine.streaming.pipeline import PhysioEvent, StreamPipeline


@pytest.mark.asyncio
async def test_pipeline_publish_and_consume(resting_sample):
    """Events published to the pipeline reach registered consumers."""
    received: list[PhysioEvent] = []

    async def consumer(event: PhysioEvent) -> None:
        received.append(event)

    pipeline = StreamPipeline()
    pipeline.add_consumer(consumer)

    # Start pipeline in background
    task = asyncio.create_task(pipeline.start())

    await pipeline.publish(PhysioEvent(user_id="P001", sample=resting_sample))

    # Give the consumer loop time to process
    await asyncio.sleep(0.2)
    await pipeline.stop()
    task.cancel()

    assert len(received) == 1
    assert received[0].sample.hr == 62.0
    assert pipeline.processed_total == 1


@pytest.mark.asyncio
async def test_pipeline_batch_keeps_order(resting_sample):
    received: list[float] = []

    async def consumer(event: PhysioEvent) -> None:
        received.append(event.sample.hr)

    pipeline = StreamPipeline()
    pipeline.add_consumer(consumer)
    task = asyncio.create_task(pipeline.start())

    events = [
        PhysioEvent(user_id="P001", sample=resting_sample.model_copy(update={"hr": float(70 + i)}))
        for i in range(5)
    ]
    await pipeline.publish_batch(events)

    await pipeline.drain()
    await pipeline.stop()
    task.cancel()

    assert received == [70.0, 71.0, 72.0, 73.0, 74.0]
    assert pipeline.pending == 0


@pytest.mark.asyncio
async def test_consumer_error_does_not_stop_loop(resting_sample):
    received: list[str] = []

    async def failing(event: PhysioEvent) -> None:
        raise RuntimeError("boom")

    async def recording(event: PhysioEvent) -> None:
        received.append(event.user_id)

    pipeline = StreamPipeline()
    pipeline.add_consumer(failing)
    pipeline.add_consumer(recording)
    task = asyncio.create_task(pipeline.start())

    await pipeline.publish_batch(
        [PhysioEvent(user_id=u, sample=resting_sample) for u in ("P001", "P002")]
    )
    await pipeline.drain()
    await pipeline.stop()
    task.cancel()

    assert received == ["P001", "P002"]


@pytest.mark.asyncio
async def test_samples_feed_session_baselines(settings, clock, resting_sample):
    session = ScoringSession("P001", settings=settings, clock=clock)

    async def apply(event: PhysioEvent) -> None:
        session.on_new_physio_sample(event.sample)

    pipeline = StreamPipeline()
    pipeline.add_consumer(apply)
    task = asyncio.create_task(pipeline.start())

    t0 = resting_sample.timestamp
    await pipeline.publish_batch(
        [
            PhysioEvent(
                user_id="P001",
                sample=resting_sample.model_copy(update={"timestamp": t0 + timedelta(minutes=i)}),
            )
            for i in range(6)
        ]
    )
    await pipeline.drain()
    await pipeline.stop()
    task.cancel()

    # one rest window per 120 s debounce: t0, t0+2m, t0+4m
    assert session.baselines.hr.observation_count == 3
    assert len(session.history) == 7
