import asyncio
import threading

from app.services.live import Broadcaster, research_channel


def test_publish_without_subscribers():
    assert Broadcaster().publish("feed", {"id": "x"}) == 0


def test_subscriber_receives_from_worker_thread():
    broadcaster = Broadcaster()

    async def scenario():
        async with broadcaster.subscribe(research_channel("r1")) as queue:
            worker = threading.Thread(
                target=broadcaster.publish, args=(research_channel("r1"), {"progress": 5})
            )
            worker.start()
            worker.join()
            return await asyncio.wait_for(queue.get(), timeout=1)

    assert asyncio.run(scenario()) == {"progress": 5}


def test_channels_are_isolated():
    broadcaster = Broadcaster()

    async def scenario():
        async with broadcaster.subscribe(research_channel("r1")) as queue:
            broadcaster.publish(research_channel("r2"), {"progress": 5})
            await asyncio.sleep(0)
            return queue.empty()

    assert asyncio.run(scenario())


def test_full_queue_keeps_latest_snapshots():
    broadcaster = Broadcaster(queue_size=2)

    async def scenario():
        async with broadcaster.subscribe("feed") as queue:
            for pct in (5, 10, 15):
                broadcaster.publish("feed", {"progress": pct})
            await asyncio.sleep(0)
            return [queue.get_nowait()["progress"] for _ in range(queue.qsize())]

    assert asyncio.run(scenario()) == [10, 15]


def test_unsubscribe_on_exit():
    broadcaster = Broadcaster()

    async def scenario():
        async with broadcaster.subscribe("feed"):
            assert broadcaster.subscriber_count("feed") == 1
        return broadcaster.subscriber_count("feed")

    assert asyncio.run(scenario()) == 0
