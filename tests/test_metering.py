import datetime

import pandas as pd
import pytest

from greenpe_exchange.metering import MeteringFeed


@pytest.fixture()
def readings():
    return []


@pytest.fixture()
def feed(scheduler, readings):
    return MeteringFeed(scheduler, readings.append, seed=1)


class TestMeteringFeed:
    def test_emits_every_interval_while_running(self, scheduler, feed, readings):
        feed.start()
        scheduler.advance(9)
        assert len(readings) == 3
        assert [r.taken_at for r in readings] == [
            scheduler.epoch + datetime.timedelta(seconds=s) for s in (3, 6, 9)
        ]

        scheduler.advance(2.9)
        assert len(readings) == 3

    def test_readings_in_range_and_rounded(self, feed):
        for _ in range(200):
            reading = feed.tick()
            assert 0.1 <= reading.kwh <= 1.2
            assert reading.kwh == round(reading.kwh, 3)

    def test_stop_cancels_future_ticks(self, scheduler, feed, readings):
        feed.start()
        scheduler.advance(4)
        feed.stop()
        scheduler.advance(30)

        assert len(readings) == 1
        assert not feed.is_running
        assert scheduler.pending == []

    def test_restart_schedules_fresh_interval(self, scheduler, feed, readings):
        feed.start()
        scheduler.advance(2)
        feed.stop()
        feed.start()
        scheduler.advance(2)
        assert readings == []
        scheduler.advance(1)
        assert len(readings) == 1

    def test_start_twice_keeps_a_single_timer(self, scheduler, feed, readings):
        feed.start()
        feed.start()
        scheduler.advance(3)
        assert len(readings) == 1

    def test_toggle(self, feed):
        assert feed.toggle() is True
        assert feed.toggle() is False

    def test_same_seed_same_readings(self, scheduler):
        a = MeteringFeed(scheduler, lambda r: None, seed=5)
        b = MeteringFeed(scheduler, lambda r: None, seed=5)
        assert [a.sample() for _ in range(5)] == [b.sample() for _ in range(5)]

    def test_explicit_tick_amount(self, feed, readings):
        feed.tick(0.4567)
        assert readings[0].kwh == 0.457
        assert feed.last_reading == readings[0]

    def test_replay_csv(self, tmp_path, feed, readings):
        csv_path = tmp_path / "readings.csv"
        pd.DataFrame({
            "timestamp": ["2024-06-01 12:00:03", "2024-06-01 12:00:06"],
            "kwh": [0.5, 0.75],
        }).to_csv(csv_path, index=False)

        frame = feed.load_readings(str(csv_path))
        emitted = feed.replay(frame)

        assert [r.kwh for r in emitted] == [0.5, 0.75]
        assert readings == emitted

    def test_load_readings_requires_kwh_column(self, tmp_path, feed):
        csv_path = tmp_path / "bad.csv"
        pd.DataFrame({"energy": [1.0]}).to_csv(csv_path, index=False)
        with pytest.raises(ValueError):
            feed.load_readings(str(csv_path))

    def test_load_readings_rejects_negative(self, tmp_path, feed):
        csv_path = tmp_path / "negative.csv"
        pd.DataFrame({"kwh": [1.0, -0.2]}).to_csv(csv_path, index=False)
        with pytest.raises(ValueError):
            feed.load_readings(str(csv_path))
